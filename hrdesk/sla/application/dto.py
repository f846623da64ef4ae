"""
SLA Application DTOs
=====================

Data Transfer Objects for the SLA API layer.

These Pydantic models handle serialization/deserialization and validation
for API requests and responses. Following YAGNI - only what's needed.
"""

from pydantic import BaseModel, Field
from typing import List, Optional, Literal
from datetime import datetime


# ========== Type Aliases for Literals ==========
SLABucketStr = Literal["closed_within", "closed_exceeded", "open_within", "open_exceeded", "reminder_due"]


# ========== Request DTOs ==========

class ReportRecordDTO(BaseModel):
    """A request record supplied for offline classification."""
    request_id: str = Field(default="", description="Request ID")
    service: str = Field(default="", description="Service name")
    process_step: str = Field(default="", description="Process step")
    status: str = Field(default="Open", description="Request status")
    company: str = Field(default="")
    request_date: Optional[datetime] = None
    due_date: Optional[datetime] = None
    start: Optional[datetime] = None
    pause: Optional[datetime] = None
    resume: Optional[datetime] = None
    end: Optional[datetime] = None
    tat_minutes: float = Field(default=0.0, ge=0)


class ReportRequest(BaseModel):
    """Body of POST /sla/report."""
    records: List[ReportRecordDTO] = Field(
        ...,
        description="Records to classify"
    )


# ========== Response DTOs ==========

class DueDatePreviewResponse(BaseModel):
    """Response of GET /sla/due-date."""
    service: str
    process_step: str
    request_date: datetime
    due_date: Optional[datetime] = None
    rule: str = Field(..., description="Matched rule name, or 'no_match'")
    due_date_required: bool


class BucketCountsResponse(BaseModel):
    """Bucket counts and compliance for one slice of the report."""
    closed_within: int = 0
    closed_exceeded: int = 0
    open_within: int = 0
    open_exceeded: int = 0
    reminder_due: int = 0
    total: int = 0
    compliance_percent: float = 100.0
    target_percent: float = 95.0
    meets_target: bool = True
    average_tat_hours: float = 0.0


class ProcessStepRollup(BucketCountsResponse):
    process_step: str


class ServiceRollupResponse(BucketCountsResponse):
    service: str
    process_steps: List[ProcessStepRollup] = Field(default_factory=list)


class TrendPointResponse(BaseModel):
    period: str = Field(..., description="Request month, YYYY-MM")
    submitted: int = 0
    completed: int = 0
    exceeded: int = 0


class HistogramBandResponse(BaseModel):
    band: str
    count: int = 0


class ReportResponse(BaseModel):
    """SLA compliance report."""
    overall: BucketCountsResponse
    per_service: List[ServiceRollupResponse]
    trend: List[TrendPointResponse]
    tat_histogram: List[HistogramBandResponse]


class CatalogServiceResponse(BaseModel):
    name: str
    category: str
    steps: List[str]
    description: str = ""
    due_date_required: bool


class CatalogResponse(BaseModel):
    """Response of GET /catalog/services."""
    services: List[CatalogServiceResponse]
    total_count: int
