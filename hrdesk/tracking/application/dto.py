"""
Tracking Application DTOs
=========================

Pydantic models for the request submission, lifecycle and unified log API.
"""

import base64
import binascii
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from hrdesk.tracking.domain import RequestRecord


# ========== Type Aliases for Literals ==========
LifecycleActionStr = Literal["Start", "Pause", "Resume", "End"]
RequestStatusStr = Literal["Open", "In Progress", "Paused", "Resumed", "Completed"]


# ========== Request DTOs ==========

class AttachmentDTO(BaseModel):
    """File uploaded with a request, base64-encoded."""
    filename: str = Field(..., min_length=1, max_length=255)
    mime_type: str = Field(default="application/octet-stream")
    content_base64: str = Field(..., min_length=1)

    @field_validator("content_base64")
    @classmethod
    def validate_base64(cls, v: str) -> str:
        try:
            base64.b64decode(v, validate=True)
        except (binascii.Error, ValueError):
            raise ValueError("content_base64 is not valid base64")
        return v

    def content(self) -> bytes:
        return base64.b64decode(self.content_base64)


class SubmitRequestDTO(BaseModel):
    """Body of POST /requests."""
    service: str = Field(..., min_length=1, description="Service name from the catalog")
    process_step: str = Field(default="", description="Process step within the service")
    details: str = Field(default="", description="Free-text request details")
    attachment: Optional[AttachmentDTO] = None


class LifecycleActionDTO(BaseModel):
    """Body of POST /requests/{request_id}/actions/{action}."""
    service: Optional[str] = Field(None, description="Fills the service when the row has none")
    process_step: Optional[str] = Field(None, description="Fills the process step when the row has none")
    remarks: Optional[str] = Field(None, description="Replaces the record remarks when given")


class LogFilters(BaseModel):
    """Optional filters for the unified log and reports."""
    company: Optional[str] = None
    status: Optional[str] = None
    service: Optional[str] = None
    process_step: Optional[str] = None
    date_from: Optional[datetime] = Field(None, description="Request date lower bound (inclusive)")
    date_to: Optional[datetime] = Field(None, description="Request date upper bound (inclusive)")

    def matches(self, record: Any) -> bool:
        if self.company and (getattr(record, "company", "") or "").lower() != self.company.lower():
            return False
        if self.status and (getattr(record, "status", "") or "").lower() != self.status.lower():
            return False
        if self.service and self.service.lower() not in (getattr(record, "service", "") or "").lower():
            return False
        if self.process_step and self.process_step.lower() not in (getattr(record, "process_step", "") or "").lower():
            return False
        if self.date_from or self.date_to:
            requested = getattr(record, "request_date", None)
            if not isinstance(requested, datetime):
                return False
            if self.date_from and not _on_or_after(requested, self.date_from):
                return False
            if self.date_to and not _on_or_after(self.date_to, requested):
                return False
        return True


def _on_or_after(a: datetime, b: datetime) -> bool:
    if (a.tzinfo is None) != (b.tzinfo is None):
        a, b = a.replace(tzinfo=None), b.replace(tzinfo=None)
    return a >= b


# ========== Response DTOs ==========

class SubmitResponse(BaseModel):
    """Response of POST /requests."""
    request_id: str
    company: str
    due_date: Optional[datetime] = None
    due_date_rule: str = Field(..., description="Rule that produced the due date, or 'no_match'")
    attachment_url: Optional[str] = None


class RequestRecordResponse(BaseModel):
    """A request record as returned by lifecycle actions and the unified log."""
    request_id: str
    company: str
    service: str
    process_step: str
    status: str
    request_date: Optional[datetime] = None
    due_date: Optional[datetime] = None
    start: Optional[datetime] = None
    pause: Optional[datetime] = None
    resume: Optional[datetime] = None
    end: Optional[datetime] = None
    tat_minutes: float = 0.0
    total_tat_minutes: float = 0.0
    details: str = ""
    remarks: str = ""
    email: str = ""
    employee_name: str = ""
    department: str = ""
    attachment_url: str = ""

    @classmethod
    def from_domain(cls, record: RequestRecord) -> "RequestRecordResponse":
        return cls(
            request_id=record.request_id,
            company=record.company or record.derived_company,
            service=record.service,
            process_step=record.process_step,
            status=record.status,
            request_date=record.request_date,
            due_date=record.due_date,
            start=record.start,
            pause=record.pause,
            resume=record.resume,
            end=record.end,
            tat_minutes=record.tat_minutes,
            total_tat_minutes=record.total_tat_minutes,
            details=record.details,
            remarks=record.remarks,
            email=record.email,
            employee_name=record.employee_name,
            department=record.department,
            attachment_url=record.attachment_url,
        )


class UnifiedLogResponse(BaseModel):
    """Response of GET /requests/log."""
    records: List[RequestRecordResponse]
    total_count: int
    filters: Dict[str, Any] = Field(default_factory=dict)
