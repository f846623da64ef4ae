"""
SLA Application Layer
======================

Application layer for the SLA module.

Contains:
- Services: due-date evaluation and compliance reporting
- DTOs: Data transfer objects for API serialization

This layer depends on the domain layer only, not on concrete
infrastructure implementations.
"""

from hrdesk.sla.application.dto import (
    BucketCountsResponse,
    CatalogResponse,
    CatalogServiceResponse,
    DueDatePreviewResponse,
    HistogramBandResponse,
    ProcessStepRollup,
    ReportRecordDTO,
    ReportRequest,
    ReportResponse,
    ServiceRollupResponse,
    TrendPointResponse,
)
from hrdesk.sla.application.services import (
    DueDateService,
    ReportingService,
)

__all__ = [
    # DTOs
    "BucketCountsResponse",
    "CatalogResponse",
    "CatalogServiceResponse",
    "DueDatePreviewResponse",
    "HistogramBandResponse",
    "ProcessStepRollup",
    "ReportRecordDTO",
    "ReportRequest",
    "ReportResponse",
    "ServiceRollupResponse",
    "TrendPointResponse",
    # Services
    "DueDateService",
    "ReportingService",
]
