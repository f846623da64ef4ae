"""
Tracking Application Layer
==========================

Application services and DTOs for request submission, lifecycle actions
and the unified log.
"""

from hrdesk.tracking.application.services import (
    IBlobStore,
    IRequestRepository,
    IServiceCatalog,
    IStoreLock,
    LifecycleService,
    StoredRequest,
    SubmissionService,
    UnifiedLogService,
    filter_by_role,
)
from hrdesk.tracking.application.dto import (
    AttachmentDTO,
    LifecycleActionDTO,
    LogFilters,
    RequestRecordResponse,
    SubmitRequestDTO,
    SubmitResponse,
    UnifiedLogResponse,
)

__all__ = [
    # Interfaces
    "IBlobStore",
    "IRequestRepository",
    "IServiceCatalog",
    "IStoreLock",
    "StoredRequest",
    # Services
    "LifecycleService",
    "SubmissionService",
    "UnifiedLogService",
    "filter_by_role",
    # DTOs
    "AttachmentDTO",
    "LifecycleActionDTO",
    "LogFilters",
    "RequestRecordResponse",
    "SubmitRequestDTO",
    "SubmitResponse",
    "UnifiedLogResponse",
]
