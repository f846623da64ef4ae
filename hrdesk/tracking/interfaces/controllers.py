"""
Tracking Controllers (API Routes)
=================================

FastAPI routes for request submission, lifecycle actions and the unified log.

Controllers are thin - they delegate to application services.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status

from hrdesk.shared.api.dependencies import get_request_context
from hrdesk.shared.context import RequestContext
from hrdesk.shared.infrastructure.logging import get_logger
from hrdesk.tracking.application import (
    LifecycleActionDTO,
    LifecycleService,
    LogFilters,
    RequestRecordResponse,
    SubmissionService,
    SubmitRequestDTO,
    SubmitResponse,
    UnifiedLogResponse,
    UnifiedLogService,
)

logger = get_logger(__name__)
router = APIRouter(prefix="/requests", tags=["Requests"])


# ========== Example payloads for Swagger ==========

SUBMIT_RESPONSE_EXAMPLE = {
    "request_id": "ITM-7-0001",
    "company": "ITAM",
    "due_date": "2024-06-03T09:00:00+08:00",
    "due_date_rule": "vacation_leave",
    "attachment_url": None
}

RECORD_RESPONSE_EXAMPLE = {
    "request_id": "ITM-7-0001",
    "company": "ITAM",
    "service": "Timekeeping - Vacation Leave",
    "process_step": "Filing",
    "status": "Paused",
    "request_date": "2024-05-20T09:00:00+08:00",
    "due_date": "2024-06-03T09:00:00+08:00",
    "start": "2024-05-20T10:00:00+08:00",
    "pause": "2024-05-20T11:30:00+08:00",
    "resume": None,
    "end": None,
    "tat_minutes": 90.0,
    "total_tat_minutes": 90.0
}


# ========== Dependencies ==========

def get_submission_service(request: Request) -> SubmissionService:
    """Get submission service instance."""
    return request.app.state.submission_service


def get_lifecycle_service(request: Request) -> LifecycleService:
    """Get lifecycle service instance."""
    return request.app.state.lifecycle_service


def get_unified_log_service(request: Request) -> UnifiedLogService:
    """Get unified log service instance."""
    return request.app.state.unified_log_service


# ========== Route Handlers ==========

@router.post(
    "",
    response_model=SubmitResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit a service request",
    description="""
    Submit a new HR service request for the caller's company.

    The request ID is `{companyCode}-{accountCode}-{sequence}` with the next
    free sequence for that company and account. The due date is computed
    from the service and process step; `due_date_rule` names the rule that
    matched, or `no_match`.

    Caller identity comes from the `X-User-Email`, `X-Company-Code` and
    `X-Account-Code` headers.
    """,
    responses={
        201: {"content": {"application/json": {"example": SUBMIT_RESPONSE_EXAMPLE}}},
        400: {"description": "Missing service or unknown company/account code"},
        503: {"description": "Request store busy, retry"}
    }
)
async def submit_request(
    body: SubmitRequestDTO,
    context: RequestContext = Depends(get_request_context),
    service: SubmissionService = Depends(get_submission_service)
):
    result = await service.submit_request(
        service=body.service,
        process_step=body.process_step,
        details=body.details,
        submitter=context,
        attachment=body.attachment,
    )
    return SubmitResponse(**result)


@router.post(
    "/{request_id}/actions/{action}",
    response_model=RequestRecordResponse,
    summary="Perform a lifecycle action",
    description="""
    Apply `Start`, `Pause`, `Resume` or `End` to a request.

    - **Start**: request not started yet, or completed (reopens with a fresh cycle)
    - **Pause**: request in progress; adds the active window to TAT
    - **Resume**: request paused
    - **End**: request in progress or paused

    The record is returned as stored after the write. Wrong-state actions
    return 409; a busy store returns 503 and is safe to retry.
    """,
    responses={
        200: {"content": {"application/json": {"example": RECORD_RESPONSE_EXAMPLE}}},
        400: {"description": "Invalid action, request ID or company selection"},
        404: {"description": "Request not found"},
        409: {"description": "Action not allowed in the current state"},
        503: {"description": "Request store busy, retry"}
    }
)
async def perform_action(
    request_id: str,
    action: str,
    body: Optional[LifecycleActionDTO] = None,
    context: RequestContext = Depends(get_request_context),
    service: LifecycleService = Depends(get_lifecycle_service)
):
    body = body or LifecycleActionDTO()
    record = await service.perform(
        action,
        request_id,
        context,
        service=body.service,
        process_step=body.process_step,
        remarks=body.remarks,
    )
    return RequestRecordResponse.from_domain(record)


@router.get(
    "/log",
    response_model=UnifiedLogResponse,
    summary="Get the unified request log",
    description="""
    All companies' requests in one list, de-duplicated.

    **Visibility:**
    - `employee`: own requests (matched by email)
    - `department_head`: requests of their department
    - `hr_staff`, `admin`: everything

    **Query Parameters:** `company`, `status`, `service`, `process_step`,
    `date_from`, `date_to` (request date, inclusive).
    """
)
async def get_unified_log(
    company: Optional[str] = Query(None, description="Filter by company"),
    status_filter: Optional[str] = Query(None, alias="status", description="Filter by status"),
    service_name: Optional[str] = Query(None, alias="service", description="Filter by service (substring)"),
    process_step: Optional[str] = Query(None, description="Filter by process step (substring)"),
    date_from: Optional[datetime] = Query(None, description="Request date lower bound"),
    date_to: Optional[datetime] = Query(None, description="Request date upper bound"),
    context: RequestContext = Depends(get_request_context),
    service: UnifiedLogService = Depends(get_unified_log_service)
):
    filters = LogFilters(
        company=company,
        status=status_filter,
        service=service_name,
        process_step=process_step,
        date_from=date_from,
        date_to=date_to,
    )
    records = await service.get_unified_log(context, filters)
    return UnifiedLogResponse(
        records=[RequestRecordResponse.from_domain(r) for r in records],
        total_count=len(records),
        filters=filters.model_dump(exclude_none=True, mode="json"),
    )


# Export router with module-specific name
tracking_router = router
