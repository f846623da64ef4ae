"""
SLA Controllers (API Routes)
=============================

FastAPI routes for due-date previews, SLA reports and the service catalog.

Controllers are thin - they delegate to application services.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from hrdesk.shared.api.dependencies import get_request_context
from hrdesk.shared.context import RequestContext, business_now
from hrdesk.shared.infrastructure.logging import get_logger
from hrdesk.sla.application import (
    CatalogResponse,
    CatalogServiceResponse,
    DueDatePreviewResponse,
    DueDateService,
    ReportingService,
    ReportRequest,
    ReportResponse,
)
from hrdesk.sla.infrastructure import ServiceCatalogManager
from hrdesk.tracking.application import LogFilters, UnifiedLogService

logger = get_logger(__name__)
router = APIRouter(prefix="/sla", tags=["SLA"])
catalog_router = APIRouter(prefix="/catalog", tags=["Service Catalog"])


# ========== Example payloads for Swagger ==========

DUE_DATE_EXAMPLE = {
    "service": "Employee Relations",
    "process_step": "Case Filing",
    "request_date": "2024-06-03T09:00:00+08:00",
    "due_date": "2024-06-19T09:00:00+08:00",
    "rule": "employee_relations",
    "due_date_required": True
}

REPORT_EXAMPLE = {
    "overall": {
        "closed_within": 40,
        "closed_exceeded": 2,
        "open_within": 5,
        "open_exceeded": 1,
        "reminder_due": 2,
        "total": 50,
        "compliance_percent": 94.0,
        "target_percent": 95.0,
        "meets_target": False,
        "average_tat_hours": 6.4
    },
    "per_service": [],
    "trend": [{"period": "2024-06", "submitted": 50, "completed": 42, "exceeded": 3}],
    "tat_histogram": [{"band": "0-4h", "count": 21}]
}


# ========== Dependencies ==========

def get_due_date_service(request: Request) -> DueDateService:
    """Get due-date service instance."""
    return request.app.state.due_date_service


def get_reporting_service(request: Request) -> ReportingService:
    """Get reporting service instance."""
    return request.app.state.reporting_service


def get_unified_log_service(request: Request) -> UnifiedLogService:
    """Get unified log service instance."""
    return request.app.state.unified_log_service


def get_catalog_manager(request: Request) -> ServiceCatalogManager:
    """Get service catalog manager."""
    return request.app.state.catalog_manager


# ========== Route Handlers ==========

@router.get(
    "/due-date",
    response_model=DueDatePreviewResponse,
    summary="Preview a due date",
    description="""
    Evaluate the due-date rules for a service and process step without
    creating a request. `request_date` defaults to now in the business
    timezone.
    """,
    responses={200: {"content": {"application/json": {"example": DUE_DATE_EXAMPLE}}}}
)
async def preview_due_date(
    service: str = Query(..., min_length=1, description="Service name"),
    process_step: str = Query("", description="Process step"),
    request_date: Optional[datetime] = Query(None, description="Anchor date (default: now)"),
    due_dates: DueDateService = Depends(get_due_date_service)
):
    anchor = request_date or business_now()
    result = due_dates.evaluate(service, process_step, anchor)
    return DueDatePreviewResponse(
        service=service,
        process_step=process_step,
        request_date=anchor,
        due_date=result.due_date,
        rule=result.rule,
        due_date_required=due_dates.is_required(service),
    )


@router.get(
    "/report",
    response_model=ReportResponse,
    summary="SLA compliance report",
    description="""
    Classify the caller's visible unified log into SLA buckets.

    **Buckets:** `closed_within`, `closed_exceeded`, `open_within`,
    `open_exceeded`, `reminder_due`

    **Response includes:**
    - Overall counts and compliance against the target percentage
    - Per service and process step rollups
    - Monthly trend by request month
    - TAT histogram for closed requests
    """,
    responses={200: {"content": {"application/json": {"example": REPORT_EXAMPLE}}}}
)
async def get_report(
    company: Optional[str] = Query(None, description="Filter by company"),
    status_filter: Optional[str] = Query(None, alias="status", description="Filter by status"),
    service_name: Optional[str] = Query(None, alias="service", description="Filter by service (substring)"),
    process_step: Optional[str] = Query(None, description="Filter by process step (substring)"),
    date_from: Optional[datetime] = Query(None, description="Request date lower bound"),
    date_to: Optional[datetime] = Query(None, description="Request date upper bound"),
    context: RequestContext = Depends(get_request_context),
    unified_log: UnifiedLogService = Depends(get_unified_log_service),
    reporting: ReportingService = Depends(get_reporting_service)
):
    filters = LogFilters(
        company=company,
        status=status_filter,
        service=service_name,
        process_step=process_step,
        date_from=date_from,
        date_to=date_to,
    )
    records = await unified_log.get_unified_log(context)
    return reporting.classify_for_reporting(records, filters)


@router.post(
    "/report",
    response_model=ReportResponse,
    summary="Classify supplied records",
    description="Build the SLA report for records supplied in the request body."
)
async def classify_records(
    body: ReportRequest,
    reporting: ReportingService = Depends(get_reporting_service)
):
    return reporting.classify_for_reporting(body.records)


@catalog_router.get(
    "/services",
    response_model=CatalogResponse,
    summary="List requestable services",
    description="Services and process steps from the service catalog."
)
async def list_services(
    category: Optional[str] = Query(None, description="Filter by category"),
    manager: ServiceCatalogManager = Depends(get_catalog_manager)
):
    services = [
        CatalogServiceResponse(
            name=s.name,
            category=s.category,
            steps=s.steps,
            description=s.description,
            due_date_required=s.due_date_required,
        )
        for s in manager.catalog.services
        if category is None or s.category.lower() == category.lower()
    ]
    return CatalogResponse(services=services, total_count=len(services))


# Export routers for inclusion in main app
sla_router = router
