"""
HR Service Desk - Main Application
==================================

Backend for employee HR service requests across four business units.

Modules:
- Tracking: submission, Start/Pause/Resume/End lifecycle, unified log
- SLA: due-date rules, compliance reporting, service catalog, reminders

Clean Architecture Layers:
- Interfaces: FastAPI controllers
- Application: Services and DTOs
- Domain: Entities, lifecycle rules, due-date rules
- Infrastructure: Row store, database, blob store, scheduler
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

# Configuration
from hrdesk.config import settings

# Infrastructure
from hrdesk.infrastructure.database import (
    close_database,
    create_tables,
    get_session_context,
    get_session_maker,
    init_database,
)

# Tracking Module
from hrdesk.tracking.application import LifecycleService, SubmissionService, UnifiedLogService
from hrdesk.tracking.infrastructure import (
    InMemoryRowStore,
    IRowStore,
    LocalBlobStore,
    RowStoreRequestRepository,
    SQLAlchemyRowStore,
    StoreLock,
)
from hrdesk.tracking.interfaces import tracking_router

# SLA Module
from hrdesk.sla.application import DueDateService, ReportingService
from hrdesk.sla.domain.value_objects import ServiceCatalog
from hrdesk.sla.infrastructure import ReminderScheduler, ServiceCatalogManager
from hrdesk.sla.interfaces import catalog_router, sla_router
from hrdesk.sla.services import ReminderSweep

# Shared
from hrdesk.shared.api.middleware import (
    CorrelationIDMiddleware,
    LoggingMiddleware,
    TimingMiddleware,
    register_exception_handlers,
)
from hrdesk.shared.infrastructure.logging import get_logger, setup_logging

logger = get_logger(__name__)


async def _open_row_store() -> IRowStore:
    if settings.row_store_backend == "memory":
        logger.info("Using in-memory row store")
        return InMemoryRowStore()

    logger.info("Initializing database")
    init_database()
    await create_tables()
    return SQLAlchemyRowStore(get_session_maker())


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan manager.

    STARTUP:
    1. Setup structured logging
    2. Open the row store and create missing company tables
    3. Load the service catalog and watch it for changes
    4. Wire application services into app.state
    5. Start the reminder sweep

    SHUTDOWN:
    1. Stop the reminder sweep
    2. Stop the catalog watcher
    3. Close database connections
    """
    # === STARTUP ===
    setup_logging(settings.log_level, settings.environment)
    logger.info("Starting HR Service Desk", extra={
        "version": settings.app_version,
        "environment": settings.environment,
        "row_store_backend": settings.row_store_backend
    })

    row_store = await _open_row_store()
    repository = RowStoreRequestRepository(row_store, settings.company_tables, settings.timezone)
    await repository.ensure_tables()

    logger.info("Loading service catalog")
    catalog_manager = ServiceCatalogManager()
    loaded = catalog_manager.load(settings.service_catalog_path)
    if loaded.is_ok:
        catalog_manager.start_watching()
    else:
        logger.warning(
            "Service catalog unavailable, starting with an empty catalog",
            extra={"error": str(loaded.error)}
        )
        catalog_manager.use(ServiceCatalog())

    lock = StoreLock(settings.lifecycle_lock_timeout_seconds)
    due_dates = DueDateService()
    unified_log = UnifiedLogService(repository)
    reporting = ReportingService()

    # Store services in app state for dependency injection
    app.state.settings = settings
    app.state.row_store = row_store
    app.state.repository = repository
    app.state.catalog_manager = catalog_manager
    app.state.store_lock = lock
    app.state.due_date_service = due_dates
    app.state.submission_service = SubmissionService(
        repository,
        lock,
        due_dates,
        blob_store=LocalBlobStore(settings.blob_storage_dir),
        catalog=catalog_manager,
    )
    app.state.lifecycle_service = LifecycleService(repository, lock, due_dates)
    app.state.unified_log_service = unified_log
    app.state.reporting_service = reporting

    scheduler = ReminderScheduler(settings.reminder_sweep_interval)
    await scheduler.start(ReminderSweep(unified_log, reporting))
    app.state.reminder_scheduler = scheduler

    logger.info("HR Service Desk started successfully")

    yield  # Application runs here

    # === SHUTDOWN ===
    logger.info("Shutting down HR Service Desk")

    await scheduler.stop()
    catalog_manager.stop_watching()

    if settings.row_store_backend == "database":
        await close_database()

    logger.info("HR Service Desk shutdown complete")


# Create FastAPI application
app = FastAPI(
    title="HR Service Desk API",
    description="""
    ## HR Service Request Backend

    Employees submit HR service requests; HR staff work them through a
    Start / Pause / Resume / End lifecycle with turnaround time (TAT)
    tracking. Each business unit (ITAM, Onward, Vertex, Summit) keeps its
    own request table.

    ---

    ### Requests

    - `POST /requests` - Submit a request
    - `POST /requests/{id}/actions/{action}` - Start, Pause, Resume or End
    - `GET /requests/log` - Unified log across business units

    ### SLA

    - `GET /sla/due-date` - Preview the due date for a service
    - `GET /sla/report` - Compliance report over the unified log
    - `POST /sla/report` - Compliance report over supplied records
    - `GET /catalog/services` - Requestable services and process steps

    ---

    ### Caller identity

    Authentication happens upstream. The caller is described by the
    `X-User-Email`, `X-User-Role`, `X-User-Department`, `X-User-Name`,
    `X-Company-Code`, `X-Account-Code` and `X-Selected-Company` headers.
    """,
    version=settings.app_version,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# === CORS Middleware ===
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# === Custom Middleware (from shared) ===
app.add_middleware(TimingMiddleware)
app.add_middleware(LoggingMiddleware)
app.add_middleware(CorrelationIDMiddleware)
register_exception_handlers(app)

# === Include Module Routers ===
app.include_router(tracking_router)
app.include_router(sla_router)
app.include_router(catalog_router)

# === Health Check Endpoint ===

@app.get("/health", tags=["Health"], responses={
    200: {
        "description": "Service is healthy",
        "content": {
            "application/json": {
                "example": {
                    "status": "healthy",
                    "version": "1.0.0",
                    "environment": "development",
                    "checks": {
                        "row_store": "database (connected)",
                        "service_catalog": "loaded (42 services)",
                        "reminder_scheduler": "running"
                    }
                }
            }
        }
    }
})
async def health_check(request: Request):
    """
    Health check endpoint for load balancers and orchestrators.

    Returns service health status including:
    - Row store connectivity
    - Service catalog status
    - Reminder scheduler state
    """
    state = request.app.state
    healthy = True

    if settings.row_store_backend == "database":
        try:
            async with get_session_context() as session:
                await session.execute(text("SELECT 1"))
            row_store = "database (connected)"
        except Exception as e:
            logger.error("Database health check failed", extra={"error": str(e)})
            row_store = "database (unavailable)"
            healthy = False
    else:
        row_store = "memory"

    catalog_manager = getattr(state, "catalog_manager", None)
    scheduler = getattr(state, "reminder_scheduler", None)
    checks = {
        "row_store": row_store,
        "service_catalog": (
            f"loaded ({len(catalog_manager.catalog.services)} services)"
            if catalog_manager is not None and catalog_manager.is_loaded else "not_loaded"
        ),
        "reminder_scheduler": "running" if scheduler and scheduler.is_running else "stopped",
    }

    return {
        "status": "healthy" if healthy else "degraded",
        "version": settings.app_version,
        "environment": settings.environment,
        "checks": checks
    }


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint with API information."""
    return {
        "service": "HR Service Desk",
        "version": settings.app_version,
        "architecture": "Clean Architecture / Modular Monolith",
        "docs": "/docs",
        "health": "/health",
        "modules": {
            "tracking": {
                "prefix": "/requests",
                "endpoints": [
                    "POST /requests - Submit a request",
                    "POST /requests/{id}/actions/{action} - Lifecycle action",
                    "GET /requests/log - Unified log"
                ]
            },
            "sla": {
                "prefix": "/sla",
                "endpoints": [
                    "GET /sla/due-date - Due date preview",
                    "GET /sla/report - Compliance report",
                    "POST /sla/report - Classify supplied records",
                    "GET /catalog/services - Service catalog"
                ]
            }
        }
    }


# === Development Entry Point ===

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "hrdesk.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.environment == "development",
        log_level="info"
    )
