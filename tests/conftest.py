# ==== SHARED TEST FIXTURES AND CONFIGURATION ==== #

"""
Shared test fixtures and configuration.

Services are wired against the in-memory row store and a controllable
clock, so lifecycle TAT can be asserted without sleeping.
"""

import os
import tempfile
from pathlib import Path

import pytest


# ==== FORCE ENVIRONMENT SETUP BEFORE ANY IMPORTS ==== #

ROOT = Path(__file__).resolve().parent.parent

os.environ.update({
    "ENVIRONMENT": "test",
    "ROW_STORE_BACKEND": "memory",
    "REMINDER_SWEEP_INTERVAL": "0",
    "LIFECYCLE_LOCK_TIMEOUT_SECONDS": "2",
    "LOG_LEVEL": "WARNING",
    "SERVICE_CATALOG_PATH": str(ROOT / "service_catalog.yaml"),
    "BLOB_STORAGE_DIR": tempfile.mkdtemp(prefix="hrdesk-blobs-"),
})

# Now import app modules after environment is set
from hrdesk.config import settings
from hrdesk.sla.application import DueDateService, ReportingService
from hrdesk.tracking.application import LifecycleService, SubmissionService, UnifiedLogService
from hrdesk.tracking.infrastructure import (
    DEFAULT_HEADERS,
    InMemoryRowStore,
    RowStoreRequestRepository,
    StoreLock,
)
from tests.factories import FakeClock, manila


# ==== CLOCK ==== #


@pytest.fixture
def clock():
    """Clock starting Monday 2024-06-03 09:00 Manila time."""
    return FakeClock(manila(2024, 6, 3, 9, 0))


# ==== STORE FIXTURES ==== #


@pytest.fixture
def row_store():
    """In-memory row store with an empty table per company."""
    store = InMemoryRowStore()
    for table in settings.company_tables.values():
        store.seed(table, DEFAULT_HEADERS)
    return store


@pytest.fixture
def repository(row_store):
    return RowStoreRequestRepository(row_store, settings.company_tables, "Asia/Manila")


@pytest.fixture
def store_lock():
    return StoreLock(timeout_seconds=0.1)


# ==== SERVICE FIXTURES ==== #


@pytest.fixture
def due_dates():
    return DueDateService()


@pytest.fixture
def lifecycle(repository, store_lock, due_dates, clock):
    return LifecycleService(repository, store_lock, due_dates, clock=clock)


@pytest.fixture
def submission(repository, store_lock, due_dates, clock):
    return SubmissionService(repository, store_lock, due_dates, clock=clock)


@pytest.fixture
def unified_log(repository):
    return UnifiedLogService(repository)


@pytest.fixture
def reporting(clock):
    return ReportingService(clock=clock)
