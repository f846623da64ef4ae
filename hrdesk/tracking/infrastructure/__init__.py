"""
Tracking Infrastructure Layer
=============================

Infrastructure implementations for request tracking:
- Row store: tabular storage (in-memory and SQLAlchemy adapters)
- Columns: header aliases and table layouts
- Repositories: request records over the row store
- Locking: store-wide lifecycle lock
- Blob store: local attachment storage
"""

from hrdesk.tracking.infrastructure.blob_store import LocalBlobStore
from hrdesk.tracking.infrastructure.columns import (
    COLUMN_ALIASES,
    DEFAULT_HEADERS,
    TableLayout,
    resolve_row,
)
from hrdesk.tracking.infrastructure.locking import StoreLock
from hrdesk.tracking.infrastructure.repositories import (
    RowStoreRequestRepository,
    parse_minutes,
    parse_timestamp,
)
from hrdesk.tracking.infrastructure.row_store import (
    InMemoryRowStore,
    IRowStore,
    SheetRow,
    SQLAlchemyRowStore,
)

__all__ = [
    "LocalBlobStore",
    "COLUMN_ALIASES",
    "DEFAULT_HEADERS",
    "TableLayout",
    "resolve_row",
    "StoreLock",
    "RowStoreRequestRepository",
    "parse_minutes",
    "parse_timestamp",
    "InMemoryRowStore",
    "IRowStore",
    "SheetRow",
    "SQLAlchemyRowStore",
]
