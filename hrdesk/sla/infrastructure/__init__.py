"""
SLA Infrastructure Layer
=========================

Infrastructure implementations for the SLA module:
- External: service catalog loader with file watcher, reminder scheduler
"""

from hrdesk.sla.infrastructure.external import (
    CatalogFileHandler,
    ReminderScheduler,
    ServiceCatalogManager,
)

__all__ = [
    "CatalogFileHandler",
    "ReminderScheduler",
    "ServiceCatalogManager",
]
