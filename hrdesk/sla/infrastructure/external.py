"""
SLA External Service Integrations
==================================

External services for the SLA module:
- YAML service catalog loader with file watcher
- APScheduler for the background reminder sweep
"""

import threading
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional

import yaml
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from pydantic import ValidationError
from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from hrdesk.config import settings
from hrdesk.core import ConfigurationException, Result
from hrdesk.shared.infrastructure.logging import get_logger
from hrdesk.sla.domain.value_objects import ServiceCatalog
from hrdesk.tracking.application.services import IServiceCatalog

logger = get_logger(__name__)


class CatalogFileHandler(FileSystemEventHandler):
    """Watchdog event handler for service catalog file changes."""

    def __init__(self, catalog_manager: "ServiceCatalogManager", catalog_path: Path):
        self.catalog_manager = catalog_manager
        self.catalog_path = catalog_path
        super().__init__()

    def on_modified(self, event):
        """Handle file modification event."""
        if event.is_directory:
            return
        if Path(event.src_path).resolve() == self.catalog_path.resolve():
            logger.info("Service catalog file changed", extra={"path": str(event.src_path)})
            self.catalog_manager.reload()


class ServiceCatalogManager(IServiceCatalog):
    """
    Thread-safe service catalog with hot-reload support.

    Uses watchdog to monitor file changes and reload the catalog without
    restarting the service. A failed reload keeps the previous catalog.
    """

    def __init__(self):
        self._catalog: Optional[ServiceCatalog] = None
        self._lock = threading.Lock()
        self._path: Optional[Path] = None
        self._observer = None

    def load(self, path: Optional[Path] = None) -> Result[ServiceCatalog]:
        """
        Initial catalog load.

        Returns a failed Result when the file is missing or invalid; the
        caller decides whether to fall back with ``use(ServiceCatalog())``.
        """
        self._path = Path(path or settings.service_catalog_path)
        result = self._load_from_file(self._path)
        if result.is_ok:
            self.use(result.value)
        return result

    def use(self, catalog: ServiceCatalog) -> None:
        with self._lock:
            self._catalog = catalog

    def _load_from_file(self, path: Path) -> Result[ServiceCatalog]:
        """Load and parse the YAML catalog file."""
        if not path.exists():
            return Result.fail(ConfigurationException(
                f"Service catalog file not found: {path}",
                {"path": str(path)}
            ))

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
            catalog = ServiceCatalog(**data)
        except (yaml.YAMLError, ValidationError, TypeError) as e:
            return Result.fail(ConfigurationException(
                f"Invalid service catalog {path}: {e}",
                {"path": str(path)}
            ))

        logger.info(
            "Service catalog loaded",
            extra={"path": str(path), "services": len(catalog.services)}
        )
        return Result.ok(catalog)

    def reload(self) -> bool:
        """Reload the catalog from file."""
        if self._path is None:
            return False

        result = self._load_from_file(self._path)
        if not result.is_ok:
            logger.error("Failed to reload service catalog", extra={"error": str(result.error)})
            return False

        self.use(result.value)
        logger.info("Service catalog reloaded successfully")
        return True

    def start_watching(self) -> None:
        """
        Start watching the catalog file for changes.

        Skips watching when the file does not exist or inotify is unavailable.
        """
        if self._path is None:
            raise RuntimeError("Catalog not loaded. Call load() first.")

        if not self._path.exists():
            logger.info("Catalog file doesn't exist, skipping file watch", extra={"path": str(self._path)})
            return

        try:
            self._observer = Observer()
            handler = CatalogFileHandler(self, self._path)
            self._observer.schedule(
                handler,
                str(self._path.resolve().parent),
                recursive=False
            )
            self._observer.start()
            logger.info("Started watching service catalog", extra={"path": str(self._path)})
        except OSError as e:
            logger.warning("File watching not available, using static catalog", extra={"error": str(e)})
            self._observer = None

    def stop_watching(self) -> None:
        """Stop watching the catalog file (safe to call even if not watching)."""
        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout=5)
            self._observer = None

    @property
    def catalog(self) -> ServiceCatalog:
        """Get current catalog."""
        if self._catalog is None:
            raise RuntimeError("Service catalog not loaded")
        return self._catalog

    @property
    def is_loaded(self) -> bool:
        return self._catalog is not None

    def has_service(self, service: str) -> bool:
        if self._catalog is None:
            return True
        return self._catalog.has_service(service)


class ReminderScheduler:
    """
    Wrapper for APScheduler running the reminder sweep.

    Manages the lifecycle of the scheduler and its single job.
    """

    def __init__(self, interval_seconds: Optional[int] = None):
        self.interval_seconds = settings.reminder_sweep_interval if interval_seconds is None else interval_seconds
        self._scheduler: Optional[AsyncIOScheduler] = None
        self._running = False

    async def start(self, job_func: Callable[[], Awaitable[Any]]) -> None:
        """Start the scheduler with the given job function."""
        if self._running:
            logger.warning("Reminder scheduler already running")
            return
        if self.interval_seconds <= 0:
            logger.info("Reminder sweep disabled")
            return

        self._scheduler = AsyncIOScheduler()

        self._scheduler.add_job(
            job_func,
            "interval",
            seconds=self.interval_seconds,
            id="reminder_sweep",
            name="SLA Reminder Sweep",
            misfire_grace_time=60,
            max_instances=1,
            replace_existing=True
        )

        self._scheduler.start()
        self._running = True

        logger.info(
            "Reminder scheduler started",
            extra={"interval_seconds": self.interval_seconds}
        )

    async def stop(self) -> None:
        """Stop the scheduler gracefully."""
        if not self._running:
            return

        if self._scheduler:
            self._scheduler.shutdown(wait=False)

        self._running = False
        logger.info("Reminder scheduler stopped")

    @property
    def is_running(self) -> bool:
        """Check if scheduler is running."""
        return self._running
