"""
Store Lock
==========

Process-wide lock serializing read-modify-write sequences on the row store.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from hrdesk.config import settings
from hrdesk.core import LockTimeoutException
from hrdesk.shared.infrastructure.logging import get_logger
from hrdesk.tracking.application.services import IStoreLock

logger = get_logger(__name__)


class StoreLock(IStoreLock):
    """asyncio.Lock acquired with a bounded wait."""

    def __init__(self, timeout_seconds: Optional[float] = None):
        self._lock = asyncio.Lock()
        self.timeout_seconds = timeout_seconds or settings.lifecycle_lock_timeout_seconds

    @property
    def locked(self) -> bool:
        return self._lock.locked()

    @asynccontextmanager
    async def hold(self, operation: str) -> AsyncIterator[None]:
        try:
            await asyncio.wait_for(self._lock.acquire(), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning(
                "Store lock timeout",
                extra={"operation": operation, "timeout_seconds": self.timeout_seconds}
            )
            raise LockTimeoutException(operation, self.timeout_seconds)
        try:
            yield
        finally:
            self._lock.release()
