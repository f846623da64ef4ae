"""
Blob Store
==========

Local filesystem storage for request attachments.
"""

import asyncio
import re
import uuid
from pathlib import Path
from typing import Optional

from hrdesk.config import settings
from hrdesk.core import BlobStorageException
from hrdesk.shared.infrastructure.logging import get_logger
from hrdesk.tracking.application.services import IBlobStore

logger = get_logger(__name__)

_UNSAFE = re.compile(r"[^A-Za-z0-9._-]+")


class LocalBlobStore(IBlobStore):
    """Writes each attachment to its own file under ``root`` and returns a file:// URL."""

    def __init__(self, root: Optional[Path] = None):
        self.root = Path(root or settings.blob_storage_dir)

    async def store(self, content: bytes, mime_type: str, name: str) -> str:
        safe_name = _UNSAFE.sub("_", name).strip("._") or "attachment"
        path = self.root / f"{uuid.uuid4().hex[:12]}-{safe_name}"
        try:
            await asyncio.to_thread(self._write, path, content)
        except OSError as e:
            raise BlobStorageException(
                f"Failed to store attachment '{name}'",
                {"error": str(e)}
            ) from e

        logger.info(
            "Attachment stored",
            extra={"blob_name": path.name, "mime_type": mime_type, "size_bytes": len(content)}
        )
        return path.resolve().as_uri()

    @staticmethod
    def _write(path: Path, content: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
