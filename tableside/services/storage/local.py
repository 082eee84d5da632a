"""
Local Image Storage

Writes uploads under ``UPLOAD_DIRECTORY``; the application serves that
directory at ``/uploads``.
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional

from tableside.services.storage.base import BaseImageStorage, StoredImage

logger = logging.getLogger(__name__)


class LocalImageStorage(BaseImageStorage):

    def __init__(self, directory: str, base_url: str):
        self.directory = Path(directory)
        self.base_url = base_url.rstrip("/")
        logger.info(f"LocalImageStorage initialized at {self.directory}")

    @property
    def provider_name(self) -> str:
        return "local"

    def _write(self, path: Path, content: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)

    async def upload(self, key: str, content: bytes, content_type: Optional[str] = None) -> StoredImage:
        path = self.directory / key
        try:
            await asyncio.to_thread(self._write, path, content)
        except OSError as e:
            logger.error(f"Failed to store {key}: {e}")
            return StoredImage(success=False, key=key, error_message=str(e))

        logger.info(f"Stored image {key} ({len(content)} bytes)")
        return StoredImage(success=True, key=key, url=f"{self.base_url}/uploads/{key}")

    async def health_check(self) -> bool:
        return True
