"""
Image Storage Abstract Base Class

Menu item and poster images live in object storage; the database only
keeps their public URL.
"""

import re
import secrets
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass
class StoredImage:
    """Result from storing an image."""
    success: bool
    url: Optional[str] = None
    key: Optional[str] = None
    error_message: Optional[str] = None


def menu_image_key(filename: str) -> str:
    """``menu-images/{epoch-ms}-{name}`` with the name stripped to ``[a-zA-Z0-9.]``."""
    safe = re.sub(r"[^a-zA-Z0-9.]", "", filename or "") or "image"
    return f"menu-images/{int(time.time() * 1000)}-{safe}"


def poster_image_key(filename: str) -> str:
    """``posters/{epoch-ms}-{random}.{ext}``, keeping only the original extension."""
    ext = filename.rsplit(".", 1)[-1] if filename and "." in filename else "bin"
    ext = re.sub(r"[^a-zA-Z0-9]", "", ext) or "bin"
    return f"posters/{int(time.time() * 1000)}-{secrets.token_hex(4)}.{ext}"


class BaseImageStorage(ABC):
    """Abstract base class for image storage backends."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        pass

    @abstractmethod
    async def upload(self, key: str, content: bytes, content_type: Optional[str] = None) -> StoredImage:
        """Store ``content`` under ``key`` and return its public URL."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        pass
