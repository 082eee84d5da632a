"""
Image Storage Factory

Returns local or S3 image storage based on ENV_MODE.
"""

import logging
from functools import lru_cache

from tableside.core.config import get_settings
from tableside.services.storage.base import (
    BaseImageStorage,
    StoredImage,
    menu_image_key,
    poster_image_key,
)
from tableside.services.storage.local import LocalImageStorage
from tableside.services.storage.s3 import S3ImageStorage

logger = logging.getLogger(__name__)


@lru_cache()
def get_image_storage() -> BaseImageStorage:
    """Get the configured image storage."""
    settings = get_settings()

    if settings.is_development:
        logger.info("Image Storage: Using LocalImageStorage (development mode)")
        return LocalImageStorage(settings.upload_directory, settings.app_base_url)
    else:
        logger.info(f"Image Storage: Using S3ImageStorage ({settings.env_mode.value} mode)")
        return S3ImageStorage(settings.s3_bucket, settings.s3_region)


def reset_image_storage() -> None:
    """Clear the cached storage instance."""
    get_image_storage.cache_clear()


__all__ = [
    "get_image_storage",
    "reset_image_storage",
    "BaseImageStorage",
    "StoredImage",
    "LocalImageStorage",
    "S3ImageStorage",
    "menu_image_key",
    "poster_image_key",
]
