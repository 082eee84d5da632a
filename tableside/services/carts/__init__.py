"""
Cart Store Factory

Returns the in-memory or Redis cart store based on ENV_MODE.
"""

import logging
from functools import lru_cache

from tableside.core.config import get_settings
from tableside.services.carts.base import BaseCartStore, cart_slot
from tableside.services.carts.memory import InMemoryCartStore
from tableside.services.carts.redis_store import RedisCartStore

logger = logging.getLogger(__name__)


@lru_cache()
def get_cart_store() -> BaseCartStore:
    """Get the configured cart store."""
    settings = get_settings()

    if settings.is_development:
        logger.info("Cart Store: Using InMemoryCartStore (development mode)")
        return InMemoryCartStore()
    else:
        logger.info(f"Cart Store: Using RedisCartStore ({settings.env_mode.value} mode)")
        return RedisCartStore(settings.redis_url, ttl_seconds=settings.cart_ttl_seconds)


def reset_cart_store() -> None:
    """Clear the cached store instance."""
    get_cart_store.cache_clear()


__all__ = [
    "get_cart_store",
    "reset_cart_store",
    "cart_slot",
    "BaseCartStore",
    "InMemoryCartStore",
    "RedisCartStore",
]
