"""
Change Feed Factory

Returns the in-memory or Redis change feed based on ENV_MODE.
"""

import logging
from functools import lru_cache

from tableside.core.config import get_settings
from tableside.services.realtime.base import INSERT, UPDATE, BaseChangeFeed, ChangeEvent, Subscription
from tableside.services.realtime.memory import InMemoryChangeFeed
from tableside.services.realtime.redis_feed import RedisChangeFeed

logger = logging.getLogger(__name__)


@lru_cache()
def get_change_feed() -> BaseChangeFeed:
    """Get the configured change feed."""
    settings = get_settings()

    if settings.is_development:
        logger.info("Change Feed: Using InMemoryChangeFeed (development mode)")
        return InMemoryChangeFeed(queue_size=settings.feed_queue_size)
    else:
        logger.info(f"Change Feed: Using RedisChangeFeed ({settings.env_mode.value} mode)")
        return RedisChangeFeed(settings.redis_url)


def reset_change_feed() -> None:
    """Clear the cached feed instance."""
    get_change_feed.cache_clear()


__all__ = [
    "get_change_feed",
    "reset_change_feed",
    "BaseChangeFeed",
    "ChangeEvent",
    "Subscription",
    "InMemoryChangeFeed",
    "RedisChangeFeed",
    "INSERT",
    "UPDATE",
]
