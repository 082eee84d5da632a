"""
Redis Change Feed

Publishes order changes on Redis pub/sub so every API worker's kitchen
streams see every order, whichever worker handled the write.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from tableside.services.realtime.base import BaseChangeFeed, ChangeEvent, Subscription, channel_name

logger = logging.getLogger(__name__)


class PubSubSubscription(Subscription):
    def __init__(self, pubsub):
        self.pubsub = pubsub

    async def get(self, timeout: float) -> Optional[ChangeEvent]:
        message = await self.pubsub.get_message(ignore_subscribe_messages=True, timeout=timeout)
        if message is None:
            return None
        try:
            return ChangeEvent.from_json(message["data"])
        except (KeyError, ValueError) as e:
            logger.warning(f"Skipping malformed change event: {e}")
            return None


class RedisChangeFeed(BaseChangeFeed):
    """Change feed backed by Redis pub/sub channels ``orders:{tenant}``."""

    def __init__(self, redis_url: str, client: Optional[redis.Redis] = None):
        self.client = client or redis.from_url(redis_url)
        logger.info("RedisChangeFeed initialized")

    @property
    def provider_name(self) -> str:
        return "redis"

    async def publish(self, tenant_id: str, event: ChangeEvent) -> None:
        await self.client.publish(channel_name(tenant_id), event.to_json())

    @asynccontextmanager
    async def subscribe(self, tenant_id: str) -> AsyncIterator[Subscription]:
        pubsub = self.client.pubsub()
        await pubsub.subscribe(channel_name(tenant_id))
        try:
            yield PubSubSubscription(pubsub)
        finally:
            await pubsub.unsubscribe(channel_name(tenant_id))
            await pubsub.aclose()

    async def health_check(self) -> bool:
        try:
            return bool(await self.client.ping())
        except RedisError as e:
            logger.error(f"Redis health check failed: {e}")
            return False

    async def close(self) -> None:
        await self.client.aclose()
