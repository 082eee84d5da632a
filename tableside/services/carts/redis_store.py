"""
Redis Cart Store

Stores each cart as a JSON string with an idle expiry that is refreshed on
every save.
"""

import json
import logging
from typing import Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from tableside.cart import Cart
from tableside.core.errors import UpstreamFailure
from tableside.services.carts.base import BaseCartStore

logger = logging.getLogger(__name__)


class RedisCartStore(BaseCartStore):

    def __init__(self, redis_url: str, ttl_seconds: int, client: Optional[redis.Redis] = None):
        self.client = client or redis.from_url(redis_url)
        self.ttl_seconds = ttl_seconds

    @property
    def provider_name(self) -> str:
        return "redis"

    async def load(self, slot: str) -> Cart:
        try:
            raw = await self.client.get(slot)
        except RedisError as e:
            logger.error(f"Failed to load cart {slot}: {e}")
            raise UpstreamFailure("Failed to load cart")
        if not raw:
            return Cart()
        try:
            return Cart.from_list(json.loads(raw))
        except ValueError:
            logger.warning(f"Discarding unreadable cart {slot}")
            return Cart()

    async def save(self, slot: str, cart: Cart) -> None:
        try:
            if cart.is_empty():
                await self.client.delete(slot)
            else:
                await self.client.set(slot, json.dumps(cart.to_list()), ex=self.ttl_seconds)
        except RedisError as e:
            logger.error(f"Failed to save cart {slot}: {e}")
            raise UpstreamFailure("Failed to save cart")

    async def clear(self, slot: str) -> None:
        try:
            await self.client.delete(slot)
        except RedisError as e:
            logger.error(f"Failed to clear cart {slot}: {e}")
            raise UpstreamFailure("Failed to clear cart")

    async def health_check(self) -> bool:
        try:
            return bool(await self.client.ping())
        except RedisError as e:
            logger.error(f"Redis health check failed: {e}")
            return False
