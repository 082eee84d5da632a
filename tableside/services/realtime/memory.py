"""
In-Memory Change Feed

Single-process fan-out over ``asyncio.Queue`` instances. Used in
development and tests; events never leave the worker that produced them.
"""

import asyncio
import logging
from collections import defaultdict
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from tableside.services.realtime.base import BaseChangeFeed, ChangeEvent, Subscription

logger = logging.getLogger(__name__)


class QueueSubscription(Subscription):
    def __init__(self, queue: asyncio.Queue):
        self.queue = queue

    async def get(self, timeout: float) -> Optional[ChangeEvent]:
        try:
            return await asyncio.wait_for(self.queue.get(), timeout=timeout)
        except asyncio.TimeoutError:
            return None


class InMemoryChangeFeed(BaseChangeFeed):
    """Dispatch events to per-tenant subscriber queues."""

    def __init__(self, queue_size: int = 100):
        self.queue_size = queue_size
        self._subs: dict[str, list[asyncio.Queue]] = defaultdict(list)

    @property
    def provider_name(self) -> str:
        return "memory"

    def subscriber_count(self, tenant_id: str) -> int:
        return len(self._subs.get(tenant_id, []))

    async def publish(self, tenant_id: str, event: ChangeEvent) -> None:
        for queue in list(self._subs.get(tenant_id, [])):
            try:
                queue.put_nowait(event)
            except asyncio.QueueFull:
                logger.warning(f"Dropping {event.type} for slow subscriber on tenant {tenant_id}")

    @asynccontextmanager
    async def subscribe(self, tenant_id: str) -> AsyncIterator[Subscription]:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.queue_size)
        self._subs[tenant_id].append(queue)
        logger.debug(f"Subscriber added for tenant {tenant_id}")
        try:
            yield QueueSubscription(queue)
        finally:
            self._subs[tenant_id].remove(queue)
            if not self._subs[tenant_id]:
                del self._subs[tenant_id]

    async def health_check(self) -> bool:
        return True
