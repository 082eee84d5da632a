"""
Order Change Feed Abstract Base Class

A change feed carries row-change notifications for the ``orders`` table,
one channel per tenant. Publishers are the order handlers; subscribers are
kitchen board streams.

Event types mirror database row events:
    - INSERT: a new order row (raw columns, no joins)
    - UPDATE: the changed columns of an existing order plus its version
"""

import json
from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional


INSERT = "INSERT"
UPDATE = "UPDATE"


def _default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if hasattr(value, "value"):
        return value.value
    raise TypeError(f"Cannot serialize {type(value).__name__}")


@dataclass
class ChangeEvent:
    """A single row change on the orders table."""
    type: str
    record: dict[str, Any]
    table: str = "orders"
    emitted_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def order_id(self) -> Optional[str]:
        return self.record.get("id")

    def to_json(self) -> str:
        return json.dumps(
            {
                "type": self.type,
                "table": self.table,
                "record": self.record,
                "emitted_at": self.emitted_at,
            },
            default=_default,
        )

    @classmethod
    def from_json(cls, data: str | bytes) -> "ChangeEvent":
        payload = json.loads(data)
        emitted = payload.get("emitted_at")
        return cls(
            type=payload["type"],
            record=payload.get("record") or {},
            table=payload.get("table", "orders"),
            emitted_at=datetime.fromisoformat(emitted) if emitted else datetime.now(timezone.utc),
        )


class Subscription(ABC):
    """An open subscription to one tenant's channel."""

    @abstractmethod
    async def get(self, timeout: float) -> Optional[ChangeEvent]:
        """Wait up to ``timeout`` seconds for the next event (``None`` on timeout)."""
        pass


class BaseChangeFeed(ABC):
    """Abstract base class for change feeds."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        pass

    @abstractmethod
    async def publish(self, tenant_id: str, event: ChangeEvent) -> None:
        """Deliver ``event`` to every subscriber of ``tenant_id``."""
        pass

    @abstractmethod
    def subscribe(self, tenant_id: str) -> AbstractAsyncContextManager[Subscription]:
        """Open a subscription; leaving the context unsubscribes."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        pass

    async def close(self) -> None:
        """Release connections held by the feed."""
        return None


def channel_name(tenant_id: str) -> str:
    return f"orders:{tenant_id}"
