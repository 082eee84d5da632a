"""
Kitchen Board

In-memory model behind a kitchen display. It starts from a snapshot of
joined orders, follows the tenant's change stream, and exposes the three
status lanes.

Merge rules:
    - INSERT re-fetches the joined row and prepends it; an id already on
      the board is merged instead, never duplicated.
    - UPDATE merges the changed columns into the entry with that id. Join
      fields (table name, line items) are left as they are.
    - Every entry carries a version. An event that is not newer than the
      entry it targets is stale and ignored.

Status changes made from the board go through ``StatusChangeCommand``:
applied locally first, rolled back if the server call fails.
"""

import copy
import inspect
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional, Union

from tableside.models import BOARD_LANES, NEXT_STATUSES, OrderStatus
from tableside.services.realtime import INSERT, UPDATE, ChangeEvent

logger = logging.getLogger(__name__)

OrderDict = dict[str, Any]
FetchOrder = Callable[[str], Awaitable[Optional[OrderDict]]]
SendStatus = Callable[[str, str], Awaitable[Any]]


def _timestamp(value: Union[str, datetime, None]) -> datetime:
    if value is None:
        return datetime.min.replace(tzinfo=timezone.utc)
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def _status_value(status: Union[str, OrderStatus]) -> str:
    return status.value if isinstance(status, OrderStatus) else str(status)


def group_lanes(orders: list[OrderDict]) -> dict[str, list[OrderDict]]:
    """Orders per lane (New, Preparing, Completed), newest first."""
    lanes: dict[str, list[OrderDict]] = {lane.value: [] for lane in BOARD_LANES}
    for order in orders:
        status = _status_value(order.get("status"))
        if status in lanes:
            lanes[status].append(order)
    for entries in lanes.values():
        entries.sort(key=lambda o: _timestamp(o.get("created_at")), reverse=True)
    return lanes


@dataclass
class CommandResult:
    success: bool
    error: Optional[str] = None


@dataclass
class StatusChangeCommand:
    """
    One optimistic status change.

    ``apply`` remembers the entry as it was and sets the new status,
    ``rollback`` puts the remembered entry back. A rollback is skipped when
    the stream has meanwhile delivered a newer version of the order.
    """
    board: "KitchenBoard"
    order_id: str
    status: str
    prior: Optional[OrderDict] = field(default=None, repr=False)

    def apply(self) -> bool:
        entry = self.board.get(self.order_id)
        if entry is None:
            return False
        self.prior = copy.deepcopy(entry)
        entry["status"] = self.status
        return True

    def rollback(self) -> None:
        if self.prior is None:
            return
        entry = self.board.get(self.order_id)
        if entry is None:
            return
        if (entry.get("version") or 0) > (self.prior.get("version") or 0):
            logger.debug(f"Skipping rollback of {self.order_id}: newer version on board")
            return
        entry.clear()
        entry.update(self.prior)

    async def execute(self, send: SendStatus) -> CommandResult:
        if not self.apply():
            return CommandResult(success=False, error="Order not on board")

        try:
            result = await send(self.order_id, self.status)
        except Exception as e:
            logger.warning(f"Status change for {self.order_id} failed: {e}")
            self.rollback()
            return CommandResult(success=False, error=str(e))

        if isinstance(result, dict) and result.get("error"):
            self.rollback()
            return CommandResult(success=False, error=result["error"])

        return CommandResult(success=True)


class KitchenBoard:

    def __init__(
        self,
        initial_orders: list[OrderDict],
        fetch_order: FetchOrder,
        on_new_order: Optional[Callable[[OrderDict], Any]] = None,
        sound_enabled: bool = True,
    ):
        self._orders: list[OrderDict] = [dict(order) for order in initial_orders]
        self.fetch_order = fetch_order
        self.on_new_order = on_new_order
        self.sound_enabled = sound_enabled

    @property
    def orders(self) -> list[OrderDict]:
        return list(self._orders)

    def get(self, order_id: str) -> Optional[OrderDict]:
        return next((o for o in self._orders if o.get("id") == order_id), None)

    # -------------------------------------------------------------------------
    # Change stream
    # -------------------------------------------------------------------------

    async def apply_event(self, event: Union[ChangeEvent, dict]) -> None:
        if isinstance(event, dict):
            event = ChangeEvent(type=event["type"], record=event.get("record") or {})

        if event.type == INSERT:
            await self._on_insert(event.record)
        elif event.type == UPDATE:
            self._merge(event.record)
        else:
            logger.debug(f"Ignoring {event.type} event")

    async def _on_insert(self, record: OrderDict) -> None:
        order_id = record.get("id")
        if not order_id:
            return

        order = await self.fetch_order(order_id)
        if order is None:
            logger.warning(f"New order {order_id} could not be fetched")
            return

        if self.get(order_id) is not None:
            self._merge(order)
            return

        self._orders.insert(0, dict(order))
        if self.sound_enabled and self.on_new_order is not None:
            outcome = self.on_new_order(order)
            if inspect.isawaitable(outcome):
                await outcome

    def _merge(self, record: OrderDict) -> bool:
        """Merge ``record`` into the entry with the same id unless it is stale."""
        entry = self.get(record.get("id"))
        if entry is None:
            return False

        incoming = record.get("version")
        current = entry.get("version")
        if incoming is not None and current is not None and incoming <= current:
            logger.debug(f"Stale update for {entry['id']} (v{incoming} <= v{current})")
            return False

        entry.update(record)
        return True

    # -------------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------------

    def lanes(self) -> dict[str, list[OrderDict]]:
        return group_lanes(self._orders)

    @staticmethod
    def actions_for(order: OrderDict) -> list[str]:
        """The forward transitions offered as buttons for ``order``."""
        try:
            status = OrderStatus(_status_value(order.get("status")))
        except ValueError:
            return []
        return [s.value for s in NEXT_STATUSES[status]]

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    async def change_status(
        self,
        order_id: str,
        status: Union[str, OrderStatus],
        send: SendStatus,
    ) -> CommandResult:
        command = StatusChangeCommand(self, order_id, _status_value(status))
        return await command.execute(send)
