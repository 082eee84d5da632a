"""
In-Memory Cart Store

Keeps carts in a process-local dict. Development only: carts vanish on
restart and are not shared between workers.
"""

from tableside.cart import Cart
from tableside.services.carts.base import BaseCartStore


class InMemoryCartStore(BaseCartStore):

    def __init__(self):
        self._carts: dict[str, list[dict]] = {}

    @property
    def provider_name(self) -> str:
        return "memory"

    async def load(self, slot: str) -> Cart:
        return Cart.from_list(self._carts.get(slot))

    async def save(self, slot: str, cart: Cart) -> None:
        if cart.is_empty():
            self._carts.pop(slot, None)
        else:
            self._carts[slot] = cart.to_list()

    async def clear(self, slot: str) -> None:
        self._carts.pop(slot, None)

    async def health_check(self) -> bool:
        return True
