"""
Cart Store Abstract Base Class

Persists one customer cart per slot. A slot is scoped to a table and a
cart session cookie, so two phones at the same table keep separate carts.
"""

from abc import ABC, abstractmethod

from tableside.cart import Cart


def cart_slot(table_id: str, session_id: str) -> str:
    return f"cart-{table_id}-{session_id}"


class BaseCartStore(ABC):
    """Abstract base class for cart stores."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        pass

    @abstractmethod
    async def load(self, slot: str) -> Cart:
        """Return the stored cart (an empty cart when nothing is stored)."""
        pass

    @abstractmethod
    async def save(self, slot: str, cart: Cart) -> None:
        pass

    @abstractmethod
    async def clear(self, slot: str) -> None:
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        pass
