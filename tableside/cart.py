"""
Customer cart model.

A cart is an ordered list of ``{id, name, price, quantity}`` lines. Prices
here are display prices only; orders are always billed from the menu.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Iterable, Optional


@dataclass
class CartLine:
    id: str
    name: str
    price: float
    quantity: int = 1

    @property
    def subtotal(self) -> float:
        return round(self.price * self.quantity, 2)


@dataclass
class Cart:
    lines: list[CartLine] = field(default_factory=list)

    @classmethod
    def from_list(cls, raw: Optional[Iterable[dict[str, Any]]]) -> "Cart":
        """Rebuild a cart from its stored form, skipping malformed lines."""
        lines = []
        for entry in raw or []:
            try:
                line = CartLine(
                    id=str(entry["id"]),
                    name=str(entry.get("name", "")),
                    price=float(entry.get("price", 0)),
                    quantity=int(entry.get("quantity", 1)),
                )
            except (KeyError, TypeError, ValueError):
                continue
            if line.quantity > 0:
                lines.append(line)
        return cls(lines=lines)

    def to_list(self) -> list[dict[str, Any]]:
        return [asdict(line) for line in self.lines]

    def find(self, item_id: str) -> Optional[CartLine]:
        return next((line for line in self.lines if line.id == item_id), None)

    def contains(self, item_id: str) -> bool:
        return self.find(item_id) is not None

    def add(self, item_id: str, name: str, price: float) -> CartLine:
        """Add one of an item; an item already in the cart gets +1."""
        line = self.find(item_id)
        if line:
            line.quantity += 1
            return line
        line = CartLine(id=item_id, name=name, price=price, quantity=1)
        self.lines.append(line)
        return line

    def adjust(self, item_id: str, delta: int) -> Optional[CartLine]:
        """
        Change a line's quantity by ``delta``.

        Quantities never go below zero and a line that reaches zero is
        removed. Returns the line, or ``None`` once removed / if absent.
        """
        line = self.find(item_id)
        if line is None:
            return None
        line.quantity = max(0, line.quantity + delta)
        if line.quantity == 0:
            self.lines.remove(line)
            return None
        return line

    def remove(self, item_id: str) -> None:
        self.lines = [line for line in self.lines if line.id != item_id]

    def clear(self) -> None:
        self.lines = []

    @property
    def total(self) -> float:
        return round(sum(line.price * line.quantity for line in self.lines), 2)

    @property
    def count(self) -> int:
        return sum(line.quantity for line in self.lines)

    def is_empty(self) -> bool:
        return not self.lines
