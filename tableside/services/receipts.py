"""
Receipt composition.

One ``Receipt`` is built from a joined order and rendered three ways:
the messaging text behind the WhatsApp deep link, the printable HTML
slip, and the parameters of the receipt email.
"""

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional
from urllib.parse import quote

from tableside.services.notifications import ReceiptEmail

RULE = "━" * 18


@dataclass
class ReceiptLine:
    name: str
    quantity: int
    unit_price: float

    @property
    def subtotal(self) -> float:
        return round(self.unit_price * self.quantity, 2)


@dataclass
class Receipt:
    order_id: str
    created_at: datetime
    table_name: str
    customer_name: str
    customer_phone: Optional[str]
    customer_email: Optional[str]
    status: str
    total: float
    lines: list[ReceiptLine]

    @property
    def short_id(self) -> str:
        return self.order_id[:8].upper()

    @property
    def itemized_total(self) -> float:
        return round(sum(line.subtotal for line in self.lines), 2)

    @property
    def is_paid(self) -> bool:
        return self.status == "Paid"


def build_receipt(order: dict[str, Any]) -> Receipt:
    """Build a receipt from a serialized, joined order (see ``orders.serialize_order``)."""
    lines = [
        ReceiptLine(
            name=line.get("name") or "Unknown Item",
            quantity=int(line["quantity"]),
            unit_price=float(line.get("price_at_time") or 0),
        )
        for line in order.get("items", [])
    ]
    return Receipt(
        order_id=order["id"],
        created_at=order["created_at"],
        table_name=order.get("table_name") or "N/A",
        customer_name=order.get("customer_name") or "",
        customer_phone=order.get("customer_phone"),
        customer_email=order.get("customer_email"),
        status=order["status"],
        total=round(float(order["total_amount"]), 2),
        lines=lines,
    )


def format_money(amount: float, currency: str) -> str:
    return f"{currency}{amount:.2f}"


def format_receipt_message(receipt: Receipt, currency: str) -> str:
    """The human-readable bill sent through the messaging deep link."""
    items = "\n".join(
        f"• {line.quantity}x {line.name} - {format_money(line.subtotal, currency)}"
        for line in receipt.lines
    )
    return "\n".join([
        "🧾 *BILL RECEIPT*",
        RULE,
        f"*Order ID:* #{receipt.short_id}",
        f"*Date:* {receipt.created_at.strftime('%d %b %Y').lstrip('0')}",
        f"*Table:* {receipt.table_name}",
        "",
        "*Customer Details:*",
        f"Name: {receipt.customer_name}",
        f"Phone: {receipt.customer_phone or 'N/A'}",
        f"Email: {receipt.customer_email or 'N/A'}",
        "",
        "*Order Items:*",
        items,
        "",
        RULE,
        f"*TOTAL: {format_money(receipt.total, currency)}*",
        RULE,
        "",
        "Thank you for dining with us! 🍽️",
    ])


def messaging_link(base_url: str, phone: Optional[str], message: str) -> Optional[str]:
    """
    ``{base}/{phone}?text={message}`` with the phone reduced to digits.

    No phone, no link: the caller has nowhere to send the receipt.
    """
    digits = re.sub(r"\D", "", phone or "")
    if not digits:
        return None
    return f"{base_url.rstrip('/')}/{digits}?text={quote(message, safe='')}"


def receipt_email(receipt: Receipt, now: datetime) -> Optional[ReceiptEmail]:
    if not receipt.customer_email:
        return None
    return ReceiptEmail(
        to_name=receipt.customer_name,
        to_email=receipt.customer_email,
        amount=receipt.total,
        month_for=now.strftime("%B"),
        remarks=f"Order ID: #{receipt.order_id[:8]}. Thank you for dining with us!",
    )
