from datetime import datetime, timezone
from urllib.parse import unquote

from tableside.services.receipts import build_receipt, format_receipt_message, messaging_link, receipt_email


def _order(**overrides):
    order = {
        "id": "3f2c4b1e-aaaa-bbbb-cccc-1234567890ab",
        "created_at": datetime(2026, 3, 5, 19, 30, tzinfo=timezone.utc),
        "table_name": "T4",
        "customer_name": "Asha",
        "customer_phone": "+91 98765 43210",
        "customer_email": None,
        "status": "Paid",
        "total_amount": 130.0,
        "items": [
            {"name": "Burger", "quantity": 2, "price_at_time": 50.0},
            {"name": "Fries", "quantity": 1, "price_at_time": 30.0},
        ],
    }
    order.update(overrides)
    return order


def test_message_layout():
    receipt = build_receipt(_order())
    text = format_receipt_message(receipt, "₹")

    assert text.startswith("🧾 *BILL RECEIPT*")
    assert "*Order ID:* #3F2C4B1E" in text
    assert "*Date:* 5 Mar 2026" in text
    assert "*Table:* T4" in text
    assert "Email: N/A" in text
    assert "• 2x Burger - ₹100.00\n• 1x Fries - ₹30.00" in text
    assert "*TOTAL: ₹130.00*" in text
    assert receipt.itemized_total == receipt.total


def test_deep_link_encodes_message():
    link = messaging_link("https://wa.me/", "+91 98765 43210", "Total: ₹10 & thanks")

    assert link.startswith("https://wa.me/919876543210?text=")
    assert " " not in link
    assert unquote(link.split("text=", 1)[1]) == "Total: ₹10 & thanks"
    assert messaging_link("https://wa.me", "", "hi") is None
    assert messaging_link("https://wa.me", None, "hi") is None


def test_receipt_email_only_with_address():
    now = datetime(2026, 3, 5, tzinfo=timezone.utc)
    assert receipt_email(build_receipt(_order()), now) is None

    email = receipt_email(build_receipt(_order(customer_email="asha@example.com")), now)
    assert email.template_params() == {
        "to_name": "Asha",
        "to_email": "asha@example.com",
        "amount": 130.0,
        "month_for": "March",
        "remarks": "Order ID: #3f2c4b1e. Thank you for dining with us!",
    }
