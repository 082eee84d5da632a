"""
Receipt Notifier Abstract Base Class

Defines the interface for handing a paid order's receipt to an email
provider. Supports both Mock (development) and EmailJS (production)
implementations.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass
class NotificationResult:
    """Result from sending a notification."""
    success: bool
    message_id: Optional[str] = None
    error_message: Optional[str] = None
    provider: str = "unknown"


@dataclass
class ReceiptEmail:
    """
    Receipt email parameters.

    Field names follow the EmailJS template variables
    (``to_name``, ``to_email``, ``amount``, ``month_for``, ``remarks``).
    """
    to_name: str
    to_email: str
    amount: float
    month_for: str
    remarks: str

    def template_params(self) -> dict:
        return {
            "to_name": self.to_name,
            "to_email": self.to_email,
            "amount": self.amount,
            "month_for": self.month_for,
            "remarks": self.remarks,
        }


class BaseReceiptNotifier(ABC):
    """Abstract base class for receipt notifiers."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider name."""
        pass

    @abstractmethod
    async def send_receipt_email(self, receipt: ReceiptEmail) -> NotificationResult:
        """Send a receipt email."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check service configuration/connectivity."""
        pass
