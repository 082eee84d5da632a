"""
Mock Receipt Notifier

Simulates receipt emails for development.
No actual messages are sent - just logged.
"""

import asyncio
import logging
import random
import uuid

from tableside.services.notifications.base import (
    BaseReceiptNotifier,
    NotificationResult,
    ReceiptEmail,
)

logger = logging.getLogger(__name__)


class MockReceiptNotifier(BaseReceiptNotifier):
    """Mock notifier for development."""

    def __init__(self, failure_rate: float = 0.0, latency: float = 0.0):
        self.failure_rate = failure_rate
        self.latency = latency
        self.sent: list[ReceiptEmail] = []
        logger.info(f"MockReceiptNotifier initialized (failure_rate={failure_rate:.0%})")

    @property
    def provider_name(self) -> str:
        return "mock"

    def _should_fail(self) -> bool:
        return random.random() < self.failure_rate

    async def send_receipt_email(self, receipt: ReceiptEmail) -> NotificationResult:
        """Simulate sending a receipt email."""
        if self.latency:
            await asyncio.sleep(self.latency)

        if self._should_fail():
            logger.warning(f"Mock receipt email failed (simulated) to {receipt.to_email}")
            return NotificationResult(
                success=False,
                error_message="Simulated email failure",
                provider="mock"
            )

        self.sent.append(receipt)
        message_id = f"email_mock_{uuid.uuid4().hex[:12]}"
        logger.info(f"Mock receipt email sent to {receipt.to_email}: {receipt.remarks} (ID: {message_id})")

        return NotificationResult(
            success=True,
            message_id=message_id,
            provider="mock"
        )

    async def health_check(self) -> bool:
        """Mock always returns healthy."""
        return True
