"""
EmailJS Receipt Notifier

Production implementation calling the EmailJS REST API with the
service id, template id and public key from the environment.
"""

import logging
from typing import Optional

import httpx

from tableside.services.notifications.base import (
    BaseReceiptNotifier,
    NotificationResult,
    ReceiptEmail,
)

logger = logging.getLogger(__name__)


class EmailJSReceiptNotifier(BaseReceiptNotifier):
    """Receipt notifier backed by EmailJS."""

    def __init__(
        self,
        service_id: Optional[str],
        template_id: Optional[str],
        public_key: Optional[str],
        api_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.service_id = service_id
        self.template_id = template_id
        self.public_key = public_key
        self.api_url = api_url
        self.timeout = timeout
        self.transport = transport

        if not self.is_configured:
            logger.warning("EmailJS credentials not configured")
        logger.info("EmailJSReceiptNotifier initialized")

    @property
    def provider_name(self) -> str:
        return "emailjs"

    @property
    def is_configured(self) -> bool:
        return bool(self.service_id and self.template_id and self.public_key)

    async def send_receipt_email(self, receipt: ReceiptEmail) -> NotificationResult:
        """Send a receipt email via EmailJS."""
        if not self.is_configured:
            return NotificationResult(
                success=False,
                error_message="EmailJS not configured",
                provider="emailjs"
            )

        payload = {
            "service_id": self.service_id,
            "template_id": self.template_id,
            "user_id": self.public_key,
            "template_params": receipt.template_params(),
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.api_url, json=payload)
        except httpx.HTTPError as e:
            logger.error(f"EmailJS error: {e}")
            return NotificationResult(
                success=False,
                error_message=str(e),
                provider="emailjs"
            )

        if response.status_code != 200:
            logger.error(f"EmailJS rejected receipt for {receipt.to_email}: {response.status_code} {response.text}")
            return NotificationResult(
                success=False,
                error_message=response.text or f"HTTP {response.status_code}",
                provider="emailjs"
            )

        logger.info(f"Receipt email sent to {receipt.to_email}")
        return NotificationResult(success=True, provider="emailjs")

    async def health_check(self) -> bool:
        return self.is_configured
