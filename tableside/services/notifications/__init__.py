"""
Receipt Notifier Factory

Returns Mock or EmailJS notifier based on ENV_MODE.
"""

import logging
from functools import lru_cache

from tableside.core.config import get_settings
from tableside.services.notifications.base import (
    BaseReceiptNotifier,
    NotificationResult,
    ReceiptEmail,
)
from tableside.services.notifications.mock import MockReceiptNotifier
from tableside.services.notifications.emailjs import EmailJSReceiptNotifier

logger = logging.getLogger(__name__)


@lru_cache()
def get_receipt_notifier() -> BaseReceiptNotifier:
    """Get the configured receipt notifier."""
    settings = get_settings()

    if settings.is_development:
        logger.info("Receipt Notifier: Using MockReceiptNotifier (development mode)")
        return MockReceiptNotifier()
    else:
        logger.info(f"Receipt Notifier: Using EmailJSReceiptNotifier ({settings.env_mode.value} mode)")
        return EmailJSReceiptNotifier(
            service_id=settings.emailjs_service_id,
            template_id=settings.emailjs_template_id,
            public_key=settings.emailjs_public_key,
            api_url=settings.emailjs_api_url,
            timeout=settings.http_timeout_seconds,
        )


def reset_receipt_notifier() -> None:
    """Clear the cached notifier instance."""
    get_receipt_notifier.cache_clear()


__all__ = [
    "get_receipt_notifier",
    "reset_receipt_notifier",
    "BaseReceiptNotifier",
    "NotificationResult",
    "ReceiptEmail",
    "MockReceiptNotifier",
    "EmailJSReceiptNotifier",
]
