"""
services/email_sink.py
-----------------------
Forwards payment notifications to an email relay over HTTP.

The relay receives ``PaymentNotification.to_dict()`` as a JSON POST and is
responsible for sending the actual email to ``userEmail``.
"""

from typing import Optional

import httpx

from config import NOTIFICATION_WEBHOOK_TIMEOUT, NOTIFICATION_WEBHOOK_URL
from models.notification import PaymentNotification
from utils.logger import get_logger

logger = get_logger(__name__)


class WebhookEmailSink:
    """Posts notifications that carry an email address to the relay URL."""

    def __init__(
        self,
        url: str = NOTIFICATION_WEBHOOK_URL,
        timeout: float = NOTIFICATION_WEBHOOK_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self.timeout = timeout
        self.transport = transport

    async def send(self, notification: PaymentNotification) -> bool:
        """
        POST one notification to the relay.

        Returns:
            True if the relay accepted it (2xx), False on any HTTP or
            connection error. Notifications without an email are not sent.
        """
        if not notification.user_email:
            return False

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.url, json=notification.to_dict())
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"Email relay rejected payment #{notification.payment.id}: {e}")
            return False
        except httpx.RequestError as e:
            logger.error(f"Email relay unreachable for payment #{notification.payment.id}: {e}")
            return False

        logger.debug(f"Forwarded payment #{notification.payment.id} to {notification.user_email}")
        return True


def build_email_sink() -> Optional[WebhookEmailSink]:
    """The configured sink, or None when no relay URL is set."""
    if not NOTIFICATION_WEBHOOK_URL:
        return None
    return WebhookEmailSink()
