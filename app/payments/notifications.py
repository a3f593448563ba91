"""
Customer notification dispatch for payment events.

The orchestrator only knows the Notifier protocol. The default
CeleryNotifier hands each message to a Celery task so a slow mail server
or SMS worker never holds an order lock.

Usage:
    notifier = CeleryNotifier()
    notifier.notify(
        channel=CHANNEL_EMAIL,
        template="default_payment_link",
        recipient="guest@example.com",
        context={"order_id": 42, "url": "https://..."},
    )
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from typing import Any

logger = logging.getLogger(__name__)

CHANNEL_EMAIL = "email"
CHANNEL_SMS = "sms"

DEFAULT_EMAIL_TEMPLATE = "default_payment_link"
DEFAULT_SMS_TEMPLATE = (
    "Your payment link for order #%(order_id)s from %(restaurant)s: %(url)s"
)


@runtime_checkable
class Notifier(Protocol):
    """
    Protocol for customer notification backends.

    Example:
        class RecordingNotifier:
            def __init__(self):
                self.sent = []

            def notify(self, channel, template, recipient, context):
                self.sent.append((channel, recipient))

        orchestrator = PaymentOrchestrator(config, notifier=RecordingNotifier())
    """

    def notify(
        self,
        channel: str,
        template: str,
        recipient: str,
        context: dict[str, Any],
    ) -> None:
        """
        Deliver (or enqueue) a notification.

        Args:
            channel: CHANNEL_EMAIL or CHANNEL_SMS
            template: Email template name, or the SMS format string
            recipient: Email address or phone number
            context: JSON-serializable template values
        """
        ...


class CeleryNotifier:
    """Enqueue payments.tasks.send_payment_notification per message."""

    def notify(
        self,
        channel: str,
        template: str,
        recipient: str,
        context: dict[str, Any],
    ) -> None:
        from payments.tasks import send_payment_notification

        send_payment_notification.delay(channel, template, recipient, context)
        logger.info(
            "Queued payment notification",
            extra={"channel": channel, "order_id": context.get("order_id")},
        )


def render_sms(template: str | None, context: dict[str, Any]) -> str:
    """
    Format an SMS body from a tenant template.

    Falls back to DEFAULT_SMS_TEMPLATE when the tenant template is
    missing or references an unknown key.
    """
    try:
        return (template or DEFAULT_SMS_TEMPLATE) % context
    except (KeyError, TypeError, ValueError):
        logger.warning(
            "Invalid SMS template, using default",
            extra={"order_id": context.get("order_id")},
        )
        return DEFAULT_SMS_TEMPLATE % context
