"""
Payment domain models.

- OrderPayment: Append-only ledger entry against an order
- StoreCredit: Credit issued to a customer alongside a refund entry
- WebhookEvent: Gateway webhook event tracking for idempotent processing
"""

from payments.models.order_payment import OrderPayment, OrderPaymentQuerySet
from payments.models.store_credit import StoreCredit
from payments.models.webhook_event import WebhookEvent

__all__ = [
    "OrderPayment",
    "OrderPaymentQuerySet",
    "StoreCredit",
    "WebhookEvent",
]
