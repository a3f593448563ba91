"""
State enums for payment models.
"""

from payments.state_machines.states import (
    OrderPaymentState,
    PaymentMethod,
    PaymentStatus,
    PaymentType,
    StoreCreditStatus,
    WebhookEventStatus,
)

__all__ = [
    "OrderPaymentState",
    "PaymentMethod",
    "PaymentStatus",
    "PaymentType",
    "StoreCreditStatus",
    "WebhookEventStatus",
]
