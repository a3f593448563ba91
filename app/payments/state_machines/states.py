"""
State enums for payment models.

These are Django TextChoices for database storage and admin integration.

Payment (ledger entry) statuses:
    pending → paid              (additional payment captured, webhook success)
    pending → failed            (webhook payment_failed)
    completed                   (refunds, store credit, adjustments)

Order payment-perspective states (derived, never stored):
    unpaid → partially_paid → paid → partially_refunded → refunded

WebhookEvent statuses:
    pending → processing → processed
    pending → processing → failed → processing (retry)
"""

from django.db import models


class PaymentType(models.TextChoices):
    """Kind of ledger entry."""

    INITIAL = "initial", "Initial"
    ADDITIONAL = "additional", "Additional"
    REFUND = "refund", "Refund"


class PaymentStatus(models.TextChoices):
    """
    Status of a ledger entry.

    PAID and COMPLETED both count toward the ledger. Refund-typed entries
    only count when COMPLETED.
    """

    PENDING = "pending", "Pending"
    PAID = "paid", "Paid"
    COMPLETED = "completed", "Completed"
    FAILED = "failed", "Failed"


class PaymentMethod(models.TextChoices):
    """
    How a ledger entry was settled.

    Gateway-backed entries record the processor name.
    """

    STRIPE = "stripe", "Stripe"
    PAYPAL = "paypal", "PayPal"
    STORE_CREDIT = "store_credit", "Store Credit"
    ADJUSTMENT = "adjustment", "Adjustment"
    PAYMENT_LINK = "payment_link", "Payment Link"


class OrderPaymentState(models.TextChoices):
    """
    Payment-perspective state of an order, derived from its ledger.

    Not persisted; see payments.ledger.derive_payment_state.
    """

    UNPAID = "unpaid", "Unpaid"
    PARTIALLY_PAID = "partially_paid", "Partially Paid"
    PAID = "paid", "Paid"
    PARTIALLY_REFUNDED = "partially_refunded", "Partially Refunded"
    REFUNDED = "refunded", "Refunded"


class StoreCreditStatus(models.TextChoices):
    """Store credit lifecycle. Redemption is handled elsewhere."""

    ACTIVE = "active", "Active"


class WebhookEventStatus(models.TextChoices):
    """
    Processing status for gateway webhook events.

    State Flow:
        PENDING → PROCESSING → PROCESSED
        PENDING → PROCESSING → FAILED → PROCESSING (retry)
    """

    PENDING = "pending", "Pending"
    PROCESSING = "processing", "Processing"
    PROCESSED = "processed", "Processed"
    FAILED = "failed", "Failed"
