"""
State enums for the Order model.

Order Status Flow (kitchen side, owned by order management):
    pending → preparing → ready

Order Status Flow (payment side, driven by the payment core):
    any (except cancelled) → paid
    any → partially_refunded → refunded
"""

from django.db import models


class OrderStatus(models.TextChoices):
    """Lifecycle status of an order."""

    PENDING = "pending", "Pending"
    PREPARING = "preparing", "Preparing"
    READY = "ready", "Ready"
    PAID = "paid", "Paid"
    PARTIALLY_REFUNDED = "partially_refunded", "Partially Refunded"
    REFUNDED = "refunded", "Refunded"
    CANCELLED = "cancelled", "Cancelled"


class OrderPaymentStatus(models.TextChoices):
    """Payment status of an order as reported by gateways and refunds."""

    PENDING = "pending", "Pending"
    PAID = "paid", "Paid"
    FAILED = "failed", "Failed"
    PARTIALLY_REFUNDED = "partially_refunded", "Partially Refunded"
    REFUNDED = "refunded", "Refunded"
