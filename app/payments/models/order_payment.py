"""
OrderPayment model - one entry in an order's payment ledger.

Entries are append-only. After creation only the late-arriving
gateway fields (payment_id, status, payment_details, transaction_id)
may change, via capture or webhook reconciliation. The payment core
never deletes an entry.

Usage:
    from payments.models import OrderPayment
    from payments.state_machines import PaymentStatus, PaymentType

    OrderPayment.objects.create(
        order=order,
        payment_type=PaymentType.REFUND,
        amount=Decimal("5.00"),
        payment_method="stripe",
        status=PaymentStatus.COMPLETED,
        payment_id="re_123",
    )

    order.payments.counted()  # entries that contribute to the ledger
"""

from __future__ import annotations

from decimal import Decimal

from django.db import models
from django.db.models import Q

from core.models import BaseModel
from payments.state_machines import PaymentStatus, PaymentType

COUNTED_CREDIT_STATUSES = (PaymentStatus.PAID, PaymentStatus.COMPLETED)
COUNTED_REFUND_STATUSES = (PaymentStatus.COMPLETED,)


class OrderPaymentQuerySet(models.QuerySet):
    """QuerySet helpers for ledger lookups."""

    def counted(self):
        """Entries that contribute to total_paid or total_refunded."""
        return self.filter(
            Q(
                payment_type__in=[PaymentType.INITIAL, PaymentType.ADDITIONAL],
                status__in=COUNTED_CREDIT_STATUSES,
            )
            | Q(payment_type=PaymentType.REFUND, status__in=COUNTED_REFUND_STATUSES)
        )

    def successful_initial(self):
        """Initial payments that were paid or completed, oldest first."""
        return self.filter(
            payment_type=PaymentType.INITIAL,
            status__in=COUNTED_CREDIT_STATUSES,
        ).order_by("created_at", "id")

    def pending(self):
        return self.filter(status=PaymentStatus.PENDING)


class OrderPayment(BaseModel):
    """
    A single monetary movement against an order.

    Fields:
        order: The order this entry belongs to
        payment_type: initial, additional or refund
        amount: Non-negative amount in the order's currency
        payment_method: Processor name, or store_credit/adjustment/payment_link
        status: pending, paid, completed or failed
        transaction_id: Gateway transaction/charge identifier
        payment_id: Gateway-assigned identifier (intent, order, refund)
        payment_details: Opaque gateway payload
        refunded_items: Snapshot of the items a refund covers
        description: Human-readable summary
    """

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="payments",
    )
    payment_type = models.CharField(
        max_length=20,
        choices=PaymentType.choices,
        db_index=True,
    )
    amount = models.DecimalField(max_digits=10, decimal_places=2)
    payment_method = models.CharField(max_length=50, blank=True, default="")
    status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
        db_index=True,
    )
    transaction_id = models.CharField(max_length=255, blank=True, null=True)
    payment_id = models.CharField(
        max_length=255,
        blank=True,
        null=True,
        db_index=True,
        help_text="Gateway identifier; null until the gateway confirms",
    )
    payment_details = models.JSONField(default=dict, blank=True)
    refunded_items = models.JSONField(null=True, blank=True)
    description = models.TextField(blank=True, default="")

    objects = OrderPaymentQuerySet.as_manager()

    class Meta:
        ordering = ["created_at", "id"]
        verbose_name = "Order Payment"
        verbose_name_plural = "Order Payments"
        indexes = [
            models.Index(fields=["order", "payment_type", "status"], name="payments_or_order_i_5e1b7c_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(amount__gte=Decimal("0")),
                name="order_payment_amount_non_negative",
            ),
        ]

    def __str__(self) -> str:
        return (
            f"OrderPayment({self.pk}, order={self.order_id}, "
            f"{self.payment_type} {self.amount} {self.status})"
        )

    @property
    def is_pending(self) -> bool:
        return self.status == PaymentStatus.PENDING

    @property
    def is_refund(self) -> bool:
        return self.payment_type == PaymentType.REFUND
