"""
Order model.

Usage:
    from orders.models import Order
    from orders.states import OrderStatus

    order = Order.objects.create(restaurant=restaurant, total=Decimal("25.00"))

    # Payment-side transitions using django-fsm
    order.mark_paid()
    order.save()

    # Ledger values are recomputed from payment rows on every access
    order.net_amount
"""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.db import models
from django_fsm import FSMField, transition

from core.models import BaseModel
from orders.states import OrderPaymentStatus, OrderStatus

_PAYABLE_SOURCES = [
    OrderStatus.PENDING,
    OrderStatus.PREPARING,
    OrderStatus.READY,
    OrderStatus.PAID,
    OrderStatus.PARTIALLY_REFUNDED,
    OrderStatus.REFUNDED,
]


class Order(BaseModel):
    """
    A customer order placed at a restaurant.

    Fields:
        restaurant: Owning tenant
        user: Customer account (None for guest orders)
        items: List of {id, name, price, quantity, ...} dicts
        total: Order total in the restaurant's currency
        status: Order lifecycle status (django-fsm)
        payment_status: Payment status reported by gateways/refunds
        payment_id: Gateway identifier of the original checkout payment
        payment_details: Gateway payload merged in by webhooks
        contact_name/contact_email/contact_phone: Guest contact details

    Ledger:
        total_paid, total_refunded, net_amount and initial_payment are
        derived from the order's payments on every access, never stored.
    """

    restaurant = models.ForeignKey(
        "tenants.Restaurant",
        on_delete=models.CASCADE,
        related_name="orders",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="orders",
    )
    items = models.JSONField(default=list, blank=True)
    total = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
    )
    status = FSMField(
        default=OrderStatus.PENDING,
        choices=OrderStatus.choices,
        db_index=True,
    )
    payment_status = models.CharField(
        max_length=32,
        choices=OrderPaymentStatus.choices,
        default=OrderPaymentStatus.PENDING,
    )
    payment_id = models.CharField(max_length=255, blank=True, null=True, db_index=True)
    payment_details = models.JSONField(default=dict, blank=True)
    contact_name = models.CharField(max_length=255, blank=True, default="")
    contact_email = models.EmailField(blank=True, default="")
    contact_phone = models.CharField(max_length=32, blank=True, default="")

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["restaurant", "status"], name="orders_orde_restaur_4f2c1e_idx"),
            models.Index(fields=["user", "created_at"], name="orders_orde_user_id_8b7d3a_idx"),
        ]

    def __str__(self) -> str:
        return f"Order #{self.pk} ({self.status})"

    # =========================================================================
    # Payment transitions
    # =========================================================================

    @transition(field=status, source=_PAYABLE_SOURCES, target=OrderStatus.PAID)
    def mark_paid(self):
        """Gateway confirmed payment. Cancelled orders stay cancelled."""
        self.payment_status = OrderPaymentStatus.PAID

    @transition(field=status, source="*", target=OrderStatus.PARTIALLY_REFUNDED)
    def mark_partially_refunded(self):
        """A refund left a positive net amount."""
        self.payment_status = OrderPaymentStatus.PARTIALLY_REFUNDED

    @transition(field=status, source="*", target=OrderStatus.REFUNDED)
    def mark_refunded(self):
        """Refunds brought the net amount to zero."""
        self.payment_status = OrderPaymentStatus.REFUNDED

    # =========================================================================
    # Ledger accessors
    # =========================================================================

    @property
    def ledger(self):
        from payments.ledger import LedgerService

        return LedgerService.summarize_order(self)

    @property
    def total_paid(self) -> Decimal:
        return self.ledger.total_paid

    @property
    def total_refunded(self) -> Decimal:
        return self.ledger.total_refunded

    @property
    def net_amount(self) -> Decimal:
        return self.ledger.net_amount

    @property
    def initial_payment(self):
        """First successful initial payment, or None."""
        from payments.ledger import LedgerService

        return LedgerService.initial_payment(self)
