"""
StoreCredit model.

Issued alongside a refund-typed ledger entry. Redemption happens
outside the payment core.
"""

from __future__ import annotations

from django.db import models

from core.models import BaseModel
from payments.state_machines import StoreCreditStatus


class StoreCredit(BaseModel):
    """
    Credit issued to a customer against an order.

    Fields:
        customer_email: Recipient (defaults to the order contact email)
        amount: Credit amount
        reason: Why the credit was issued
        order: Order the credit was issued against
        status: active
    """

    customer_email = models.EmailField(blank=True, default="", db_index=True)
    amount = models.DecimalField(max_digits=10, decimal_places=2)
    reason = models.TextField(blank=True, default="")
    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="store_credits",
    )
    status = models.CharField(
        max_length=20,
        choices=StoreCreditStatus.choices,
        default=StoreCreditStatus.ACTIVE,
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Store Credit"
        verbose_name_plural = "Store Credits"

    def __str__(self) -> str:
        return f"StoreCredit({self.customer_email or '-'}, {self.amount})"
