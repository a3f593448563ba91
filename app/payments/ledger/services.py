"""
Ledger computations over an order's payment entries.

The ledger is pure: recompute() takes any iterable of entries (model
instances or dicts) and returns totals. LedgerService adds the database
reads for an order. Nothing is cached; every read recomputes.

Usage:
    from payments.ledger import ledger, recompute

    summary = recompute(order.payments.all())
    summary = ledger.summarize_order(order)
    state = derive_payment_state(order.total, summary)
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from payments.state_machines import OrderPaymentState, PaymentStatus, PaymentType

from .types import CENTS, ZERO, LedgerSummary, to_money

if TYPE_CHECKING:
    from orders.models import Order
    from payments.models import OrderPayment

CREDIT_TYPES = frozenset({PaymentType.INITIAL, PaymentType.ADDITIONAL})
CREDIT_STATUSES = frozenset({PaymentStatus.PAID, PaymentStatus.COMPLETED})
REFUND_STATUSES = frozenset({PaymentStatus.COMPLETED})


def _field(entry: Any, name: str) -> Any:
    if isinstance(entry, Mapping):
        return entry.get(name)
    return getattr(entry, name, None)


def recompute(payments: Iterable[Any]) -> LedgerSummary:
    """
    Compute ledger totals from payment entries.

    - total_paid = sum of amount where type is initial/additional and
      status is paid/completed
    - total_refunded = sum of amount where type is refund and status is
      completed
    - net_amount = total_paid - total_refunded

    Entries may be OrderPayment instances or dicts with payment_type,
    status and amount keys.
    """
    total_paid = ZERO
    total_refunded = ZERO

    for entry in payments:
        payment_type = _field(entry, "payment_type")
        status = _field(entry, "status")
        amount = to_money(_field(entry, "amount"))

        if payment_type in CREDIT_TYPES and status in CREDIT_STATUSES:
            total_paid += amount
        elif payment_type == PaymentType.REFUND and status in REFUND_STATUSES:
            total_refunded += amount

    return LedgerSummary.from_totals(total_paid, total_refunded)


def is_fully_refunded(summary: LedgerSummary) -> bool:
    """Net amount within one cent of zero."""
    return abs(summary.net_amount) < CENTS


def derive_payment_state(order_total: Any, summary: LedgerSummary) -> str:
    """
    Payment-perspective state of an order.

    unpaid → partially_paid → paid → partially_refunded → refunded
    """
    total = to_money(order_total)

    if summary.total_refunded > ZERO:
        if is_fully_refunded(summary):
            return OrderPaymentState.REFUNDED
        return OrderPaymentState.PARTIALLY_REFUNDED

    if summary.total_paid <= ZERO:
        return OrderPaymentState.UNPAID
    if summary.total_paid < total:
        return OrderPaymentState.PARTIALLY_PAID
    return OrderPaymentState.PAID


class LedgerService:
    """
    Database-backed ledger reads for an order.

    All methods are static - no instance state is maintained.
    """

    @staticmethod
    def summarize_order(order: Order) -> LedgerSummary:
        """Recompute the order's totals from its persisted entries."""
        return recompute(
            order.payments.values("payment_type", "status", "amount")
        )

    @staticmethod
    def initial_payment(order: Order) -> OrderPayment | None:
        """Oldest successful initial payment, or None."""
        return order.payments.successful_initial().first()

    @staticmethod
    def payment_state(order: Order) -> str:
        return derive_payment_state(order.total, LedgerService.summarize_order(order))

    @staticmethod
    def max_refundable(order: Order) -> Decimal:
        return LedgerService.summarize_order(order).net_amount


# Singleton instance for convenient access
ledger = LedgerService()
