"""
Ledger - payment totals for an order.

The ledger is derived, never stored: every read recomputes totals from
the order's OrderPayment entries.

Public API:
    recompute - Pure totals over any iterable of entries
    derive_payment_state - unpaid/partially_paid/paid/partially_refunded/refunded
    is_fully_refunded - Net amount within one cent of zero
    LedgerService / ledger - Database-backed reads for an order
    LedgerSummary - Totals dataclass
    to_money - Cent-quantized Decimal coercion

Usage:
    from payments.ledger import ledger, recompute

    summary = ledger.summarize_order(order)
    if refund_amount > summary.net_amount:
        ...
"""

from .services import (
    LedgerService,
    derive_payment_state,
    is_fully_refunded,
    ledger,
    recompute,
)
from .types import LedgerSummary, to_money

__all__ = [
    "LedgerService",
    "LedgerSummary",
    "derive_payment_state",
    "is_fully_refunded",
    "ledger",
    "recompute",
    "to_money",
]
