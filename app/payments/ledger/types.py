"""
Data types for ledger computations.

Types:
    LedgerSummary: total_paid, total_refunded and net_amount for an order

Usage:
    from payments.ledger.types import LedgerSummary

    summary = LedgerSummary.from_totals(Decimal("30"), Decimal("10"))
    summary.net_amount  # Decimal("20.00")
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value: Any) -> Decimal:
    """
    Coerce a number, string or Decimal to a cent-quantized Decimal.

    Floats go through str() so 0.1 becomes Decimal("0.10"), not
    0.1000000000000000055...
    """
    if value is None or value == "":
        return ZERO
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, float):
        amount = Decimal(str(value))
    else:
        amount = Decimal(value)
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class LedgerSummary:
    """
    Ledger totals for one order.

    Attributes:
        total_paid: Sum of paid/completed initial and additional entries
        total_refunded: Sum of completed refund entries
        net_amount: total_paid - total_refunded

    Always built from persisted entries; never cached on the order.
    """

    total_paid: Decimal = ZERO
    total_refunded: Decimal = ZERO
    net_amount: Decimal = field(default=ZERO)

    @classmethod
    def from_totals(cls, total_paid: Any, total_refunded: Any) -> LedgerSummary:
        paid = to_money(total_paid)
        refunded = to_money(total_refunded)
        return cls(total_paid=paid, total_refunded=refunded, net_amount=paid - refunded)

    @classmethod
    def empty(cls) -> LedgerSummary:
        return cls()

    def to_dict(self) -> dict[str, str]:
        return {
            "total_paid": str(self.total_paid),
            "total_refunded": str(self.total_refunded),
            "net_amount": str(self.net_amount),
        }
