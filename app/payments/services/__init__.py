"""
Payment services for order payment commands.

This module provides:
- PaymentOrchestrator: Entry point for every payment command on an order
- calculate_additional_amount: Amount owed for newly requested items

Usage:
    from payments.services import PaymentOrchestrator

    orchestrator = PaymentOrchestrator.for_restaurant(order.restaurant)

    # Charge for added items
    result = orchestrator.create_additional_payment(order.id, items)

    # Refund
    result = orchestrator.create_refund(order.id, Decimal("5.00"), reason="Cold food")
"""

from payments.services.payment_orchestrator import (
    AdditionalPaymentIntent,
    OrderLedger,
    PaymentLinkCreated,
    PaymentOrchestrator,
    StoreCreditIssued,
    TotalAdjusted,
    calculate_additional_amount,
    describe_items,
)

__all__ = [
    "AdditionalPaymentIntent",
    "OrderLedger",
    "PaymentLinkCreated",
    "PaymentOrchestrator",
    "StoreCreditIssued",
    "TotalAdjusted",
    "calculate_additional_amount",
    "describe_items",
]
