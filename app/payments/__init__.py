"""
Payments app - the order payment lifecycle.

This app handles:
- The append-only OrderPayment ledger and store credit
- Gateway adapters (card, redirect, test mode) per restaurant
- Payment commands (additional payments, refunds, adjustments, links)
- Signed webhook reconciliation

Related apps:
    - tenants: Restaurant and its gateway configuration
    - orders: Order the ledger entries belong to

Usage:
    from payments.services import PaymentOrchestrator

    orchestrator = PaymentOrchestrator.for_restaurant(order.restaurant)
    result = orchestrator.create_refund(order.id, Decimal("5.00"), reason="Cold food")
"""
