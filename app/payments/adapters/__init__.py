"""
Payment gateway adapters.

All external payment API calls go through these adapters to ensure
consistent error handling, timeouts, idempotency, and observability.

Usage:
    from payments.adapters import get_gateway

    gateway = get_gateway(TenantGatewayConfig.from_restaurant(restaurant))
    intent = gateway.create_intent(Decimal("12.50"), metadata={"order_id": order.id})
"""

from payments.adapters.base import (
    CaptureResult,
    GatewayAdapter,
    IntentResult,
    PaymentLinkResult,
    RefundResult,
)
from payments.adapters.factory import get_gateway
from payments.adapters.paypal_adapter import RedirectGateway
from payments.adapters.stripe_adapter import (
    CardGateway,
    IdempotencyKeyGenerator,
    is_retryable_gateway_error,
)
from payments.adapters.testmode_adapter import TestGateway

__all__ = [
    "CaptureResult",
    "CardGateway",
    "GatewayAdapter",
    "IdempotencyKeyGenerator",
    "IntentResult",
    "PaymentLinkResult",
    "RedirectGateway",
    "RefundResult",
    "TestGateway",
    "get_gateway",
    "is_retryable_gateway_error",
]
