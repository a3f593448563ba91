"""
Test-mode gateway.

Used whenever a restaurant has test_mode enabled, regardless of the
configured processor. Nothing leaves the process: identifiers are
fabricated in the shape the configured processor would return, and
every call succeeds.
"""

from __future__ import annotations

import secrets
from decimal import Decimal
from typing import Any

from payments.adapters.base import (
    CaptureResult,
    GatewayAdapter,
    IntentResult,
    PaymentLinkResult,
    RefundResult,
)

TEST_PAYMENT_LINK_BASE = "https://example.com/test-payment"


def fake_intent_id() -> str:
    return f"pi_test_{secrets.token_hex(16)}"


class TestGateway(GatewayAdapter):
    """Always-succeeding adapter for restaurants in test mode."""

    # Keep pytest from collecting this class
    __test__ = False

    @property
    def processor(self) -> str:  # type: ignore[override]
        return self.config.processor

    @property
    def refund_reference_field(self) -> str:  # type: ignore[override]
        return "transaction_id" if self.config.is_redirect_processor else "payment_id"

    @property
    def is_test_mode(self) -> bool:
        return True

    def create_intent(
        self,
        amount: Decimal,
        currency: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> IntentResult:
        if self.config.is_redirect_processor:
            identifier = f"TEST-ORDER-{secrets.token_hex(10).upper()}"
            client_secret = None
            status = "CREATED"
        else:
            identifier = fake_intent_id()
            client_secret = f"{identifier}_secret_{secrets.token_hex(16)}"
            status = "requires_payment_method"

        self.get_logger().info(
            "Test mode intent created",
            extra={
                "restaurant_id": self.config.restaurant_id,
                "identifier": identifier,
                "amount": str(amount),
            },
        )
        return IntentResult(
            identifier=identifier,
            client_secret=client_secret,
            status=status,
            raw={"id": identifier, "status": status, "test_mode": True},
        )

    def capture(self, identifier: str) -> CaptureResult:
        status = "COMPLETED" if self.config.is_redirect_processor else "succeeded"
        identifier = identifier or fake_intent_id()
        return CaptureResult(
            transaction_id=identifier,
            payment_id=identifier,
            status=status,
            details={"status": status, "test_mode": True},
        )

    def refund(
        self,
        charge_identifier: str | None,
        amount: Decimal,
        reason: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> RefundResult:
        """Fabricate a refund; missing or malformed identifiers are accepted."""
        if self.config.is_redirect_processor:
            refund_id = f"RE-{charge_identifier or 'TEST'}-{secrets.token_hex(8)}"
            status = "COMPLETED"
        else:
            refund_id = f"test_refund_{secrets.token_hex(8)}"
            status = "succeeded"

        self.get_logger().info(
            "Test mode refund created",
            extra={
                "restaurant_id": self.config.restaurant_id,
                "charge_identifier": charge_identifier,
                "refund_id": refund_id,
                "amount": str(amount),
            },
        )
        return RefundResult(
            refund_id=refund_id,
            transaction_id=refund_id,
            status=status,
            details={"status": status, "test_mode": True},
        )

    def create_payment_link(
        self,
        amount: Decimal,
        line_items: list[dict[str, Any]],
        success_url: str,
        cancel_url: str,
        metadata: dict[str, Any] | None = None,
        customer_email: str | None = None,
    ) -> PaymentLinkResult:
        token = secrets.token_hex(8)
        return PaymentLinkResult(url=f"{TEST_PAYMENT_LINK_BASE}/{token}", identifier=token)
