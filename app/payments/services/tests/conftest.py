"""
Pytest fixtures for orchestrator tests.
"""

from unittest.mock import MagicMock

import pytest

from payments.adapters import CaptureResult, GatewayAdapter, IntentResult, PaymentLinkResult, RefundResult
from payments.services import PaymentOrchestrator
from tenants.config import TenantGatewayConfig


class RecordingNotifier:
    """Notifier that keeps every message in memory."""

    def __init__(self):
        self.sent = []

    def notify(self, channel, template, recipient, context):
        self.sent.append(
            {"channel": channel, "template": template, "recipient": recipient, "context": context}
        )


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def mock_gateway():
    """Card-shaped gateway mock with successful defaults."""
    gateway = MagicMock(spec=GatewayAdapter)
    gateway.processor = "stripe"
    gateway.refund_reference_field = "payment_id"
    gateway.create_intent.return_value = IntentResult(
        identifier="pi_mock123",
        client_secret="pi_mock123_secret_abc",
        status="requires_payment_method",
    )
    gateway.capture.return_value = CaptureResult(
        transaction_id="pi_mock123",
        payment_id="pi_mock123",
        status="succeeded",
        details={"status": "succeeded", "amount": "5.00"},
    )
    gateway.refund.return_value = RefundResult(
        refund_id="re_mock123",
        transaction_id="re_mock123",
        status="succeeded",
        details={"status": "succeeded"},
    )
    gateway.create_payment_link.return_value = PaymentLinkResult(
        url="https://checkout.stripe.com/c/pay/cs_mock", identifier="cs_mock"
    )
    return gateway


@pytest.fixture
def orchestrator(restaurant, notifier):
    """Orchestrator for the test-mode restaurant (TestGateway)."""
    return PaymentOrchestrator.for_restaurant(restaurant, notifier=notifier)


@pytest.fixture
def live_orchestrator(live_restaurant, mock_gateway, notifier):
    """Orchestrator for the live restaurant with a mocked gateway."""
    return PaymentOrchestrator(
        TenantGatewayConfig.from_restaurant(live_restaurant),
        gateway=mock_gateway,
        notifier=notifier,
    )
