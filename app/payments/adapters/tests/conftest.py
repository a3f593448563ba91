"""
Pytest fixtures for gateway adapter tests.

Sections:
    - Tenant Config Fixtures
    - Mock Stripe Response Fixtures
    - Mock Stripe Error Fixtures
    - Mock Stripe Client Fixtures
    - Mock PayPal HTTP Fixtures
"""

from dataclasses import dataclass
from typing import Any
from unittest.mock import MagicMock, patch

import pytest
import stripe

from tenants.config import TenantGatewayConfig


# =============================================================================
# Tenant Config Fixtures
# =============================================================================


@pytest.fixture
def stripe_config():
    """Live-mode card gateway config for restaurant 1."""
    return TenantGatewayConfig(
        restaurant_id=1,
        restaurant_name="Test Restaurant",
        processor="stripe",
        test_mode=False,
        secret_key="sk_test_restaurant_one",
        webhook_secret="whsec_restaurant_one",
    )


@pytest.fixture
def paypal_config():
    """Sandbox redirect gateway config for restaurant 2."""
    return TenantGatewayConfig(
        restaurant_id=2,
        restaurant_name="PayPal Restaurant",
        processor="paypal",
        test_mode=False,
        client_id="paypal-client-id",
        client_secret="paypal-client-secret",
        sandbox=True,
    )


# =============================================================================
# Mock Stripe Response Fixtures
# =============================================================================


@dataclass
class MockStripeObject:
    """Mock Stripe API object with to_dict support."""

    data: dict[str, Any]

    def __getattr__(self, name: str) -> Any:
        if name == "data":
            return self.__dict__["data"]
        return self.data.get(name)

    def to_dict(self) -> dict[str, Any]:
        return self.data


@pytest.fixture
def mock_payment_intent():
    """Create a mock PaymentIntent response."""

    def _create(
        id: str = "pi_test123456",
        status: str = "requires_payment_method",
        amount: int = 5000,
        currency: str = "usd",
        client_secret: str = "pi_test123456_secret_abc123",
        metadata: dict | None = None,
    ) -> MockStripeObject:
        return MockStripeObject(
            {
                "id": id,
                "object": "payment_intent",
                "status": status,
                "amount": amount,
                "currency": currency,
                "client_secret": client_secret,
                "metadata": metadata or {},
            }
        )

    return _create


@pytest.fixture
def mock_refund():
    """Create a mock Refund response."""

    def _create(
        id: str = "re_test123456",
        amount: int = 500,
        status: str = "succeeded",
    ) -> MockStripeObject:
        return MockStripeObject(
            {"id": id, "object": "refund", "amount": amount, "status": status}
        )

    return _create


# =============================================================================
# Mock Stripe Error Fixtures
# =============================================================================


@pytest.fixture
def card_error():
    """Create a Stripe CardError."""

    def _create(
        message: str = "Your card was declined.",
        code: str = "card_declined",
        decline_code: str | None = "generic_decline",
    ) -> stripe.CardError:
        error = stripe.CardError(message=message, param=None, code=code)
        error.decline_code = decline_code
        return error

    return _create


@pytest.fixture
def invalid_request_error():
    """Create a Stripe InvalidRequestError."""
    return stripe.InvalidRequestError(
        message="No such payment_intent: 'pi_missing'",
        param="payment_intent",
        code="resource_missing",
    )


@pytest.fixture
def rate_limit_error():
    return stripe.RateLimitError(message="Too many requests hit the API too quickly.")


@pytest.fixture
def api_connection_error():
    return stripe.APIConnectionError(message="Could not connect to Stripe.")


@pytest.fixture
def timeout_error():
    return stripe.APIConnectionError(message="Request timed out after 10 seconds.")


@pytest.fixture
def api_error():
    return stripe.APIError(message="Something went wrong on Stripe's end.")


@pytest.fixture
def authentication_error():
    return stripe.AuthenticationError(message="Invalid API Key provided.")


# =============================================================================
# Mock Stripe Client Fixtures
# =============================================================================


@pytest.fixture
def mock_stripe_payment_intent(mock_payment_intent):
    """Mock stripe.PaymentIntent API."""
    with patch("stripe.PaymentIntent") as mock:
        mock.create.return_value = mock_payment_intent()
        mock.retrieve.return_value = mock_payment_intent(status="succeeded")
        mock.capture.return_value = mock_payment_intent(status="succeeded")
        yield mock


@pytest.fixture
def mock_stripe_refund(mock_refund):
    """Mock stripe.Refund API."""
    with patch("stripe.Refund") as mock:
        mock.create.return_value = mock_refund()
        yield mock


@pytest.fixture
def mock_checkout_session():
    """Mock stripe.checkout.Session API."""
    with patch("stripe.checkout.Session") as mock:
        mock.create.return_value = MockStripeObject(
            {
                "id": "cs_test_abc",
                "object": "checkout.session",
                "url": "https://checkout.stripe.com/c/pay/cs_test_abc",
            }
        )
        yield mock


# =============================================================================
# Mock PayPal HTTP Fixtures
# =============================================================================


def _paypal_response(status_code: int = 200, body: dict | None = None) -> MagicMock:
    """Build a fake requests.Response."""
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = body if body is not None else {}
    return response


@pytest.fixture
def paypal_session():
    """
    Fake requests.Session for the redirect gateway.

    The first request is always the OAuth token exchange; tests queue the
    API responses after it via `paypal_session.queue(...)`.
    """
    session = MagicMock()
    token = _paypal_response(200, {"access_token": "A21AA-token", "token_type": "Bearer"})
    responses: list[MagicMock] = [token]

    def queue(*items):
        responses.extend(items)
        session.request.side_effect = list(responses)

    session.queue = queue
    session.request.side_effect = list(responses)
    return session


@pytest.fixture
def stripe_object():
    """Build an arbitrary mock Stripe object from a dict."""
    return MockStripeObject


@pytest.fixture
def paypal_response():
    """Factory for fake requests.Response objects."""
    return _paypal_response
