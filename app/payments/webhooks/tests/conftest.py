"""
Pytest fixtures for webhook tests.

Provides fixtures for testing the webhook view, reconciler, handlers
and tasks: event payload builders, signed payloads and a patched
stripe.Webhook.construct_event.
"""

import hashlib
import hmac
import json
import time
from unittest.mock import MagicMock, patch

import pytest

WEBHOOK_SECRET = "whsec_restaurant_secret"


# =============================================================================
# Payload Builders
# =============================================================================


@pytest.fixture
def intent_event():
    """
    Build a payment_intent.* event payload.

    Usage:
        event = intent_event("pi_123", amount=1500, order_id=order.id)
    """

    def _build(
        intent_id="pi_test123",
        event_type="payment_intent.succeeded",
        amount=1000,
        order_id=None,
        payment_type=None,
        event_id="evt_test123",
        error_message=None,
    ):
        metadata = {}
        if order_id is not None:
            metadata["order_id"] = str(order_id)
        if payment_type:
            metadata["payment_type"] = payment_type

        intent = {
            "id": intent_id,
            "object": "payment_intent",
            "amount": amount,
            "amount_received": amount,
            "currency": "usd",
            "status": "succeeded" if event_type.endswith("succeeded") else "requires_payment_method",
            "metadata": metadata,
        }
        if error_message:
            intent["last_payment_error"] = {"message": error_message, "code": "card_declined"}

        return {
            "id": event_id,
            "object": "event",
            "type": event_type,
            "data": {"object": intent},
        }

    return _build


@pytest.fixture
def sign_payload():
    """Sign a payload the way Stripe does (t=...,v1=HMAC-SHA256)."""

    def _sign(payload: bytes, secret: str = WEBHOOK_SECRET) -> str:
        timestamp = int(time.time())
        signed = f"{timestamp}.{payload.decode()}".encode()
        digest = hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()
        return f"t={timestamp},v1={digest}"

    return _sign


@pytest.fixture
def construct_event():
    """
    Patch stripe.Webhook.construct_event.

    Set the verified event with construct_event.event = {...}.
    """
    with patch("stripe.Webhook.construct_event") as mock_construct:
        state = MagicMock()
        state.event = {}
        mock_construct.side_effect = lambda payload, signature, secret: MagicMock(
            to_dict=MagicMock(return_value=state.event)
        )
        state.mock = mock_construct
        yield state


@pytest.fixture
def post_webhook(client):
    """POST raw JSON to a restaurant's webhook endpoint."""

    def _post(restaurant_id, event, signature="t=1,v1=test"):
        return client.post(
            f"/api/v1/payments/webhooks/{restaurant_id}/",
            data=json.dumps(event),
            content_type="application/json",
            HTTP_STRIPE_SIGNATURE=signature,
        )

    return _post
