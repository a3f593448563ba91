"""
PayPal redirect gateway adapter.

RedirectGateway drives PayPal's Orders v2 REST API with `requests`:

    create_intent        POST /v2/checkout/orders (intent CAPTURE)
    capture              POST /v2/checkout/orders/{id}/capture
    refund               POST /v2/payments/captures/{capture_id}/refund
    create_payment_link  POST /v2/checkout/orders with return/cancel URLs,
                         returning the "approve" link

Credentials are the restaurant's OAuth client id/secret, exchanged for a
bearer token per adapter instance. Every request is bounded by
PAYPAL_API_TIMEOUT_SECONDS.

Refunds target the capture id, which is stored as the ledger entry's
transaction_id (see refund_reference_field).
"""

from __future__ import annotations

import time
import uuid
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING, Any

import requests
from django.conf import settings

from payments.adapters.base import (
    CaptureResult,
    GatewayAdapter,
    IntentResult,
    PaymentLinkResult,
    RefundResult,
)
from payments.adapters.stripe_adapter import ZERO_DECIMAL_CURRENCIES
from payments.exceptions import (
    ConfigurationError,
    GatewayAuthenticationError,
    GatewayError,
    GatewayInvalidRequestError,
    GatewayRateLimitError,
    GatewayTimeoutError,
    GatewayUnavailableError,
)

if TYPE_CHECKING:
    from tenants.config import TenantGatewayConfig


def format_amount(amount: Decimal, currency: str) -> str:
    """
    Format a major-unit amount the way PayPal expects it.

    Example:
        format_amount(Decimal("12.5"), "usd")  # "12.50"
        format_amount(Decimal("500"), "jpy")   # "500"
    """
    exponent = Decimal("1") if currency.lower() in ZERO_DECIMAL_CURRENCIES else Decimal("0.01")
    return str(Decimal(amount).quantize(exponent, rounding=ROUND_HALF_UP))


class RedirectGateway(GatewayAdapter):
    """PayPal Orders API adapter bound to one restaurant's credentials."""

    processor = "paypal"
    refund_reference_field = "transaction_id"

    def __init__(self, config: TenantGatewayConfig, session: requests.Session | None = None):
        super().__init__(config)
        if not (config.client_id and config.client_secret):
            raise ConfigurationError(
                "PayPal is not properly configured for this restaurant",
                details={"restaurant_id": config.restaurant_id},
            )
        self.base_url = (
            settings.PAYPAL_SANDBOX_BASE_URL if config.sandbox else settings.PAYPAL_LIVE_BASE_URL
        ).rstrip("/")
        self.timeout = getattr(settings, "PAYPAL_API_TIMEOUT_SECONDS", 10)
        self.session = session or requests.Session()
        self._access_token: str | None = None

    # =========================================================================
    # Core Operations
    # =========================================================================

    def create_intent(
        self,
        amount: Decimal,
        currency: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> IntentResult:
        """Create a PayPal order awaiting buyer approval."""
        currency = (currency or self.currency).lower()
        metadata = metadata or {}

        body = {
            "intent": "CAPTURE",
            "purchase_units": [
                {
                    "reference_id": str(metadata.get("order_id", "default")),
                    "amount": {
                        "currency_code": currency.upper(),
                        "value": format_amount(amount, currency),
                    },
                }
            ],
        }
        data = self._request("POST", "/v2/checkout/orders", "create_intent", json=body)

        return IntentResult(
            identifier=data["id"],
            client_secret=None,
            status=data.get("status", ""),
            raw=data,
        )

    def capture(self, identifier: str) -> CaptureResult:
        """Capture an approved PayPal order."""
        if not identifier:
            raise GatewayInvalidRequestError(
                "Invalid payment identifier: missing",
                error_code="INVALID_PAYMENT_IDENTIFIER",
            )

        data = self._request(
            "POST", f"/v2/checkout/orders/{identifier}/capture", "capture", json={}
        )

        capture = self._first_capture(data)
        if data.get("status") != "COMPLETED" or capture is None:
            raise GatewayInvalidRequestError(
                f"Payment not completed. Status: {data.get('status')}",
                error_code="PAYMENT_NOT_COMPLETED",
                gateway_code=data.get("status"),
            )

        return CaptureResult(
            transaction_id=capture["id"],
            payment_id=capture["id"],
            status=capture.get("status", data["status"]),
            details={
                "status": capture.get("status", data["status"]),
                "amount": (capture.get("amount") or {}).get("value"),
                "order_id": identifier,
            },
        )

    def refund(
        self,
        charge_identifier: str | None,
        amount: Decimal,
        reason: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> RefundResult:
        """Refund part or all of a captured payment."""
        if not charge_identifier:
            raise GatewayInvalidRequestError(
                "Invalid payment identifier: missing",
                error_code="INVALID_PAYMENT_IDENTIFIER",
            )

        body: dict[str, Any] = {
            "amount": {
                "currency_code": self.currency.upper(),
                "value": format_amount(amount, self.currency),
            },
        }
        if reason:
            # PayPal caps note_to_payer at 255 characters
            body["note_to_payer"] = reason[:255]

        data = self._request(
            "POST",
            f"/v2/payments/captures/{charge_identifier}/refund",
            "refund",
            json=body,
        )

        return RefundResult(
            refund_id=data["id"],
            transaction_id=data["id"],
            status=data.get("status", ""),
            details={"status": data.get("status", "")},
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
        """Create a PayPal order with redirect URLs and return its approval link."""
        metadata = metadata or {}
        currency = self.currency
        currency_code = currency.upper()

        items = [
            {
                "name": str(item.get("name") or "Item")[:127],
                "quantity": str(int(item["quantity"])),
                "unit_amount": {
                    "currency_code": currency_code,
                    "value": format_amount(Decimal(str(item.get("price") or 0)), currency),
                },
            }
            for item in line_items
        ]
        body: dict[str, Any] = {
            "intent": "CAPTURE",
            "purchase_units": [
                {
                    "reference_id": str(metadata.get("order_id", "default")),
                    "amount": {
                        "currency_code": currency_code,
                        "value": format_amount(amount, currency),
                        "breakdown": {
                            "item_total": {
                                "currency_code": currency_code,
                                "value": format_amount(amount, currency),
                            }
                        },
                    },
                    "items": items,
                }
            ],
            "application_context": {
                "return_url": success_url,
                "cancel_url": cancel_url,
                "user_action": "PAY_NOW",
            },
        }
        if customer_email:
            body["payer"] = {"email_address": customer_email}

        data = self._request("POST", "/v2/checkout/orders", "create_payment_link", json=body)

        approve_url = next(
            (link["href"] for link in data.get("links", []) if link.get("rel") in ("approve", "payer-action")),
            None,
        )
        if not approve_url:
            raise GatewayError(
                "PayPal did not return an approval link",
                error_code="GATEWAY_ERROR",
                details={"order_id": data.get("id")},
            )

        return PaymentLinkResult(url=approve_url, identifier=data.get("id"))

    # =========================================================================
    # HTTP Plumbing
    # =========================================================================

    def _get_access_token(self) -> str:
        """Exchange client credentials for a bearer token (cached per instance)."""
        if self._access_token:
            return self._access_token

        data = self._send(
            "POST",
            "/v1/oauth2/token",
            "oauth_token",
            auth=(self.config.client_id, self.config.client_secret),
            data={"grant_type": "client_credentials"},
            headers={"Accept": "application/json"},
        )
        token = data.get("access_token")
        if not token:
            raise GatewayAuthenticationError(
                "PayPal did not return an access token",
                gateway_code="authentication_error",
            )
        self._access_token = token
        return token

    def _request(self, method: str, path: str, operation: str, **kwargs: Any) -> dict[str, Any]:
        headers = {
            "Authorization": f"Bearer {self._get_access_token()}",
            "Content-Type": "application/json",
            "PayPal-Request-Id": f"{operation}-{uuid.uuid4().hex}",
        }
        return self._send(method, path, operation, headers=headers, **kwargs)

    def _send(self, method: str, path: str, operation: str, **kwargs: Any) -> dict[str, Any]:
        logger = self.get_logger()
        log_context = {
            "operation": operation,
            "processor": self.processor,
            "restaurant_id": self.config.restaurant_id,
            "path": path,
        }

        start_time = time.time()
        logger.info("Starting PayPal operation", extra=log_context)

        try:
            response = self.session.request(
                method, f"{self.base_url}{path}", timeout=self.timeout, **kwargs
            )
        except requests.Timeout:
            duration_ms = (time.time() - start_time) * 1000
            logger.error("PayPal request timed out", extra={**log_context, "duration_ms": duration_ms})
            raise GatewayTimeoutError(
                "PayPal request timed out. Please retry.",
                gateway_code="timeout",
            )
        except requests.RequestException:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(
                "Connection error to PayPal",
                extra={**log_context, "duration_ms": duration_ms},
                exc_info=True,
            )
            raise GatewayUnavailableError(
                "Could not connect to PayPal. Please retry.",
                gateway_code="api_connection_error",
            )

        duration_ms = (time.time() - start_time) * 1000
        log_context = {**log_context, "status_code": response.status_code, "duration_ms": duration_ms}

        if response.status_code >= 400:
            self._handle_error_response(response, log_context)

        logger.info("PayPal operation completed", extra=log_context)
        try:
            return response.json()
        except ValueError:
            return {}

    def _handle_error_response(self, response: requests.Response, log_context: dict[str, Any]) -> None:
        """Translate a non-2xx PayPal response into a GatewayError."""
        logger = self.get_logger()
        try:
            body = response.json()
        except ValueError:
            body = {}

        gateway_code = body.get("name") or body.get("error")
        detail = (body.get("details") or [{}])[0]
        message = (
            detail.get("description")
            or body.get("message")
            or body.get("error_description")
            or f"PayPal request failed with status {response.status_code}"
        )
        issue = detail.get("issue")
        details = {"status_code": response.status_code}
        if issue:
            details["issue"] = issue
        if body.get("debug_id"):
            details["debug_id"] = body["debug_id"]

        status = response.status_code
        if status == 401:
            logger.critical("PayPal authentication failed - check restaurant credentials", extra=log_context)
            raise GatewayAuthenticationError(message, gateway_code=gateway_code, details=details)
        if status == 429:
            logger.warning("Rate limited by PayPal", extra=log_context)
            raise GatewayRateLimitError(message, gateway_code=gateway_code, details=details)
        if status >= 500:
            logger.error("PayPal API error", extra=log_context)
            raise GatewayUnavailableError(message, gateway_code=gateway_code, details=details)

        logger.warning(
            "PayPal rejected request",
            extra={**log_context, "paypal_code": gateway_code, "issue": issue},
        )
        raise GatewayInvalidRequestError(message, gateway_code=gateway_code, details=details)

    @staticmethod
    def _first_capture(data: dict[str, Any]) -> dict[str, Any] | None:
        for unit in data.get("purchase_units") or []:
            captures = (unit.get("payments") or {}).get("captures") or []
            if captures:
                return captures[0]
        return None
