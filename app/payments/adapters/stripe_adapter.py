"""
Stripe card gateway adapter.

CardGateway wraps the Stripe API for one restaurant. All Stripe calls go
through it to ensure consistent error handling, timeouts, idempotency,
and observability.

Features:
- Restaurant secret key passed per call (api_key=), never assigned to
  the module-global stripe.api_key
- Bounded timeout on all API calls (STRIPE_API_TIMEOUT_SECONDS)
- Automatic error translation to GatewayError subclasses
- Structured logging with timing metrics
- Idempotency keys on every mutating call

Usage:
    from payments.adapters import CardGateway

    gateway = CardGateway(config)
    intent = gateway.create_intent(Decimal("12.50"), metadata={"order_id": "42"})
    capture = gateway.capture(intent.identifier)
"""

from __future__ import annotations

import hashlib
import time
import uuid
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING, Any

import stripe
from django.conf import settings

from payments.adapters.base import (
    CaptureResult,
    GatewayAdapter,
    IntentResult,
    PaymentLinkResult,
    RefundResult,
)
from payments.exceptions import (
    ConfigurationError,
    GatewayAuthenticationError,
    GatewayCardDeclinedError,
    GatewayError,
    GatewayInvalidRequestError,
    GatewayRateLimitError,
    GatewayTimeoutError,
    GatewayUnavailableError,
    SignatureError,
)

if TYPE_CHECKING:
    from tenants.config import TenantGatewayConfig


# =============================================================================
# Amount Handling
# =============================================================================

# Smallest charge Stripe accepts, in major units
MINIMUM_CHARGE_AMOUNTS: dict[str, Decimal] = {
    "usd": Decimal("0.50"),
    "eur": Decimal("0.50"),
    "cad": Decimal("0.50"),
    "aud": Decimal("0.50"),
    "gbp": Decimal("0.30"),
    "jpy": Decimal("50"),
}
DEFAULT_MINIMUM_CHARGE = Decimal("0.50")

# Currencies Stripe charges in whole units (no cents)
ZERO_DECIMAL_CURRENCIES = frozenset(
    {"bif", "clp", "djf", "gnf", "jpy", "kmf", "krw", "mga", "pyg", "rwf",
     "ugx", "vnd", "vuv", "xaf", "xof", "xpf"}
)

VALID_REFUND_REASONS = ("duplicate", "fraudulent", "requested_by_customer")
DEFAULT_REFUND_REASON = "requested_by_customer"

CHARGE_ID_PREFIXES = ("pi_", "ch_")


def minimum_charge_amount(currency: str) -> Decimal:
    return MINIMUM_CHARGE_AMOUNTS.get(currency.lower(), DEFAULT_MINIMUM_CHARGE)


def to_minor_units(amount: Decimal, currency: str) -> int:
    """
    Convert a major-unit amount to Stripe's integer amount.

    Example:
        to_minor_units(Decimal("12.50"), "usd")  # 1250
        to_minor_units(Decimal("500"), "jpy")    # 500
    """
    amount = Decimal(amount)
    if currency.lower() not in ZERO_DECIMAL_CURRENCIES:
        amount = amount * 100
    return int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def from_minor_units(amount: int, currency: str) -> Decimal:
    if currency.lower() in ZERO_DECIMAL_CURRENCIES:
        return Decimal(amount).quantize(Decimal("0.01"))
    return (Decimal(amount) / 100).quantize(Decimal("0.01"))


def normalize_refund_reason(reason: str | None) -> str:
    """Map free-text reasons onto the values Stripe accepts."""
    if reason and reason in VALID_REFUND_REASONS:
        return reason
    return DEFAULT_REFUND_REASON


# =============================================================================
# Idempotency Key Generator
# =============================================================================


class IdempotencyKeyGenerator:
    """
    Generate idempotency keys for Stripe API calls.

    Format: "{operation}:{entity_id}:{nonce}:{hash}"

    The hash component ties the key to this deployment's SECRET_KEY while
    the structured format aids debugging and correlation.

    Example:
        key = IdempotencyKeyGenerator.generate(
            operation="refund",
            entity_id="pi_123",
        )
        # Result: "refund:pi_123:3f2a...:a1b2c3d4"
    """

    @staticmethod
    def generate(
        operation: str,
        entity_id: uuid.UUID | str | int,
        nonce: str | None = None,
    ) -> str:
        """
        Generate an idempotency key.

        Args:
            operation: The Stripe operation (create_intent, refund, etc.)
            entity_id: The domain entity ID (order id, intent id)
            nonce: Fixed nonce to reproduce a key for a retry; a random
                one is used when omitted

        Returns:
            Formatted idempotency key string
        """
        entity_str = str(entity_id)
        nonce = nonce or uuid.uuid4().hex
        hash_input = f"{operation}:{entity_str}:{nonce}:{settings.SECRET_KEY}"
        short_hash = hashlib.sha256(hash_input.encode()).hexdigest()[:8]

        return f"{operation}:{entity_str}:{nonce}:{short_hash}"


def is_retryable_gateway_error(error: Exception) -> bool:
    """
    Check if a gateway error is transient.

    The payment core never retries; callers (clients, Celery tasks)
    use this to decide whether to try again.
    """
    if isinstance(error, GatewayError):
        return getattr(error, "is_retryable", False)
    return False


# =============================================================================
# HTTP Client
# =============================================================================

_http_client: stripe.HTTPClient | None = None


def install_http_client() -> stripe.HTTPClient:
    """
    Install the process-wide Stripe HTTP client, building it on first use.

    Every request is bounded by STRIPE_API_TIMEOUT_SECONDS. Later calls
    reuse the same client and its connection pool.
    """
    global _http_client
    if _http_client is None:
        timeout = getattr(settings, "STRIPE_API_TIMEOUT_SECONDS", 10)
        _http_client = stripe.RequestsClient(timeout=timeout)
    if stripe.default_http_client is not _http_client:
        stripe.default_http_client = _http_client
    return _http_client


# =============================================================================
# Card Gateway
# =============================================================================


class CardGateway(GatewayAdapter):
    """
    Stripe adapter bound to one restaurant's credentials.

    Thread-safe: the only state is the immutable tenant config.
    """

    processor = "stripe"

    def __init__(self, config: TenantGatewayConfig):
        super().__init__(config)
        if not config.secret_key:
            raise ConfigurationError(
                "Stripe is not properly configured for this restaurant",
                details={"restaurant_id": config.restaurant_id},
            )
        self._api_key = config.secret_key
        install_http_client()

    # =========================================================================
    # Logging
    # =========================================================================

    def _log_context(self, operation: str, **extra: Any) -> dict[str, Any]:
        return {
            "operation": operation,
            "processor": self.processor,
            "restaurant_id": self.config.restaurant_id,
            **extra,
        }

    # =========================================================================
    # Core Operations
    # =========================================================================

    def create_intent(
        self,
        amount: Decimal,
        currency: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> IntentResult:
        """
        Create a Stripe PaymentIntent.

        Raises:
            GatewayInvalidRequestError: Amount below the currency minimum
                (raised before any network call) or rejected by Stripe
            GatewayCardDeclinedError: Card was declined
            GatewayUnavailableError: Stripe service unavailable
            GatewayTimeoutError: Request timed out
        """
        currency = (currency or self.currency).lower()
        metadata = {k: str(v) for k, v in (metadata or {}).items()}

        minimum = minimum_charge_amount(currency)
        if Decimal(amount) < minimum:
            raise GatewayInvalidRequestError(
                f"Amount {amount} is below the minimum charge of {minimum} "
                f"{currency.upper()}",
                error_code="AMOUNT_TOO_SMALL",
                details={"amount": str(amount), "minimum": str(minimum)},
            )

        logger = self.get_logger()
        amount_cents = to_minor_units(amount, currency)
        idempotency_key = IdempotencyKeyGenerator.generate(
            "create_intent", metadata.get("order_id", "-")
        )

        log_context = self._log_context(
            "create_intent",
            amount_cents=amount_cents,
            currency=currency,
            idempotency_key=idempotency_key,
        )

        start_time = time.time()
        logger.info("Starting Stripe operation", extra=log_context)

        try:
            intent = stripe.PaymentIntent.create(
                amount=amount_cents,
                currency=currency,
                metadata=metadata,
                automatic_payment_methods={"enabled": True},
                api_key=self._api_key,
                idempotency_key=idempotency_key,
            )
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            self._handle_stripe_error(e, log_context, duration_ms)
            raise  # Never reached

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            "Stripe operation completed",
            extra={
                **log_context,
                "payment_intent_id": intent.id,
                "status": intent.status,
                "duration_ms": duration_ms,
            },
        )

        return IntentResult(
            identifier=intent.id,
            client_secret=intent.client_secret,
            status=intent.status,
            raw=intent.to_dict(),
        )

    def capture(self, identifier: str) -> CaptureResult:
        """
        Confirm an automatically captured PaymentIntent.

        Intents created with automatic capture are already captured once
        the customer confirms. A manual-capture intent still awaiting
        capture is captured here. Any other status is a failure.

        Raises:
            GatewayInvalidRequestError: Malformed intent id or intent not
                completed
        """
        self._require_charge_id(identifier, "capture")
        logger = self.get_logger()

        log_context = self._log_context("capture", payment_intent_id=identifier)
        start_time = time.time()
        logger.info("Starting Stripe operation", extra=log_context)

        try:
            intent = stripe.PaymentIntent.retrieve(identifier, api_key=self._api_key)
            if intent.status == "requires_capture":
                intent = stripe.PaymentIntent.capture(
                    identifier,
                    api_key=self._api_key,
                    idempotency_key=IdempotencyKeyGenerator.generate(
                        "capture", identifier
                    ),
                )
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            self._handle_stripe_error(e, log_context, duration_ms)
            raise

        duration_ms = (time.time() - start_time) * 1000

        if intent.status != "succeeded":
            logger.warning(
                "Stripe payment not completed",
                extra={**log_context, "status": intent.status, "duration_ms": duration_ms},
            )
            raise GatewayInvalidRequestError(
                f"Payment not completed. Status: {intent.status}",
                error_code="PAYMENT_NOT_COMPLETED",
                gateway_code=intent.status,
            )

        logger.info(
            "Stripe operation completed",
            extra={**log_context, "status": intent.status, "duration_ms": duration_ms},
        )

        return CaptureResult(
            transaction_id=intent.id,
            payment_id=intent.id,
            status=intent.status,
            details={
                "status": intent.status,
                "amount": str(from_minor_units(intent.amount or 0, intent.currency or self.currency)),
            },
        )

    def refund(
        self,
        charge_identifier: str | None,
        amount: Decimal,
        reason: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> RefundResult:
        """
        Refund part or all of a PaymentIntent or Charge.

        Raises:
            GatewayInvalidRequestError: Missing or malformed charge id
                (raised before any network call)
        """
        self._require_charge_id(charge_identifier, "refund")
        logger = self.get_logger()

        amount_cents = to_minor_units(amount, self.currency)
        stripe_reason = normalize_refund_reason(reason)
        if reason and stripe_reason != reason:
            logger.info(
                "Refund reason not accepted by Stripe, using default",
                extra={"given_reason": reason, "reason": stripe_reason},
            )

        target = (
            {"payment_intent": charge_identifier}
            if charge_identifier.startswith("pi_")
            else {"charge": charge_identifier}
        )
        log_context = self._log_context(
            "refund",
            charge_identifier=charge_identifier,
            amount_cents=amount_cents,
            reason=stripe_reason,
        )

        start_time = time.time()
        logger.info("Starting Stripe operation", extra=log_context)

        try:
            refund = stripe.Refund.create(
                amount=amount_cents,
                reason=stripe_reason,
                metadata={k: str(v) for k, v in (metadata or {}).items()},
                api_key=self._api_key,
                idempotency_key=IdempotencyKeyGenerator.generate(
                    "refund", charge_identifier
                ),
                **target,
            )
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            self._handle_stripe_error(e, log_context, duration_ms)
            raise

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            "Stripe operation completed",
            extra={
                **log_context,
                "refund_id": refund.id,
                "status": refund.status,
                "duration_ms": duration_ms,
            },
        )

        return RefundResult(
            refund_id=refund.id,
            transaction_id=refund.id,
            status=refund.status,
            details={"status": refund.status},
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
        """Create a Stripe Checkout Session and return its hosted URL."""
        logger = self.get_logger()

        log_context = self._log_context(
            "create_payment_link",
            amount=str(amount),
            line_item_count=len(line_items),
        )

        session_line_items = [
            {
                "price_data": {
                    "currency": self.currency,
                    "product_data": self._product_data(item),
                    "unit_amount": to_minor_units(
                        Decimal(str(item.get("price") or 0)), self.currency
                    ),
                },
                "quantity": int(item["quantity"]),
            }
            for item in line_items
        ]

        start_time = time.time()
        logger.info("Starting Stripe operation", extra=log_context)

        try:
            session = stripe.checkout.Session.create(
                payment_method_types=["card"],
                line_items=session_line_items,
                mode="payment",
                success_url=success_url,
                cancel_url=cancel_url,
                customer_email=customer_email or None,
                metadata={k: str(v) for k, v in (metadata or {}).items()},
                api_key=self._api_key,
                idempotency_key=IdempotencyKeyGenerator.generate(
                    "payment_link", (metadata or {}).get("order_id", "-")
                ),
            )
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            self._handle_stripe_error(e, log_context, duration_ms)
            raise

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            "Stripe operation completed",
            extra={**log_context, "session_id": session.id, "duration_ms": duration_ms},
        )

        return PaymentLinkResult(url=session.url, identifier=session.id)

    # =========================================================================
    # Webhook Verification
    # =========================================================================

    @staticmethod
    def verify_webhook(payload: bytes, signature: str, secret: str) -> dict[str, Any]:
        """
        Verify and parse a Stripe webhook event with the tenant's secret.

        Needs no API key, so it is called on the class by the webhook
        reconciler regardless of the tenant's test mode.

        Raises:
            SignatureError: Missing or invalid signature, or unparseable payload
        """
        if not signature:
            raise SignatureError("Missing webhook signature")

        try:
            event = stripe.Webhook.construct_event(payload, signature, secret)
        except stripe.SignatureVerificationError as e:
            raise SignatureError(
                "Invalid webhook signature",
                details={"error": str(e)},
            )
        except ValueError as e:
            raise SignatureError(
                "Invalid webhook payload",
                details={"error": str(e)},
            )
        return event.to_dict()

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _product_data(item: dict[str, Any]) -> dict[str, Any]:
        product: dict[str, Any] = {"name": str(item.get("name") or "Item")}
        if item.get("description"):
            product["description"] = str(item["description"])
        if item.get("image"):
            product["images"] = [item["image"]]
        return product

    def _require_charge_id(self, identifier: str | None, operation: str) -> None:
        """Reject missing or malformed ids before any network call."""
        if not identifier or not identifier.startswith(CHARGE_ID_PREFIXES):
            self.get_logger().warning(
                "Rejected malformed Stripe identifier",
                extra=self._log_context(operation, identifier=identifier),
            )
            raise GatewayInvalidRequestError(
                f"Invalid payment identifier: {identifier or 'missing'}",
                error_code="INVALID_PAYMENT_IDENTIFIER",
                details={"identifier": identifier},
            )

    # =========================================================================
    # Error Handling
    # =========================================================================

    def _handle_stripe_error(
        self,
        error: Exception,
        log_context: dict[str, Any],
        duration_ms: float,
    ) -> None:
        """
        Translate Stripe exceptions to gateway exceptions.

        Raises:
            GatewayCardDeclinedError: Card was declined
            GatewayInvalidRequestError: Invalid request parameters
            GatewayAuthenticationError: Restaurant API key rejected
            GatewayRateLimitError: Rate limited
            GatewayTimeoutError: Request timed out
            GatewayUnavailableError: API unavailable or unexpected error
        """
        logger = self.get_logger()
        log_context = {**log_context, "duration_ms": duration_ms}

        if isinstance(error, GatewayError):
            raise error

        if isinstance(error, stripe.CardError):
            decline_code = _decline_code(error)
            logger.warning(
                "Card error from Stripe",
                extra={**log_context, "decline_code": decline_code},
            )
            raise GatewayCardDeclinedError(
                str(error.user_message or error),
                gateway_code=error.code,
                decline_code=decline_code,
            )

        elif isinstance(error, stripe.InvalidRequestError):
            logger.error(
                "Invalid request to Stripe",
                extra={**log_context, "stripe_code": error.code},
            )
            raise GatewayInvalidRequestError(
                str(error.user_message or error),
                gateway_code=error.code,
            )

        elif isinstance(error, stripe.AuthenticationError):
            logger.critical(
                "Stripe authentication failed - check restaurant API key",
                extra=log_context,
            )
            raise GatewayAuthenticationError(
                "Stripe authentication failed",
                gateway_code="authentication_error",
            )

        elif isinstance(error, stripe.RateLimitError):
            logger.warning("Rate limited by Stripe", extra=log_context)
            raise GatewayRateLimitError(
                "Stripe rate limit exceeded. Please retry.",
                gateway_code="rate_limit",
            )

        elif isinstance(error, stripe.APIConnectionError):
            message = str(error).lower()
            if "timeout" in message or "timed out" in message:
                logger.error("Stripe request timed out", extra=log_context)
                raise GatewayTimeoutError(
                    "Stripe request timed out. Please retry.",
                    gateway_code="timeout",
                )
            logger.error(
                "Connection error to Stripe",
                extra=log_context,
                exc_info=True,
            )
            raise GatewayUnavailableError(
                "Could not connect to Stripe. Please retry.",
                gateway_code="api_connection_error",
            )

        elif isinstance(error, stripe.APIError):
            logger.error("Stripe API error", extra=log_context, exc_info=True)
            raise GatewayUnavailableError(
                "Stripe service error. Please retry.",
                gateway_code="api_error",
            )

        elif isinstance(error, stripe.StripeError):
            logger.error(
                "Stripe error",
                extra={**log_context, "stripe_code": error.code},
            )
            raise GatewayError(
                str(error.user_message or error),
                gateway_code=error.code,
            )

        else:
            logger.error(
                f"Unexpected error from Stripe: {type(error).__name__}",
                extra=log_context,
                exc_info=True,
            )
            raise GatewayUnavailableError(
                f"Unexpected Stripe error: {error}",
                gateway_code="unknown_error",
            )


def _decline_code(error: Exception) -> str | None:
    decline_code = getattr(error, "decline_code", None)
    if decline_code:
        return decline_code
    body = getattr(error, "json_body", None) or {}
    if isinstance(body, dict):
        return (body.get("error") or {}).get("decline_code")
    return None
