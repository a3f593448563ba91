"""
Payment-specific exceptions for payment operations.

Exception Hierarchy:
    PaymentValidationError (core ValidationError) - bad amount, missing contact
    PaymentNotFoundError (core NotFoundError) - order or payment absent
    InvalidStateTransitionError (core ConflictError) - e.g. capturing a paid entry
    ConfigurationError (core) - tenant missing credentials outside test mode
    SignatureError - webhook payload failed verification
    GatewayError (core ExternalServiceError) - processor/network failure
    ├── GatewayCardDeclinedError - Card declined (permanent)
    ├── GatewayInvalidRequestError - Invalid request params (permanent)
    ├── GatewayAuthenticationError - Bad tenant credentials (permanent)
    ├── GatewayRateLimitError - Rate limited (transient)
    ├── GatewayUnavailableError - Processor unreachable or 5xx (transient)
    └── GatewayTimeoutError - Request timed out (transient)

Validation and configuration errors are raised before any gateway call.
Gateway errors carry the processor's message and code so they can be
surfaced verbatim; the payment core never retries them.

Usage:
    from payments.exceptions import GatewayError, PaymentValidationError

    if amount <= 0:
        raise PaymentValidationError(
            "Invalid amount for store credit",
            details={"amount": str(amount)},
        )

    try:
        gateway.refund(intent_id, amount, reason)
    except GatewayError as e:
        if e.is_retryable:
            ...
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.exceptions import (
    BaseApplicationError,
    ConfigurationError,
    ConflictError,
    ExternalServiceError,
    NotFoundError,
    ValidationError,
)

if TYPE_CHECKING:
    from typing import Any


# =============================================================================
# Payment Domain Exceptions
# =============================================================================


class PaymentValidationError(ValidationError):
    """
    Raised when a payment command fails validation.

    Use for:
    - Non-positive amounts
    - Refund amount above the refundable net amount
    - Missing customer contact for a payment link
    - Nothing to charge for an additional payment

    Example:
        if refund_amount > summary.net_amount:
            raise PaymentValidationError(
                f"Invalid refund amount. Maximum refundable: {summary.net_amount}",
                details={"max_refundable": str(summary.net_amount)},
            )
    """

    default_error_code: str = "VALIDATION_ERROR"


class PaymentNotFoundError(NotFoundError):
    """
    Raised when an order or payment entry cannot be found.

    Example:
        payment = order.payments.filter(pk=payment_id).first()
        if payment is None:
            raise PaymentNotFoundError(
                "Payment not found",
                details={"payment_id": payment_id},
            )
    """

    default_error_code: str = "NOT_FOUND"


class InvalidStateTransitionError(ConflictError):
    """
    Raised when a payment entry is not in a state that allows the command.

    Example:
        if not payment.is_pending:
            raise InvalidStateTransitionError(
                f"Cannot capture payment in '{payment.status}' state",
                details={"current_state": payment.status, "target_state": "paid"},
            )
    """

    default_error_code: str = "INVALID_STATE_TRANSITION"


class SignatureError(BaseApplicationError):
    """
    Raised when a webhook payload fails signature verification.

    No state is mutated when this is raised.
    """

    default_error_code: str = "SIGNATURE_ERROR"


# =============================================================================
# Gateway Exceptions
# =============================================================================


class GatewayError(ExternalServiceError):
    """
    Base exception for payment gateway failures.

    Attributes:
        gateway_code: Processor's own error code (e.g. "card_declined")
        decline_code: Card decline code (card gateway only)
        is_retryable: Whether a caller-side retry may succeed

    A timed-out call is a GatewayError, never a success.

    Example:
        except GatewayError as e:
            return ServiceResult.from_exception(e)
    """

    default_error_code: str = "GATEWAY_ERROR"
    is_retryable: bool = False

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        gateway_code: str | None = None,
        decline_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = dict(details or {})
        if gateway_code:
            details["gateway_code"] = gateway_code
        if decline_code:
            details["decline_code"] = decline_code
        super().__init__(message, error_code=error_code, details=details)
        self.gateway_code = gateway_code
        self.decline_code = decline_code


# -----------------------------------------------------------------------------
# Permanent Errors (do not retry)
# -----------------------------------------------------------------------------


class GatewayCardDeclinedError(GatewayError):
    """
    Card was declined by the issuing bank.

    The decline_code attribute contains the specific reason
    (insufficient_funds, expired_card, incorrect_cvc, ...).
    """

    default_error_code: str = "CARD_DECLINED"


class GatewayInvalidRequestError(GatewayError):
    """
    Invalid request parameters sent to the gateway.

    Possible causes:
    - Unknown or malformed intent/capture identifier
    - Refund above the captured amount
    - Amount below the currency minimum
    """

    default_error_code: str = "INVALID_GATEWAY_REQUEST"


class GatewayAuthenticationError(GatewayError):
    """
    The tenant's gateway credentials were rejected.

    Requires the restaurant to fix its payment settings.
    """

    default_error_code: str = "GATEWAY_AUTHENTICATION_FAILED"


# -----------------------------------------------------------------------------
# Transient Errors
# -----------------------------------------------------------------------------


class GatewayRateLimitError(GatewayError):
    """Rate limited by the gateway API."""

    default_error_code: str = "GATEWAY_RATE_LIMITED"
    is_retryable: bool = True


class GatewayUnavailableError(GatewayError):
    """
    Gateway API is temporarily unavailable.

    Covers network connectivity issues, 5xx responses, DNS and TLS failures.
    """

    default_error_code: str = "GATEWAY_UNAVAILABLE"
    is_retryable: bool = True


class GatewayTimeoutError(GatewayError):
    """
    Gateway API call timed out.

    IMPORTANT: The operation may have succeeded on the gateway's side.
    Card gateway calls carry idempotency keys so a caller retry with the
    same key is safe.
    """

    default_error_code: str = "GATEWAY_TIMEOUT"
    is_retryable: bool = True


# =============================================================================
# Exports
# =============================================================================

__all__ = [
    "ConfigurationError",
    "GatewayAuthenticationError",
    "GatewayCardDeclinedError",
    "GatewayError",
    "GatewayInvalidRequestError",
    "GatewayRateLimitError",
    "GatewayTimeoutError",
    "GatewayUnavailableError",
    "InvalidStateTransitionError",
    "PaymentNotFoundError",
    "PaymentValidationError",
    "SignatureError",
]
