"""
Base exception classes for application-wide error handling.

This module provides a standardized exception hierarchy that enables:
- Consistent error envelopes across services and views
- Machine-readable error codes for client handling
- Detailed error context for debugging

Exception Hierarchy:
    BaseApplicationError (base)
    ├── ValidationError - Input or business-rule validation failures
    ├── NotFoundError - Resource not found
    ├── PermissionDeniedError - Authorization failures
    ├── ConflictError - State conflicts (concurrent modifications, locks)
    ├── ConfigurationError - Missing or invalid tenant/system configuration
    └── ExternalServiceError - Third-party service failures

Usage:
    from core.exceptions import ValidationError, NotFoundError

    raise ValidationError("New total cannot be negative")

    raise NotFoundError(
        f"Order {order_id} not found",
        error_code="ORDER_NOT_FOUND",
        details={"order_id": order_id},
    )

    try:
        ...
    except BaseApplicationError as e:
        return Response(e.to_dict(), status=400)

Note:
    These exceptions are for domain/business logic errors.
    DRF handles API-layer exceptions (serialization, authentication, etc.).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any


class BaseApplicationError(Exception):
    """
    Base exception for all application-specific errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable code for client-side handling
        details: Additional error context (field errors, metadata, etc.)

    Example:
        try:
            order = OrderService.get(order_id)
        except NotFoundError as e:
            logger.warning(f"Order not found: {e.error_code}")
            return Response(e.to_dict(), status=404)
    """

    default_error_code: str = "APPLICATION_ERROR"

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        """
        Initialize the exception.

        Args:
            message: Human-readable error description
            error_code: Machine-readable error code (defaults to class default)
            details: Additional error context
        """
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to dictionary for API response.

        Returns:
            Dict with error, error_code, and (when present) details keys
        """
        result: dict[str, Any] = {
            "error": self.message,
            "error_code": self.error_code,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        """Return string representation with error code."""
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        """Return detailed representation for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class ValidationError(BaseApplicationError):
    """
    Raised when input validation fails.

    Use for service-layer validation: non-positive amounts, missing
    contact details, values outside an allowed range. For request body
    validation, use DRF serializers.
    """

    default_error_code: str = "VALIDATION_ERROR"


class NotFoundError(BaseApplicationError):
    """
    Raised when a requested resource is not found.

    Example:
        order = Order.objects.filter(id=order_id).first()
        if not order:
            raise NotFoundError(
                f"Order {order_id} not found",
                error_code="ORDER_NOT_FOUND",
                details={"order_id": order_id},
            )
    """

    default_error_code: str = "NOT_FOUND"


class PermissionDeniedError(BaseApplicationError):
    """
    Raised when the caller lacks permission for an operation.

    For authentication failures (missing/invalid credentials), use DRF's
    NotAuthenticated. Use this for authorization failures such as
    accessing another customer's order.
    """

    default_error_code: str = "PERMISSION_DENIED"


class ConflictError(BaseApplicationError):
    """
    Raised when an operation conflicts with current resource state.

    Use for:
    - Concurrent modification conflicts
    - Invalid state transitions
    - Lock contention

    Note:
        HTTP 409 Conflict is the appropriate status for these errors.
    """

    default_error_code: str = "CONFLICT"


class ConfigurationError(BaseApplicationError):
    """
    Raised when required configuration is missing or invalid.

    Raised before any external call is attempted, e.g. a restaurant in
    live mode without gateway credentials or without a webhook secret.

    Note:
        HTTP 503 Service Unavailable is the appropriate status.
    """

    default_error_code: str = "CONFIGURATION_ERROR"


class ExternalServiceError(BaseApplicationError):
    """
    Raised when an external service call fails.

    Use for third-party API failures, network timeouts and unexpected
    external responses. Log the original error for debugging but only
    expose the translated message to clients.
    """

    default_error_code: str = "EXTERNAL_SERVICE_ERROR"
