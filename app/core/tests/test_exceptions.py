"""
Tests for the application exception hierarchy.
"""

import pytest

from core.exceptions import (
    BaseApplicationError,
    ConfigurationError,
    ConflictError,
    ExternalServiceError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)


@pytest.mark.parametrize(
    "exc_class,expected_code",
    [
        (BaseApplicationError, "APPLICATION_ERROR"),
        (ValidationError, "VALIDATION_ERROR"),
        (NotFoundError, "NOT_FOUND"),
        (PermissionDeniedError, "PERMISSION_DENIED"),
        (ConflictError, "CONFLICT"),
        (ConfigurationError, "CONFIGURATION_ERROR"),
        (ExternalServiceError, "EXTERNAL_SERVICE_ERROR"),
    ],
)
def test_default_error_codes(exc_class, expected_code):
    exc = exc_class("Something went wrong")

    assert exc.error_code == expected_code
    assert exc.details == {}
    assert isinstance(exc, BaseApplicationError)


def test_error_code_override():
    exc = NotFoundError("Order 42 not found", error_code="ORDER_NOT_FOUND")

    assert exc.error_code == "ORDER_NOT_FOUND"
    assert str(exc) == "[ORDER_NOT_FOUND] Order 42 not found"


def test_to_dict_includes_details_when_present():
    exc = ValidationError(
        "Invalid refund amount. Maximum refundable: 10.00",
        details={"max_refundable": "10.00"},
    )

    assert exc.to_dict() == {
        "error": "Invalid refund amount. Maximum refundable: 10.00",
        "error_code": "VALIDATION_ERROR",
        "details": {"max_refundable": "10.00"},
    }


def test_to_dict_omits_empty_details():
    assert ConfigurationError("Missing secret key").to_dict() == {
        "error": "Missing secret key",
        "error_code": "CONFIGURATION_ERROR",
    }


def test_repr():
    exc = ConflictError("Order is locked", details={"order_id": 1})

    assert repr(exc) == (
        "ConflictError(message='Order is locked', error_code='CONFLICT', "
        "details={'order_id': 1})"
    )
