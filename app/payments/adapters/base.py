"""
Gateway adapter interface and result types.

Every payment processor is wrapped by a GatewayAdapter variant with the
same capability set, so the orchestrator never branches on the
processor name:

- CardGateway (stripe_adapter): intent/capture card flow
- RedirectGateway (paypal_adapter): order/approve/capture redirect flow
- TestGateway (testmode_adapter): fabricated responses, always succeeds

Contract:
- Amounts are Decimals in major currency units; adapters convert.
- Failures raise GatewayError (or a subclass); a timed-out call is a
  GatewayError, never a success.
- Adapters hold their tenant's credentials per instance and pass them
  per call; nothing is assigned to process-wide client state.
"""

from __future__ import annotations

import abc
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from tenants.config import TenantGatewayConfig


# =============================================================================
# Data Types
# =============================================================================


@dataclass
class IntentResult:
    """
    Result of creating a payment intent (card) or order (redirect).

    Attributes:
        identifier: Gateway id (pi_xxx, PayPal order id)
        client_secret: Secret for client-side confirmation (card only)
        status: Gateway status at creation
        raw: Gateway response payload
    """

    identifier: str
    client_secret: str | None = None
    status: str = ""
    raw: dict[str, Any] = field(default_factory=dict)


@dataclass
class CaptureResult:
    """
    Result of capturing a previously created intent/order.

    Attributes:
        transaction_id: Gateway transaction id (capture id for redirect)
        payment_id: Gateway payment id recorded on the ledger entry
        status: Final gateway status (succeeded, COMPLETED)
        details: Payload stored on OrderPayment.payment_details
    """

    transaction_id: str
    payment_id: str
    status: str
    details: dict[str, Any] = field(default_factory=dict)


@dataclass
class RefundResult:
    """
    Result of refunding (part of) a charge.

    Attributes:
        refund_id: Gateway refund id (re_xxx, PayPal refund id)
        transaction_id: Gateway transaction id for the refund
        status: Gateway refund status
        details: Payload stored on OrderPayment.payment_details
    """

    refund_id: str
    transaction_id: str
    status: str
    details: dict[str, Any] = field(default_factory=dict)


@dataclass
class PaymentLinkResult:
    """
    Result of creating a hosted payment page.

    Attributes:
        url: Customer-facing payment URL
        identifier: Gateway id of the session/order behind the link
    """

    url: str
    identifier: str | None = None


# =============================================================================
# Adapter Interface
# =============================================================================


class GatewayAdapter(abc.ABC):
    """
    Capability interface implemented per payment processor.

    Instances are built per tenant by payments.adapters.get_gateway().
    """

    #: Processor name recorded as OrderPayment.payment_method
    processor: str = ""

    #: OrderPayment field holding the id refunds are issued against
    refund_reference_field: str = "payment_id"

    def __init__(self, config: TenantGatewayConfig):
        self.config = config

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """Get logger for this adapter."""
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @property
    def currency(self) -> str:
        return self.config.currency

    @property
    def is_test_mode(self) -> bool:
        return False

    @abc.abstractmethod
    def create_intent(
        self,
        amount: Decimal,
        currency: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> IntentResult:
        """Create an intent/order for the amount."""

    @abc.abstractmethod
    def capture(self, identifier: str) -> CaptureResult:
        """Capture (or confirm capture of) an intent/order."""

    @abc.abstractmethod
    def refund(
        self,
        charge_identifier: str | None,
        amount: Decimal,
        reason: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> RefundResult:
        """Refund part or all of a captured charge."""

    @abc.abstractmethod
    def create_payment_link(
        self,
        amount: Decimal,
        line_items: list[dict[str, Any]],
        success_url: str,
        cancel_url: str,
        metadata: dict[str, Any] | None = None,
        customer_email: str | None = None,
    ) -> PaymentLinkResult:
        """Create a hosted payment page for the line items."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(restaurant_id={self.config.restaurant_id!r})"
