"""
Payment orchestrator service for an order's payment lifecycle.

This module provides the PaymentOrchestrator class which serves as the
entry point for all payment commands against an existing order. It
coordinates between the tenant's gateway adapter, the ledger, and the
notifier.

The orchestrator:
- Locks the order row for the duration of every command
- Validates against freshly recomputed ledger totals
- Calls the tenant's gateway adapter (never a process-wide client)
- Writes the resulting OrderPayment rows and order transitions
- Returns ServiceResult envelopes with structured errors

Usage:
    from payments.services import PaymentOrchestrator

    orchestrator = PaymentOrchestrator.for_restaurant(order.restaurant)
    result = orchestrator.create_refund(order.id, Decimal("5.00"), reason="Cold food")

    if result.success:
        refund = result.data
    else:
        print(result.error, result.error_code)
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Any

from django.conf import settings
from django.db import transaction

from core.exceptions import BaseApplicationError
from core.services import BaseService, ServiceResult
from orders.models import Order
from payments.adapters import get_gateway
from payments.exceptions import (
    InvalidStateTransitionError,
    PaymentNotFoundError,
    PaymentValidationError,
)
from payments.ledger import LedgerSummary, is_fully_refunded, ledger, to_money
from payments.locks import lock_order
from payments.models import OrderPayment, StoreCredit
from payments.notifications import (
    CHANNEL_EMAIL,
    CHANNEL_SMS,
    DEFAULT_EMAIL_TEMPLATE,
    DEFAULT_SMS_TEMPLATE,
    CeleryNotifier,
)
from payments.state_machines import (
    PaymentMethod,
    PaymentStatus,
    PaymentType,
    StoreCreditStatus,
)
from tenants.config import TenantGatewayConfig

if TYPE_CHECKING:
    from payments.adapters import GatewayAdapter
    from payments.notifications import Notifier
    from tenants.models import Restaurant


logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")
TEMPORARY_ORDER_PREFIX = "temp-"


# =============================================================================
# Result Types
# =============================================================================


@dataclass
class AdditionalPaymentIntent:
    """
    Result of create_additional_payment.

    Attributes:
        payment: The pending additional OrderPayment
        client_secret: Card gateway secret for client-side confirmation
        payment_id: Card gateway intent id (pi_xxx)
        order_id: Redirect gateway order id awaiting approval
    """

    payment: OrderPayment
    client_secret: str | None = None
    payment_id: str | None = None
    order_id: str | None = None


@dataclass
class PaymentLinkCreated:
    """Result of create_payment_link."""

    payment: OrderPayment
    payment_link_url: str


@dataclass
class StoreCreditIssued:
    """Result of add_store_credit."""

    store_credit: StoreCredit
    payment: OrderPayment


@dataclass
class TotalAdjusted:
    """Result of adjust_total."""

    order: Order
    payment: OrderPayment


@dataclass
class OrderLedger:
    """Result of list_payments."""

    payments: list[OrderPayment] = field(default_factory=list)
    summary: LedgerSummary = field(default_factory=LedgerSummary.empty)


# =============================================================================
# Additional Amount Computation
# =============================================================================


def _item_key(item: dict[str, Any]) -> str:
    return str(item.get("id"))


def _item_label(item: dict[str, Any]) -> Any:
    return item.get("name") or item.get("id")


def _item_quantity(item: dict[str, Any]) -> int:
    """Quantity as a non-negative int; missing counts as 0."""
    try:
        quantity = int(item.get("quantity") or 0)
    except (TypeError, ValueError):
        raise PaymentValidationError(
            f"Invalid quantity for item {_item_label(item)}",
            details={"item": _item_key(item)},
        )
    if quantity < 0:
        raise PaymentValidationError(
            f"Invalid quantity for item {_item_label(item)}",
            details={"item": _item_key(item), "quantity": quantity},
        )
    return quantity


def _item_price(*candidates: dict[str, Any] | None) -> Decimal:
    """First price present among the candidate items; never negative."""
    for item in candidates:
        if item and item.get("price") not in (None, ""):
            try:
                price = to_money(item["price"])
            except (InvalidOperation, TypeError, ValueError):
                raise PaymentValidationError(
                    f"Invalid price for item {_item_label(item)}",
                    details={"item": _item_key(item)},
                )
            if price < ZERO:
                raise PaymentValidationError(
                    f"Invalid price for item {_item_label(item)}",
                    details={"item": _item_key(item), "price": str(price)},
                )
            return price
    return ZERO


def payment_link_line_items(items: list[dict[str, Any]] | None) -> list[dict[str, Any]]:
    """
    Validated line items for a hosted payment page.

    Every item needs a quantity of at least 1. The returned copies carry
    the int quantity and cent-quantized price the ledger amount is
    computed from, so the gateway charges exactly what is recorded.
    """
    line_items = []
    for item in items or []:
        quantity = _item_quantity(item)
        if quantity < 1:
            raise PaymentValidationError(
                f"Invalid quantity for item {_item_label(item)}",
                details={"item": _item_key(item), "quantity": quantity},
            )
        line_items.append({**item, "quantity": quantity, "price": str(_item_price(item))})
    return line_items


def calculate_additional_amount(
    existing_items: list[dict[str, Any]] | None,
    requested_items: list[dict[str, Any]] | None,
) -> Decimal:
    """
    Amount owed for requested items beyond what the order already bills.

    - Unmatched items are billed at price x quantity
    - Matched items with a higher quantity are billed for the delta only
    - Matched items with the same or lower quantity contribute nothing

    Items match on str(id). A requested item without a price uses the
    existing item's price.

    Example:
        existing = [{"id": 1, "quantity": 2, "price": 5}]
        calculate_additional_amount(existing, [{"id": 1, "quantity": 3}])
        # Decimal("5.00")
    """
    existing_by_id = {_item_key(item): item for item in existing_items or []}
    total = ZERO

    for item in requested_items or []:
        existing = existing_by_id.get(_item_key(item))
        quantity = _item_quantity(item)
        price = _item_price(item, existing)

        if existing is None:
            total += price * quantity
            continue

        delta = quantity - _item_quantity(existing)
        if delta > 0:
            total += price * delta

    return to_money(total)


def describe_items(items: list[dict[str, Any]] | None) -> str:
    """Format items as "2x Burger, 1x Fries"."""
    return ", ".join(
        f"{item.get('quantity')}x {item.get('name')}" for item in items or []
    )


# =============================================================================
# Payment Orchestrator
# =============================================================================


class PaymentOrchestrator(BaseService):
    """
    Per-tenant coordinator for order payment commands.

    Every command:
    1. Opens a transaction and locks the order row (scoped to the tenant)
    2. Validates input against the recomputed ledger
    3. Calls the gateway adapter while the lock is held
    4. Writes OrderPayment rows and order transitions
    5. Returns ServiceResult

    A GatewayError rolls the transaction back, so no ledger row is
    written for a failed gateway call. The orchestrator never retries.

    Usage:
        orchestrator = PaymentOrchestrator(config)
        result = orchestrator.create_additional_payment(order_id, items)
    """

    def __init__(
        self,
        config: TenantGatewayConfig,
        gateway: GatewayAdapter | None = None,
        notifier: Notifier | None = None,
    ):
        self.config = config
        self._gateway = gateway
        self.notifier = notifier or CeleryNotifier()

    @classmethod
    def for_restaurant(cls, restaurant: Restaurant, **kwargs: Any) -> PaymentOrchestrator:
        return cls(TenantGatewayConfig.from_restaurant(restaurant), **kwargs)

    @property
    def gateway(self) -> GatewayAdapter:
        """
        The tenant's gateway adapter, built on first use.

        Raises:
            ConfigurationError: Credentials missing outside test mode
        """
        if self._gateway is None:
            self._gateway = get_gateway(self.config)
        return self._gateway

    @property
    def test_mode(self) -> bool:
        return self.config.test_mode

    def _log_context(self, operation: str, order_id: Any, **extra: Any) -> dict[str, Any]:
        return {
            "operation": operation,
            "order_id": str(order_id),
            "restaurant_id": self.config.restaurant_id,
            "test_mode": self.test_mode,
            **extra,
        }

    def _failure(self, exc: Exception, log_context: dict[str, Any]) -> ServiceResult:
        """Convert an exception raised inside a command to a failed result."""
        log = self.get_logger()
        if isinstance(exc, BaseApplicationError):
            log.warning(
                f"Payment command rejected: {exc.message}",
                extra={**log_context, "error_code": exc.error_code},
            )
            return ServiceResult.from_exception(exc)

        log.error(
            f"Unexpected error in payment command: {type(exc).__name__}",
            extra=log_context,
            exc_info=True,
        )
        return ServiceResult.failure(
            "An unexpected error occurred",
            error_code="PAYMENT_PROCESSING_ERROR",
        )

    # =========================================================================
    # Additional Payments
    # =========================================================================

    def create_additional_payment(
        self, order_id: Any, items: list[dict[str, Any]]
    ) -> ServiceResult[AdditionalPaymentIntent]:
        """
        Charge for items added to an existing order.

        Creates a gateway intent for the additional amount and a pending
        additional OrderPayment carrying the intent id.

        Args:
            order_id: Order to charge
            items: Requested item list ({id, name, price, quantity})

        Returns:
            ServiceResult containing AdditionalPaymentIntent, or an error
            ("No additional payment needed" when nothing new is billed)
        """
        log_context = self._log_context("create_additional_payment", order_id)
        self.get_logger().info("Creating additional payment", extra=log_context)

        try:
            with self.atomic():
                order = lock_order(order_id, self.config.restaurant_id)
                amount = calculate_additional_amount(order.items, items)

                if amount <= ZERO:
                    raise PaymentValidationError(
                        "No additional payment needed",
                        details={"additional_amount": str(amount)},
                    )

                gateway = self.gateway
                intent = gateway.create_intent(
                    amount,
                    metadata={
                        "order_id": order.pk,
                        "payment_type": PaymentType.ADDITIONAL,
                        "description": f"Additional payment for Order #{order.pk}",
                    },
                )

                payment = OrderPayment.objects.create(
                    order=order,
                    payment_type=PaymentType.ADDITIONAL,
                    amount=amount,
                    payment_method=gateway.processor,
                    status=PaymentStatus.PENDING,
                    payment_id=intent.identifier,
                    description=f"Additional items: {describe_items(items)}",
                )
        except Exception as e:
            return self._failure(e, log_context)

        self.get_logger().info(
            "Additional payment created",
            extra={
                **log_context,
                "payment_id": payment.pk,
                "amount": str(amount),
                "gateway_identifier": intent.identifier,
            },
        )

        redirect = self.config.is_redirect_processor
        return ServiceResult.success(
            AdditionalPaymentIntent(
                payment=payment,
                client_secret=intent.client_secret,
                payment_id=None if redirect else intent.identifier,
                order_id=intent.identifier if redirect else None,
            )
        )

    def capture_additional_payment(
        self,
        order_id: Any,
        payment_id: Any,
        gateway_reference: str | None = None,
        items: list[dict[str, Any]] | None = None,
    ) -> ServiceResult[OrderPayment]:
        """
        Capture a pending additional payment.

        On success the payment becomes paid with the gateway's
        transaction id. When items are given the order's item list is
        replaced with them; this is part of the command, not a side
        effect of the gateway call.

        Args:
            order_id: Order owning the payment
            payment_id: OrderPayment primary key
            gateway_reference: Intent/order id to capture; defaults to
                the payment's stored payment_id
            items: New item list for the order

        Returns:
            ServiceResult containing the updated OrderPayment. On gateway
            failure the payment stays pending.
        """
        log_context = self._log_context(
            "capture_additional_payment", order_id, payment_id=str(payment_id)
        )
        self.get_logger().info("Capturing additional payment", extra=log_context)

        try:
            with self.atomic():
                order = lock_order(order_id, self.config.restaurant_id)

                try:
                    payment = order.payments.select_for_update().filter(pk=payment_id).first()
                except (TypeError, ValueError):
                    payment = None
                if payment is None:
                    raise PaymentNotFoundError(
                        "Payment not found",
                        error_code="PAYMENT_NOT_FOUND",
                        details={"payment_id": str(payment_id)},
                    )
                reference = gateway_reference or payment.payment_id
                already_captured = (
                    payment.payment_type == PaymentType.ADDITIONAL
                    and payment.status == PaymentStatus.PAID
                    and reference
                    and reference in (payment.payment_id, payment.transaction_id)
                )
                if not payment.is_pending and not already_captured:
                    raise InvalidStateTransitionError(
                        f"Cannot capture payment in '{payment.status}' state",
                        details={
                            "current_state": payment.status,
                            "target_state": PaymentStatus.PAID,
                        },
                    )

                if already_captured:
                    # Webhook reconciliation got here first
                    self.get_logger().info(
                        "Additional payment already paid, skipping gateway capture",
                        extra={**log_context, "gateway_reference": reference},
                    )
                else:
                    capture = self.gateway.capture(reference)

                    payment.status = PaymentStatus.PAID
                    payment.transaction_id = capture.transaction_id
                    payment.payment_id = capture.payment_id
                    payment.payment_details = capture.details
                    payment.save(
                        update_fields=[
                            "status",
                            "transaction_id",
                            "payment_id",
                            "payment_details",
                            "updated_at",
                        ]
                    )

                if items:
                    order.items = items
                    order.save(update_fields=["items", "updated_at"])
        except Exception as e:
            return self._failure(e, log_context)

        self.get_logger().info(
            "Additional payment captured",
            extra={**log_context, "transaction_id": payment.transaction_id},
        )
        return ServiceResult.success(payment)

    # =========================================================================
    # Refunds
    # =========================================================================

    def create_refund(
        self,
        order_id: Any,
        amount: Decimal,
        reason: str | None = None,
        description: str | None = None,
        refunded_items: list[dict[str, Any]] | None = None,
    ) -> ServiceResult[OrderPayment]:
        """
        Refund part or all of an order's payments.

        Flow:
        1. Reject non-positive amounts
        2. Outside test mode, reject amounts above the net amount
        3. Find the initial payment (synthesized in test mode when absent)
        4. Refund through the gateway
        5. Write a completed refund OrderPayment
        6. Transition the order to refunded or partially_refunded

        Args:
            order_id: Order to refund
            amount: Refund amount in major units
            reason: Customer-facing reason (normalized by the gateway)
            description: Ledger description (defaults to reason)
            refunded_items: Snapshot of refunded items

        Returns:
            ServiceResult containing the refund OrderPayment
        """
        log_context = self._log_context("create_refund", order_id, amount=str(amount))
        self.get_logger().info("Creating refund", extra=log_context)

        try:
            with self.atomic():
                order = lock_order(order_id, self.config.restaurant_id)
                amount = to_money(amount)
                summary = ledger.summarize_order(order)

                if amount <= ZERO or (not self.test_mode and amount > summary.net_amount):
                    raise PaymentValidationError(
                        f"Invalid refund amount. Maximum refundable: {summary.net_amount}",
                        details={
                            "amount": str(amount),
                            "max_refundable": str(summary.net_amount),
                        },
                    )

                gateway = self.gateway
                initial = self._initial_payment_for_refund(order, amount, gateway)
                identifier = self._refund_identifier(order, initial, gateway)

                result = gateway.refund(
                    identifier,
                    amount,
                    reason=reason,
                    metadata={"order_id": order.pk},
                )

                refund = OrderPayment.objects.create(
                    order=order,
                    payment_type=PaymentType.REFUND,
                    amount=amount,
                    payment_method=gateway.processor,
                    status=PaymentStatus.COMPLETED,
                    transaction_id=result.transaction_id,
                    payment_id=result.refund_id,
                    payment_details={**result.details, "refunded_items": refunded_items},
                    refunded_items=refunded_items,
                    description=description or reason or "Refund",
                )

                summary = ledger.summarize_order(order)
                if is_fully_refunded(summary):
                    order.mark_refunded()
                else:
                    order.mark_partially_refunded()
                order.save(update_fields=["status", "payment_status", "updated_at"])
        except Exception as e:
            return self._failure(e, log_context)

        self.get_logger().info(
            "Refund created",
            extra={
                **log_context,
                "refund_id": refund.payment_id,
                "order_status": order.status,
                "net_amount": str(summary.net_amount),
            },
        )
        return ServiceResult.success(refund)

    def _initial_payment_for_refund(
        self, order: Order, amount: Decimal, gateway: GatewayAdapter
    ) -> OrderPayment:
        """
        The order's first successful initial payment.

        Test mode synthesizes one (twice the refund amount) when the
        order has none, so refunds can be exercised end to end.

        Raises:
            PaymentNotFoundError: No initial payment outside test mode
        """
        initial = ledger.initial_payment(order)
        if initial is not None:
            return initial

        if not self.test_mode:
            raise PaymentNotFoundError(
                "No initial payment found",
                error_code="PAYMENT_NOT_FOUND",
                details={"order_id": str(order.pk)},
            )

        fake_id = f"pi_test_{secrets.token_hex(16)}"
        self.get_logger().info(
            "Synthesizing initial payment for test mode refund",
            extra={"order_id": order.pk, "payment_id": fake_id},
        )
        return OrderPayment.objects.create(
            order=order,
            payment_type=PaymentType.INITIAL,
            amount=amount * 2,
            payment_method=gateway.processor,
            status=PaymentStatus.PAID,
            transaction_id=fake_id,
            payment_id=fake_id,
            description="Test payment",
        )

    def _refund_identifier(
        self, order: Order, initial: OrderPayment, gateway: GatewayAdapter
    ) -> str | None:
        """Gateway id to refund against, adopting Order.payment_id when missing."""
        if not initial.payment_id and order.payment_id:
            initial.payment_id = order.payment_id
            initial.save(update_fields=["payment_id", "updated_at"])
            self.get_logger().info(
                "Adopted order payment_id for initial payment",
                extra={"order_id": order.pk, "payment_id": order.payment_id},
            )

        return getattr(initial, gateway.refund_reference_field) or initial.payment_id

    # =========================================================================
    # Ledger-only Commands
    # =========================================================================

    def add_store_credit(
        self,
        order_id: Any,
        amount: Decimal,
        reason: str | None = None,
        email: str | None = None,
    ) -> ServiceResult[StoreCreditIssued]:
        """
        Issue store credit against an order.

        Creates an active StoreCredit for the customer and a completed
        refund OrderPayment (method store_credit). No gateway call.
        """
        log_context = self._log_context("add_store_credit", order_id, amount=str(amount))

        try:
            with self.atomic():
                order = lock_order(order_id, self.config.restaurant_id)
                amount = to_money(amount)
                if amount <= ZERO:
                    raise PaymentValidationError(
                        "Invalid amount for store credit",
                        details={"amount": str(amount)},
                    )

                store_credit = StoreCredit.objects.create(
                    customer_email=email or order.contact_email,
                    amount=amount,
                    reason=reason or "",
                    order=order,
                    status=StoreCreditStatus.ACTIVE,
                )
                payment = OrderPayment.objects.create(
                    order=order,
                    payment_type=PaymentType.REFUND,
                    amount=amount,
                    payment_method=PaymentMethod.STORE_CREDIT,
                    status=PaymentStatus.COMPLETED,
                    description=f"Store credit: {reason or ''}".strip(),
                )
        except Exception as e:
            return self._failure(e, log_context)

        self.get_logger().info(
            "Store credit issued",
            extra={**log_context, "store_credit_id": store_credit.pk},
        )
        return ServiceResult.success(StoreCreditIssued(store_credit=store_credit, payment=payment))

    def adjust_total(
        self,
        order_id: Any,
        new_total: Decimal,
        reason: str | None = None,
    ) -> ServiceResult[TotalAdjusted]:
        """
        Change an order's total and record the difference.

        A decrease is recorded as a completed refund entry, an increase
        as a completed additional entry (method adjustment), for
        |old - new|.
        """
        log_context = self._log_context("adjust_total", order_id, new_total=str(new_total))

        try:
            with self.atomic():
                order = lock_order(order_id, self.config.restaurant_id)
                new_total = to_money(new_total)
                if new_total < ZERO:
                    raise PaymentValidationError(
                        "New total cannot be negative",
                        details={"new_total": str(new_total)},
                    )

                old_total = to_money(order.total)
                order.total = new_total
                order.save(update_fields=["total", "updated_at"])

                payment = OrderPayment.objects.create(
                    order=order,
                    payment_type=(
                        PaymentType.REFUND if old_total > new_total else PaymentType.ADDITIONAL
                    ),
                    amount=abs(old_total - new_total),
                    payment_method=PaymentMethod.ADJUSTMENT,
                    status=PaymentStatus.COMPLETED,
                    description=f"Total adjusted: {reason or ''}".strip(),
                )
        except Exception as e:
            return self._failure(e, log_context)

        self.get_logger().info(
            "Order total adjusted",
            extra={**log_context, "old_total": str(old_total)},
        )
        return ServiceResult.success(TotalAdjusted(order=order, payment=payment))

    # =========================================================================
    # Payment Links
    # =========================================================================

    def create_payment_link(
        self,
        order_id: Any,
        items: list[dict[str, Any]],
        email: str | None = None,
        phone: str | None = None,
    ) -> ServiceResult[PaymentLinkCreated]:
        """
        Create a hosted payment page for items and send it to the customer.

        The link is emailed and/or texted after the transaction commits.
        Notification failures are logged and never fail the command.
        """
        log_context = self._log_context("create_payment_link", order_id)
        self.get_logger().info("Creating payment link", extra=log_context)

        try:
            if not email and not phone:
                raise PaymentValidationError(
                    "Email or phone number is required",
                    error_code="CONTACT_REQUIRED",
                )

            line_items = payment_link_line_items(items)
            amount = to_money(
                sum(
                    (Decimal(item["price"]) * item["quantity"] for item in line_items),
                    ZERO,
                )
            )
            if amount <= ZERO:
                raise PaymentValidationError(
                    "Invalid payment amount",
                    details={"amount": str(amount)},
                )

            with self.atomic():
                order = lock_order(order_id, self.config.restaurant_id)
                frontend_url = settings.FRONTEND_URL.rstrip("/")

                link = self.gateway.create_payment_link(
                    amount,
                    line_items,
                    success_url=self.config.success_url
                    or f"{frontend_url}/payment-success?session_id={{CHECKOUT_SESSION_ID}}",
                    cancel_url=self.config.cancel_url or f"{frontend_url}/payment-cancel",
                    metadata={
                        "order_id": order.pk,
                        "restaurant_id": self.config.restaurant_id,
                        "payment_type": PaymentType.ADDITIONAL,
                        "test_mode": self.test_mode,
                    },
                    customer_email=email,
                )

                payment = OrderPayment.objects.create(
                    order=order,
                    payment_type=PaymentType.ADDITIONAL,
                    amount=amount,
                    payment_method=PaymentMethod.PAYMENT_LINK,
                    status=PaymentStatus.PENDING,
                    payment_id=link.identifier,
                    description=f"Payment link: {describe_items(line_items)}",
                    payment_details={
                        "payment_link_url": link.url,
                        "email": email,
                        "phone": phone,
                        "items": line_items,
                        "test_mode": self.test_mode,
                    },
                )

                context = {
                    "order_id": order.pk,
                    "restaurant": order.restaurant.name,
                    "url": link.url,
                    "amount": str(amount),
                    "currency": self.config.currency,
                    "customer_name": order.contact_name,
                }
                email_template = (
                    order.restaurant.get_template("email_templates", "payment_link")
                    or DEFAULT_EMAIL_TEMPLATE
                )
                sms_template = (
                    order.restaurant.get_template("sms_templates", "payment_link")
                    or DEFAULT_SMS_TEMPLATE
                )
                transaction.on_commit(
                    lambda: self._send_payment_link(
                        context, email, phone, email_template, sms_template
                    )
                )
        except Exception as e:
            return self._failure(e, log_context)

        self.get_logger().info(
            "Payment link created",
            extra={**log_context, "payment_id": payment.pk, "amount": str(amount)},
        )
        return ServiceResult.success(PaymentLinkCreated(payment=payment, payment_link_url=link.url))

    def _send_payment_link(
        self,
        context: dict[str, Any],
        email: str | None,
        phone: str | None,
        email_template: str,
        sms_template: str,
    ) -> None:
        """Fire-and-forget delivery; a failed channel never affects the other."""
        deliveries = []
        if email:
            deliveries.append((CHANNEL_EMAIL, email_template, email))
        if phone:
            deliveries.append((CHANNEL_SMS, sms_template, phone))

        for channel, template, recipient in deliveries:
            try:
                self.notifier.notify(channel, template, recipient, context)
            except Exception:
                logger.exception(
                    "Failed to send payment link notification",
                    extra={"channel": channel, "order_id": context.get("order_id")},
                )

    # =========================================================================
    # Queries
    # =========================================================================

    def list_payments(self, order_id: Any) -> ServiceResult[OrderLedger]:
        """
        An order's payment entries with recomputed totals.

        Orders not yet persisted by the client ("temp-" ids) have an
        empty ledger.
        """
        if str(order_id).startswith(TEMPORARY_ORDER_PREFIX):
            return ServiceResult.success(OrderLedger())

        try:
            order = Order.objects.filter(
                pk=order_id, restaurant_id=self.config.restaurant_id
            ).first()
        except (TypeError, ValueError):
            order = None

        if order is None:
            return ServiceResult.failure(
                f"Order {order_id} not found",
                error_code="ORDER_NOT_FOUND",
                details={"order_id": str(order_id)},
            )

        payments = list(order.payments.all())
        return ServiceResult.success(
            OrderLedger(payments=payments, summary=ledger.summarize_order(order))
        )
