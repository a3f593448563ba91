"""
Webhook event handlers for gateway events.

This module provides a handler registry and implementations for
applying gateway-reported payment outcomes to an order's ledger.

The handler registry allows:
- Clean separation between event routing and handling
- Easy extension for new event types
- Unknown event types to be accepted and ignored

Handlers apply the same transitions as the synchronous command path,
under the same per-order lock. Re-applying an event is a no-op: a
payment already marked paid for an intent is never written twice.

Usage:
    from payments.webhooks.handlers import dispatch_webhook, register_handler

    # Register a custom handler
    @register_handler("custom.event")
    def handle_custom_event(webhook_event: WebhookEvent) -> ServiceResult:
        ...

    # Dispatch an event to its handler
    result = dispatch_webhook(webhook_event)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable

from django.db import transaction
from django_fsm import can_proceed

from core.services import ServiceResult
from orders.models import Order
from orders.states import OrderPaymentStatus
from payments.adapters.stripe_adapter import from_minor_units
from payments.locks import lock_order
from payments.models import OrderPayment, WebhookEvent
from payments.state_machines import PaymentMethod, PaymentStatus, PaymentType

if TYPE_CHECKING:
    from decimal import Decimal


logger = logging.getLogger(__name__)


# =============================================================================
# Handler Registry
# =============================================================================


# Maps event type strings to handler functions
WEBHOOK_HANDLERS: dict[str, Callable[[WebhookEvent], ServiceResult]] = {}


def register_handler(event_type: str) -> Callable:
    """
    Decorator to register a webhook event handler.

    Usage:
        @register_handler("payment_intent.succeeded")
        def handle_payment_succeeded(webhook_event: WebhookEvent) -> ServiceResult:
            ...

    Args:
        event_type: The gateway event type (e.g., "payment_intent.succeeded")

    Returns:
        Decorator function that registers the handler
    """

    def decorator(func: Callable[[WebhookEvent], ServiceResult]) -> Callable:
        WEBHOOK_HANDLERS[event_type] = func
        logger.debug(f"Registered webhook handler for {event_type}")
        return func

    return decorator


def dispatch_webhook(webhook_event: WebhookEvent) -> ServiceResult:
    """
    Dispatch a webhook event to the appropriate handler.

    Looks up the handler by event type and calls it. If no handler
    is registered, logs and returns success (unknown events are
    accepted and ignored).

    Args:
        webhook_event: The WebhookEvent to process

    Returns:
        ServiceResult from the handler, or success if no handler
    """
    handler = WEBHOOK_HANDLERS.get(webhook_event.event_type)
    log_extra = {
        "gateway_event_id": webhook_event.gateway_event_id,
        "restaurant_id": webhook_event.restaurant_id,
    }

    if not handler:
        logger.info(
            f"No handler registered for event type: {webhook_event.event_type}",
            extra=log_extra,
        )
        return ServiceResult.success(None)

    logger.info(f"Dispatching {webhook_event.event_type} to handler", extra=log_extra)

    return handler(webhook_event)


# =============================================================================
# Lookups
# =============================================================================


def find_order_for_intent(
    restaurant_id: int, intent_id: str, metadata: dict[str, Any] | None = None
) -> Order | None:
    """
    Find the tenant's order a gateway intent belongs to.

    Lookup order:
    1. metadata.order_id set when the intent was created
    2. A ledger entry carrying the intent id
    3. An order whose payment_id (or recorded intent id) is the intent id
    """
    orders = Order.objects.filter(restaurant_id=restaurant_id)

    order_id = (metadata or {}).get("order_id")
    if order_id:
        try:
            order = orders.filter(pk=order_id).first()
        except (TypeError, ValueError):
            order = None
        if order is not None:
            return order

    payment = (
        OrderPayment.objects.filter(
            order__restaurant_id=restaurant_id, payment_id=intent_id
        )
        .select_related("order")
        .first()
    )
    if payment is not None:
        return payment.order

    return (
        orders.filter(payment_id=intent_id).first()
        or orders.filter(payment_details__stripe_payment_intent_id=intent_id).first()
    )


def _payment_type(metadata: dict[str, Any]) -> str:
    payment_type = metadata.get("payment_type")
    if payment_type in (PaymentType.INITIAL, PaymentType.ADDITIONAL):
        return payment_type
    return PaymentType.INITIAL


def _mark_order_paid(order: Order, details: dict[str, Any]) -> None:
    if can_proceed(order.mark_paid):
        order.mark_paid()
    else:
        logger.warning(
            "Order status not changed by payment confirmation",
            extra={"order_id": order.pk, "status": order.status},
        )
        order.payment_status = OrderPaymentStatus.PAID

    order.payment_details = {**(order.payment_details or {}), **details}
    update_fields = ["status", "payment_status", "payment_details", "updated_at"]
    if not order.payment_id and details.get("stripe_payment_intent_id"):
        order.payment_id = details["stripe_payment_intent_id"]
        update_fields.append("payment_id")
    order.save(update_fields=update_fields)


def apply_successful_payment(
    order: Order,
    lookup_id: str,
    amount: Decimal,
    payment_type: str,
    transaction_id: str,
    details: dict[str, Any],
    payment_method: str = PaymentMethod.STRIPE,
) -> tuple[OrderPayment, bool]:
    """
    Write or merge the paid ledger entry for a confirmed payment.

    Must be called with the order locked.

    Returns:
        (payment, changed) - changed is False when the entry was
        already paid and nothing was written
    """
    payment = order.payments.select_for_update().filter(payment_id=lookup_id).first()

    if payment is not None and payment.status in (PaymentStatus.PAID, PaymentStatus.COMPLETED):
        return payment, False

    if payment is None:
        payment = OrderPayment.objects.create(
            order=order,
            payment_type=payment_type,
            amount=amount,
            payment_method=payment_method,
            status=PaymentStatus.PAID,
            payment_id=lookup_id,
            transaction_id=transaction_id,
            payment_details=details,
        )
    else:
        payment.status = PaymentStatus.PAID
        payment.transaction_id = transaction_id
        payment.payment_details = {**(payment.payment_details or {}), **details}
        payment.save(
            update_fields=["status", "transaction_id", "payment_details", "updated_at"]
        )

    _mark_order_paid(order, {"stripe_payment_intent_id": transaction_id, **details})
    return payment, True


# =============================================================================
# Payment Intent Handlers
# =============================================================================


@register_handler("payment_intent.succeeded")
def handle_payment_intent_succeeded(webhook_event: WebhookEvent) -> ServiceResult:
    """
    Handle successful payment confirmation.

    Marks the order paid and writes (or merges into) a paid ledger entry
    for the intent. Events for orders this tenant doesn't have are
    acknowledged and ignored.

    Args:
        webhook_event: The WebhookEvent containing the event data

    Returns:
        ServiceResult with the OrderPayment (None when ignored)
    """
    intent = webhook_event.get_object()
    intent_id = intent.get("id")

    if not intent_id:
        logger.error(
            "payment_intent.succeeded: Could not extract payment_intent_id",
            extra={"gateway_event_id": webhook_event.gateway_event_id},
        )
        return ServiceResult.failure(
            "Could not extract payment_intent_id from webhook",
            error_code="INVALID_WEBHOOK_PAYLOAD",
        )

    metadata = intent.get("metadata") or {}
    log_extra = {
        "gateway_event_id": webhook_event.gateway_event_id,
        "restaurant_id": webhook_event.restaurant_id,
        "payment_intent_id": intent_id,
    }
    logger.info("Processing payment_intent.succeeded", extra=log_extra)

    with transaction.atomic():
        order = find_order_for_intent(webhook_event.restaurant_id, intent_id, metadata)
        if order is None:
            logger.warning("No order found for payment intent", extra=log_extra)
            return ServiceResult.success(None)

        order = lock_order(order.pk, webhook_event.restaurant_id)
        amount = from_minor_units(
            intent.get("amount_received") or intent.get("amount") or 0,
            intent.get("currency") or "usd",
        )
        payment, changed = apply_successful_payment(
            order,
            lookup_id=intent_id,
            amount=amount,
            payment_type=_payment_type(metadata),
            transaction_id=intent_id,
            details={
                "stripe_payment_intent_id": intent_id,
                "payment_method": PaymentMethod.STRIPE,
                "payment_status": intent.get("status") or "succeeded",
                "payment_method_details": intent.get("payment_method_details"),
            },
        )

    if changed:
        logger.info(
            "Payment confirmed by webhook",
            extra={**log_extra, "order_id": order.pk, "payment_id": payment.pk},
        )
    else:
        logger.info(
            "Payment already confirmed, nothing to apply",
            extra={**log_extra, "order_id": order.pk, "payment_id": payment.pk},
        )
    return ServiceResult.success(payment)


@register_handler("payment_intent.payment_failed")
def handle_payment_intent_failed(webhook_event: WebhookEvent) -> ServiceResult:
    """
    Handle payment failure notification.

    Records the gateway error on the order (payment_status failed) and
    on the matching pending ledger entry. Order.status is not changed.

    Args:
        webhook_event: The WebhookEvent containing the event data

    Returns:
        ServiceResult with the failed OrderPayment, if one matched
    """
    intent = webhook_event.get_object()
    intent_id = intent.get("id")

    if not intent_id:
        logger.error(
            "payment_intent.payment_failed: Could not extract payment_intent_id",
            extra={"gateway_event_id": webhook_event.gateway_event_id},
        )
        return ServiceResult.failure(
            "Could not extract payment_intent_id from webhook",
            error_code="INVALID_WEBHOOK_PAYLOAD",
        )

    last_error = intent.get("last_payment_error") or {}
    reason = last_error.get("message") or "Payment failed"
    log_extra = {
        "gateway_event_id": webhook_event.gateway_event_id,
        "restaurant_id": webhook_event.restaurant_id,
        "payment_intent_id": intent_id,
        "reason": reason,
    }
    logger.info("Processing payment_intent.payment_failed", extra=log_extra)

    details = {
        "stripe_payment_intent_id": intent_id,
        "payment_method": PaymentMethod.STRIPE,
        "payment_status": "failed",
        "error_message": reason,
    }

    with transaction.atomic():
        order = find_order_for_intent(
            webhook_event.restaurant_id, intent_id, intent.get("metadata")
        )
        if order is None:
            logger.warning("No order found for payment intent", extra=log_extra)
            return ServiceResult.success(None)

        order = lock_order(order.pk, webhook_event.restaurant_id)
        order.payment_status = OrderPaymentStatus.FAILED
        order.payment_details = {**(order.payment_details or {}), **details}
        order.save(update_fields=["payment_status", "payment_details", "updated_at"])

        payment = (
            order.payments.select_for_update()
            .filter(payment_id=intent_id, status=PaymentStatus.PENDING)
            .first()
        )
        if payment is not None:
            payment.status = PaymentStatus.FAILED
            payment.payment_details = {**(payment.payment_details or {}), **details}
            payment.save(update_fields=["status", "payment_details", "updated_at"])

    return ServiceResult.success(payment)


# =============================================================================
# Checkout Session Handlers
# =============================================================================


@register_handler("checkout.session.completed")
def handle_checkout_session_completed(webhook_event: WebhookEvent) -> ServiceResult:
    """
    Handle a paid payment link (Checkout Session).

    Marks the pending payment link entry created by create_payment_link
    as paid, recording the session's payment intent as transaction id.
    Sessions with no matching entry are ignored.
    """
    session = webhook_event.get_object()
    session_id = session.get("id")

    if not session_id:
        return ServiceResult.failure(
            "Could not extract session id from webhook",
            error_code="INVALID_WEBHOOK_PAYLOAD",
        )

    log_extra = {
        "gateway_event_id": webhook_event.gateway_event_id,
        "restaurant_id": webhook_event.restaurant_id,
        "session_id": session_id,
    }

    if session.get("payment_status") not in (None, "paid"):
        logger.info("Checkout session not paid yet, ignoring", extra=log_extra)
        return ServiceResult.success(None)

    with transaction.atomic():
        link_payment = (
            OrderPayment.objects.filter(
                order__restaurant_id=webhook_event.restaurant_id,
                payment_id=session_id,
            )
            .select_related("order")
            .first()
        )
        if link_payment is None:
            logger.warning("No payment link entry for checkout session", extra=log_extra)
            return ServiceResult.success(None)

        order = lock_order(link_payment.order_id, webhook_event.restaurant_id)
        transaction_id = session.get("payment_intent") or session_id
        payment, changed = apply_successful_payment(
            order,
            lookup_id=session_id,
            amount=link_payment.amount,
            payment_type=link_payment.payment_type,
            transaction_id=transaction_id,
            details={
                "stripe_checkout_session_id": session_id,
                "stripe_payment_intent_id": transaction_id,
                "payment_status": "succeeded",
            },
            payment_method=link_payment.payment_method,
        )

    logger.info(
        "Payment link paid" if changed else "Payment link already recorded as paid",
        extra={**log_extra, "order_id": order.pk, "payment_id": payment.pk},
    )
    return ServiceResult.success(payment)
