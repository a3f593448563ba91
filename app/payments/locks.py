"""
Per-order row locking for payment operations.

Webhook delivery and synchronous capture/refund commands against the
same order are serialized by locking the order row (SELECT ... FOR
UPDATE). Ledger validation and the payment write happen while the lock
is held, so two concurrent refunds cannot both validate against a stale
net amount. Different orders never contend.

Usage:
    from django.db import transaction
    from payments.locks import lock_order

    with transaction.atomic():
        order = lock_order(order_id)
        summary = ledger.summarize_order(order)
        ...  # lock held until the outer transaction commits

Note:
    Must be called within a transaction. The lock is released when the
    outermost transaction commits or rolls back. On SQLite (local and
    tests) select_for_update is a no-op and writes are serialized by the
    database itself.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.db import transaction

from orders.models import Order
from payments.exceptions import PaymentNotFoundError

if TYPE_CHECKING:
    from typing import Any

logger = logging.getLogger(__name__)


def lock_order(order_id: Any, restaurant_id: Any | None = None) -> Order:
    """
    Fetch and lock an order row for the rest of the transaction.

    Args:
        order_id: Primary key of the order
        restaurant_id: When given, the order must belong to this tenant

    Returns:
        The locked Order (with restaurant loaded)

    Raises:
        PaymentNotFoundError: If the order doesn't exist (or belongs to
            another restaurant)
    """
    if not transaction.get_connection().in_atomic_block:
        raise RuntimeError("lock_order() must be called inside transaction.atomic()")

    queryset = Order.objects.select_for_update(of=("self",)).select_related(
        "restaurant"
    )
    if restaurant_id is not None:
        queryset = queryset.filter(restaurant_id=restaurant_id)

    try:
        order = queryset.filter(pk=order_id).first()
    except (TypeError, ValueError):
        order = None

    if order is None:
        raise PaymentNotFoundError(
            f"Order {order_id} not found",
            error_code="ORDER_NOT_FOUND",
            details={"order_id": str(order_id)},
        )

    logger.debug("Locked order %s", order.pk, extra={"order_id": order.pk})
    return order
