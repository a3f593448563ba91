"""
Pytest fixtures for payment tests.

Usage:
    def test_refund(paid_order, orchestrator):
        result = orchestrator.create_refund(paid_order.id, Decimal("5.00"))
        assert result.success
"""

from decimal import Decimal

import pytest

from orders.tests.factories import OrderFactory
from payments.tests.factories import OrderPaymentFactory


@pytest.fixture
def order(db, restaurant):
    """Pending order (2x Spam Musubi, total 10.00) at a test-mode restaurant."""
    return OrderFactory(restaurant=restaurant)


@pytest.fixture
def paid_order(db, restaurant):
    """Paid order with a 10.00 initial card payment."""
    order = OrderFactory(restaurant=restaurant, paid=True)
    OrderPaymentFactory(order=order, amount=Decimal("10.00"))
    return order


@pytest.fixture
def live_paid_order(db, live_restaurant):
    """Paid order at a live card gateway restaurant."""
    order = OrderFactory(restaurant=live_restaurant, paid=True)
    OrderPaymentFactory(order=order, amount=Decimal("10.00"), payment_id="pi_live_initial")
    return order
