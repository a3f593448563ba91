"""
Tests for PaymentOrchestrator.

Tests cover:
- Additional payment creation and capture
- Refunds (validation, test-mode synthesis, status transitions)
- Store credit and total adjustments
- Payment links and notifications
- Ledger listing
- Gateway failure rollback and tenant scoping
"""

from decimal import Decimal
from unittest.mock import patch

import pytest

from orders.states import OrderPaymentStatus, OrderStatus
from orders.tests.factories import OrderFactory
from payments.exceptions import GatewayCardDeclinedError, GatewayTimeoutError
from payments.models import OrderPayment, StoreCredit
from payments.services import PaymentOrchestrator
from payments.state_machines import PaymentMethod, PaymentStatus, PaymentType
from payments.tests.factories import OrderPaymentFactory
from payments.webhooks.handlers import apply_successful_payment
from tenants.tests.factories import RestaurantFactory


# =============================================================================
# create_additional_payment
# =============================================================================


@pytest.mark.django_db
class TestCreateAdditionalPayment:
    def test_test_mode_creates_pending_payment(self, orchestrator, order):
        items = [
            {"id": 1, "name": "Spam Musubi", "price": "5.00", "quantity": 3},
            {"id": 2, "name": "Loco Moco", "price": "12.00", "quantity": 1},
        ]

        result = orchestrator.create_additional_payment(order.id, items)

        assert result.success, result.error
        payment = result.data.payment
        assert payment.payment_type == PaymentType.ADDITIONAL
        assert payment.status == PaymentStatus.PENDING
        assert payment.amount == Decimal("17.00")
        assert payment.payment_method == "stripe"
        assert payment.description == "Additional items: 3x Spam Musubi, 1x Loco Moco"
        assert payment.payment_id.startswith("pi_test_")
        assert result.data.payment_id == payment.payment_id
        assert result.data.client_secret.startswith(f"{payment.payment_id}_secret_")
        assert result.data.order_id is None

    def test_nothing_new_is_rejected_before_gateway(self, live_orchestrator, live_paid_order, mock_gateway):
        items = [{"id": 1, "name": "Spam Musubi", "price": "5.00", "quantity": 2}]

        result = live_orchestrator.create_additional_payment(live_paid_order.id, items)

        assert not result.success
        assert result.error == "No additional payment needed"
        assert result.error_code == "VALIDATION_ERROR"
        mock_gateway.create_intent.assert_not_called()

    def test_intent_metadata(self, live_orchestrator, live_paid_order, mock_gateway):
        items = [{"id": 9, "name": "Poke", "price": "8.00", "quantity": 1}]

        live_orchestrator.create_additional_payment(live_paid_order.id, items)

        args, kwargs = mock_gateway.create_intent.call_args
        assert args[0] == Decimal("8.00")
        assert kwargs["metadata"]["order_id"] == live_paid_order.id
        assert kwargs["metadata"]["payment_type"] == "additional"
        assert kwargs["metadata"]["description"] == f"Additional payment for Order #{live_paid_order.id}"

    def test_gateway_failure_writes_nothing(self, live_orchestrator, live_paid_order, mock_gateway):
        mock_gateway.create_intent.side_effect = GatewayCardDeclinedError(
            "Your card was declined.", gateway_code="card_declined", decline_code="generic_decline"
        )
        before = OrderPayment.objects.filter(order=live_paid_order).count()

        result = live_orchestrator.create_additional_payment(
            live_paid_order.id, [{"id": 9, "name": "Poke", "price": "8.00", "quantity": 1}]
        )

        assert not result.success
        assert result.error == "Your card was declined."
        assert result.error_code == "CARD_DECLINED"
        assert result.details["decline_code"] == "generic_decline"
        assert OrderPayment.objects.filter(order=live_paid_order).count() == before

    def test_redirect_processor_returns_order_id(self, paypal_restaurant, notifier):
        paypal_restaurant.admin_settings["payment_gateway"]["test_mode"] = True
        paypal_restaurant.save()
        order = OrderFactory(restaurant=paypal_restaurant)
        orchestrator = PaymentOrchestrator.for_restaurant(paypal_restaurant, notifier=notifier)

        result = orchestrator.create_additional_payment(
            order.id, [{"id": 9, "name": "Poke", "price": "8.00", "quantity": 1}]
        )

        assert result.success
        assert result.data.order_id.startswith("TEST-ORDER-")
        assert result.data.client_secret is None
        assert result.data.payment.payment_method == "paypal"

    def test_unknown_order(self, orchestrator, db):
        result = orchestrator.create_additional_payment(999999, [])

        assert result.error_code == "ORDER_NOT_FOUND"

    def test_negative_price_rejected_before_gateway(self, live_orchestrator, live_paid_order, mock_gateway):
        items = [
            {"id": 8, "name": "Discount", "price": "-20.00", "quantity": 1},
            {"id": 9, "name": "Poke", "price": "25.00", "quantity": 1},
        ]
        before = OrderPayment.objects.filter(order=live_paid_order).count()

        result = live_orchestrator.create_additional_payment(live_paid_order.id, items)

        assert result.error_code == "VALIDATION_ERROR"
        assert result.error == "Invalid price for item Discount"
        mock_gateway.create_intent.assert_not_called()
        assert OrderPayment.objects.filter(order=live_paid_order).count() == before


# =============================================================================
# capture_additional_payment
# =============================================================================


@pytest.mark.django_db
class TestCaptureAdditionalPayment:
    def test_capture_marks_paid_and_replaces_items(self, live_orchestrator, live_paid_order, mock_gateway):
        pending = OrderPaymentFactory(
            order=live_paid_order, additional_pending=True, amount=Decimal("5.00"), payment_id="pi_mock123"
        )
        new_items = [{"id": 1, "name": "Spam Musubi", "price": "5.00", "quantity": 3}]

        result = live_orchestrator.capture_additional_payment(
            live_paid_order.id, pending.id, items=new_items
        )

        assert result.success, result.error
        pending.refresh_from_db()
        assert pending.status == PaymentStatus.PAID
        assert pending.transaction_id == "pi_mock123"
        assert pending.payment_details == {"status": "succeeded", "amount": "5.00"}
        mock_gateway.capture.assert_called_once_with("pi_mock123")
        live_paid_order.refresh_from_db()
        assert live_paid_order.items == new_items
        assert live_paid_order.total_paid == Decimal("15.00")

    def test_explicit_gateway_reference(self, live_orchestrator, live_paid_order, mock_gateway):
        pending = OrderPaymentFactory(order=live_paid_order, additional_pending=True)

        live_orchestrator.capture_additional_payment(
            live_paid_order.id, pending.id, gateway_reference="pi_from_client"
        )

        mock_gateway.capture.assert_called_once_with("pi_from_client")

    def test_items_untouched_without_items(self, live_orchestrator, live_paid_order):
        original_items = live_paid_order.items
        pending = OrderPaymentFactory(order=live_paid_order, additional_pending=True)

        live_orchestrator.capture_additional_payment(live_paid_order.id, pending.id)

        live_paid_order.refresh_from_db()
        assert live_paid_order.items == original_items

    def test_gateway_failure_leaves_payment_pending(self, live_orchestrator, live_paid_order, mock_gateway):
        pending = OrderPaymentFactory(order=live_paid_order, additional_pending=True)
        mock_gateway.capture.side_effect = GatewayTimeoutError("Stripe request timed out. Please retry.")

        result = live_orchestrator.capture_additional_payment(live_paid_order.id, pending.id)

        assert not result.success
        assert result.error_code == "GATEWAY_TIMEOUT"
        pending.refresh_from_db()
        assert pending.status == PaymentStatus.PENDING

    def test_payment_from_another_order(self, live_orchestrator, live_paid_order, live_restaurant):
        other = OrderPaymentFactory(
            order=OrderFactory(restaurant=live_restaurant), additional_pending=True
        )

        result = live_orchestrator.capture_additional_payment(live_paid_order.id, other.id)

        assert result.error_code == "PAYMENT_NOT_FOUND"

    def test_already_paid_payment(self, live_orchestrator, live_paid_order, mock_gateway):
        paid = live_paid_order.payments.get()

        result = live_orchestrator.capture_additional_payment(live_paid_order.id, paid.id)

        assert result.error_code == "INVALID_STATE_TRANSITION"
        mock_gateway.capture.assert_not_called()

    def test_webhook_marked_paid_first(self, live_orchestrator, live_paid_order, mock_gateway):
        pending = OrderPaymentFactory(
            order=live_paid_order, additional_pending=True, amount=Decimal("5.00"), payment_id="pi_mock123"
        )
        apply_successful_payment(
            live_paid_order,
            "pi_mock123",
            Decimal("5.00"),
            PaymentType.ADDITIONAL,
            "pi_mock123",
            {"status": "succeeded"},
        )
        new_items = [{"id": 1, "name": "Spam Musubi", "price": "5.00", "quantity": 3}]

        result = live_orchestrator.capture_additional_payment(
            live_paid_order.id, pending.id, items=new_items
        )

        assert result.success, result.error
        mock_gateway.capture.assert_not_called()
        pending.refresh_from_db()
        assert pending.status == PaymentStatus.PAID
        live_paid_order.refresh_from_db()
        assert live_paid_order.items == new_items
        assert live_paid_order.total_paid == Decimal("15.00")

    def test_paid_payment_with_other_reference_conflicts(self, live_orchestrator, live_paid_order, mock_gateway):
        paid = OrderPaymentFactory(
            order=live_paid_order, payment_type=PaymentType.ADDITIONAL, payment_id="pi_mock123"
        )

        result = live_orchestrator.capture_additional_payment(
            live_paid_order.id, paid.id, gateway_reference="pi_somebody_else"
        )

        assert result.error_code == "INVALID_STATE_TRANSITION"
        mock_gateway.capture.assert_not_called()

    def test_failed_payment_conflicts(self, live_orchestrator, live_paid_order, mock_gateway):
        failed = OrderPaymentFactory(
            order=live_paid_order, additional_pending=True, status=PaymentStatus.FAILED
        )

        result = live_orchestrator.capture_additional_payment(live_paid_order.id, failed.id)

        assert result.error_code == "INVALID_STATE_TRANSITION"
        mock_gateway.capture.assert_not_called()


# =============================================================================
# create_refund
# =============================================================================


@pytest.mark.django_db
class TestCreateRefund:
    def test_partial_refund(self, orchestrator, paid_order):
        result = orchestrator.create_refund(
            paid_order.id,
            Decimal("4.00"),
            reason="Cold food",
            refunded_items=[{"id": 1, "name": "Spam Musubi", "quantity": 1}],
        )

        assert result.success, result.error
        refund = result.data
        assert refund.payment_type == PaymentType.REFUND
        assert refund.status == PaymentStatus.COMPLETED
        assert refund.amount == Decimal("4.00")
        assert refund.description == "Cold food"
        assert refund.payment_id.startswith("test_refund_")
        assert refund.refunded_items == [{"id": 1, "name": "Spam Musubi", "quantity": 1}]
        assert refund.payment_details["refunded_items"] == refund.refunded_items
        paid_order.refresh_from_db()
        assert paid_order.status == OrderStatus.PARTIALLY_REFUNDED
        assert paid_order.payment_status == OrderPaymentStatus.PARTIALLY_REFUNDED
        assert paid_order.net_amount == Decimal("6.00")

    def test_full_refund(self, orchestrator, paid_order):
        result = orchestrator.create_refund(paid_order.id, Decimal("10.00"))

        assert result.success
        assert result.data.description == "Refund"
        paid_order.refresh_from_db()
        assert paid_order.status == OrderStatus.REFUNDED
        assert paid_order.payment_status == OrderPaymentStatus.REFUNDED

    def test_sequential_refunds_reach_refunded(self, orchestrator, paid_order):
        orchestrator.create_refund(paid_order.id, Decimal("3.00"))
        orchestrator.create_refund(paid_order.id, Decimal("7.00"))

        paid_order.refresh_from_db()
        assert paid_order.status == OrderStatus.REFUNDED
        assert paid_order.net_amount == Decimal("0.00")

    @pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-1.00")])
    def test_non_positive_amount_rejected(self, orchestrator, paid_order, amount):
        result = orchestrator.create_refund(paid_order.id, amount)

        assert not result.success
        assert result.error_code == "VALIDATION_ERROR"

    def test_above_net_amount_rejected_outside_test_mode(self, live_orchestrator, live_paid_order, mock_gateway):
        result = live_orchestrator.create_refund(live_paid_order.id, Decimal("10.01"))

        assert not result.success
        assert result.error == "Invalid refund amount. Maximum refundable: 10.00"
        assert result.details["max_refundable"] == "10.00"
        mock_gateway.refund.assert_not_called()

    def test_above_net_amount_allowed_in_test_mode(self, orchestrator, paid_order):
        result = orchestrator.create_refund(paid_order.id, Decimal("12.00"))

        assert result.success

    def test_test_mode_synthesizes_initial_payment(self, orchestrator, order):
        result = orchestrator.create_refund(order.id, Decimal("5.00"))

        assert result.success, result.error
        initial = order.payments.get(payment_type=PaymentType.INITIAL)
        assert initial.amount == Decimal("10.00")
        assert initial.status == PaymentStatus.PAID
        assert initial.payment_id.startswith("pi_test_")
        assert initial.transaction_id == initial.payment_id
        order.refresh_from_db()
        assert order.total_paid == Decimal("10.00")
        assert order.total_refunded == Decimal("5.00")
        assert order.status == OrderStatus.PARTIALLY_REFUNDED

    def test_production_without_initial_payment(self, live_orchestrator, live_restaurant, mock_gateway):
        order = OrderFactory(restaurant=live_restaurant)
        OrderPaymentFactory(
            order=order, payment_type=PaymentType.ADDITIONAL, amount=Decimal("10.00")
        )

        result = live_orchestrator.create_refund(order.id, Decimal("5.00"))

        assert not result.success
        assert result.error == "No initial payment found"
        assert result.error_code == "PAYMENT_NOT_FOUND"
        mock_gateway.refund.assert_not_called()
        assert not order.payments.filter(payment_type=PaymentType.INITIAL).exists()

    def test_adopts_order_payment_id(self, live_orchestrator, live_restaurant, mock_gateway):
        order = OrderFactory(restaurant=live_restaurant, paid=True, payment_id="pi_from_order")
        initial = OrderPaymentFactory(order=order, payment_id=None, transaction_id=None)

        live_orchestrator.create_refund(order.id, Decimal("5.00"), reason="duplicate")

        mock_gateway.refund.assert_called_once()
        assert mock_gateway.refund.call_args.args[0] == "pi_from_order"
        initial.refresh_from_db()
        assert initial.payment_id == "pi_from_order"

    def test_redirect_gateway_refunds_capture_id(self, live_orchestrator, live_paid_order, mock_gateway):
        mock_gateway.refund_reference_field = "transaction_id"
        initial = live_paid_order.payments.get()
        initial.transaction_id = "CAPTURE-123"
        initial.save()

        live_orchestrator.create_refund(live_paid_order.id, Decimal("5.00"))

        assert mock_gateway.refund.call_args.args[0] == "CAPTURE-123"

    def test_gateway_failure_writes_no_refund(self, live_orchestrator, live_paid_order, mock_gateway):
        mock_gateway.refund.side_effect = GatewayCardDeclinedError("Charge already refunded")

        result = live_orchestrator.create_refund(live_paid_order.id, Decimal("5.00"))

        assert not result.success
        assert result.error == "Charge already refunded"
        assert not live_paid_order.payments.filter(payment_type=PaymentType.REFUND).exists()
        live_paid_order.refresh_from_db()
        assert live_paid_order.status == OrderStatus.PAID

    def test_live_card_gateway_uses_restaurant_key(self, live_restaurant, live_paid_order, notifier):
        orchestrator = PaymentOrchestrator.for_restaurant(live_restaurant, notifier=notifier)

        with patch("stripe.Refund") as refund_api:
            refund_api.create.return_value.id = "re_live123"
            refund_api.create.return_value.status = "succeeded"
            result = orchestrator.create_refund(live_paid_order.id, Decimal("2.50"))

        assert result.success, result.error
        kwargs = refund_api.create.call_args.kwargs
        assert kwargs["api_key"] == "sk_test_restaurant_key"
        assert kwargs["payment_intent"] == "pi_live_initial"
        assert kwargs["amount"] == 250


# =============================================================================
# add_store_credit / adjust_total
# =============================================================================


@pytest.mark.django_db
class TestStoreCredit:
    def test_issues_credit_and_refund_entry(self, orchestrator, paid_order):
        result = orchestrator.add_store_credit(paid_order.id, Decimal("3.00"), "Late delivery")

        assert result.success
        credit = result.data.store_credit
        assert credit.customer_email == paid_order.contact_email
        assert credit.status == "active"
        payment = result.data.payment
        assert payment.payment_type == PaymentType.REFUND
        assert payment.payment_method == PaymentMethod.STORE_CREDIT
        assert payment.status == PaymentStatus.COMPLETED
        assert payment.description == "Store credit: Late delivery"
        assert paid_order.total_refunded == Decimal("3.00")

    def test_explicit_email(self, orchestrator, paid_order):
        result = orchestrator.add_store_credit(
            paid_order.id, Decimal("3.00"), "Late", email="other@example.com"
        )

        assert result.data.store_credit.customer_email == "other@example.com"

    def test_non_positive_amount_rejected(self, orchestrator, paid_order):
        result = orchestrator.add_store_credit(paid_order.id, Decimal("0"), "Nothing")

        assert result.error == "Invalid amount for store credit"
        assert not StoreCredit.objects.exists()

    def test_misconfigured_tenant_can_still_issue_credit(self, db, notifier):
        restaurant = RestaurantFactory(unconfigured=True)
        restaurant.admin_settings = {"payment_gateway": {"test_mode": False}}
        restaurant.save()
        order = OrderFactory(restaurant=restaurant)
        orchestrator = PaymentOrchestrator.for_restaurant(restaurant, notifier=notifier)

        result = orchestrator.add_store_credit(order.id, Decimal("1.00"), "Goodwill")

        assert result.success


@pytest.mark.django_db
class TestAdjustTotal:
    def test_decrease_records_refund(self, orchestrator, db, restaurant):
        order = OrderFactory(restaurant=restaurant, total=Decimal("50.00"))

        result = orchestrator.adjust_total(order.id, Decimal("30.00"), "Removed dessert")

        assert result.success
        assert result.data.order.total == Decimal("30.00")
        payment = result.data.payment
        assert payment.payment_type == PaymentType.REFUND
        assert payment.amount == Decimal("20.00")
        assert payment.payment_method == PaymentMethod.ADJUSTMENT
        assert payment.description == "Total adjusted: Removed dessert"

    def test_increase_records_additional(self, orchestrator, db, restaurant):
        order = OrderFactory(restaurant=restaurant, total=Decimal("50.00"))

        result = orchestrator.adjust_total(order.id, Decimal("70.00"), "Added drinks")

        assert result.data.payment.payment_type == PaymentType.ADDITIONAL
        assert result.data.payment.amount == Decimal("20.00")
        order.refresh_from_db()
        assert order.total == Decimal("70.00")

    def test_negative_total_rejected(self, orchestrator, order):
        result = orchestrator.adjust_total(order.id, Decimal("-1.00"), "Oops")

        assert result.error == "New total cannot be negative"
        order.refresh_from_db()
        assert order.total == Decimal("10.00")


# =============================================================================
# create_payment_link
# =============================================================================


@pytest.mark.django_db
class TestCreatePaymentLink:
    items = [
        {"id": 1, "name": "Spam Musubi", "price": "5.00", "quantity": 2},
        {"id": 2, "name": "Shave Ice", "price": "4.50", "quantity": 1},
    ]

    def test_test_mode_link(self, orchestrator, order, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True):
            result = orchestrator.create_payment_link(order.id, self.items, email="guest@example.com")

        assert result.success, result.error
        payment = result.data.payment
        assert payment.amount == Decimal("14.50")
        assert payment.status == PaymentStatus.PENDING
        assert payment.payment_method == PaymentMethod.PAYMENT_LINK
        assert payment.description == "Payment link: 2x Spam Musubi, 1x Shave Ice"
        assert payment.payment_details["payment_link_url"] == result.data.payment_link_url
        assert payment.payment_details["test_mode"] is True
        assert result.data.payment_link_url.startswith("https://example.com/test-payment/")

    def test_contact_required(self, orchestrator, order):
        result = orchestrator.create_payment_link(order.id, self.items)

        assert result.error == "Email or phone number is required"

    def test_zero_amount_rejected(self, orchestrator, order):
        result = orchestrator.create_payment_link(
            order.id, [{"id": 1, "name": "Free", "price": "0", "quantity": 1}], phone="+1671"
        )

        assert result.error == "Invalid payment amount"

    def test_zero_quantity_rejected_before_gateway(self, live_orchestrator, live_paid_order, mock_gateway):
        items = [
            {"id": 1, "name": "Spam Musubi", "price": "10.00", "quantity": 0},
            {"id": 2, "name": "Shave Ice", "price": "5.00", "quantity": 1},
        ]

        result = live_orchestrator.create_payment_link(live_paid_order.id, items, email="a@example.com")

        assert result.error_code == "VALIDATION_ERROR"
        assert result.error == "Invalid quantity for item Spam Musubi"
        mock_gateway.create_payment_link.assert_not_called()

    def test_negative_price_rejected(self, live_orchestrator, live_paid_order, mock_gateway):
        items = [
            {"id": 1, "name": "Discount", "price": "-20.00", "quantity": 1},
            {"id": 2, "name": "Loco Moco", "price": "25.00", "quantity": 1},
        ]

        result = live_orchestrator.create_payment_link(live_paid_order.id, items, email="a@example.com")

        assert result.error_code == "VALIDATION_ERROR"
        assert result.error == "Invalid price for item Discount"
        mock_gateway.create_payment_link.assert_not_called()

    def test_gateway_line_items_match_recorded_amount(self, live_orchestrator, live_paid_order, mock_gateway):
        items = [
            {"id": 1, "name": "Spam Musubi", "price": 5, "quantity": "2"},
            {"id": 2, "name": "Shave Ice", "price": "4.5", "quantity": 1},
        ]

        result = live_orchestrator.create_payment_link(live_paid_order.id, items, email="a@example.com")

        assert result.success, result.error
        amount, line_items = mock_gateway.create_payment_link.call_args.args[:2]
        assert amount == result.data.payment.amount == Decimal("14.50")
        assert [(item["price"], item["quantity"]) for item in line_items] == [("5.00", 2), ("4.50", 1)]
        assert sum(Decimal(item["price"]) * item["quantity"] for item in line_items) == amount

    def test_default_urls_and_metadata(self, live_orchestrator, live_paid_order, mock_gateway, settings):
        settings.FRONTEND_URL = "https://orders.example.com"

        live_orchestrator.create_payment_link(live_paid_order.id, self.items, email="a@example.com")

        kwargs = mock_gateway.create_payment_link.call_args.kwargs
        assert kwargs["success_url"] == (
            "https://orders.example.com/payment-success?session_id={CHECKOUT_SESSION_ID}"
        )
        assert kwargs["cancel_url"] == "https://orders.example.com/payment-cancel"
        assert kwargs["customer_email"] == "a@example.com"
        assert kwargs["metadata"] == {
            "order_id": live_paid_order.id,
            "restaurant_id": live_paid_order.restaurant_id,
            "payment_type": "additional",
            "test_mode": False,
        }

    def test_tenant_urls(self, db, mock_gateway, notifier):
        restaurant = RestaurantFactory(live_stripe=True)
        restaurant.admin_settings["payment_gateway"]["success_url"] = "https://r.example/ok"
        restaurant.admin_settings["payment_gateway"]["cancel_url"] = "https://r.example/no"
        restaurant.save()
        order = OrderFactory(restaurant=restaurant)
        orchestrator = PaymentOrchestrator.for_restaurant(
            restaurant, gateway=mock_gateway, notifier=notifier
        )

        orchestrator.create_payment_link(order.id, self.items, phone="+16715550123")

        kwargs = mock_gateway.create_payment_link.call_args.kwargs
        assert kwargs["success_url"] == "https://r.example/ok"
        assert kwargs["cancel_url"] == "https://r.example/no"

    def test_notifications_sent_after_commit(
        self, orchestrator, order, notifier, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks(execute=False) as callbacks:
            result = orchestrator.create_payment_link(
                order.id, self.items, email="guest@example.com", phone="+16715550123"
            )
            assert notifier.sent == []

        for callback in callbacks:
            callback()

        channels = {message["channel"]: message for message in notifier.sent}
        assert set(channels) == {"email", "sms"}
        assert channels["email"]["recipient"] == "guest@example.com"
        assert channels["email"]["template"] == "default_payment_link"
        assert channels["sms"]["recipient"] == "+16715550123"
        assert channels["sms"]["context"]["url"] == result.data.payment_link_url
        assert channels["sms"]["context"]["restaurant"] == order.restaurant.name

    def test_tenant_templates(self, db, notifier, django_capture_on_commit_callbacks):
        restaurant = RestaurantFactory()
        restaurant.admin_settings["sms_templates"] = {"payment_link": "Pay %(url)s"}
        restaurant.admin_settings["email_templates"] = {"payment_link": "fancy_link"}
        restaurant.save()
        order = OrderFactory(restaurant=restaurant)
        orchestrator = PaymentOrchestrator.for_restaurant(restaurant, notifier=notifier)

        with django_capture_on_commit_callbacks(execute=True):
            orchestrator.create_payment_link(order.id, self.items, email="a@b.co", phone="+1")

        templates = {m["channel"]: m["template"] for m in notifier.sent}
        assert templates == {"email": "fancy_link", "sms": "Pay %(url)s"}

    def test_notifier_failure_does_not_fail_command(
        self, orchestrator, order, notifier, django_capture_on_commit_callbacks
    ):
        def explode(*args, **kwargs):
            raise ConnectionError("broker down")

        notifier.notify = explode

        with django_capture_on_commit_callbacks(execute=True):
            result = orchestrator.create_payment_link(order.id, self.items, email="guest@example.com")

        assert result.success
        assert order.payments.filter(payment_method=PaymentMethod.PAYMENT_LINK).exists()


# =============================================================================
# list_payments
# =============================================================================


@pytest.mark.django_db
class TestListPayments:
    def test_totals(self, orchestrator, paid_order):
        OrderPaymentFactory(order=paid_order, refund=True, amount=Decimal("2.50"))
        OrderPaymentFactory(order=paid_order, additional_pending=True, amount=Decimal("99.00"))

        result = orchestrator.list_payments(paid_order.id)

        assert result.success
        assert len(result.data.payments) == 3
        assert result.data.summary.total_paid == Decimal("10.00")
        assert result.data.summary.total_refunded == Decimal("2.50")
        assert result.data.summary.net_amount == Decimal("7.50")

    def test_temporary_order_id(self, orchestrator):
        result = orchestrator.list_payments("temp-1699999999")

        assert result.success
        assert result.data.payments == []
        assert result.data.summary.net_amount == Decimal("0.00")

    def test_unknown_order(self, orchestrator, db):
        assert orchestrator.list_payments(424242).error_code == "ORDER_NOT_FOUND"


# =============================================================================
# Tenant scoping
# =============================================================================


@pytest.mark.django_db
class TestTenantScoping:
    def test_cannot_touch_another_restaurants_order(self, orchestrator, db):
        foreign_order = OrderFactory(restaurant=RestaurantFactory())
        OrderPaymentFactory(order=foreign_order)

        refund = orchestrator.create_refund(foreign_order.id, Decimal("1.00"))
        listing = orchestrator.list_payments(foreign_order.id)

        assert refund.error_code == "ORDER_NOT_FOUND"
        assert listing.error_code == "ORDER_NOT_FOUND"
        assert not foreign_order.payments.filter(payment_type=PaymentType.REFUND).exists()

    def test_live_tenant_without_credentials(self, db, notifier):
        restaurant = RestaurantFactory(admin_settings={"payment_gateway": {"payment_processor": "stripe"}})
        order = OrderFactory(restaurant=restaurant)
        OrderPaymentFactory(order=order)
        orchestrator = PaymentOrchestrator.for_restaurant(restaurant, notifier=notifier)

        result = orchestrator.create_refund(order.id, Decimal("1.00"))

        assert result.error_code == "CONFIGURATION_ERROR"
        assert not order.payments.filter(payment_type=PaymentType.REFUND).exists()
