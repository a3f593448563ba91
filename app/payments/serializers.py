"""
DRF serializers for payments app.

This module provides serializers for:
- Ledger entries, store credit and ledger totals (responses)
- Payment command request bodies

Related files:
    - models: OrderPayment, StoreCredit
    - views.py: Order payment API views

Usage:
    serializer = RefundRequestSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    amount = serializer.validated_data["amount"]
"""

from __future__ import annotations

from rest_framework import serializers

from payments.models import OrderPayment, StoreCredit

MONEY = {"max_digits": 10, "decimal_places": 2}


# =============================================================================
# Response Serializers
# =============================================================================


class OrderPaymentSerializer(serializers.ModelSerializer):
    """
    Ledger entry serializer for API responses.

    Fields:
        id: Entry ID
        payment_type: initial, additional or refund
        amount: Amount in the restaurant's currency
        payment_method: Processor name, store_credit, adjustment or payment_link
        status: pending, paid, completed or failed
        transaction_id/payment_id: Gateway identifiers
        payment_details: Gateway payload
        refunded_items: Items covered by a refund
        description: Human-readable description
        created_at: Creation timestamp
    """

    class Meta:
        model = OrderPayment
        fields = [
            "id",
            "order_id",
            "payment_type",
            "amount",
            "payment_method",
            "status",
            "transaction_id",
            "payment_id",
            "payment_details",
            "refunded_items",
            "description",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class StoreCreditSerializer(serializers.ModelSerializer):
    class Meta:
        model = StoreCredit
        fields = [
            "id",
            "order_id",
            "customer_email",
            "amount",
            "reason",
            "status",
            "created_at",
        ]
        read_only_fields = fields


class LedgerSerializer(serializers.Serializer):
    """An order's entries with recomputed totals."""

    payments = OrderPaymentSerializer(many=True)
    total_paid = serializers.DecimalField(source="summary.total_paid", **MONEY)
    total_refunded = serializers.DecimalField(source="summary.total_refunded", **MONEY)
    net_amount = serializers.DecimalField(source="summary.net_amount", **MONEY)


# =============================================================================
# Request Serializers
# =============================================================================


class ItemsField(serializers.ListField):
    """
    Order items as sent by the ordering frontend.

    Each item is a dict with at least id and quantity, usually name and
    price. Items are stored as given; prices and quantities are checked
    by the payment service.
    """

    child = serializers.DictField()

    def to_internal_value(self, data):
        items = super().to_internal_value(data)
        for index, item in enumerate(items):
            if "id" not in item:
                raise serializers.ValidationError(f"Item {index} is missing an id.")
        return items


class AdditionalPaymentRequestSerializer(serializers.Serializer):
    items = ItemsField(allow_empty=False)


class CaptureAdditionalPaymentRequestSerializer(serializers.Serializer):
    """
    Capture request.

    Fields:
        payment_id: Pending additional OrderPayment to capture
        payment_intent_id: Card gateway intent id (defaults to the entry's)
        order_id: Redirect gateway order id (defaults to the entry's)
        items: New item list for the order
    """

    payment_id = serializers.IntegerField()
    payment_intent_id = serializers.CharField(required=False, allow_blank=True)
    order_id = serializers.CharField(required=False, allow_blank=True)
    items = ItemsField(required=False)

    def validate(self, attrs):
        intent_id = attrs.pop("payment_intent_id", None)
        redirect_order_id = attrs.pop("order_id", None)
        attrs["gateway_reference"] = intent_id or redirect_order_id or None
        return attrs


class RefundRequestSerializer(serializers.Serializer):
    amount = serializers.DecimalField(**MONEY)
    reason = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    description = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    refunded_items = serializers.ListField(
        child=serializers.DictField(), required=False, allow_null=True
    )


class StoreCreditRequestSerializer(serializers.Serializer):
    amount = serializers.DecimalField(**MONEY)
    reason = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    email = serializers.EmailField(required=False, allow_blank=True, allow_null=True)


class AdjustTotalRequestSerializer(serializers.Serializer):
    new_total = serializers.DecimalField(**MONEY)
    reason = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class PaymentLinkRequestSerializer(serializers.Serializer):
    """Contact presence is checked by the service (CONTACT_REQUIRED)."""

    items = ItemsField(allow_empty=False)
    email = serializers.EmailField(required=False, allow_blank=True, allow_null=True)
    phone = serializers.CharField(required=False, allow_blank=True, allow_null=True)


__all__ = [
    "AdditionalPaymentRequestSerializer",
    "AdjustTotalRequestSerializer",
    "CaptureAdditionalPaymentRequestSerializer",
    "LedgerSerializer",
    "OrderPaymentSerializer",
    "PaymentLinkRequestSerializer",
    "RefundRequestSerializer",
    "StoreCreditRequestSerializer",
    "StoreCreditSerializer",
]
