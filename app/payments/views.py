"""
DRF views for order payments.

This module provides the thin HTTP layer over PaymentOrchestrator:
request validation with serializers, order access checks, and mapping
of ServiceResult error codes to HTTP statuses.

Related files:
    - services/payment_orchestrator.py: PaymentOrchestrator
    - serializers.py: Request/response serializers
    - orders/urls.py: URL routing

Endpoints (prefixed with /api/v1/orders/<order_id>/):
    GET  payments/                    - Ledger entries and totals
    POST payments/additional/         - Create an additional payment intent
    POST payments/additional/capture/ - Capture an additional payment
    POST payments/refund/             - Refund against the initial payment
    POST payments/payment-link/       - Create and send a payment link
    POST store-credit/                - Issue store credit
    POST adjust-total/                - Adjust the order total

Security:
    - All endpoints require authentication
    - Staff can access any order; customers only their own
"""

from __future__ import annotations

import logging

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.exceptions import NotFound, PermissionDenied
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.services import ServiceResult
from orders.models import Order
from payments.serializers import (
    AdditionalPaymentRequestSerializer,
    AdjustTotalRequestSerializer,
    CaptureAdditionalPaymentRequestSerializer,
    LedgerSerializer,
    OrderPaymentSerializer,
    PaymentLinkRequestSerializer,
    RefundRequestSerializer,
    StoreCreditRequestSerializer,
    StoreCreditSerializer,
)
from payments.services import OrderLedger, PaymentOrchestrator
from payments.services.payment_orchestrator import TEMPORARY_ORDER_PREFIX

logger = logging.getLogger(__name__)


# =============================================================================
# Error Mapping
# =============================================================================

ERROR_STATUS_CODES = {
    "VALIDATION_ERROR": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "CONTACT_REQUIRED": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "INVALID_WEBHOOK_PAYLOAD": status.HTTP_400_BAD_REQUEST,
    "SIGNATURE_ERROR": status.HTTP_400_BAD_REQUEST,
    "PERMISSION_DENIED": status.HTTP_403_FORBIDDEN,
    "INVALID_STATE_TRANSITION": status.HTTP_409_CONFLICT,
    "CONFIGURATION_ERROR": status.HTTP_503_SERVICE_UNAVAILABLE,
    "PAYMENT_PROCESSING_ERROR": status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def http_status_for(error_code: str | None) -> int:
    """
    HTTP status for a ServiceResult error code.

    *_NOT_FOUND codes map to 404; gateway failures (declines, invalid
    requests, timeouts) to 422 so the processor's message is shown.
    """
    if error_code in ERROR_STATUS_CODES:
        return ERROR_STATUS_CODES[error_code]
    if error_code and error_code.endswith("NOT_FOUND"):
        return status.HTTP_404_NOT_FOUND
    return status.HTTP_422_UNPROCESSABLE_ENTITY


def error_response(result: ServiceResult) -> Response:
    return Response(result.to_response(), status=http_status_for(result.error_code))


# =============================================================================
# Base View
# =============================================================================


class OrderPaymentAPIView(APIView):
    """
    Base view for commands against one order.

    Resolves the order from the URL, enforces access, and builds the
    orchestrator for the order's restaurant.
    """

    permission_classes = [IsAuthenticated]

    def get_order(self, order_id) -> Order:
        try:
            order = Order.objects.select_related("restaurant").filter(pk=order_id).first()
        except (TypeError, ValueError):
            order = None
        if order is None:
            raise NotFound("Order not found")

        user = self.request.user
        if not (user.is_staff or (order.user_id and order.user_id == user.pk)):
            logger.warning(
                "Order payment access denied",
                extra={"order_id": order.pk, "user_id": user.pk},
            )
            raise PermissionDenied("Forbidden")
        return order

    def get_orchestrator(self, order: Order) -> PaymentOrchestrator:
        return PaymentOrchestrator.for_restaurant(order.restaurant)

    def validated(self, serializer_class) -> dict:
        serializer = serializer_class(data=self.request.data)
        serializer.is_valid(raise_exception=True)
        return serializer.validated_data


# =============================================================================
# Ledger
# =============================================================================


class OrderPaymentsView(OrderPaymentAPIView):
    """
    List an order's payment entries with totals.

    GET /api/v1/orders/<order_id>/payments/

    Orders not yet saved by the frontend ("temp-..." ids) return an
    empty ledger.
    """

    @extend_schema(responses=LedgerSerializer)
    def get(self, request, order_id):
        if str(order_id).startswith(TEMPORARY_ORDER_PREFIX):
            return Response(LedgerSerializer(OrderLedger()).data)

        order = self.get_order(order_id)
        result = self.get_orchestrator(order).list_payments(order.pk)
        if not result.success:
            return error_response(result)
        return Response(LedgerSerializer(result.data).data)


# =============================================================================
# Additional Payments
# =============================================================================


class AdditionalPaymentView(OrderPaymentAPIView):
    """
    Charge for items added to an order.

    POST /api/v1/orders/<order_id>/payments/additional/

    Returns the pending payment plus client_secret/payment_id (card
    gateway) or order_id (redirect gateway) for client-side completion.
    """

    @extend_schema(request=AdditionalPaymentRequestSerializer)
    def post(self, request, order_id):
        order = self.get_order(order_id)
        data = self.validated(AdditionalPaymentRequestSerializer)

        result = self.get_orchestrator(order).create_additional_payment(
            order.pk, data["items"]
        )
        if not result.success:
            return error_response(result)

        intent = result.data
        return Response(
            {
                "payment": OrderPaymentSerializer(intent.payment).data,
                "client_secret": intent.client_secret,
                "payment_id": intent.payment_id,
                "order_id": intent.order_id,
            },
            status=status.HTTP_201_CREATED,
        )


class CaptureAdditionalPaymentView(OrderPaymentAPIView):
    """POST /api/v1/orders/<order_id>/payments/additional/capture/"""

    @extend_schema(request=CaptureAdditionalPaymentRequestSerializer)
    def post(self, request, order_id):
        order = self.get_order(order_id)
        data = self.validated(CaptureAdditionalPaymentRequestSerializer)

        result = self.get_orchestrator(order).capture_additional_payment(
            order.pk,
            data["payment_id"],
            gateway_reference=data["gateway_reference"],
            items=data.get("items"),
        )
        if not result.success:
            return error_response(result)
        return Response({"payment": OrderPaymentSerializer(result.data).data})


# =============================================================================
# Refunds and Adjustments
# =============================================================================


class RefundView(OrderPaymentAPIView):
    """
    Refund part or all of an order.

    POST /api/v1/orders/<order_id>/payments/refund/
    """

    @extend_schema(request=RefundRequestSerializer)
    def post(self, request, order_id):
        order = self.get_order(order_id)
        data = self.validated(RefundRequestSerializer)

        result = self.get_orchestrator(order).create_refund(
            order.pk,
            data["amount"],
            reason=data.get("reason"),
            description=data.get("description"),
            refunded_items=data.get("refunded_items"),
        )
        if not result.success:
            return error_response(result)
        return Response(
            {"refund": OrderPaymentSerializer(result.data).data},
            status=status.HTTP_201_CREATED,
        )


class StoreCreditView(OrderPaymentAPIView):
    """POST /api/v1/orders/<order_id>/store-credit/"""

    @extend_schema(request=StoreCreditRequestSerializer)
    def post(self, request, order_id):
        order = self.get_order(order_id)
        data = self.validated(StoreCreditRequestSerializer)

        result = self.get_orchestrator(order).add_store_credit(
            order.pk,
            data["amount"],
            reason=data.get("reason"),
            email=data.get("email") or None,
        )
        if not result.success:
            return error_response(result)
        return Response(
            {
                "store_credit": StoreCreditSerializer(result.data.store_credit).data,
                "payment": OrderPaymentSerializer(result.data.payment).data,
            },
            status=status.HTTP_201_CREATED,
        )


class AdjustTotalView(OrderPaymentAPIView):
    """POST /api/v1/orders/<order_id>/adjust-total/"""

    @extend_schema(request=AdjustTotalRequestSerializer)
    def post(self, request, order_id):
        order = self.get_order(order_id)
        data = self.validated(AdjustTotalRequestSerializer)

        result = self.get_orchestrator(order).adjust_total(
            order.pk, data["new_total"], reason=data.get("reason")
        )
        if not result.success:
            return error_response(result)

        adjusted = result.data
        return Response(
            {
                "order": {"id": adjusted.order.pk, "total": str(adjusted.order.total)},
                "payment": OrderPaymentSerializer(adjusted.payment).data,
            }
        )


# =============================================================================
# Payment Links
# =============================================================================


class PaymentLinkView(OrderPaymentAPIView):
    """
    Create a hosted payment page and send it to the customer.

    POST /api/v1/orders/<order_id>/payments/payment-link/
    """

    @extend_schema(request=PaymentLinkRequestSerializer)
    def post(self, request, order_id):
        order = self.get_order(order_id)
        data = self.validated(PaymentLinkRequestSerializer)

        result = self.get_orchestrator(order).create_payment_link(
            order.pk,
            data["items"],
            email=data.get("email") or None,
            phone=data.get("phone") or None,
        )
        if not result.success:
            return error_response(result)
        return Response(
            {
                "payment": OrderPaymentSerializer(result.data.payment).data,
                "payment_link_url": result.data.payment_link_url,
            },
            status=status.HTTP_201_CREATED,
        )
