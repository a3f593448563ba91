"""
URL configuration for order payment commands.

All routes are prefixed with /api/v1/orders/ when included in the main
URLconf. order_id is a string so temporary frontend ids ("temp-...")
reach the ledger view.
"""

from django.urls import path

from payments import views

app_name = "orders"

urlpatterns = [
    path("<str:order_id>/payments/", views.OrderPaymentsView.as_view(), name="payments"),
    path(
        "<str:order_id>/payments/additional/",
        views.AdditionalPaymentView.as_view(),
        name="additional_payment",
    ),
    path(
        "<str:order_id>/payments/additional/capture/",
        views.CaptureAdditionalPaymentView.as_view(),
        name="capture_additional_payment",
    ),
    path("<str:order_id>/payments/refund/", views.RefundView.as_view(), name="refund"),
    path(
        "<str:order_id>/payments/payment-link/",
        views.PaymentLinkView.as_view(),
        name="payment_link",
    ),
    path("<str:order_id>/store-credit/", views.StoreCreditView.as_view(), name="store_credit"),
    path("<str:order_id>/adjust-total/", views.AdjustTotalView.as_view(), name="adjust_total"),
]
