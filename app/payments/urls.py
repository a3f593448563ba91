"""
URL configuration for the payments app.

Routes:
    - POST /webhooks/<restaurant_id>/ - Gateway webhook endpoint

All routes are prefixed with /api/v1/payments/ when included in the main URLconf.
Order payment commands live under /api/v1/orders/ (see orders/urls.py).

Usage:
    # In config/urls.py
    api_v1_patterns = [
        path("payments/", include("payments.urls")),
    ]
"""

from django.urls import path

from payments.webhooks.views import gateway_webhook

app_name = "payments"

urlpatterns = [
    path("webhooks/<int:restaurant_id>/", gateway_webhook, name="gateway_webhook"),
]
