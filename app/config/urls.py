"""
URL configuration for the Django application.

URL Structure:
    /                              - ReDoc API documentation
    /admin/                        - Django admin interface
    /health/                       - Health check endpoint (for load balancers, Docker)
    /schema/                       - OpenAPI schema (YAML)
    /api/v1/orders/{order_id}/     - Order payment endpoints
        payments/                  - Ledger for the order (GET)
        payments/additional/       - Create an additional payment intent
        payments/additional/capture/ - Capture an additional payment
        payments/refund/           - Refund against the initial payment
        payments/payment-link/     - Create and send a hosted payment link
        store-credit/              - Issue store credit
        adjust-total/              - Adjust the order total
    /api/v1/payments/              - Payment infrastructure endpoints
        webhooks/{restaurant_id}/  - Gateway webhook endpoint (POST)
"""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView

from core.views import health_check

# =============================================================================
# API v1 Routes
# =============================================================================
api_v1_patterns = [
    path("orders/", include("orders.urls")),
    path("payments/", include("payments.urls")),
]

urlpatterns = [
    # Documentation
    path("", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    # Admin
    path("admin/", admin.site.urls),
    # Health check (Docker, Kubernetes, load balancers)
    path("health/", health_check, name="health_check"),
    # API v1
    path("api/v1/", include(api_v1_patterns)),
]

# =============================================================================
# Admin Site Customization
# =============================================================================
admin.site.site_header = "Restaurant Payments Admin"
admin.site.site_title = "Payments Admin"
admin.site.index_title = "Orders, payments and tenants"
