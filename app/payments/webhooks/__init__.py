"""
Webhook handling for gateway payment events.

Webhooks are verified with the originating restaurant's secret, stored
idempotently, and applied through the handler registry. Failed events
are retried by Celery tasks.

Usage:
    # In urls.py
    from payments.webhooks.views import gateway_webhook

    urlpatterns = [
        path("webhooks/<int:restaurant_id>/", gateway_webhook, name="gateway_webhook"),
    ]
"""

from payments.webhooks.handlers import dispatch_webhook, register_handler
from payments.webhooks.reconciler import WebhookReconciler

__all__ = [
    "WebhookReconciler",
    "dispatch_webhook",
    "register_handler",
]
