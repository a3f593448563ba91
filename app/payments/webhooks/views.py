"""
Webhook endpoint view for gateway events.

One endpoint per restaurant: the restaurant id in the URL selects the
webhook secret the payload is verified with.

Usage:
    # In urls.py
    from payments.webhooks.views import gateway_webhook

    urlpatterns = [
        path("webhooks/<int:restaurant_id>/", gateway_webhook, name="gateway_webhook"),
    ]
"""

from __future__ import annotations

import logging

from django.http import HttpRequest, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from payments.views import http_status_for
from payments.webhooks.reconciler import WebhookReconciler

logger = logging.getLogger(__name__)


@csrf_exempt
@require_POST
def gateway_webhook(request: HttpRequest, restaurant_id: int) -> JsonResponse:
    """
    Receive a signed gateway webhook for a restaurant.

    Security:
    - Signature verified with the restaurant's own webhook secret
    - CSRF exemption required for external webhooks
    - No user authentication; only POST requests accepted

    Returns:
        JsonResponse with status:
        - 200: Event accepted (new, duplicate or ignored type)
        - 400: Invalid signature or payload
        - 404: Unknown restaurant
        - 503: Restaurant has no webhook secret configured

    Example Stripe-Signature header:
        t=1614556800,v1=xxx,v0=yyy
    """
    result = WebhookReconciler().process(
        restaurant_id,
        request.body,
        request.headers.get("Stripe-Signature", ""),
    )

    if not result.success:
        return JsonResponse(
            result.to_response(), status=http_status_for(result.error_code)
        )

    webhook_event = result.data
    return JsonResponse(
        {
            "success": True,
            "event_id": webhook_event.gateway_event_id,
            "status": webhook_event.status,
        }
    )
