"""
Webhook reconciliation for gateway events.

WebhookReconciler is the entry point for signed gateway webhooks. It:
1. Resolves the tenant the endpoint was called for
2. Verifies the signature with that tenant's own webhook secret
3. Records the event once (unique gateway_event_id)
4. Applies it through the handler registry

Verification failures never touch the database. Handler outcomes are
stored on the WebhookEvent; failed events are retried by the
retry_failed_webhook_events task.

Usage:
    from payments.webhooks import WebhookReconciler

    result = WebhookReconciler().process(restaurant_id, request.body, signature)
    if not result.success:
        return Response(result.to_response(), status=...)
"""

from __future__ import annotations

from typing import Any

from core.exceptions import BaseApplicationError, ConfigurationError, NotFoundError
from core.services import BaseService, ServiceResult
from payments.adapters import CardGateway
from payments.models import WebhookEvent
from payments.state_machines import WebhookEventStatus
from payments.webhooks.handlers import dispatch_webhook
from tenants.config import TenantGatewayConfig
from tenants.models import Restaurant

class WebhookReconciler(BaseService):
    """
    Verifies, records and applies gateway webhook events.

    Duplicate deliveries of a processed event are acknowledged without
    reprocessing.
    """

    def process(
        self, restaurant_id: Any, payload: bytes, signature: str | None
    ) -> ServiceResult[WebhookEvent]:
        """
        Handle one webhook delivery.

        Args:
            restaurant_id: Tenant the webhook endpoint was called for
            payload: Raw request body (verified byte-for-byte)
            signature: Signature header value

        Returns:
            ServiceResult containing the WebhookEvent, or an error with
            code RESTAURANT_NOT_FOUND, CONFIGURATION_ERROR,
            SIGNATURE_ERROR or INVALID_WEBHOOK_PAYLOAD
        """
        log = self.get_logger()
        log_context = {"restaurant_id": str(restaurant_id)}

        try:
            restaurant = self._get_restaurant(restaurant_id)
            config = TenantGatewayConfig.from_restaurant(restaurant)
            if not config.webhook_secret:
                raise ConfigurationError(
                    "Webhook secret is not configured for this restaurant",
                    details={"restaurant_id": restaurant.pk},
                )
            event_data = CardGateway.verify_webhook(
                payload, signature or "", config.webhook_secret
            )
        except BaseApplicationError as e:
            log.warning(
                f"Webhook rejected: {e.message}",
                extra={**log_context, "error_code": e.error_code},
            )
            return ServiceResult.from_exception(e)

        gateway_event_id = event_data.get("id")
        event_type = event_data.get("type")
        if not gateway_event_id or not event_type:
            log.warning("Webhook missing required fields", extra=log_context)
            return ServiceResult.failure(
                "Invalid event",
                error_code="INVALID_WEBHOOK_PAYLOAD",
            )

        log_context.update(gateway_event_id=gateway_event_id, event_type=event_type)
        log.info(f"Received webhook: {event_type}", extra=log_context)

        webhook_event, created = WebhookEvent.objects.get_or_create(
            gateway_event_id=gateway_event_id,
            defaults={
                "restaurant": restaurant,
                "event_type": event_type,
                "payload": event_data,
                "status": WebhookEventStatus.PENDING,
            },
        )

        if not created and webhook_event.is_processed:
            log.info("Webhook already processed, skipping", extra=log_context)
            return ServiceResult.success(webhook_event)

        return ServiceResult.success(self.apply(webhook_event))

    @staticmethod
    def _get_restaurant(restaurant_id: Any) -> Restaurant:
        try:
            restaurant = Restaurant.objects.filter(pk=restaurant_id).first()
        except (TypeError, ValueError):
            restaurant = None
        if restaurant is None:
            raise NotFoundError(
                "Restaurant not found",
                error_code="RESTAURANT_NOT_FOUND",
                details={"restaurant_id": str(restaurant_id)},
            )
        return restaurant

    @classmethod
    def apply(cls, webhook_event: WebhookEvent) -> WebhookEvent:
        """
        Run the event's handler and record the outcome on the event.

        Handler failures and unexpected exceptions mark the event failed
        (with the error message) and are not raised.
        """
        log = cls.get_logger()
        log_context = {
            "webhook_event_id": str(webhook_event.id),
            "gateway_event_id": webhook_event.gateway_event_id,
            "event_type": webhook_event.event_type,
        }

        webhook_event.mark_processing()
        webhook_event.save(update_fields=["status", "retry_count", "updated_at"])

        try:
            result = dispatch_webhook(webhook_event)
        except Exception as e:
            error_msg = f"{type(e).__name__}: {e}"
            log.exception(
                "Webhook processing failed with exception",
                extra={**log_context, "error": error_msg},
            )
            webhook_event.mark_failed(error_msg)
            webhook_event.save(update_fields=["status", "error_message", "updated_at"])
            return webhook_event

        if result.success:
            webhook_event.mark_processed()
            webhook_event.save(
                update_fields=["status", "processed_at", "error_message", "updated_at"]
            )
            log.info("Webhook processed successfully", extra=log_context)
        else:
            error_msg = result.error or "Handler returned failure"
            webhook_event.mark_failed(error_msg)
            webhook_event.save(update_fields=["status", "error_message", "updated_at"])
            log.warning(
                f"Webhook handler failed: {error_msg}",
                extra={**log_context, "error_code": result.error_code},
            )

        return webhook_event
