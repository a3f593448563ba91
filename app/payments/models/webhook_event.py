"""
WebhookEvent model for gateway webhook event tracking.

Stores every verified webhook event for idempotent processing and audit
trails. The unique gateway_event_id constraint ensures duplicate
deliveries are detected and never double-count the ledger.

Usage:
    from payments.models import WebhookEvent
    from payments.state_machines import WebhookEventStatus

    event, created = WebhookEvent.objects.get_or_create(
        gateway_event_id="evt_1234567890",
        defaults={
            "restaurant": restaurant,
            "event_type": "payment_intent.succeeded",
            "payload": event_payload,
        },
    )

    if not created and event.is_processed:
        # Duplicate webhook - already processed
        return
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.utils import timezone

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel
from payments.state_machines import WebhookEventStatus


class WebhookEvent(UUIDPrimaryKeyMixin, BaseModel):
    """
    Tracks gateway webhook events for idempotent processing.

    Processing Flow:
        1. Webhook arrives, signature verified with the tenant's secret
        2. Insert/get WebhookEvent with gateway_event_id
        3. If exists and PROCESSED -> acknowledge (duplicate)
        4. Set status to PROCESSING
        5. Route to the registered handler
        6. Set status to PROCESSED or FAILED
        7. If FAILED, the retry task picks it up later

    Fields:
        restaurant: Tenant whose endpoint received the event
        gateway_event_id: Gateway event ID (evt_xxx)
        event_type: Type of webhook event
        payload: Full verified event payload
        status: Processing status
        processed_at: When event was successfully processed
        error_message: Error details if processing failed
        retry_count: Number of processing attempts
    """

    # ==========================================================================
    # Event Identification
    # ==========================================================================

    restaurant = models.ForeignKey(
        "tenants.Restaurant",
        on_delete=models.CASCADE,
        related_name="webhook_events",
    )

    gateway_event_id = models.CharField(
        max_length=255,
        unique=True,
        help_text="Gateway event ID (evt_xxx) - unique constraint for idempotency",
    )

    event_type = models.CharField(
        max_length=100,
        db_index=True,
        help_text="Gateway event type (e.g., 'payment_intent.succeeded')",
    )

    payload = models.JSONField(help_text="Full verified event payload (JSON)")

    # ==========================================================================
    # Processing Status
    # ==========================================================================

    status = models.CharField(
        max_length=20,
        choices=WebhookEventStatus.choices,
        default=WebhookEventStatus.PENDING,
        db_index=True,
    )
    processed_at = models.DateTimeField(null=True, blank=True)
    error_message = models.TextField(null=True, blank=True)
    retry_count = models.PositiveSmallIntegerField(
        default=0,
        help_text="Number of processing attempts",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Webhook Event"
        verbose_name_plural = "Webhook Events"
        indexes = [
            models.Index(fields=["status", "retry_count"], name="payments_we_status_9a4e2d_idx"),
            models.Index(fields=["event_type", "created_at"], name="payments_we_event_t_3c8f61_idx"),
        ]

    def __str__(self) -> str:
        return f"WebhookEvent({self.gateway_event_id}, {self.event_type})"

    # ==========================================================================
    # Properties
    # ==========================================================================

    @property
    def is_processed(self) -> bool:
        return self.status == WebhookEventStatus.PROCESSED

    @property
    def is_failed(self) -> bool:
        return self.status == WebhookEventStatus.FAILED

    @property
    def can_retry(self) -> bool:
        """Failed with fewer attempts than MAX_WEBHOOK_RETRIES."""
        return self.is_failed and self.retry_count < settings.MAX_WEBHOOK_RETRIES

    # ==========================================================================
    # Helper Methods
    # ==========================================================================
    # None of these save - caller must save after calling.

    def mark_processing(self) -> None:
        self.status = WebhookEventStatus.PROCESSING
        self.retry_count += 1

    def mark_processed(self) -> None:
        self.status = WebhookEventStatus.PROCESSED
        self.processed_at = timezone.now()
        self.error_message = None

    def mark_failed(self, error_message: str) -> None:
        self.status = WebhookEventStatus.FAILED
        self.error_message = error_message

    def get_object(self) -> dict:
        """The event's data.object payload, or an empty dict."""
        data = self.payload.get("data") if isinstance(self.payload, dict) else None
        data = data if isinstance(data, dict) else {}
        obj = data.get("object")
        return obj if isinstance(obj, dict) else {}
