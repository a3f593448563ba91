"""
Celery tasks for payment processing.

This module provides async tasks for:
- Sending payment link notifications (email, SMS via the SMS worker)
- Processing gateway webhook events
- Retrying failed webhook events
- Periodic cleanup of stuck events

Usage:
    from payments.tasks import send_payment_notification

    send_payment_notification.delay("email", "default_payment_link", "a@b.co", context)

    # Retry failed webhooks (typically via celery-beat)
    from payments.tasks import retry_failed_webhook_events
    retry_failed_webhook_events.delay()
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any
from uuid import UUID

from celery import current_app, shared_task
from django.conf import settings
from django.core.mail import send_mail
from django.template import TemplateDoesNotExist
from django.template.loader import render_to_string
from django.utils import timezone

from payments.models import WebhookEvent
from payments.notifications import (
    CHANNEL_EMAIL,
    CHANNEL_SMS,
    DEFAULT_EMAIL_TEMPLATE,
    render_sms,
)
from payments.state_machines import WebhookEventStatus

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

STUCK_PROCESSING_THRESHOLD_MINUTES = 30
RETRY_BATCH_SIZE = 100
EMAIL_TEMPLATE_DIR = "payments/email"


# =============================================================================
# Notification Tasks
# =============================================================================


def _render_email(template: str, context: dict[str, Any]) -> tuple[str, str]:
    """Render (subject, body), falling back to the default template."""
    try:
        body = render_to_string(f"{EMAIL_TEMPLATE_DIR}/{template}.txt", context)
    except TemplateDoesNotExist:
        logger.warning(
            f"Email template {template} not found, using default",
            extra={"order_id": context.get("order_id")},
        )
        template = DEFAULT_EMAIL_TEMPLATE
        body = render_to_string(f"{EMAIL_TEMPLATE_DIR}/{template}.txt", context)

    try:
        subject = render_to_string(f"{EMAIL_TEMPLATE_DIR}/{template}_subject.txt", context)
    except TemplateDoesNotExist:
        subject = render_to_string(
            f"{EMAIL_TEMPLATE_DIR}/{DEFAULT_EMAIL_TEMPLATE}_subject.txt", context
        )

    # Subjects must be a single line
    return " ".join(subject.split()), body


@shared_task(
    bind=True,
    autoretry_for=(ConnectionError, TimeoutError),
    retry_backoff=True,
    retry_kwargs={"max_retries": 3},
)
def send_payment_notification(
    self, channel: str, template: str, recipient: str, context: dict[str, Any]
) -> dict:
    """
    Deliver one payment notification.

    Email is rendered from payments/email/<template>.txt and sent with
    Django mail. SMS is formatted from the tenant template and handed to
    the external SMS worker (settings.SMS_TASK_NAME).

    Args:
        channel: "email" or "sms"
        template: Email template name, or SMS format string
        recipient: Email address or phone number
        context: Template values (order_id, restaurant, url, amount, ...)

    Returns:
        Dict with delivery status
    """
    log_extra = {"channel": channel, "order_id": context.get("order_id")}

    if channel == CHANNEL_EMAIL:
        subject, body = _render_email(template, context)
        send_mail(
            subject,
            body,
            settings.DEFAULT_FROM_EMAIL,
            [recipient],
            fail_silently=False,
        )
        logger.info("Payment link email sent", extra=log_extra)
        return {"status": "sent", "channel": channel}

    if channel == CHANNEL_SMS:
        message = render_sms(template, context)
        current_app.send_task(
            settings.SMS_TASK_NAME,
            kwargs={
                "to": recipient,
                "body": message,
                "sender": context.get("restaurant") or "",
            },
        )
        logger.info("Payment link SMS queued", extra=log_extra)
        return {"status": "queued", "channel": channel}

    logger.error(f"Unknown notification channel: {channel}", extra=log_extra)
    return {"status": "unknown_channel", "channel": channel}


# =============================================================================
# Webhook Processing Tasks
# =============================================================================


@shared_task(bind=True, acks_late=True)
def process_webhook_event(self, webhook_event_id: str) -> dict:
    """
    Process a stored webhook event.

    This task:
    1. Loads the WebhookEvent by ID
    2. Checks if already processed (idempotency)
    3. Applies it through WebhookReconciler.apply (which records
       processed/failed on the event)

    Args:
        webhook_event_id: UUID of the WebhookEvent to process

    Returns:
        Dict with processing result status
    """
    # Import here to avoid circular imports
    from payments.webhooks.reconciler import WebhookReconciler

    if isinstance(webhook_event_id, str):
        webhook_event_id = UUID(webhook_event_id)

    try:
        webhook_event = WebhookEvent.objects.get(id=webhook_event_id)
    except WebhookEvent.DoesNotExist:
        logger.error(
            "WebhookEvent not found",
            extra={"webhook_event_id": str(webhook_event_id)},
        )
        return {"status": "not_found", "webhook_event_id": str(webhook_event_id)}

    if webhook_event.is_processed:
        logger.info(
            "WebhookEvent already processed, skipping",
            extra={
                "webhook_event_id": str(webhook_event_id),
                "gateway_event_id": webhook_event.gateway_event_id,
            },
        )
        return {
            "status": "already_processed",
            "webhook_event_id": str(webhook_event_id),
        }

    webhook_event = WebhookReconciler.apply(webhook_event)
    return {
        "status": webhook_event.status,
        "webhook_event_id": str(webhook_event_id),
        "gateway_event_id": webhook_event.gateway_event_id,
        "error": webhook_event.error_message,
    }


@shared_task
def retry_failed_webhook_events() -> dict:
    """
    Periodic task to retry failed webhook events.

    Finds failed events that haven't reached MAX_WEBHOOK_RETRIES attempts
    and re-queues them for processing.

    Scheduled via celery-beat (CELERY_BEAT_SCHEDULE).

    Returns:
        Dict with count of webhooks queued for retry
    """
    failed_webhooks = WebhookEvent.objects.filter(
        status=WebhookEventStatus.FAILED,
        retry_count__lt=settings.MAX_WEBHOOK_RETRIES,
    ).order_by("created_at")[:RETRY_BATCH_SIZE]

    queued_count = 0
    for webhook in failed_webhooks:
        try:
            process_webhook_event.delay(str(webhook.id))
        except Exception as e:
            logger.error(
                f"Failed to queue webhook for retry: {e}",
                extra={"webhook_event_id": str(webhook.id)},
            )
            continue

        queued_count += 1
        logger.info(
            "Queued failed webhook for retry",
            extra={
                "webhook_event_id": str(webhook.id),
                "gateway_event_id": webhook.gateway_event_id,
                "retry_count": webhook.retry_count,
            },
        )

    logger.info(
        f"Queued {queued_count} failed webhooks for retry",
        extra={"queued_count": queued_count},
    )

    return {"queued_count": queued_count}


@shared_task
def cleanup_stuck_webhook_events() -> dict:
    """
    Periodic task to reset stuck webhook events.

    Finds events that have been in PROCESSING status for too long (the
    worker crashed mid-processing) and resets them to FAILED so they can
    be retried.

    Returns:
        Dict with count of webhooks reset
    """
    threshold = timezone.now() - timedelta(minutes=STUCK_PROCESSING_THRESHOLD_MINUTES)

    stuck_webhooks = WebhookEvent.objects.filter(
        status=WebhookEventStatus.PROCESSING,
        updated_at__lt=threshold,
    )

    reset_count = 0
    for webhook in stuck_webhooks:
        stuck_since = webhook.updated_at
        webhook.mark_failed("Processing timed out - reset for retry")
        webhook.save(update_fields=["status", "error_message", "updated_at"])
        reset_count += 1
        logger.warning(
            "Reset stuck webhook",
            extra={
                "webhook_event_id": str(webhook.id),
                "gateway_event_id": webhook.gateway_event_id,
                "stuck_since": stuck_since.isoformat(),
            },
        )

    if reset_count > 0:
        logger.info(
            f"Reset {reset_count} stuck webhooks",
            extra={"reset_count": reset_count},
        )

    return {"reset_count": reset_count}
