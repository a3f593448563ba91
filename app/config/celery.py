"""
Celery configuration for the Django application.

Celery runs the payment background work:
- Payment link notifications (email, and SMS via the external SMS worker)
- Periodic retry of webhook events that failed to process

Tasks are auto-discovered from all installed Django apps.

Usage:
    from payments.tasks import send_payment_notification

    send_payment_notification.delay("email", "payment_link", "a@b.c", context)

For more information, see:
https://docs.celeryq.dev/en/stable/django/first-steps-with-django.html
"""

import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("config")

# All Celery settings are prefixed with CELERY_ in settings.py
app.config_from_object("django.conf:settings", namespace="CELERY")

app.autodiscover_tasks()
