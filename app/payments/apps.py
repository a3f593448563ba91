"""
Payments app configuration.

This app provides the order payment lifecycle:
- Append-only OrderPayment ledger and store credit
- Card (Stripe), redirect (PayPal) and test mode gateway adapters
- PaymentOrchestrator commands behind the order payment API
- Signed per-restaurant webhook reconciliation
"""

from django.apps import AppConfig


class PaymentsConfig(AppConfig):
    """Configuration for the payments application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "payments"
    verbose_name = "Payments"
