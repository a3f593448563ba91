"""
Restaurant model.

A restaurant is a tenant. Its admin_settings JSON carries the payment
gateway credentials and notification templates; the payment core reads
them only through tenants.config.TenantGatewayConfig.

admin_settings layout:
    {
        "payment_gateway": {
            "payment_processor": "stripe" | "paypal",
            "test_mode": bool,
            "secret_key": "...",
            "publishable_key": "...",
            "webhook_secret": "...",
            "client_id": "...",
            "client_secret": "...",
            "sandbox": bool,
            "currency": "usd",
            "success_url": "...",
            "cancel_url": "..."
        },
        "sms_templates": {"payment_link": "..."},
        "email_templates": {"payment_link": "..."}
    }
"""

from __future__ import annotations

from django.db import models

from core.models import BaseModel


class Restaurant(BaseModel):
    """
    A tenant restaurant.

    Fields:
        name: Display name used in customer notifications
        phone_number: Contact number for the restaurant
        admin_settings: Tenant-owned configuration (gateway, templates)
    """

    name = models.CharField(max_length=200)
    phone_number = models.CharField(max_length=32, blank=True, default="")
    admin_settings = models.JSONField(
        default=dict,
        blank=True,
        help_text="Tenant configuration: payment_gateway, sms_templates, email_templates",
    )

    class Meta:
        verbose_name = "restaurant"
        verbose_name_plural = "restaurants"
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name

    @property
    def payment_gateway_settings(self) -> dict:
        """Raw gateway settings dict (empty when not configured)."""
        settings = (self.admin_settings or {}).get("payment_gateway")
        return settings if isinstance(settings, dict) else {}

    def get_template(self, kind: str, name: str) -> str | None:
        """
        Look up a tenant notification template.

        Args:
            kind: "sms_templates" or "email_templates"
            name: Template name, e.g. "payment_link"
        """
        templates = (self.admin_settings or {}).get(kind) or {}
        return templates.get(name) or None
