"""
Read-only view of a restaurant's payment gateway configuration.

The payment core never reads admin_settings directly. It is handed a
TenantGatewayConfig, which normalizes the raw JSON once:

- processor falls back to "stripe" for missing or unknown values
- test_mode is False unless explicitly enabled
- currency is lower-cased and defaults to "usd"

Usage:
    from tenants.config import TenantGatewayConfig

    config = TenantGatewayConfig.from_restaurant(restaurant)
    if config.test_mode:
        ...
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tenants.models import Restaurant


PROCESSOR_STRIPE = "stripe"
PROCESSOR_PAYPAL = "paypal"
SUPPORTED_PROCESSORS = (PROCESSOR_STRIPE, PROCESSOR_PAYPAL)

DEFAULT_CURRENCY = "usd"


def _as_bool(value) -> bool:
    """Admin UIs store booleans as JSON bools or as "true"/"false" strings."""
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes", "on")
    return bool(value)


@dataclass(frozen=True)
class TenantGatewayConfig:
    """
    Immutable per-restaurant gateway configuration.

    Attributes:
        restaurant_id: Owning restaurant
        restaurant_name: Used in customer notifications
        processor: "stripe" (card gateway) or "paypal" (redirect gateway)
        test_mode: When True every gateway call is fabricated locally
        secret_key: Card gateway secret key
        webhook_secret: Card gateway webhook signing secret
        client_id: Redirect gateway OAuth client id
        client_secret: Redirect gateway OAuth client secret
        sandbox: Use the redirect gateway's sandbox environment
        currency: ISO 4217 code, lower-case
        success_url: Hosted payment page return URL (None for default)
        cancel_url: Hosted payment page cancel URL (None for default)
    """

    restaurant_id: int
    restaurant_name: str = ""
    processor: str = PROCESSOR_STRIPE
    test_mode: bool = False
    secret_key: str | None = None
    webhook_secret: str | None = None
    client_id: str | None = None
    client_secret: str | None = None
    sandbox: bool = False
    currency: str = DEFAULT_CURRENCY
    success_url: str | None = None
    cancel_url: str | None = None

    @classmethod
    def from_restaurant(cls, restaurant: Restaurant) -> TenantGatewayConfig:
        """Build the config from a restaurant's admin_settings."""
        return cls.from_settings(
            restaurant.pk,
            restaurant.payment_gateway_settings,
            restaurant_name=restaurant.name,
        )

    @classmethod
    def from_settings(
        cls,
        restaurant_id: int,
        settings: dict | None,
        restaurant_name: str = "",
    ) -> TenantGatewayConfig:
        """Build the config from a raw payment_gateway dict."""
        settings = settings or {}

        processor = str(settings.get("payment_processor") or "").strip().lower()
        if processor not in SUPPORTED_PROCESSORS:
            processor = PROCESSOR_STRIPE

        currency = str(settings.get("currency") or DEFAULT_CURRENCY).strip().lower()

        return cls(
            restaurant_id=restaurant_id,
            restaurant_name=restaurant_name,
            processor=processor,
            test_mode=_as_bool(settings.get("test_mode", False)),
            secret_key=settings.get("secret_key") or None,
            webhook_secret=settings.get("webhook_secret") or None,
            client_id=settings.get("client_id") or None,
            client_secret=settings.get("client_secret") or None,
            sandbox=_as_bool(settings.get("sandbox", False)),
            currency=currency,
            success_url=settings.get("success_url") or None,
            cancel_url=settings.get("cancel_url") or None,
        )

    @property
    def is_redirect_processor(self) -> bool:
        return self.processor == PROCESSOR_PAYPAL

    @property
    def has_credentials(self) -> bool:
        """Whether the credentials the configured processor needs are present."""
        if self.is_redirect_processor:
            return bool(self.client_id and self.client_secret)
        return bool(self.secret_key)

    def __repr__(self) -> str:
        # Never include credentials in logs
        return (
            f"TenantGatewayConfig(restaurant_id={self.restaurant_id!r}, "
            f"processor={self.processor!r}, test_mode={self.test_mode!r})"
        )
