"""
Tests for TenantGatewayConfig.
"""

import dataclasses

import pytest

from tenants.config import TenantGatewayConfig
from tenants.tests.factories import RestaurantFactory


class TestFromSettings:
    """Normalization of raw payment_gateway settings."""

    def test_empty_settings_use_defaults(self):
        config = TenantGatewayConfig.from_settings(1, {})

        assert config.processor == "stripe"
        assert config.test_mode is False
        assert config.currency == "usd"
        assert config.secret_key is None
        assert config.has_credentials is False

    def test_none_settings_use_defaults(self):
        config = TenantGatewayConfig.from_settings(1, None)

        assert config.processor == "stripe"
        assert config.test_mode is False

    def test_unknown_processor_falls_back_to_stripe(self):
        config = TenantGatewayConfig.from_settings(
            1, {"payment_processor": "square"}
        )

        assert config.processor == "stripe"

    def test_paypal_processor_is_kept(self):
        config = TenantGatewayConfig.from_settings(
            1, {"payment_processor": "PayPal"}
        )

        assert config.processor == "paypal"
        assert config.is_redirect_processor is True

    @pytest.mark.parametrize(
        "raw,expected",
        [(True, True), (False, False), ("true", True), ("false", False), ("1", True)],
    )
    def test_test_mode_parsing(self, raw, expected):
        config = TenantGatewayConfig.from_settings(1, {"test_mode": raw})

        assert config.test_mode is expected

    def test_currency_is_lower_cased(self):
        config = TenantGatewayConfig.from_settings(1, {"currency": "EUR"})

        assert config.currency == "eur"

    def test_blank_credentials_become_none(self):
        config = TenantGatewayConfig.from_settings(
            1, {"secret_key": "", "webhook_secret": ""}
        )

        assert config.secret_key is None
        assert config.webhook_secret is None


class TestHasCredentials:
    def test_stripe_requires_secret_key(self):
        config = TenantGatewayConfig.from_settings(1, {"secret_key": "sk_test_1"})

        assert config.has_credentials is True

    def test_paypal_requires_client_id_and_secret(self):
        partial = TenantGatewayConfig.from_settings(
            1, {"payment_processor": "paypal", "client_id": "abc"}
        )
        complete = TenantGatewayConfig.from_settings(
            1,
            {"payment_processor": "paypal", "client_id": "abc", "client_secret": "xyz"},
        )

        assert partial.has_credentials is False
        assert complete.has_credentials is True


class TestImmutabilityAndRepr:
    def test_config_is_frozen(self):
        config = TenantGatewayConfig.from_settings(1, {})

        with pytest.raises(dataclasses.FrozenInstanceError):
            config.test_mode = True

    def test_repr_hides_credentials(self):
        config = TenantGatewayConfig.from_settings(
            1, {"secret_key": "sk_live_very_secret", "webhook_secret": "whsec_x"}
        )

        assert "sk_live_very_secret" not in repr(config)
        assert "whsec_x" not in repr(config)


@pytest.mark.django_db
class TestFromRestaurant:
    def test_reads_restaurant_admin_settings(self):
        restaurant = RestaurantFactory(live_stripe=True, name="Hafa Grill")

        config = TenantGatewayConfig.from_restaurant(restaurant)

        assert config.restaurant_id == restaurant.pk
        assert config.restaurant_name == "Hafa Grill"
        assert config.test_mode is False
        assert config.secret_key == "sk_test_restaurant_key"
        assert config.webhook_secret == "whsec_restaurant_secret"

    def test_unconfigured_restaurant(self):
        restaurant = RestaurantFactory(unconfigured=True)

        config = TenantGatewayConfig.from_restaurant(restaurant)

        assert config.processor == "stripe"
        assert config.has_credentials is False

    def test_non_dict_gateway_settings_are_ignored(self):
        restaurant = RestaurantFactory(admin_settings={"payment_gateway": "broken"})

        config = TenantGatewayConfig.from_restaurant(restaurant)

        assert config.processor == "stripe"
        assert config.test_mode is False
