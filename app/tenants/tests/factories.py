"""
Factory Boy factories for tenant test data.

Usage:
    from tenants.tests.factories import RestaurantFactory

    restaurant = RestaurantFactory()
    live = RestaurantFactory(live_stripe=True)
    paypal = RestaurantFactory(paypal=True)
"""

import factory

from tenants.models import Restaurant


class RestaurantFactory(factory.django.DjangoModelFactory):
    """
    Factory for creating Restaurant instances.

    Default creates a restaurant whose card gateway is in test mode.

    Traits:
        live_stripe: Live card gateway with secret key and webhook secret
        paypal: Live redirect gateway with client credentials
        unconfigured: No payment_gateway settings at all
    """

    class Meta:
        model = Restaurant

    name = factory.Sequence(lambda n: f"Restaurant {n}")
    phone_number = "+16715550100"
    admin_settings = factory.LazyFunction(
        lambda: {
            "payment_gateway": {
                "payment_processor": "stripe",
                "test_mode": True,
                "currency": "usd",
            }
        }
    )

    class Params:
        live_stripe = factory.Trait(
            admin_settings=factory.LazyFunction(
                lambda: {
                    "payment_gateway": {
                        "payment_processor": "stripe",
                        "test_mode": False,
                        "secret_key": "sk_test_restaurant_key",
                        "publishable_key": "pk_test_restaurant_key",
                        "webhook_secret": "whsec_restaurant_secret",
                        "currency": "usd",
                    }
                }
            )
        )
        paypal = factory.Trait(
            admin_settings=factory.LazyFunction(
                lambda: {
                    "payment_gateway": {
                        "payment_processor": "paypal",
                        "test_mode": False,
                        "client_id": "paypal-client-id",
                        "client_secret": "paypal-client-secret",
                        "sandbox": True,
                        "currency": "usd",
                    }
                }
            )
        )
        unconfigured = factory.Trait(admin_settings=factory.LazyFunction(dict))
