"""
Root pytest configuration for the Django project.

This module configures pytest-django and provides project-wide fixtures.
App-specific fixtures are defined in each app's tests/conftest.py.
"""

import os

import django
import pytest

# Ensure Django settings are configured before any tests run
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")


def pytest_configure():
    """Configure Django settings before tests run."""
    django.setup()

    from django.conf import settings

    # Disable throttling during tests to prevent rate limit failures
    settings.REST_FRAMEWORK["DEFAULT_THROTTLE_CLASSES"] = []
    settings.REST_FRAMEWORK["DEFAULT_THROTTLE_RATES"] = {}

    # Use fast password hasher for tests
    settings.PASSWORD_HASHERS = [
        "django.contrib.auth.hashers.MD5PasswordHasher",
    ]

    # Celery tasks run inline; nothing is sent to a broker
    settings.CELERY_TASK_ALWAYS_EAGER = True
    settings.CELERY_TASK_EAGER_PROPAGATES = True


def pytest_collection_modifyitems(items):
    """
    Auto-mark tests based on filename patterns.

    Mapping:
    - test_views.py, test_orchestrator.py, test_tasks.py, etc. → integration
    - test_models.py, test_ledger.py, test_config.py, etc. → unit
    - Unmatched files → integration (safe default for Django)

    Explicit markers on test functions/classes take precedence.
    """
    integration_patterns = [
        "test_views.py",
        "test_orchestrator.py",
        "test_tasks.py",
        "test_reconciler.py",
        "test_handlers.py",
        "test_locks.py",
    ]

    unit_patterns = [
        "test_models.py",
        "test_config.py",
        "test_ledger.py",
        "test_additional_amount.py",
        "test_exceptions.py",
        "test_services.py",
        "test_notifications.py",
        "test_stripe_adapter.py",
        "test_paypal_adapter.py",
        "test_testmode_adapter.py",
    ]

    for item in items:
        existing_markers = {m.name for m in item.iter_markers()}
        if existing_markers & {"unit", "integration", "e2e"}:
            continue

        filename = str(item.fspath).split("/")[-1]

        if any(pattern in filename for pattern in integration_patterns):
            item.add_marker(pytest.mark.integration)
        elif any(pattern in filename for pattern in unit_patterns):
            item.add_marker(pytest.mark.unit)
        else:
            item.add_marker(pytest.mark.integration)


# =============================================================================
# Shared Fixtures
# =============================================================================


@pytest.fixture
def restaurant(db):
    """Restaurant with the card gateway in test mode."""
    from tenants.tests.factories import RestaurantFactory

    return RestaurantFactory()


@pytest.fixture
def live_restaurant(db):
    """Restaurant with live card gateway credentials."""
    from tenants.tests.factories import RestaurantFactory

    return RestaurantFactory(live_stripe=True)


@pytest.fixture
def paypal_restaurant(db):
    """Restaurant with live redirect gateway credentials."""
    from tenants.tests.factories import RestaurantFactory

    return RestaurantFactory(paypal=True)


@pytest.fixture
def user(db):
    from orders.tests.factories import UserFactory

    return UserFactory()


@pytest.fixture
def staff_user(db):
    from orders.tests.factories import UserFactory

    return UserFactory(is_staff=True)
