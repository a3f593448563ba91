"""
Gateway selection.

    test_mode            -> TestGateway (whatever the processor)
    processor "paypal"   -> RedirectGateway
    anything else        -> CardGateway

Outside test mode a restaurant without the credentials its processor
needs gets a ConfigurationError before any adapter is built.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from payments.adapters.paypal_adapter import RedirectGateway
from payments.adapters.stripe_adapter import CardGateway
from payments.adapters.testmode_adapter import TestGateway
from payments.exceptions import ConfigurationError

if TYPE_CHECKING:
    from payments.adapters.base import GatewayAdapter
    from tenants.config import TenantGatewayConfig

logger = logging.getLogger(__name__)


def get_gateway(config: TenantGatewayConfig) -> GatewayAdapter:
    """Build the gateway adapter for a restaurant's configuration."""
    if config.test_mode:
        return TestGateway(config)

    if not config.has_credentials:
        logger.error(
            "Gateway credentials missing",
            extra={"restaurant_id": config.restaurant_id, "processor": config.processor},
        )
        raise ConfigurationError(
            f"Payment processor '{config.processor}' is not properly configured "
            "for this restaurant",
            details={"restaurant_id": config.restaurant_id, "processor": config.processor},
        )

    if config.is_redirect_processor:
        return RedirectGateway(config)
    return CardGateway(config)
