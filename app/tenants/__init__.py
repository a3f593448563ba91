"""
Tenants app - restaurants and their payment gateway configuration.

Each restaurant is a tenant with its own gateway credentials, stored on
admin_settings and exposed read-only through TenantGatewayConfig.

Usage:
    from tenants.config import TenantGatewayConfig

    config = TenantGatewayConfig.from_restaurant(restaurant)
"""
