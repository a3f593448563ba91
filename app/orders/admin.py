"""
Order admin configuration.
"""

from django.contrib import admin

from orders.models import Order


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    """
    Admin configuration for Order.

    Status is read-only: it only changes through payment transitions.
    """

    list_display = [
        "id",
        "restaurant",
        "total",
        "status",
        "payment_status",
        "contact_email",
        "created_at",
    ]
    list_filter = ["status", "payment_status", "restaurant"]
    search_fields = ["id", "contact_email", "contact_phone", "payment_id"]
    readonly_fields = ["status", "payment_status", "created_at", "updated_at"]
    ordering = ["-created_at"]
