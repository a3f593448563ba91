"""
Tenant admin configuration.
"""

from django.contrib import admin

from tenants.models import Restaurant


@admin.register(Restaurant)
class RestaurantAdmin(admin.ModelAdmin):
    """Admin configuration for Restaurant."""

    list_display = ["id", "name", "phone_number", "created_at"]
    search_fields = ["name", "phone_number"]
    readonly_fields = ["created_at", "updated_at"]
    ordering = ["name"]
