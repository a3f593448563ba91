"""
Payment admin configuration.

Ledger entries are append-only: they are visible in the admin but can
only be created through the payment API.
"""

from django.contrib import admin

from payments.models import OrderPayment, StoreCredit, WebhookEvent

__all__ = [
    "OrderPaymentAdmin",
    "StoreCreditAdmin",
    "WebhookEventAdmin",
]


# =============================================================================
# Ledger Admin
# =============================================================================


@admin.register(OrderPayment)
class OrderPaymentAdmin(admin.ModelAdmin):
    """
    Admin configuration for OrderPayment.

    Read-only view of the ledger; amounts are never edited in place.
    """

    list_display = [
        "id",
        "order",
        "payment_type",
        "amount",
        "payment_method",
        "status",
        "payment_id",
        "created_at",
    ]
    list_filter = ["payment_type", "status", "payment_method", "created_at"]
    search_fields = ["id", "order__id", "payment_id", "transaction_id"]
    readonly_fields = [
        "id",
        "order",
        "payment_type",
        "amount",
        "payment_method",
        "status",
        "transaction_id",
        "payment_id",
        "payment_details",
        "refunded_items",
        "description",
        "created_at",
        "updated_at",
    ]
    raw_id_fields = ["order"]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]

    def has_add_permission(self, request) -> bool:
        return False

    def has_delete_permission(self, request, obj=None) -> bool:
        return False


@admin.register(StoreCredit)
class StoreCreditAdmin(admin.ModelAdmin):
    list_display = ["id", "customer_email", "amount", "status", "order", "created_at"]
    list_filter = ["status", "created_at"]
    search_fields = ["customer_email", "order__id"]
    readonly_fields = ["order", "amount", "created_at", "updated_at"]
    raw_id_fields = ["order"]
    ordering = ["-created_at"]


# =============================================================================
# Webhook Admin
# =============================================================================


@admin.register(WebhookEvent)
class WebhookEventAdmin(admin.ModelAdmin):
    """
    Admin configuration for WebhookEvent.

    Provides visibility into webhook processing status.
    Webhook events are immutable once received.
    """

    list_display = [
        "id",
        "restaurant",
        "gateway_event_id",
        "event_type",
        "status",
        "retry_count",
        "processed_at",
        "created_at",
    ]
    list_filter = ["status", "event_type", "created_at"]
    search_fields = ["id", "gateway_event_id", "event_type"]
    readonly_fields = [
        "id",
        "restaurant",
        "created_at",
        "updated_at",
        "gateway_event_id",
        "event_type",
        "payload",
        "processed_at",
    ]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]

    fieldsets = (
        (
            None,
            {
                "fields": ("id", "restaurant", "gateway_event_id", "event_type", "status"),
            },
        ),
        (
            "Processing",
            {
                "fields": ("processed_at", "retry_count"),
            },
        ),
        (
            "Error Info",
            {
                "fields": ("error_message",),
                "classes": ("collapse",),
            },
        ),
        (
            "Payload",
            {
                "fields": ("payload",),
                "classes": ("collapse",),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("created_at", "updated_at"),
            },
        ),
    )

    def has_delete_permission(self, request, obj=None) -> bool:
        """Disable delete for webhook events (audit trail)."""
        return False

    def has_add_permission(self, request) -> bool:
        """Disable adding webhook events through admin."""
        return False
