# purchases/admin.py

from django.contrib import admin

from purchases.models import PurchaseOrder


@admin.register(PurchaseOrder)
class PurchaseOrderAdmin(admin.ModelAdmin):
    """
    Orders are created and completed through receiving_service (landed-cost
    repricing); admin is for lookup and notes only.
    """

    list_display = (
        "order_number",
        "supplier",
        "status",
        "exchange_rate",
        "total_logistics_fee",
        "total_payment",
        "order_date",
    )
    list_filter = ("status", "order_date")
    search_fields = ("order_number", "supplier")
    readonly_fields = (
        "order_number",
        "exchange_rate",
        "total_logistics_fee",
        "total_payment",
        "status",
        "actual_delivery",
        "created_at",
        "updated_at",
    )

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
