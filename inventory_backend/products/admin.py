# products/admin.py
"""
=====================================================
PATH: products/admin.py
=====================================================

Admin rules (audit-safe batch ledger):

- Products and variants are catalog data and may be edited.
- Variant inventory summary is derived and shown read-only.
- PurchaseBatch / StockMovement / StockAdjustment rows are produced by services
  only; admin shows them read-only and never deletes them.
"""

from __future__ import annotations

from django.contrib import admin

from products.models import (
    Product,
    ProductVariant,
    PurchaseBatch,
    StockAdjustment,
    StockMovement,
)


class ReadOnlyLedgerAdmin(admin.ModelAdmin):
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


class ProductVariantInline(admin.TabularInline):
    model = ProductVariant
    extra = 0
    fields = ("variant", "size", "sku", "is_active", "total_quantity", "average_cost")
    readonly_fields = ("sku", "total_quantity", "average_cost")
    can_delete = False


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("name", "brand", "is_active", "created_at")
    list_filter = ("is_active", "brand")
    search_fields = ("name", "brand")
    readonly_fields = ("created_at", "updated_at")
    inlines = [ProductVariantInline]


@admin.register(ProductVariant)
class ProductVariantAdmin(admin.ModelAdmin):
    list_display = ("sku", "product", "total_quantity", "average_cost", "is_active")
    list_filter = ("is_active",)
    search_fields = ("sku", "product__name")
    readonly_fields = (
        "sku",
        "total_quantity",
        "average_cost",
        "summary_updated_at",
        "created_at",
        "updated_at",
    )

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(PurchaseBatch)
class PurchaseBatchAdmin(ReadOnlyLedgerAdmin):
    list_display = (
        "variant",
        "arrival_sequence",
        "purchase_order",
        "unit_cost",
        "original_quantity",
        "remaining_quantity",
        "is_active",
        "created_at",
    )
    list_filter = ("is_active",)
    search_fields = ("variant__sku", "purchase_order__order_number")
    ordering = ("variant", "arrival_sequence")


@admin.register(StockMovement)
class StockMovementAdmin(ReadOnlyLedgerAdmin):
    list_display = ("variant", "batch", "movement_type", "quantity", "unit_cost", "reason", "created_at")
    list_filter = ("movement_type",)
    search_fields = ("variant__sku", "reason")


@admin.register(StockAdjustment)
class StockAdjustmentAdmin(ReadOnlyLedgerAdmin):
    list_display = ("variant", "quantity", "reason", "value_written_off", "created_at")
    list_filter = ("reason",)
    search_fields = ("variant__sku", "note")
