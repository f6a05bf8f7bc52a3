# products/serializers/stock_batch.py
"""
======================================================
PATH: products/serializers/stock_batch.py
======================================================
BATCH LEDGER SERIALIZERS

Purpose:
- Read-only views of PurchaseBatch / StockMovement rows.
- Input validation for write-downs (the only stock mutation exposed here).

IMPORTANT:
- Batches are never created or edited through these serializers.
  Intake goes through purchases (record_purchase_batch); quantity and unit_cost
  are service-managed only.
"""

from __future__ import annotations

from rest_framework import serializers

from products.models import PurchaseBatch, StockAdjustment, StockMovement


class PurchaseBatchSerializer(serializers.ModelSerializer):
    sku = serializers.CharField(source="variant.sku", read_only=True)
    order_number = serializers.CharField(
        source="purchase_order.order_number", read_only=True, default=None
    )
    remaining_value = serializers.DecimalField(max_digits=20, decimal_places=4, read_only=True)

    class Meta:
        model = PurchaseBatch
        fields = [
            "id",
            "variant",
            "sku",
            "purchase_order",
            "order_number",
            "arrival_sequence",
            "source_price",
            "freight_per_unit",
            "gap_per_unit",
            "value_multiplier",
            "unit_cost",
            "original_quantity",
            "remaining_quantity",
            "remaining_value",
            "is_active",
            "created_at",
        ]
        read_only_fields = fields


class StockMovementSerializer(serializers.ModelSerializer):
    sku = serializers.CharField(source="variant.sku", read_only=True)
    arrival_sequence = serializers.IntegerField(source="batch.arrival_sequence", read_only=True)
    total_cost = serializers.DecimalField(max_digits=20, decimal_places=4, read_only=True)

    class Meta:
        model = StockMovement
        fields = [
            "id",
            "variant",
            "sku",
            "batch",
            "arrival_sequence",
            "movement_type",
            "quantity",
            "unit_cost",
            "total_cost",
            "reason",
            "invoice_item",
            "adjustment",
            "created_at",
        ]
        read_only_fields = fields


class WriteDownInputSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=1)
    reason = serializers.ChoiceField(
        choices=StockAdjustment.Reason.choices,
        default=StockAdjustment.Reason.DEFECT,
    )
    note = serializers.CharField(required=False, allow_blank=True, default="", max_length=255)


class StockAdjustmentSerializer(serializers.ModelSerializer):
    movements = StockMovementSerializer(source="stock_movements", many=True, read_only=True)

    class Meta:
        model = StockAdjustment
        fields = [
            "id",
            "variant",
            "quantity",
            "reason",
            "note",
            "value_written_off",
            "movements",
            "created_at",
        ]
        read_only_fields = fields
