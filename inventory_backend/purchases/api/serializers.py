# purchases/api/serializers.py

from decimal import Decimal

from rest_framework import serializers

from products.models import PurchaseBatch
from purchases.models import PurchaseOrder


class PurchaseBatchLineCreateSerializer(serializers.Serializer):
    variant_id = serializers.UUIDField()
    source_price = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=Decimal("0"))
    quantity = serializers.IntegerField(min_value=1)


class PurchaseOrderCreateSerializer(serializers.Serializer):
    supplier = serializers.CharField(required=False, allow_blank=True, default="")
    exchange_rate = serializers.DecimalField(
        max_digits=14, decimal_places=6, required=False, allow_null=True
    )
    total_logistics_fee = serializers.DecimalField(
        max_digits=14, decimal_places=2, required=False, allow_null=True, min_value=Decimal("0")
    )
    total_payment = serializers.DecimalField(
        max_digits=14, decimal_places=2, required=False, allow_null=True, min_value=Decimal("0")
    )
    order_date = serializers.DateField(required=False, allow_null=True)
    expected_delivery = serializers.DateField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    items = PurchaseBatchLineCreateSerializer(many=True, required=False, default=list)


class CompletePurchaseOrderSerializer(serializers.Serializer):
    total_logistics_fee = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=Decimal("0"))
    total_payment = serializers.DecimalField(
        max_digits=14, decimal_places=2, required=False, allow_null=True, min_value=Decimal("0")
    )


class PurchaseOrderBatchSerializer(serializers.ModelSerializer):
    sku = serializers.CharField(source="variant.sku", read_only=True)

    class Meta:
        model = PurchaseBatch
        fields = [
            "id",
            "variant",
            "sku",
            "arrival_sequence",
            "source_price",
            "freight_per_unit",
            "gap_per_unit",
            "unit_cost",
            "original_quantity",
            "remaining_quantity",
            "is_active",
            "created_at",
        ]
        read_only_fields = fields


class PurchaseOrderSerializer(serializers.ModelSerializer):
    batches = PurchaseOrderBatchSerializer(many=True, read_only=True)
    total_quantity = serializers.IntegerField(read_only=True)
    logistics_fee_per_unit = serializers.DecimalField(max_digits=18, decimal_places=4, read_only=True)
    nominal_total = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)

    class Meta:
        model = PurchaseOrder
        fields = [
            "id",
            "order_number",
            "supplier",
            "exchange_rate",
            "total_logistics_fee",
            "total_payment",
            "status",
            "order_date",
            "expected_delivery",
            "actual_delivery",
            "notes",
            "total_quantity",
            "logistics_fee_per_unit",
            "nominal_total",
            "batches",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields
