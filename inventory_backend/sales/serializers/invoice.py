# sales/serializers/invoice.py

from decimal import Decimal

from rest_framework import serializers

from sales.models import SalesInvoice, SalesInvoiceItem


class SalesInvoiceItemSerializer(serializers.ModelSerializer):
    sku = serializers.CharField(source="variant.sku", read_only=True)
    profit = serializers.DecimalField(max_digits=18, decimal_places=4, read_only=True)

    class Meta:
        model = SalesInvoiceItem
        fields = [
            "id",
            "variant",
            "sku",
            "quantity",
            "proportional_revenue",
            "cogs_used",
            "profit",
        ]
        read_only_fields = fields


class SalesInvoiceSerializer(serializers.ModelSerializer):
    items = SalesInvoiceItemSerializer(many=True, read_only=True)
    gross_profit = serializers.DecimalField(max_digits=18, decimal_places=4, read_only=True)

    class Meta:
        model = SalesInvoice
        fields = [
            "id",
            "invoice_number",
            "marketplace",
            "sale_date",
            "total_selling_price",
            "total_cogs",
            "gross_profit",
            "items",
            "created_at",
        ]
        read_only_fields = fields


class SalesInvoiceLineInputSerializer(serializers.Serializer):
    variant_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1)


class SalesInvoiceCreateSerializer(serializers.Serializer):
    invoice_number = serializers.CharField(max_length=64)
    marketplace = serializers.CharField(max_length=100, required=False, allow_blank=True, default="")
    total_selling_price = serializers.DecimalField(
        max_digits=14, decimal_places=2, min_value=Decimal("0")
    )
    sale_date = serializers.DateField(required=False, allow_null=True)
    items = SalesInvoiceLineInputSerializer(many=True, allow_empty=False)

    def validate_invoice_number(self, value):
        value = (value or "").strip()
        if not value:
            raise serializers.ValidationError("invoice_number is required")
        return value
