# products/serializers/product.py

"""
PRODUCT + VARIANT SERIALIZERS

Purpose:
- Catalog payloads (Product with its variants).
- Variant payloads expose the derived inventory summary READ-ONLY:
  total_quantity / average_cost / total_value come from batch state only.
"""

from rest_framework import serializers

from products.models import Product, ProductVariant


class ProductVariantSerializer(serializers.ModelSerializer):
    """
    GUARANTEES:
    - sku is derived from variant + size (never client-supplied)
    - Summary fields are never writable
    """

    product_name = serializers.CharField(source="product.name", read_only=True)
    total_value = serializers.DecimalField(max_digits=20, decimal_places=4, read_only=True)

    class Meta:
        model = ProductVariant
        fields = [
            "id",
            "product",
            "product_name",
            "variant",
            "size",
            "sku",
            "is_active",
            "total_quantity",
            "average_cost",
            "total_value",
            "summary_updated_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "id",
            "sku",
            "product_name",
            "total_quantity",
            "average_cost",
            "total_value",
            "summary_updated_at",
            "created_at",
            "updated_at",
        ]

    def validate(self, attrs):
        product = attrs.get("product") or getattr(self.instance, "product", None)
        variant = (attrs.get("variant") or getattr(self.instance, "variant", "") or "").strip()
        size = (attrs.get("size") or getattr(self.instance, "size", "") or "").strip()

        sku = ProductVariant.build_sku(variant, size)
        clash = ProductVariant.objects.filter(sku=sku)
        if self.instance is not None:
            clash = clash.exclude(pk=self.instance.pk)
        if clash.exists():
            raise serializers.ValidationError({"sku": f"SKU {sku} already exists"})

        if product is not None and not product.is_active:
            raise serializers.ValidationError({"product": "Product is inactive"})

        return attrs


class ProductSerializer(serializers.ModelSerializer):
    variants = ProductVariantSerializer(many=True, read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "name",
            "brand",
            "product_url",
            "description",
            "is_active",
            "variants",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "variants", "created_at", "updated_at"]

    def validate_name(self, value):
        value = (value or "").strip()
        if not value:
            raise serializers.ValidationError("Product name is required")
        return value
