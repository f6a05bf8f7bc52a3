# products/models/product.py

"""
PRODUCT + VARIANT (SKU)

Product is the catalog parent; ProductVariant is the stock-keeping unit that
batches, movements and sales are attached to.

INVENTORY SUMMARY (DERIVED CACHE):
- ProductVariant.total_quantity / average_cost are a denormalized summary of the
  variant's PurchaseBatch rows.
- They are written ONLY by products.services.inventory_summary (queryset update).
- save() refuses any attempt to edit them directly.
"""

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q


class Product(models.Model):
    """
    Represents a sellable product (catalog parent of variants).

    STOCK MODEL (IMPORTANT):
    - Product itself does NOT store stock
    - Stock lives in PurchaseBatch rows of each ProductVariant
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=200, db_index=True)
    brand = models.CharField(max_length=100, blank=True, default="")
    product_url = models.URLField(max_length=500, blank=True, default="")
    description = models.TextField(blank=True, default="")

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        indexes = [
            models.Index(fields=["brand"], name="product_brand_idx"),
        ]

    def clean(self):
        if not (self.name or "").strip():
            raise ValidationError({"name": "name is required"})

    def save(self, *args, **kwargs):
        self.name = (self.name or "").strip()
        self.full_clean()
        super().save(*args, **kwargs)

    def __str__(self):
        return self.name


class ProductVariant(models.Model):
    """
    A sellable SKU (variant + size of a product).

    GUARANTEES:
    - sku is derived as "<variant>-<size>" and unique
    - total_quantity == SUM(batch.remaining_quantity)
    - average_cost == SUM(remaining * unit_cost) / SUM(remaining), 0 when empty
    """

    SUMMARY_FIELDS = ("total_quantity", "average_cost", "summary_updated_at")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    product = models.ForeignKey(
        Product,
        on_delete=models.CASCADE,
        related_name="variants",
    )

    variant = models.CharField(max_length=100)
    size = models.CharField(max_length=20)

    sku = models.CharField(max_length=150, unique=True, editable=False)

    is_active = models.BooleanField(default=True)

    # Derived summary: NEVER edited directly
    total_quantity = models.PositiveIntegerField(
        default=0,
        editable=False,
        help_text="Sum of remaining quantity across batches (recomputed).",
    )
    average_cost = models.DecimalField(
        max_digits=18,
        decimal_places=4,
        default=Decimal("0.0000"),
        editable=False,
        help_text="Weighted-average unit cost of remaining stock (recomputed).",
    )
    summary_updated_at = models.DateTimeField(null=True, blank=True, editable=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["sku"]
        constraints = [
            models.UniqueConstraint(
                fields=["product", "variant", "size"],
                name="unique_variant_size_per_product",
            ),
            models.CheckConstraint(
                condition=Q(average_cost__gte=0),
                name="chk_variant_average_cost_gte_zero",
            ),
        ]
        indexes = [
            models.Index(fields=["is_active"], name="variant_active_idx"),
        ]

    @staticmethod
    def build_sku(variant: str, size: str) -> str:
        return f"{(variant or '').strip()}-{(size or '').strip()}"

    def clean(self):
        if not (self.variant or "").strip():
            raise ValidationError({"variant": "variant is required"})
        if not (self.size or "").strip():
            raise ValidationError({"size": "size is required"})

    def save(self, *args, **kwargs):
        self.variant = (self.variant or "").strip()
        self.size = (self.size or "").strip()
        self.sku = self.build_sku(self.variant, self.size)

        if not self._state.adding:
            original = (
                ProductVariant.objects.filter(pk=self.pk)
                .values("total_quantity", "average_cost")
                .first()
            )
            if original is not None:
                if (
                    int(self.total_quantity) != int(original["total_quantity"])
                    or Decimal(self.average_cost) != Decimal(original["average_cost"])
                ):
                    raise ValidationError(
                        "Inventory summary is derived from batches and cannot be edited directly"
                    )
        elif self.total_quantity or self.average_cost:
            raise ValidationError("A new variant cannot be created with stock; record a purchase batch")

        self.full_clean(exclude=["sku"])
        super().save(*args, **kwargs)

    @property
    def total_value(self) -> Decimal:
        return Decimal(int(self.total_quantity or 0)) * Decimal(self.average_cost or 0)

    def __str__(self):
        return self.sku
