# products/models/stock_movement.py

"""
INVENTORY LEDGER ENTRY (BATCH MOVEMENT)

Append-only record linking a PurchaseBatch to the transaction that moved it.

GUARANTEES:
- Created ONCE, never edited
- quantity is signed: +N for purchases, -N for sales and write-downs
- unit_cost is the batch cost applied at movement time (snapshot)
- One movement per (batch, sale line item) and per (batch, adjustment)
- Deleted ONLY by the sale reversal service (delete(reversal=True))
"""

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q

from .product import ProductVariant
from .purchase_batch import PurchaseBatch
from .stock_adjustment import StockAdjustment


class StockMovement(models.Model):
    class MovementType(models.TextChoices):
        PURCHASE = "purchase", "Purchase"
        SALE = "sale", "Sale"
        ADJUSTMENT = "adjustment", "Write-down Adjustment"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    variant = models.ForeignKey(
        ProductVariant, on_delete=models.PROTECT, related_name="stock_movements"
    )
    batch = models.ForeignKey(
        PurchaseBatch, on_delete=models.PROTECT, related_name="stock_movements"
    )

    movement_type = models.CharField(max_length=20, choices=MovementType.choices)

    quantity = models.IntegerField(help_text="Signed quantity (+in / -out).")

    unit_cost = models.DecimalField(
        max_digits=18,
        decimal_places=4,
        help_text="Unit cost applied at movement time (immutable).",
    )

    reason = models.CharField(max_length=255, blank=True, default="")

    invoice_item = models.ForeignKey(
        "sales.SalesInvoiceItem",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="stock_movements",
    )

    adjustment = models.ForeignKey(
        StockAdjustment,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="stock_movements",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(fields=["variant", "created_at"], name="movement_variant_idx"),
            models.Index(fields=["batch", "created_at"], name="movement_batch_idx"),
            models.Index(fields=["movement_type"], name="movement_type_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["batch", "invoice_item"],
                condition=Q(invoice_item__isnull=False),
                name="unique_movement_per_batch_sale_item",
            ),
            models.UniqueConstraint(
                fields=["batch", "adjustment"],
                condition=Q(adjustment__isnull=False),
                name="unique_movement_per_batch_adjustment",
            ),
            models.CheckConstraint(
                condition=~Q(quantity=0),
                name="chk_movement_quantity_nonzero",
            ),
        ]

    def clean(self):
        if not self.quantity:
            raise ValidationError("quantity must be non-zero")

        if self.batch_id and self.variant_id:
            batch_variant_id = (
                PurchaseBatch.objects.filter(id=self.batch_id)
                .values_list("variant_id", flat=True)
                .first()
            )
            if batch_variant_id and batch_variant_id != self.variant_id:
                raise ValidationError("Batch does not belong to variant")

        if self.movement_type == self.MovementType.PURCHASE:
            if self.quantity < 0:
                raise ValidationError("purchase movements must be positive")
        elif self.quantity > 0:
            raise ValidationError(f"{self.movement_type} movements must be negative")

        if self.movement_type == self.MovementType.SALE and not self.invoice_item_id:
            raise ValidationError("sale movements must reference a sale line item")

        if self.movement_type == self.MovementType.ADJUSTMENT and not self.adjustment_id:
            raise ValidationError("adjustment movements must reference a stock adjustment")

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("StockMovement records are immutable")

        self.full_clean(validate_constraints=False)
        return super().save(*args, **kwargs)

    def delete(self, *args, reversal=False, **kwargs):
        if not reversal or self.movement_type != self.MovementType.SALE:
            raise ValidationError(
                "StockMovement records are append-only; only a sale reversal may remove them"
            )
        return super().delete(*args, **kwargs)

    @property
    def total_cost(self) -> Decimal:
        return Decimal(self.unit_cost or 0) * Decimal(abs(int(self.quantity or 0)))

    def __str__(self):
        sku = getattr(self.variant, "sku", "SKU")
        return f"{sku} | {self.movement_type} | {self.quantity}"
