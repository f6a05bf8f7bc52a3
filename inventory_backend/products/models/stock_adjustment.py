# products/models/stock_adjustment.py

"""
STOCK ADJUSTMENT (WRITE-DOWN TRANSACTION)

The consuming transaction behind a non-sale stock loss (defect, damage, loss).
Its StockMovement rows record which batches absorbed the loss.

value_written_off captures the value that could not be redistributed because
the adjustment emptied a batch (there were no units left to carry it).
"""

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q

from .product import ProductVariant


class StockAdjustment(models.Model):
    class Reason(models.TextChoices):
        DEFECT = "defect", "Defect"
        DAMAGE = "damage", "Damage"
        LOST = "lost", "Lost / Missing"
        OTHER = "other", "Other"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    variant = models.ForeignKey(
        ProductVariant,
        on_delete=models.PROTECT,
        related_name="stock_adjustments",
    )

    quantity = models.PositiveIntegerField(help_text="Units removed from stock.")
    reason = models.CharField(max_length=20, choices=Reason.choices, default=Reason.DEFECT)
    note = models.CharField(max_length=255, blank=True, default="")

    value_written_off = models.DecimalField(
        max_digits=18,
        decimal_places=4,
        default=Decimal("0.0000"),
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["variant", "created_at"], name="adjustment_variant_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(quantity__gt=0),
                name="chk_adjustment_quantity_gt_zero",
            ),
        ]

    def clean(self):
        if self.quantity is None or self.quantity <= 0:
            raise ValidationError({"quantity": "quantity must be greater than zero"})

    def save(self, *args, **kwargs):
        self.note = (self.note or "").strip()
        self.full_clean(validate_constraints=False)
        super().save(*args, **kwargs)

    @property
    def label(self) -> str:
        text = self.get_reason_display()
        return f"{text}: {self.note}" if self.note else text

    def __str__(self):
        sku = getattr(self.variant, "sku", "SKU")
        return f"{sku} | {self.reason} | -{self.quantity}"
