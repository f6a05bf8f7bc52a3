# products/models/purchase_batch.py

"""
PURCHASE BATCH (ARRIVAL-BASED INVENTORY)

Represents ONE purchase lot of a variant, with its own landed unit cost.

CANONICAL MODEL:
- original_quantity is immutable after creation
- remaining_quantity is mutated ONLY via services (FIFO / write-down / reversal)
- unit_cost is mutated ONLY via services (landed-cost repricing / write-down)
- arrival_sequence is a per-variant monotonic counter used for FIFO ordering
- is_active is ALWAYS derived (never user-controlled)
- Never deleted: an exhausted batch stays as a historical record

LANDED COST BREAKDOWN:
- unit_cost = source_price * exchange_rate + freight_per_unit + gap_per_unit,
  multiplied by value_multiplier (1 unless write-downs redistributed value).
"""

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import F, Q

from .product import ProductVariant


class PurchaseBatch(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    variant = models.ForeignKey(
        ProductVariant,
        on_delete=models.PROTECT,
        related_name="batches",
    )

    # NULL for batches that did not come from a purchase order (opening stock).
    purchase_order = models.ForeignKey(
        "purchases.PurchaseOrder",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="batches",
    )

    arrival_sequence = models.PositiveBigIntegerField(
        editable=False,
        help_text="Per-variant arrival order (FIFO key).",
    )

    source_price = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        help_text="Unit price in the supplier's currency.",
    )
    freight_per_unit = models.DecimalField(
        max_digits=18, decimal_places=4, default=Decimal("0.0000")
    )
    gap_per_unit = models.DecimalField(
        max_digits=18,
        decimal_places=4,
        default=Decimal("0.0000"),
        help_text="Payment gap spread per unit: (paid - nominal) / order quantity.",
    )
    value_multiplier = models.DecimalField(
        max_digits=24,
        decimal_places=12,
        default=Decimal("1"),
        help_text="Accumulated write-down redistribution factor (1 = none).",
    )

    unit_cost = models.DecimalField(
        max_digits=18,
        decimal_places=4,
        help_text="Landed unit cost (service-managed only).",
    )

    original_quantity = models.PositiveIntegerField(
        help_text="Quantity purchased (immutable)"
    )
    remaining_quantity = models.PositiveIntegerField(
        default=0,
        help_text="Remaining quantity (service-managed only)",
    )

    # Derived field: NEVER edited directly
    is_active = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["arrival_sequence", "created_at", "id"]
        indexes = [
            models.Index(fields=["variant", "is_active", "arrival_sequence"], name="batch_variant_fifo_idx"),
            models.Index(fields=["purchase_order"], name="batch_order_idx"),
            models.Index(fields=["created_at"], name="batch_created_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["variant", "arrival_sequence"],
                name="unique_batch_arrival_per_variant",
            ),
            models.CheckConstraint(
                condition=Q(original_quantity__gt=0),
                name="chk_batch_original_qty_gt_zero",
            ),
            models.CheckConstraint(
                condition=Q(remaining_quantity__gte=0),
                name="chk_batch_remaining_gte_zero",
            ),
            models.CheckConstraint(
                condition=Q(remaining_quantity__lte=F("original_quantity")),
                name="chk_batch_remaining_lte_original",
            ),
            models.CheckConstraint(
                condition=Q(unit_cost__gte=0),
                name="chk_batch_unit_cost_gte_zero",
            ),
        ]

    # -------------------------------------------------
    # VALIDATION
    # -------------------------------------------------

    def clean(self):
        if self.original_quantity is None or self.original_quantity <= 0:
            raise ValidationError(
                {"original_quantity": "original_quantity must be greater than zero"}
            )

        if self.remaining_quantity < 0:
            raise ValidationError(
                {"remaining_quantity": "remaining_quantity cannot be negative"}
            )

        if self.remaining_quantity > self.original_quantity:
            raise ValidationError(
                {"remaining_quantity": "remaining_quantity cannot exceed original_quantity"}
            )

        if self.unit_cost is not None and self.unit_cost < Decimal("0"):
            raise ValidationError({"unit_cost": "unit_cost cannot be negative"})

        if self.source_price is not None and self.source_price < Decimal("0"):
            raise ValidationError({"source_price": "source_price cannot be negative"})

    # -------------------------------------------------
    # IMMUTABILITY + DERIVED STATE
    # -------------------------------------------------

    def save(self, *args, **kwargs):
        if not self._state.adding:
            original = PurchaseBatch.objects.only(
                "original_quantity", "variant_id", "arrival_sequence"
            ).get(pk=self.pk)

            if self.original_quantity != original.original_quantity:
                raise ValidationError({"original_quantity": "original_quantity is immutable"})
            if self.variant_id != original.variant_id:
                raise ValidationError({"variant": "a batch cannot move to another variant"})
            if self.arrival_sequence != original.arrival_sequence:
                raise ValidationError({"arrival_sequence": "arrival_sequence is immutable"})

        # is_active is ALWAYS derived
        self.is_active = int(self.remaining_quantity or 0) > 0

        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "remaining_quantity" in update_fields:
            kwargs["update_fields"] = list(set(update_fields) | {"is_active"})

        self.full_clean(validate_unique=False, validate_constraints=False)
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("PurchaseBatch records are historical and cannot be deleted")

    # -------------------------------------------------
    # READ-ONLY HELPERS
    # -------------------------------------------------

    @property
    def allocated_freight(self) -> Decimal:
        return Decimal(self.freight_per_unit or 0) * Decimal(int(self.original_quantity or 0))

    @property
    def remaining_value(self) -> Decimal:
        """
        Inventory valuation for remaining quantity in this batch.
        """
        return Decimal(self.unit_cost or 0) * Decimal(int(self.remaining_quantity or 0))

    def __str__(self):
        sku = getattr(self.variant, "sku", "SKU")
        return f"{sku} | Batch #{self.arrival_sequence} | {self.remaining_quantity}/{self.original_quantity}"
