# sales/models/invoice.py

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone


class SalesInvoice(models.Model):
    """
    Represents one recorded sale (marketplace invoice).

    GUARANTEES:
    - invoice_number is unique
    - Stock is mutated ONLY via the FIFO engine (one set of movements per item)
    - total_cogs is written once, when the sale is recorded
    - Deleted ONLY by the reversal service (delete(reversal=True)), which first
      restores stock to the originating batches
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    invoice_number = models.CharField(max_length=64, unique=True)
    marketplace = models.CharField(max_length=100, blank=True, default="")

    total_selling_price = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        help_text="Revenue of the whole invoice (home currency).",
    )
    total_cogs = models.DecimalField(
        max_digits=18,
        decimal_places=4,
        default=Decimal("0.0000"),
        help_text="Sum of FIFO COGS across items (set at recording).",
    )

    sale_date = models.DateField(default=timezone.localdate)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-sale_date", "-created_at"]
        indexes = [
            models.Index(fields=["sale_date"], name="invoice_sale_date_idx"),
            models.Index(fields=["marketplace", "sale_date"], name="invoice_marketplace_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(total_selling_price__gte=Decimal("0.00")),
                name="invoice_selling_price_nonnegative",
            ),
            models.CheckConstraint(
                condition=models.Q(total_cogs__gte=Decimal("0")),
                name="invoice_cogs_nonnegative",
            ),
        ]

    def clean(self):
        if not (self.invoice_number or "").strip():
            raise ValidationError({"invoice_number": "invoice_number is required"})

        if self.total_selling_price is not None and self.total_selling_price < Decimal("0.00"):
            raise ValidationError(
                {"total_selling_price": "total_selling_price cannot be negative"}
            )

    def save(self, *args, **kwargs):
        self.invoice_number = (self.invoice_number or "").strip()
        self.marketplace = (self.marketplace or "").strip()

        if not self._state.adding:
            update_fields = kwargs.get("update_fields")
            if not update_fields or set(update_fields) - {"total_cogs"}:
                raise ValidationError("SalesInvoice records are immutable once recorded")

        self.full_clean(validate_unique=self._state.adding, validate_constraints=False)
        return super().save(*args, **kwargs)

    def delete(self, *args, reversal=False, **kwargs):
        if not reversal:
            raise ValidationError(
                "Sales invoices are removed only by reversing them (stock must be restored)"
            )
        return super().delete(*args, **kwargs)

    @property
    def gross_profit(self) -> Decimal:
        return Decimal(self.total_selling_price or 0) - Decimal(self.total_cogs or 0)

    def __str__(self):
        return self.invoice_number


class SalesInvoiceItem(models.Model):
    """
    One sold line of an invoice.

    proportional_revenue is this line's share of the invoice revenue (split by
    quantity); cogs_used is the FIFO cost of the units it consumed.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    invoice = models.ForeignKey(
        SalesInvoice,
        on_delete=models.CASCADE,
        related_name="items",
    )

    variant = models.ForeignKey(
        "products.ProductVariant",
        on_delete=models.PROTECT,
        related_name="invoice_items",
    )

    quantity = models.PositiveIntegerField()

    proportional_revenue = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=Decimal("0.00"),
    )
    cogs_used = models.DecimalField(
        max_digits=18,
        decimal_places=4,
        default=Decimal("0.0000"),
        help_text="FIFO-derived cost of this line (snapshot).",
    )

    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(fields=["invoice", "created_at"], name="invoice_item_invoice_idx"),
            models.Index(fields=["variant", "created_at"], name="invoice_item_variant_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gt=0),
                name="invoice_item_quantity_gt_zero",
            ),
        ]

    def clean(self):
        if self.quantity is None or self.quantity <= 0:
            raise ValidationError({"quantity": "quantity must be greater than zero"})

    def save(self, *args, **kwargs):
        if not self._state.adding:
            # Only the FIFO cost snapshot may be written after creation.
            update_fields = kwargs.get("update_fields")
            if not update_fields or set(update_fields) - {"cogs_used"}:
                raise ValidationError("SalesInvoiceItem records are immutable")

        self.full_clean(validate_constraints=False)
        return super().save(*args, **kwargs)

    @property
    def profit(self) -> Decimal:
        return Decimal(self.proportional_revenue or 0) - Decimal(self.cogs_used or 0)

    def __str__(self):
        sku = getattr(self.variant, "sku", "SKU")
        return f"{sku} x {self.quantity}"
