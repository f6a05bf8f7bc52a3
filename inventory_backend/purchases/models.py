# purchases/models.py

import uuid
from decimal import Decimal, ROUND_HALF_UP

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Sum
from django.utils import timezone

TWOPLACES = Decimal("0.01")
FOURPLACES = Decimal("0.0001")


def _money(v) -> Decimal:
    return Decimal(str(v or "0.00")).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def _generate_order_number() -> str:
    return f"PO-{timezone.localdate():%Y%m%d}-{uuid.uuid4().hex[:6].upper()}"


class PurchaseOrder(models.Model):
    """
    Supplier purchase order (header of one or more PurchaseBatch rows).

    Landed-cost inputs live here and are shared by every batch of the order:
    - exchange_rate: supplier currency -> home currency
    - total_logistics_fee: freight for the whole order (final at completion)
    - total_payment: what was actually paid in home currency (optional)

    Batches are created and repriced by purchases.services.receiving_service.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    STATUS_PENDING = "pending"
    STATUS_COMPLETED = "completed"
    STATUS_CANCELLED = "cancelled"

    STATUSES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_COMPLETED, "Completed"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    order_number = models.CharField(
        max_length=64,
        unique=True,
        default=_generate_order_number,
    )
    supplier = models.CharField(max_length=200, blank=True, default="")

    exchange_rate = models.DecimalField(
        max_digits=14,
        decimal_places=6,
        help_text="Home-currency value of one unit of the supplier currency.",
    )
    total_logistics_fee = models.DecimalField(
        max_digits=14, decimal_places=2, default=Decimal("0.00")
    )
    total_payment = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        null=True,
        blank=True,
        help_text="Actual amount paid (home currency). Empty = unknown, no payment gap.",
    )

    status = models.CharField(max_length=20, choices=STATUSES, default=STATUS_PENDING)

    order_date = models.DateField(default=timezone.localdate)
    expected_delivery = models.DateField(null=True, blank=True)
    actual_delivery = models.DateField(null=True, blank=True)

    notes = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(exchange_rate__gt=Decimal("0")),
                name="purchase_order_exchange_rate_gt_zero",
            ),
            models.CheckConstraint(
                condition=models.Q(total_logistics_fee__gte=Decimal("0.00")),
                name="purchase_order_logistics_nonnegative",
            ),
            models.CheckConstraint(
                condition=models.Q(total_payment__isnull=True)
                | models.Q(total_payment__gte=Decimal("0.00")),
                name="purchase_order_payment_nonnegative",
            ),
        ]
        indexes = [
            models.Index(fields=["status", "created_at"], name="purchase_order_status_idx"),
            models.Index(fields=["order_date"], name="purchase_order_date_idx"),
        ]

    def clean(self):
        if not (self.order_number or "").strip():
            raise ValidationError({"order_number": "order_number is required"})

        if self.exchange_rate is None or self.exchange_rate <= Decimal("0"):
            raise ValidationError({"exchange_rate": "exchange_rate must be greater than zero"})

        if self.total_logistics_fee is not None and self.total_logistics_fee < Decimal("0.00"):
            raise ValidationError(
                {"total_logistics_fee": "total_logistics_fee cannot be negative"}
            )

        if self.total_payment is not None and self.total_payment < Decimal("0.00"):
            raise ValidationError({"total_payment": "total_payment cannot be negative"})

        if self.status == self.STATUS_CANCELLED and self.actual_delivery:
            raise ValidationError(
                {"actual_delivery": "actual_delivery must be empty when status is cancelled"}
            )

    def save(self, *args, **kwargs):
        if self.order_number is not None:
            self.order_number = self.order_number.strip()
        if self.supplier is not None:
            self.supplier = self.supplier.strip()

        self.full_clean()
        return super().save(*args, **kwargs)

    # -------------------------------------------------
    # DERIVED (READ-ONLY)
    # -------------------------------------------------

    @property
    def is_open(self) -> bool:
        return self.status == self.STATUS_PENDING

    @property
    def total_quantity(self) -> int:
        agg = self.batches.aggregate(total=Sum("original_quantity"))
        return int(agg["total"] or 0)

    @property
    def logistics_fee_per_unit(self) -> Decimal:
        qty = self.total_quantity
        if qty <= 0:
            return Decimal("0.0000")
        return (Decimal(str(self.total_logistics_fee or 0)) / Decimal(qty)).quantize(
            FOURPLACES, rounding=ROUND_HALF_UP
        )

    @property
    def source_subtotal(self) -> Decimal:
        """SUM(source_price * quantity) in the supplier currency."""
        total = Decimal("0")
        for price, qty in self.batches.values_list("source_price", "original_quantity"):
            total += Decimal(str(price)) * Decimal(int(qty))
        return _money(total)

    @property
    def nominal_total(self) -> Decimal:
        """Source subtotal converted at the order exchange rate (home currency)."""
        return _money(self.source_subtotal * Decimal(str(self.exchange_rate or 0)))

    @property
    def inventory_value(self) -> Decimal:
        total = Decimal("0")
        for qty, cost in self.batches.values_list("original_quantity", "unit_cost"):
            total += Decimal(int(qty)) * Decimal(str(cost))
        return _money(total)

    def __str__(self):
        supplier = f" ({self.supplier})" if self.supplier else ""
        return f"{self.order_number}{supplier}"
