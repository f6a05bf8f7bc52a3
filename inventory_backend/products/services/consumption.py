# products/services/consumption.py

"""
CONSUMPTION ENTRY POINT

Single door for everything that takes stock out of a variant:

- purpose="sale"       -> FIFO engine (stock_fifo.consume), returns COGS
- purpose="adjustment" -> write-down engine (stock_adjustments.write_down), no COGS

`reference` identifies the consuming transaction:
- sale:       the SalesInvoiceItem the movements belong to
- adjustment: the adjustment reason (StockAdjustment.Reason value)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from django.db import models

from products.services.stock_adjustments import write_down
from products.services.stock_fifo import consume, to_int_quantity


class ConsumptionPurpose(models.TextChoices):
    SALE = "sale", "Sale"
    ADJUSTMENT = "adjustment", "Adjustment"


@dataclass(frozen=True)
class ConsumptionRequest:
    variant: object
    quantity: int
    purpose: str

    @classmethod
    def build(cls, *, variant, quantity, purpose) -> "ConsumptionRequest":
        if variant is None:
            raise ValueError("variant is required")

        value = str(purpose or "").strip().lower()
        if value not in ConsumptionPurpose.values:
            raise ValueError(f"Unsupported consumption purpose: {purpose!r}")

        return cls(variant=variant, quantity=to_int_quantity(quantity), purpose=value)


@dataclass(frozen=True)
class ConsumptionResult:
    cogs: Decimal | None
    movements: list = field(default_factory=list)
    adjustment: object = None


def record_consumption(variant, quantity, purpose, reference, *, note: str = "") -> ConsumptionResult:
    """
    Route a consumption request to the matching engine.

    Errors (InsufficientStockError, InvalidQuantityError, ...) propagate unchanged
    and the engine's transaction is rolled back.
    """
    request = ConsumptionRequest.build(variant=variant, quantity=quantity, purpose=purpose)

    if request.purpose == ConsumptionPurpose.SALE:
        result = consume(
            variant=request.variant,
            quantity=request.quantity,
            invoice_item=reference,
        )
        return ConsumptionResult(cogs=result.cogs, movements=result.movements)

    result = write_down(
        variant=request.variant,
        quantity=request.quantity,
        reason=reference,
        note=note,
    )
    return ConsumptionResult(
        cogs=None,
        movements=result.movements,
        adjustment=result.adjustment,
    )
