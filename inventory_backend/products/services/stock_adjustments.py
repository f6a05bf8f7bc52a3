# products/services/stock_adjustments.py

"""
VALUE-PRESERVING WRITE-DOWN SERVICE

Purpose:
- Remove damaged / defective / lost units from a variant (FIFO walk).
- Keep the monetary value of a batch on its surviving units.
- Enforce auditability via StockAdjustment + immutable StockMovement rows.

Per batch touched:
    old_value     = remaining * unit_cost
    new_remaining = remaining - taken

    new_remaining > 0  -> unit_cost = old_value / new_remaining (value conserved)
    new_remaining == 0 -> old_value leaves inventory (written off, logged)

Rules:
- quantity must be a positive integer and covered by current stock
- movements are tagged ADJUSTMENT with the pre-redistribution unit cost
- value_multiplier tracks the redistribution so landed-cost repricing keeps it
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP

from django.db import transaction

from products.models import StockAdjustment, StockMovement
from products.services.exceptions import InvalidAdjustmentReasonError
from products.services.inventory_summary import lock_variant, recompute_variant_summary
from products.services.landed_cost import quantize_cost
from products.services.stock_fifo import (
    locked_fifo_batches,
    plan_fifo_draws,
    to_int_quantity,
)


logger = logging.getLogger(__name__)

MULTIPLIER_PLACES = Decimal("0.000000000001")


@dataclass(frozen=True)
class WriteDownResult:
    adjustment: StockAdjustment
    movements: list = field(default_factory=list)
    value_written_off: Decimal = Decimal("0")


def _normalize_reason(reason) -> str:
    value = (str(reason or "")).strip().lower()
    if not value:
        return StockAdjustment.Reason.DEFECT
    if value not in StockAdjustment.Reason.values:
        allowed = ", ".join(StockAdjustment.Reason.values)
        raise InvalidAdjustmentReasonError(f"reason must be one of: {allowed}")
    return value


@transaction.atomic
def write_down(*, variant, quantity, reason=StockAdjustment.Reason.DEFECT, note: str = "") -> WriteDownResult:
    """
    Remove `quantity` units from a variant without losing their value.

    Returns WriteDownResult(adjustment, movements, value_written_off).
    """
    qty = to_int_quantity(quantity)
    reason_value = _normalize_reason(reason)

    locked_variant = lock_variant(variant)

    draws = plan_fifo_draws(
        variant=locked_variant,
        batches=locked_fifo_batches(locked_variant),
        quantity=qty,
    )

    adjustment = StockAdjustment.objects.create(
        variant=locked_variant,
        quantity=qty,
        reason=reason_value,
        note=note or "",
    )
    label = adjustment.label

    movements = []
    written_off = Decimal("0")

    for draw in draws:
        batch = draw.batch
        old_value = Decimal(draw.remaining_before) * draw.unit_cost
        new_remaining = draw.remaining_before - draw.taken

        update_fields = ["remaining_quantity"]
        batch.remaining_quantity = new_remaining

        if new_remaining > 0:
            batch.unit_cost = quantize_cost(old_value / Decimal(new_remaining))
            batch.value_multiplier = (
                Decimal(str(batch.value_multiplier or 1))
                * Decimal(draw.remaining_before)
                / Decimal(new_remaining)
            ).quantize(MULTIPLIER_PLACES, rounding=ROUND_HALF_UP)
            update_fields += ["unit_cost", "value_multiplier"]
        else:
            written_off += old_value
            logger.warning(
                "Write-down emptied batch; residual value written off",
                extra={
                    "variant_id": str(locked_variant.pk),
                    "batch_id": str(batch.pk),
                    "quantity": draw.taken,
                    "value_written_off": str(quantize_cost(old_value)),
                },
            )

        batch.save(update_fields=update_fields)

        movements.append(
            StockMovement.objects.create(
                variant=locked_variant,
                batch=batch,
                movement_type=StockMovement.MovementType.ADJUSTMENT,
                quantity=-draw.taken,
                unit_cost=draw.unit_cost,
                reason=label,
                adjustment=adjustment,
            )
        )

    if written_off:
        adjustment.value_written_off = quantize_cost(written_off)
        adjustment.save(update_fields=["value_written_off"])

    recompute_variant_summary(locked_variant)

    if variant is not locked_variant and hasattr(variant, "total_quantity"):
        variant.total_quantity = locked_variant.total_quantity
        variant.average_cost = locked_variant.average_cost

    logger.info(
        "Stock written down",
        extra={
            "variant_id": str(locked_variant.pk),
            "adjustment_id": str(adjustment.pk),
            "quantity": qty,
            "reason": reason_value,
        },
    )

    return WriteDownResult(
        adjustment=adjustment,
        movements=movements,
        value_written_off=adjustment.value_written_off,
    )
