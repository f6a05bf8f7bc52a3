# products/services/stock_intake.py

"""
STOCK INTAKE (BATCH CREATION)

Purpose:
- Create a PurchaseBatch with its landed-cost breakdown.
- Assign the per-variant arrival_sequence (FIFO key) under the variant lock.
- Produce a matching PURCHASE movement so the ledger shows how stock arrived.

The landed cost itself is decided by the caller (purchases.services.receiving_service
or an opening-stock import); this module only persists it.
"""

from __future__ import annotations

from decimal import Decimal

from django.db import transaction
from django.db.models import Max

from products.models import PurchaseBatch, StockMovement
from products.services.exceptions import InvalidLandedCostError
from products.services.inventory_summary import lock_variant, recompute_variant_summary
from products.services.landed_cost import quantize_cost, quantize_money
from products.services.stock_fifo import to_int_quantity


def next_arrival_sequence(variant) -> int:
    """
    Next FIFO position for a variant. Caller must hold the variant row lock.
    """
    current = (
        PurchaseBatch.objects.filter(variant=variant)
        .aggregate(top=Max("arrival_sequence"))
        .get("top")
    )
    return int(current or 0) + 1


@transaction.atomic
def create_batch(
    *,
    variant,
    quantity,
    source_price,
    unit_cost,
    freight_per_unit=Decimal("0"),
    gap_per_unit=Decimal("0"),
    purchase_order=None,
) -> PurchaseBatch:
    """
    Persist one purchase batch with remaining == original and a PURCHASE movement.

    Does NOT lock or recompute: callers run this under lock_variant() and
    recompute the summary once their whole operation is done.
    """
    qty = to_int_quantity(quantity)
    cost = quantize_cost(unit_cost)

    batch = PurchaseBatch.objects.create(
        variant=variant,
        purchase_order=purchase_order,
        arrival_sequence=next_arrival_sequence(variant),
        source_price=quantize_money(source_price),
        freight_per_unit=quantize_cost(freight_per_unit),
        gap_per_unit=quantize_cost(gap_per_unit),
        unit_cost=cost,
        original_quantity=qty,
        remaining_quantity=qty,
    )

    StockMovement.objects.create(
        variant=variant,
        batch=batch,
        movement_type=StockMovement.MovementType.PURCHASE,
        quantity=qty,
        unit_cost=cost,
        reason=_intake_reason(purchase_order),
    )

    return batch


def _intake_reason(purchase_order) -> str:
    number = getattr(purchase_order, "order_number", "") if purchase_order else ""
    return f"Purchase {number}" if number else "Opening stock"


@transaction.atomic
def receive_opening_stock(*, variant, quantity, unit_cost) -> PurchaseBatch:
    """
    Record stock that predates purchase-order tracking at a known unit cost.
    """
    locked_variant = lock_variant(variant)
    cost = quantize_cost(unit_cost)
    if cost < Decimal("0"):
        raise InvalidLandedCostError("unit_cost cannot be negative")

    batch = create_batch(
        variant=locked_variant,
        quantity=quantity,
        source_price=cost,
        unit_cost=cost,
    )

    recompute_variant_summary(locked_variant)
    return batch
