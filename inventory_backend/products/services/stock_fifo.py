# products/services/stock_fifo.py

"""
FIFO CONSUMPTION ENGINE

Purpose:
- Deduct stock from a variant's purchase batches oldest-first (arrival_sequence).
- Return COGS = SUM(taken * batch.unit_cost) with one SALE movement per batch touched.
- Integer-only quantities.

HARD RULES:
- All-or-nothing: if the variant cannot cover the request, nothing is deducted.
- Every SALE movement snapshots the batch unit_cost applied (cost basis).
- This engine never computes revenue or profit; the caller owns that.
- Runs under the variant row lock and ends with a summary recompute.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from django.db import transaction

from products.models import PurchaseBatch, StockMovement
from products.services.exceptions import InsufficientStockError, InvalidQuantityError
from products.services.inventory_summary import lock_variant, recompute_variant_summary


def _is_whole(value) -> bool:
    try:
        return value == int(value)
    except (ValueError, OverflowError):
        return False


def to_int_quantity(value) -> int:
    """
    Quantity normalizer.
    HARD RULE: quantities are whole positive units in this system.
    """
    if value is None or value == "":
        raise InvalidQuantityError("quantity is required")

    if isinstance(value, bool):
        raise InvalidQuantityError("quantity must be a whole integer unit")

    if isinstance(value, int):
        qty = value
    elif isinstance(value, str) and value.strip().lstrip("-").isdigit():
        qty = int(value.strip())
    elif isinstance(value, (float, Decimal)) and _is_whole(value):
        qty = int(value)
    else:
        raise InvalidQuantityError("quantity must be a whole integer unit")

    if qty <= 0:
        raise InvalidQuantityError("quantity must be greater than zero")

    return qty


@dataclass(frozen=True)
class FifoDraw:
    """One batch's share of a consumption, captured before the batch is mutated."""

    batch: PurchaseBatch
    taken: int
    remaining_before: int
    unit_cost: Decimal

    @property
    def cost(self) -> Decimal:
        return Decimal(self.taken) * self.unit_cost


@dataclass(frozen=True)
class FifoResult:
    cogs: Decimal
    movements: list = field(default_factory=list)

    @property
    def quantity(self) -> int:
        return sum(abs(int(m.quantity)) for m in self.movements)


def locked_fifo_batches(variant):
    """
    Open batches of a variant in consumption order, row-locked.
    """
    return list(
        PurchaseBatch.objects.select_for_update()
        .filter(variant=variant, remaining_quantity__gt=0)
        .order_by("arrival_sequence", "created_at", "id")
    )


def plan_fifo_draws(*, variant, batches, quantity: int) -> list:
    """
    Walk batches oldest-first and decide how much each one gives up.

    Raises InsufficientStockError before anything is planned if the batches
    cannot cover the request.
    """
    available = sum(int(b.remaining_quantity or 0) for b in batches)
    if available < quantity:
        raise InsufficientStockError(
            sku=getattr(variant, "sku", str(variant)),
            requested=quantity,
            available=available,
        )

    needed = quantity
    draws = []

    for batch in batches:
        if needed <= 0:
            break

        remaining = int(batch.remaining_quantity or 0)
        if remaining <= 0:
            continue

        taken = min(needed, remaining)
        draws.append(
            FifoDraw(
                batch=batch,
                taken=taken,
                remaining_before=remaining,
                unit_cost=Decimal(str(batch.unit_cost)),
            )
        )
        needed -= taken

    return draws


# ============================================================
# FIFO CONSUMPTION
# ============================================================

def _sale_reason(invoice_item) -> str:
    invoice = getattr(invoice_item, "invoice", None)
    number = getattr(invoice, "invoice_number", "") or ""
    return f"Sale {number}".strip()


@transaction.atomic
def consume(*, variant, quantity, invoice_item) -> FifoResult:
    """
    Consume `quantity` units of a variant for a sale line item.

    Returns FifoResult(cogs, movements). Movements carry the negative quantity
    taken from each batch and the batch unit cost at that moment.
    """
    if invoice_item is None:
        raise ValueError(
            "invoice_item is required for FIFO consumption (sale movements require a line item)."
        )

    qty = to_int_quantity(quantity)
    locked_variant = lock_variant(variant)

    draws = plan_fifo_draws(
        variant=locked_variant,
        batches=locked_fifo_batches(locked_variant),
        quantity=qty,
    )

    cogs = Decimal("0")
    movements = []

    for draw in draws:
        batch = draw.batch
        batch.remaining_quantity = draw.remaining_before - draw.taken
        batch.save(update_fields=["remaining_quantity"])

        movements.append(
            StockMovement.objects.create(
                variant=locked_variant,
                batch=batch,
                movement_type=StockMovement.MovementType.SALE,
                quantity=-draw.taken,
                unit_cost=draw.unit_cost,
                reason=_sale_reason(invoice_item),
                invoice_item=invoice_item,
            )
        )
        cogs += draw.cost

    recompute_variant_summary(locked_variant)

    if variant is not locked_variant and hasattr(variant, "total_quantity"):
        variant.total_quantity = locked_variant.total_quantity
        variant.average_cost = locked_variant.average_cost

    return FifoResult(cogs=cogs, movements=movements)
