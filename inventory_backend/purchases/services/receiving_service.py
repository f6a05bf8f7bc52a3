# purchases/services/receiving_service.py


"""
======================================================
PATH: purchases/services/receiving_service.py
======================================================
PURCHASE RECEIVING SERVICE

Record purchase batches against a PurchaseOrder and keep their landed cost
in step with the order's totals.

Canonical flow (record_purchase_batch):
1) Lock order, then every variant the order touches (pk order), then the
   order's batches; variants are always locked before batches, as in FIFO
2) Validate status (only PENDING orders accept batches)
3) Allocate freight + payment gap per unit across ALL order lines (incl. the new one)
4) Intake the new batch (PurchaseBatch + PURCHASE movement)
5) Reprice sibling batches (the gap is order-level, so it moves when the order grows)
6) Recompute every affected variant summary

Finalization (finalize_order_logistics):
- Freight / payment become final, every batch of the order is repriced from the
  final totals and every affected variant summary is rebuilt.
- Repeating it on a COMPLETED order is allowed (corrections); CANCELLED is rejected.

Write-down redistribution survives repricing: the fresh landed cost is multiplied
by the batch's value_multiplier.
"""

from __future__ import annotations

import logging
from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from products.models import PurchaseBatch
from products.services.exceptions import (
    InvalidLandedCostError,
    LedgerObjectNotFoundError,
    PurchaseOrderStateError,
)
from products.services.inventory_summary import (
    lock_variant,
    lock_variants,
    recompute_variant_summaries,
    variant_key,
)
from products.services.landed_cost import (
    OrderCostContext,
    OrderLine,
    allocate_order_costs,
    landed_unit_cost,
    quantize_money,
)
from products.services.stock_fifo import to_int_quantity
from products.services.stock_intake import create_batch

from purchases.models import PurchaseOrder


logger = logging.getLogger(__name__)

RATE_PLACES = Decimal("0.000001")


def _rate(value) -> Decimal:
    if value in (None, ""):
        value = getattr(settings, "INVENTORY_DEFAULT_EXCHANGE_RATE", "1")
    try:
        rate = Decimal(str(value)).quantize(RATE_PLACES, rounding=ROUND_HALF_UP)
    except Exception as exc:
        raise InvalidLandedCostError("exchange_rate must be a valid decimal") from exc
    if rate <= Decimal("0"):
        raise InvalidLandedCostError("exchange_rate must be greater than zero")
    return rate


def _optional_money(value, *, field_name: str):
    if value in (None, ""):
        return None
    try:
        amount = quantize_money(value)
    except Exception as exc:
        raise InvalidLandedCostError(f"{field_name} must be a valid decimal") from exc
    if amount < Decimal("0.00"):
        raise InvalidLandedCostError(f"{field_name} cannot be negative")
    return amount


def _lock_order(order) -> PurchaseOrder:
    pk = getattr(order, "pk", order)
    try:
        return PurchaseOrder.objects.select_for_update().get(pk=pk)
    except (PurchaseOrder.DoesNotExist, ValueError, ValidationError) as exc:
        raise LedgerObjectNotFoundError(f"Purchase order not found: {pk}") from exc


def _order_context(order: PurchaseOrder) -> OrderCostContext:
    return OrderCostContext(
        exchange_rate=Decimal(str(order.exchange_rate)),
        total_freight=Decimal(str(order.total_logistics_fee or 0)),
        total_paid=None if order.total_payment is None else Decimal(str(order.total_payment)),
    )


def _order_variant_ids(order: PurchaseOrder) -> list:
    # Read without locking; variants are locked before their batches.
    return list(
        PurchaseBatch.objects.filter(purchase_order=order)
        .values_list("variant_id", flat=True)
        .distinct()
    )


def _locked_order_batches(order: PurchaseOrder) -> list:
    return list(
        PurchaseBatch.objects.select_for_update()
        .filter(purchase_order=order)
        .order_by("created_at", "id")
    )


def _reprice_batches(*, order: PurchaseOrder, batches, allocation) -> set:
    """
    Apply the order allocation to each batch. Returns the variant ids touched.
    """
    touched = set()

    for batch in batches:
        landed = landed_unit_cost(
            source_price=batch.source_price,
            exchange_rate=order.exchange_rate,
            allocation=allocation,
            value_multiplier=batch.value_multiplier,
        )

        if (
            batch.unit_cost == landed.unit_cost
            and batch.freight_per_unit == landed.freight_per_unit
            and batch.gap_per_unit == landed.gap_per_unit
        ):
            continue

        batch.unit_cost = landed.unit_cost
        batch.freight_per_unit = landed.freight_per_unit
        batch.gap_per_unit = landed.gap_per_unit
        batch.save(update_fields=["unit_cost", "freight_per_unit", "gap_per_unit"])
        touched.add(batch.variant_id)

    return touched


# ============================================================
# ORDERS
# ============================================================

@transaction.atomic
def create_purchase_order(
    *,
    supplier: str = "",
    exchange_rate=None,
    total_logistics_fee=None,
    total_payment=None,
    order_date=None,
    expected_delivery=None,
    notes: str = "",
    lines=None,
) -> PurchaseOrder:
    """
    Create a PENDING order and (optionally) its batches.

    lines: iterable of {"variant": ProductVariant|id, "source_price": ..., "quantity": ...}
    """
    order = PurchaseOrder.objects.create(
        supplier=supplier or "",
        exchange_rate=_rate(exchange_rate),
        total_logistics_fee=_optional_money(total_logistics_fee, field_name="total_logistics_fee")
        or Decimal("0.00"),
        total_payment=_optional_money(total_payment, field_name="total_payment"),
        order_date=order_date or timezone.localdate(),
        expected_delivery=expected_delivery,
        notes=notes or "",
    )

    for line in lines or []:
        record_purchase_batch(
            variant=line["variant"],
            source_price=line["source_price"],
            quantity=line["quantity"],
            order=order,
        )

    logger.info(
        "Purchase order created",
        extra={"order_id": str(order.id), "order_number": order.order_number},
    )
    return order


@transaction.atomic
def cancel_purchase_order(order) -> PurchaseOrder:
    """
    Cancel a PENDING order that has not received any batch yet.
    """
    locked = _lock_order(order)

    if locked.status != PurchaseOrder.STATUS_PENDING:
        raise PurchaseOrderStateError(f"Only pending orders can be cancelled ({locked.status})")

    if PurchaseBatch.objects.filter(purchase_order=locked).exists():
        raise PurchaseOrderStateError("Orders with received batches cannot be cancelled")

    locked.status = PurchaseOrder.STATUS_CANCELLED
    locked.save(update_fields=["status", "updated_at"])
    return locked


# ============================================================
# BATCH RECORDING
# ============================================================

@transaction.atomic
def record_purchase_batch(variant, source_price, quantity, order=None) -> PurchaseBatch:
    """
    Record one purchase batch and price it with the order's landed cost.

    Without an order the batch is priced at source_price * default exchange rate
    (no freight, no gap).
    """
    qty = to_int_quantity(quantity)

    if order is None:
        locked_variant = lock_variant(variant)
        rate = _rate(None)
        allocation = allocate_order_costs(
            context=OrderCostContext(exchange_rate=rate),
            lines=[OrderLine(source_price=quantize_money(source_price), quantity=qty)],
        )
        landed = landed_unit_cost(source_price=source_price, exchange_rate=rate, allocation=allocation)
        batch = create_batch(
            variant=locked_variant,
            quantity=qty,
            source_price=source_price,
            unit_cost=landed.unit_cost,
        )
        recompute_variant_summaries([locked_variant])
        return batch

    locked_order = _lock_order(order)
    if locked_order.status != PurchaseOrder.STATUS_PENDING:
        raise PurchaseOrderStateError(
            f"Cannot add batches to a {locked_order.status} purchase order ({locked_order.order_number})"
        )

    variants = lock_variants([variant] + _order_variant_ids(locked_order))
    target_pk = variant_key(variant)
    target = next(v for v in variants.values() if str(v.pk) == target_pk)
    siblings = _locked_order_batches(locked_order)

    lines = [OrderLine(source_price=b.source_price, quantity=b.original_quantity) for b in siblings]
    lines.append(OrderLine(source_price=quantize_money(source_price), quantity=qty))

    allocation = allocate_order_costs(context=_order_context(locked_order), lines=lines)

    landed = landed_unit_cost(
        source_price=quantize_money(source_price),
        exchange_rate=locked_order.exchange_rate,
        allocation=allocation,
    )

    batch = create_batch(
        variant=target,
        quantity=qty,
        source_price=source_price,
        unit_cost=landed.unit_cost,
        freight_per_unit=landed.freight_per_unit,
        gap_per_unit=landed.gap_per_unit,
        purchase_order=locked_order,
    )

    touched = _reprice_batches(order=locked_order, batches=siblings, allocation=allocation)
    touched.add(target.pk)
    recompute_variant_summaries(touched)

    logger.info(
        "Purchase batch recorded",
        extra={
            "order_id": str(locked_order.id),
            "variant_id": str(target.pk),
            "batch_id": str(batch.id),
            "quantity": qty,
            "unit_cost": str(batch.unit_cost),
        },
    )
    return batch


# ============================================================
# FINALIZATION
# ============================================================

@transaction.atomic
def finalize_order_logistics(order, total_freight, total_paid=None) -> PurchaseOrder:
    """
    Set the order's final freight (and optionally the actual amount paid),
    mark it COMPLETED and reprice every batch of the order.

    total_paid=None keeps whatever payment is already on the order.
    """
    locked_order = _lock_order(order)

    if locked_order.status == PurchaseOrder.STATUS_CANCELLED:
        raise PurchaseOrderStateError(
            f"Cannot finalize a cancelled purchase order ({locked_order.order_number})"
        )

    freight = _optional_money(total_freight, field_name="total_freight")
    paid = _optional_money(total_paid, field_name="total_paid")

    locked_order.total_logistics_fee = freight if freight is not None else Decimal("0.00")
    if paid is not None:
        locked_order.total_payment = paid
    locked_order.status = PurchaseOrder.STATUS_COMPLETED
    if not locked_order.actual_delivery:
        locked_order.actual_delivery = timezone.localdate()
    locked_order.save()

    lock_variants(_order_variant_ids(locked_order))
    batches = _locked_order_batches(locked_order)

    allocation = allocate_order_costs(
        context=_order_context(locked_order),
        lines=[OrderLine(source_price=b.source_price, quantity=b.original_quantity) for b in batches],
    )

    touched = _reprice_batches(order=locked_order, batches=batches, allocation=allocation)
    recompute_variant_summaries({b.variant_id for b in batches})

    logger.info(
        "Purchase order logistics finalized",
        extra={
            "order_id": str(locked_order.id),
            "order_number": locked_order.order_number,
            "batches": len(batches),
            "variants_repriced": len(touched),
            "freight_per_unit": str(allocation.freight_per_unit),
            "gap_per_unit": str(allocation.gap_per_unit),
        },
    )

    if isinstance(order, PurchaseOrder) and order is not locked_order:
        order.refresh_from_db()

    return locked_order
