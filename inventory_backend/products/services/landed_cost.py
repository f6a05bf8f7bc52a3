# products/services/landed_cost.py

"""
LANDED-COST CALCULATOR

Purpose:
- Turn a batch's supplier-currency price into a landed unit cost:

      unit_cost = source_price * exchange_rate + freight_per_unit + gap_per_unit

- freight_per_unit = order freight / order quantity
- gap_per_unit     = (actual paid - nominal order total) / order quantity
  where nominal order total = SUM(source_price * exchange_rate * quantity)

Rules:
- Freight and gap are allocated PER UNIT (never per batch), so every unit of a
  multi-item order carries the same share.
- Unknown payment (None) means no gap.
- Pure functions: no database access here. Repricing of stored batches lives in
  purchases.services.receiving_service.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

from products.services.exceptions import InvalidLandedCostError


COST_PLACES = Decimal("0.0001")
MONEY_PLACES = Decimal("0.01")
ZERO = Decimal("0")


def quantize_cost(value) -> Decimal:
    return Decimal(str(value)).quantize(COST_PLACES, rounding=ROUND_HALF_UP)


def quantize_money(value) -> Decimal:
    return Decimal(str(value)).quantize(MONEY_PLACES, rounding=ROUND_HALF_UP)


def _to_decimal(value, *, field_name: str) -> Decimal:
    if value is None or value == "":
        raise InvalidLandedCostError(f"{field_name} is required")
    if isinstance(value, bool):
        raise InvalidLandedCostError(f"{field_name} must be a valid decimal")
    try:
        return Decimal(str(value))
    except Exception as exc:
        raise InvalidLandedCostError(f"{field_name} must be a valid decimal") from exc


@dataclass(frozen=True)
class OrderLine:
    """One batch of an order as seen by the calculator."""

    source_price: Decimal
    quantity: int


@dataclass(frozen=True)
class OrderCostContext:
    """
    Order-level inputs shared by every batch of a purchase order.

    total_paid is what was actually paid in the home currency (None if unknown).
    """

    exchange_rate: Decimal
    total_freight: Decimal = ZERO
    total_paid: Decimal | None = None

    def validated(self) -> "OrderCostContext":
        rate = _to_decimal(self.exchange_rate, field_name="exchange_rate")
        if rate <= ZERO:
            raise InvalidLandedCostError("exchange_rate must be greater than zero")

        freight = _to_decimal(self.total_freight or ZERO, field_name="total_freight")
        if freight < ZERO:
            raise InvalidLandedCostError("total_freight cannot be negative")

        paid = None
        if self.total_paid is not None:
            paid = _to_decimal(self.total_paid, field_name="total_paid")
            if paid < ZERO:
                raise InvalidLandedCostError("total_paid cannot be negative")

        return OrderCostContext(exchange_rate=rate, total_freight=freight, total_paid=paid)


@dataclass(frozen=True)
class OrderAllocation:
    """Per-unit shares derived from an order's totals."""

    total_quantity: int
    nominal_total: Decimal
    freight_per_unit: Decimal
    gap_per_unit: Decimal

    @property
    def total_gap(self) -> Decimal:
        return self.gap_per_unit * Decimal(self.total_quantity)


@dataclass(frozen=True)
class LandedCost:
    base_cost: Decimal
    freight_per_unit: Decimal
    gap_per_unit: Decimal
    unit_cost: Decimal


def nominal_order_total(*, exchange_rate: Decimal, lines) -> Decimal:
    """SUM(source_price * exchange_rate * quantity) across the order's batches."""
    rate = Decimal(str(exchange_rate))
    return sum(
        (Decimal(str(line.source_price)) * rate * Decimal(int(line.quantity)) for line in lines),
        ZERO,
    )


def allocate_order_costs(*, context: OrderCostContext, lines) -> OrderAllocation:
    """
    Spread order freight and payment gap evenly across every unit of the order.
    """
    ctx = context.validated()
    lines = list(lines)

    total_quantity = 0
    for line in lines:
        qty = int(line.quantity)
        if qty <= 0:
            raise InvalidLandedCostError("order line quantity must be greater than zero")
        if Decimal(str(line.source_price)) < ZERO:
            raise InvalidLandedCostError("source_price cannot be negative")
        total_quantity += qty

    nominal = nominal_order_total(exchange_rate=ctx.exchange_rate, lines=lines)

    if total_quantity <= 0:
        return OrderAllocation(
            total_quantity=0,
            nominal_total=nominal,
            freight_per_unit=quantize_cost(ZERO),
            gap_per_unit=quantize_cost(ZERO),
        )

    qty_dec = Decimal(total_quantity)
    freight_per_unit = quantize_cost(ctx.total_freight / qty_dec)

    if ctx.total_paid is None:
        gap_per_unit = quantize_cost(ZERO)
    else:
        gap_per_unit = quantize_cost((ctx.total_paid - nominal) / qty_dec)

    return OrderAllocation(
        total_quantity=total_quantity,
        nominal_total=nominal,
        freight_per_unit=freight_per_unit,
        gap_per_unit=gap_per_unit,
    )


def landed_unit_cost(
    *,
    source_price,
    exchange_rate,
    allocation: OrderAllocation,
    value_multiplier=Decimal("1"),
) -> LandedCost:
    """
    unit_cost = (source_price * exchange_rate + freight_per_unit + gap_per_unit) * value_multiplier
    """
    price = _to_decimal(source_price, field_name="source_price")
    if price < ZERO:
        raise InvalidLandedCostError("source_price cannot be negative")

    rate = _to_decimal(exchange_rate, field_name="exchange_rate")
    if rate <= ZERO:
        raise InvalidLandedCostError("exchange_rate must be greater than zero")

    base = price * rate
    raw = base + allocation.freight_per_unit + allocation.gap_per_unit
    if raw < ZERO:
        raise InvalidLandedCostError(
            f"Landed unit cost cannot be negative (base={quantize_cost(base)}, "
            f"freight={allocation.freight_per_unit}, gap={allocation.gap_per_unit})"
        )

    multiplier = Decimal(str(value_multiplier or 1))

    return LandedCost(
        base_cost=quantize_cost(base),
        freight_per_unit=allocation.freight_per_unit,
        gap_per_unit=allocation.gap_per_unit,
        unit_cost=quantize_cost(raw * multiplier),
    )
