# sales/services/sale_service.py

"""
SALE RECORDING SERVICE

SINGLE SOURCE OF TRUTH for:
- SalesInvoice + SalesInvoiceItem creation
- Revenue split across items (proportional to quantity)
- FIFO stock consumption per item (via record_consumption)
- COGS snapshot per item and per invoice

GUARANTEES:
- FIFO is the ONLY stock authority
- Fully atomic: an insufficient item rolls back the whole invoice
- Duplicate invoice numbers are rejected
"""

from __future__ import annotations

import logging
from decimal import Decimal

from django.db import IntegrityError, transaction
from django.utils import timezone

from products.services.consumption import ConsumptionPurpose, record_consumption
from products.services.exceptions import (
    DuplicateInvoiceError,
    InvalidQuantityError,
    LedgerObjectNotFoundError,
)
from products.services.inventory_summary import lock_variants, variant_key
from products.services.landed_cost import quantize_cost, quantize_money
from products.services.stock_fifo import to_int_quantity
from sales.models import SalesInvoice, SalesInvoiceItem


logger = logging.getLogger(__name__)


def split_revenue(*, total, quantities) -> list:
    """
    Share `total` across lines by quantity: qty / total_qty * total.
    The last line absorbs rounding so the shares add up to `total` exactly.
    """
    total = quantize_money(total)
    quantities = [int(q) for q in quantities]
    total_qty = sum(quantities)

    if not quantities:
        return []
    if total_qty <= 0:
        return [Decimal("0.00") for _ in quantities]

    shares = []
    allocated = Decimal("0.00")
    for qty in quantities[:-1]:
        share = quantize_money(total * Decimal(qty) / Decimal(total_qty))
        shares.append(share)
        allocated += share

    shares.append(total - allocated)
    return shares


@transaction.atomic
def record_sale_invoice(
    *,
    invoice_number: str,
    total_selling_price,
    items,
    marketplace: str = "",
    sale_date=None,
) -> SalesInvoice:
    """
    Record a sale and consume its stock.

    items: iterable of {"variant": ProductVariant|id, "quantity": int}
    """
    number = (invoice_number or "").strip()
    if not number:
        raise ValueError("invoice_number is required")

    lines = list(items or [])
    if not lines:
        raise InvalidQuantityError("A sales invoice needs at least one item")

    quantities = [to_int_quantity(line.get("quantity")) for line in lines]

    if any(line.get("variant") in (None, "") for line in lines):
        raise LedgerObjectNotFoundError("Every sales invoice item needs a product variant")

    revenue = quantize_money(total_selling_price)
    if revenue < Decimal("0.00"):
        raise ValueError("total_selling_price cannot be negative")

    if SalesInvoice.objects.filter(invoice_number=number).exists():
        raise DuplicateInvoiceError(f"Invoice {number} already exists")

    # Lock every variant up front, in pk order.
    locked = lock_variants([line.get("variant") for line in lines])
    by_pk = {str(pk): v for pk, v in locked.items()}

    try:
        with transaction.atomic():
            invoice = SalesInvoice.objects.create(
                invoice_number=number,
                marketplace=marketplace or "",
                total_selling_price=revenue,
                sale_date=sale_date or timezone.localdate(),
            )
    except IntegrityError as exc:
        raise DuplicateInvoiceError(f"Invoice {number} already exists") from exc

    shares = split_revenue(total=revenue, quantities=quantities)
    total_cogs = Decimal("0")

    for line, qty, share in zip(lines, quantities, shares):
        variant = by_pk[variant_key(line.get("variant"))]

        item = SalesInvoiceItem.objects.create(
            invoice=invoice,
            variant=variant,
            quantity=qty,
            proportional_revenue=share,
        )

        # SINGLE STOCK EXIT POINT
        result = record_consumption(variant, qty, ConsumptionPurpose.SALE, item)

        item.cogs_used = quantize_cost(result.cogs)
        item.save(update_fields=["cogs_used"])
        total_cogs += item.cogs_used

    invoice.total_cogs = quantize_cost(total_cogs)
    invoice.save(update_fields=["total_cogs"])

    logger.info(
        "Sales invoice recorded",
        extra={
            "invoice_number": invoice.invoice_number,
            "items": len(lines),
            "total_selling_price": str(invoice.total_selling_price),
            "total_cogs": str(invoice.total_cogs),
        },
    )
    return invoice
