# products/services/inventory_summary.py

"""
======================================================
PATH: products/services/inventory_summary.py
======================================================
VARIANT SUMMARY RECOMPUTATION + VARIANT LOCKING

Purpose:
- Derive ProductVariant.total_quantity / average_cost from batch state.
- Provide the per-variant row lock every batch-mutating service takes.

Rules:
- The summary is a pure function of PurchaseBatch rows; the previously cached
  summary is NEVER read.
- Batch state outside 0 <= remaining <= original is an inconsistent ledger and
  aborts the surrounding transaction (never clamped).
- Multi-variant operations lock in primary-key order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from products.models import ProductVariant, PurchaseBatch
from products.services.exceptions import (
    InconsistentLedgerStateError,
    LedgerObjectNotFoundError,
)
from products.services.landed_cost import quantize_cost


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VariantSummary:
    total_quantity: int
    average_cost: Decimal

    @property
    def total_value(self) -> Decimal:
        return Decimal(self.total_quantity) * self.average_cost


# ============================================================
# LOCKING
# ============================================================

def _variant_pk(variant):
    return getattr(variant, "pk", variant)


def variant_key(variant) -> str:
    """
    Canonical string pk of a variant (instance, UUID or UUID string in any case).
    """
    pk = _variant_pk(variant)
    try:
        return str(ProductVariant._meta.pk.to_python(pk))
    except ValidationError as exc:
        raise LedgerObjectNotFoundError(f"Product variant not found: {pk}") from exc


def lock_variant(variant) -> ProductVariant:
    """
    Take the exclusive row lock on a variant and return a fresh instance.
    Must be called inside transaction.atomic().
    """
    pk = _variant_pk(variant)
    try:
        return ProductVariant.objects.select_for_update().get(pk=pk)
    except (ProductVariant.DoesNotExist, ValueError, ValidationError) as exc:
        raise LedgerObjectNotFoundError(f"Product variant not found: {pk}") from exc


def lock_variants(variants) -> dict:
    """
    Lock several variants in primary-key order. Returns {pk: ProductVariant}.
    """
    pks = sorted({variant_key(v) for v in variants if v is not None})
    if not pks:
        return {}

    locked = list(
        ProductVariant.objects.select_for_update().filter(pk__in=pks).order_by("pk")
    )
    found = {str(v.pk) for v in locked}

    missing = [pk for pk in pks if pk not in found]
    if missing:
        raise LedgerObjectNotFoundError(f"Product variant not found: {missing[0]}")

    return {v.pk: v for v in locked}


# ============================================================
# SUMMARY
# ============================================================

def compute_variant_summary(variant) -> VariantSummary:
    """
    Read-only summary of current batch state:

      total_quantity = SUM(remaining)
      average_cost   = SUM(remaining * unit_cost) / SUM(remaining), 0 if nothing remains
    """
    pk = _variant_pk(variant)

    rows = PurchaseBatch.objects.filter(variant_id=pk).values_list(
        "id", "remaining_quantity", "original_quantity", "unit_cost"
    )

    total_qty = 0
    total_value = Decimal("0")

    for batch_id, remaining, original, unit_cost in rows:
        remaining = int(remaining or 0)
        if remaining < 0 or remaining > int(original or 0):
            logger.critical(
                "Inconsistent batch quantity detected",
                extra={
                    "variant_id": str(pk),
                    "batch_id": str(batch_id),
                    "remaining_quantity": remaining,
                    "original_quantity": original,
                },
            )
            raise InconsistentLedgerStateError(
                f"Batch {batch_id} has remaining {remaining} outside 0..{original}"
            )

        total_qty += remaining
        total_value += Decimal(remaining) * Decimal(str(unit_cost or 0))

    if total_qty <= 0:
        return VariantSummary(total_quantity=0, average_cost=quantize_cost(0))

    return VariantSummary(
        total_quantity=total_qty,
        average_cost=quantize_cost(total_value / Decimal(total_qty)),
    )


@transaction.atomic
def recompute_variant_summary(variant) -> VariantSummary:
    """
    Rebuild and persist the variant summary from its batches.

    Written with a queryset update (ProductVariant.save() refuses summary edits);
    a passed-in instance is refreshed in place.
    """
    summary = compute_variant_summary(variant)
    now = timezone.now()

    ProductVariant.objects.filter(pk=_variant_pk(variant)).update(
        total_quantity=summary.total_quantity,
        average_cost=summary.average_cost,
        summary_updated_at=now,
    )

    if isinstance(variant, ProductVariant):
        variant.total_quantity = summary.total_quantity
        variant.average_cost = summary.average_cost
        variant.summary_updated_at = now

    return summary


def recompute_variant_summaries(variants) -> dict:
    """Recompute several variants (pk order). Returns {str(pk): VariantSummary}."""
    results = {}
    for pk in sorted({str(_variant_pk(v)) for v in variants if v is not None}):
        results[pk] = recompute_variant_summary(pk)
    return results
