# products/management/commands/recalculate_inventory.py

"""
REBUILD / VERIFY VARIANT INVENTORY SUMMARIES

Purpose:
- Rebuild ProductVariant.total_quantity / average_cost from PurchaseBatch rows.
- --check compares the cached summary with batch state and reports drift
  without writing anything.

Rules:
- Batch rows are the single source of truth; the cached summary is never trusted.
- Idempotent: rerunning is safe.
- Exit status is non-zero in --check mode when discrepancies exist.
"""

from __future__ import annotations

from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from products.models import ProductVariant
from products.services.inventory_summary import (
    compute_variant_summary,
    lock_variant,
    recompute_variant_summary,
)


class Command(BaseCommand):
    help = "Rebuild (or verify with --check) every variant's inventory summary from its batches."

    def add_arguments(self, parser):
        parser.add_argument(
            "--check",
            action="store_true",
            help="Report discrepancies between cached summaries and batch state without saving.",
        )
        parser.add_argument(
            "--sku",
            type=str,
            default="",
            help="Limit to one SKU.",
        )

    def handle(self, *args, **options):
        check_only = bool(options.get("check"))
        sku = (options.get("sku") or "").strip()

        qs = ProductVariant.objects.order_by("pk")
        if sku:
            qs = qs.filter(sku=sku)
            if not qs.exists():
                raise CommandError(f"No variant with SKU {sku}")

        if check_only:
            self.stdout.write("Checking variant summaries against batch state...")
        else:
            self.stdout.write("Rebuilding variant summaries from batch state...")

        checked = 0
        drifted = 0
        rebuilt = 0

        for variant in qs.iterator():
            checked += 1
            expected = compute_variant_summary(variant)

            matches = (
                int(variant.total_quantity) == expected.total_quantity
                and variant.average_cost == expected.average_cost
            )

            if not matches:
                drifted += 1
                self.stdout.write(
                    f"DRIFT sku={variant.sku} "
                    f"cached_qty={variant.total_quantity} batch_qty={expected.total_quantity} "
                    f"cached_avg={variant.average_cost} batch_avg={expected.average_cost}"
                )

            if check_only:
                continue

            with transaction.atomic():
                lock_variant(variant)
                recompute_variant_summary(variant)
            rebuilt += 1

        self.stdout.write("\n--- Summary ---")
        self.stdout.write(f"Variants checked:   {checked}")
        self.stdout.write(f"Discrepancies:      {drifted}")
        if not check_only:
            self.stdout.write(f"Summaries rebuilt:  {rebuilt}")

        if check_only and drifted:
            raise CommandError(f"{drifted} variant summaries differ from batch state")

        self.stdout.write(self.style.SUCCESS("Done."))
