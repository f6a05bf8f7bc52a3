# sales/services/reversal_service.py

"""
SALE REVERSAL (COMPENSATION) SERVICE

Purpose:
- Undo a recorded sale exactly:
  1) lock the invoice and every variant it touched (pk order)
  2) for each line item, add abs(movement.quantity) back to the SAME batch
     the movement drew from (never a new batch) and delete the movement
  3) recompute each affected variant summary
  4) hard-delete the invoice (line items cascade)

HARD RULES:
- Atomic: any failure leaves batches, movements and invoice untouched.
- A missing invoice is LedgerObjectNotFoundError.
- Restoring above a batch's original quantity is an inconsistent ledger
  (InconsistentLedgerStateError), never clamped.
- The deletion is recorded in the log (invoice, items, restored quantities).
"""

from __future__ import annotations

import logging
from collections import defaultdict

from django.db import transaction

from products.models import PurchaseBatch, StockMovement
from products.services.exceptions import (
    InconsistentLedgerStateError,
    LedgerObjectNotFoundError,
)
from products.services.inventory_summary import lock_variants, recompute_variant_summaries
from sales.models import SalesInvoice


logger = logging.getLogger(__name__)


def _lock_invoice(invoice_number_or_invoice) -> SalesInvoice:
    if isinstance(invoice_number_or_invoice, SalesInvoice):
        lookup = {"pk": invoice_number_or_invoice.pk}
        label = invoice_number_or_invoice.invoice_number
    else:
        label = str(invoice_number_or_invoice or "").strip()
        lookup = {"invoice_number": label}

    invoice = SalesInvoice.objects.select_for_update().filter(**lookup).first()
    if invoice is None:
        raise LedgerObjectNotFoundError(f"Invoice not found: {label}")
    return invoice


def _restore_batch(*, movement: StockMovement) -> int:
    batch = PurchaseBatch.objects.select_for_update().get(pk=movement.batch_id)
    qty = abs(int(movement.quantity))

    restored = int(batch.remaining_quantity or 0) + qty
    if restored > int(batch.original_quantity):
        logger.critical(
            "Reversal would exceed batch original quantity",
            extra={
                "batch_id": str(batch.pk),
                "movement_id": str(movement.pk),
                "remaining_quantity": batch.remaining_quantity,
                "restore_quantity": qty,
                "original_quantity": batch.original_quantity,
            },
        )
        raise InconsistentLedgerStateError(
            f"Restoring {qty} to batch {batch.pk} exceeds its original quantity"
        )

    batch.remaining_quantity = restored
    batch.save(update_fields=["remaining_quantity"])
    return qty


@transaction.atomic
def reverse_transaction(invoice_number_or_invoice) -> None:
    """
    Reverse a sales invoice by invoice number (or instance).
    """
    invoice = _lock_invoice(invoice_number_or_invoice)
    items = list(invoice.items.select_related("variant").all())

    lock_variants([item.variant_id for item in items])

    restored_by_batch = defaultdict(int)
    item_log = []

    for item in items:
        movements = list(
            StockMovement.objects.select_for_update()
            .filter(
                invoice_item=item,
                movement_type=StockMovement.MovementType.SALE,
                quantity__lt=0,
            )
            .order_by("created_at", "id")
        )

        restored_for_item = 0
        for movement in movements:
            qty = _restore_batch(movement=movement)
            restored_by_batch[str(movement.batch_id)] += qty
            restored_for_item += qty
            movement.delete(reversal=True)

        if restored_for_item != int(item.quantity):
            logger.critical(
                "Sale movements do not match the sold quantity",
                extra={
                    "invoice_number": invoice.invoice_number,
                    "invoice_item_id": str(item.pk),
                    "sold_quantity": item.quantity,
                    "movement_quantity": restored_for_item,
                },
            )
            raise InconsistentLedgerStateError(
                f"Invoice item {item.pk} sold {item.quantity} but its movements cover {restored_for_item}"
            )

        item_log.append({"sku": item.variant.sku, "quantity": item.quantity})

    recompute_variant_summaries({item.variant_id for item in items})

    invoice_number = invoice.invoice_number
    invoice.delete(reversal=True)

    logger.info(
        "Sales invoice reversed",
        extra={
            "invoice_number": invoice_number,
            "items": item_log,
            "restored_by_batch": dict(restored_by_batch),
        },
    )
