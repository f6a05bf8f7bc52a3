"""
======================================================
PATH: products/migrations/0002_stockmovement_invoice_item.py
======================================================
MIGRATION: LINK StockMovement -> SalesInvoiceItem

Purpose:
- Sale movements reference the invoice line they costed; the reversal service
  uses this link to restore the exact originating batches.
"""

from __future__ import annotations

from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):
    dependencies = [
        ("products", "0001_initial"),
        ("sales", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="stockmovement",
            name="invoice_item",
            field=models.ForeignKey(
                to="sales.salesinvoiceitem",
                on_delete=django.db.models.deletion.PROTECT,
                null=True,
                blank=True,
                related_name="stock_movements",
            ),
        ),
        migrations.AddConstraint(
            model_name="stockmovement",
            constraint=models.UniqueConstraint(
                fields=["batch", "invoice_item"],
                condition=models.Q(invoice_item__isnull=False),
                name="unique_movement_per_batch_sale_item",
            ),
        ),
    ]
