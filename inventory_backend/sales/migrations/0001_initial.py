"""
======================================================
PATH: sales/migrations/0001_initial.py
======================================================
MIGRATION: CREATE SalesInvoice + SalesInvoiceItem

Purpose:
- Recorded sales with FIFO COGS snapshots per item and per invoice.
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("products", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="SalesInvoice",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        primary_key=True,
                        default=uuid.uuid4,
                        editable=False,
                        serialize=False,
                    ),
                ),
                ("invoice_number", models.CharField(max_length=64, unique=True)),
                ("marketplace", models.CharField(max_length=100, blank=True, default="")),
                (
                    "total_selling_price",
                    models.DecimalField(
                        max_digits=14,
                        decimal_places=2,
                        help_text="Revenue of the whole invoice (home currency).",
                    ),
                ),
                (
                    "total_cogs",
                    models.DecimalField(
                        max_digits=18,
                        decimal_places=4,
                        default=Decimal("0.0000"),
                        help_text="Sum of FIFO COGS across items (set at recording).",
                    ),
                ),
                ("sale_date", models.DateField(default=django.utils.timezone.localdate)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ["-sale_date", "-created_at"],
                "indexes": [
                    models.Index(fields=["sale_date"], name="invoice_sale_date_idx"),
                    models.Index(
                        fields=["marketplace", "sale_date"], name="invoice_marketplace_idx"
                    ),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(total_selling_price__gte=Decimal("0.00")),
                        name="invoice_selling_price_nonnegative",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(total_cogs__gte=Decimal("0")),
                        name="invoice_cogs_nonnegative",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="SalesInvoiceItem",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        primary_key=True,
                        default=uuid.uuid4,
                        editable=False,
                        serialize=False,
                    ),
                ),
                ("quantity", models.PositiveIntegerField()),
                (
                    "proportional_revenue",
                    models.DecimalField(
                        max_digits=14, decimal_places=2, default=Decimal("0.00")
                    ),
                ),
                (
                    "cogs_used",
                    models.DecimalField(
                        max_digits=18,
                        decimal_places=4,
                        default=Decimal("0.0000"),
                        help_text="FIFO-derived cost of this line (snapshot).",
                    ),
                ),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "invoice",
                    models.ForeignKey(
                        to="sales.salesinvoice",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                    ),
                ),
                (
                    "variant",
                    models.ForeignKey(
                        to="products.productvariant",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="invoice_items",
                    ),
                ),
            ],
            options={
                "ordering": ["created_at", "id"],
                "indexes": [
                    models.Index(
                        fields=["invoice", "created_at"], name="invoice_item_invoice_idx"
                    ),
                    models.Index(
                        fields=["variant", "created_at"], name="invoice_item_variant_idx"
                    ),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(quantity__gt=0),
                        name="invoice_item_quantity_gt_zero",
                    ),
                ],
            },
        ),
    ]
