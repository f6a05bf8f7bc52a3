"""
======================================================
PATH: products/migrations/0001_initial.py
======================================================
MIGRATION: CREATE inventory ledger tables

Purpose:
- Product / ProductVariant (with derived inventory summary)
- PurchaseBatch (arrival-ordered landed-cost lots)
- StockAdjustment (write-down transactions)
- StockMovement (append-only batch ledger)

The StockMovement -> SalesInvoiceItem link is added in 0002 (sales depends on
products, so it cannot be created here).
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("purchases", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Product",
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
                ("name", models.CharField(max_length=200, db_index=True)),
                ("brand", models.CharField(max_length=100, blank=True, default="")),
                ("product_url", models.URLField(max_length=500, blank=True, default="")),
                ("description", models.TextField(blank=True, default="")),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["name"],
                "indexes": [
                    models.Index(fields=["brand"], name="product_brand_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="ProductVariant",
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
                ("variant", models.CharField(max_length=100)),
                ("size", models.CharField(max_length=20)),
                ("sku", models.CharField(max_length=150, unique=True, editable=False)),
                ("is_active", models.BooleanField(default=True)),
                (
                    "total_quantity",
                    models.PositiveIntegerField(
                        default=0,
                        editable=False,
                        help_text="Sum of remaining quantity across batches (recomputed).",
                    ),
                ),
                (
                    "average_cost",
                    models.DecimalField(
                        max_digits=18,
                        decimal_places=4,
                        default=Decimal("0.0000"),
                        editable=False,
                        help_text="Weighted-average unit cost of remaining stock (recomputed).",
                    ),
                ),
                (
                    "summary_updated_at",
                    models.DateTimeField(null=True, blank=True, editable=False),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "product",
                    models.ForeignKey(
                        to="products.product",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="variants",
                    ),
                ),
            ],
            options={
                "ordering": ["sku"],
                "indexes": [
                    models.Index(fields=["is_active"], name="variant_active_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=["product", "variant", "size"],
                        name="unique_variant_size_per_product",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(average_cost__gte=0),
                        name="chk_variant_average_cost_gte_zero",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="PurchaseBatch",
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
                (
                    "arrival_sequence",
                    models.PositiveBigIntegerField(
                        editable=False,
                        help_text="Per-variant arrival order (FIFO key).",
                    ),
                ),
                (
                    "source_price",
                    models.DecimalField(
                        max_digits=14,
                        decimal_places=2,
                        help_text="Unit price in the supplier's currency.",
                    ),
                ),
                (
                    "freight_per_unit",
                    models.DecimalField(
                        max_digits=18, decimal_places=4, default=Decimal("0.0000")
                    ),
                ),
                (
                    "gap_per_unit",
                    models.DecimalField(
                        max_digits=18,
                        decimal_places=4,
                        default=Decimal("0.0000"),
                        help_text="Payment gap spread per unit: (paid - nominal) / order quantity.",
                    ),
                ),
                (
                    "value_multiplier",
                    models.DecimalField(
                        max_digits=24,
                        decimal_places=12,
                        default=Decimal("1"),
                        help_text="Accumulated write-down redistribution factor (1 = none).",
                    ),
                ),
                (
                    "unit_cost",
                    models.DecimalField(
                        max_digits=18,
                        decimal_places=4,
                        help_text="Landed unit cost (service-managed only).",
                    ),
                ),
                (
                    "original_quantity",
                    models.PositiveIntegerField(help_text="Quantity purchased (immutable)"),
                ),
                (
                    "remaining_quantity",
                    models.PositiveIntegerField(
                        default=0,
                        help_text="Remaining quantity (service-managed only)",
                    ),
                ),
                ("is_active", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "purchase_order",
                    models.ForeignKey(
                        to="purchases.purchaseorder",
                        on_delete=django.db.models.deletion.PROTECT,
                        null=True,
                        blank=True,
                        related_name="batches",
                    ),
                ),
                (
                    "variant",
                    models.ForeignKey(
                        to="products.productvariant",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="batches",
                    ),
                ),
            ],
            options={
                "ordering": ["arrival_sequence", "created_at", "id"],
                "indexes": [
                    models.Index(
                        fields=["variant", "is_active", "arrival_sequence"],
                        name="batch_variant_fifo_idx",
                    ),
                    models.Index(fields=["purchase_order"], name="batch_order_idx"),
                    models.Index(fields=["created_at"], name="batch_created_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=["variant", "arrival_sequence"],
                        name="unique_batch_arrival_per_variant",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(original_quantity__gt=0),
                        name="chk_batch_original_qty_gt_zero",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(remaining_quantity__gte=0),
                        name="chk_batch_remaining_gte_zero",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(remaining_quantity__lte=models.F("original_quantity")),
                        name="chk_batch_remaining_lte_original",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(unit_cost__gte=0),
                        name="chk_batch_unit_cost_gte_zero",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="StockAdjustment",
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
                (
                    "quantity",
                    models.PositiveIntegerField(help_text="Units removed from stock."),
                ),
                (
                    "reason",
                    models.CharField(
                        max_length=20,
                        choices=[
                            ("defect", "Defect"),
                            ("damage", "Damage"),
                            ("lost", "Lost / Missing"),
                            ("other", "Other"),
                        ],
                        default="defect",
                    ),
                ),
                ("note", models.CharField(max_length=255, blank=True, default="")),
                (
                    "value_written_off",
                    models.DecimalField(
                        max_digits=18, decimal_places=4, default=Decimal("0.0000")
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "variant",
                    models.ForeignKey(
                        to="products.productvariant",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="stock_adjustments",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["variant", "created_at"], name="adjustment_variant_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(quantity__gt=0),
                        name="chk_adjustment_quantity_gt_zero",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="StockMovement",
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
                (
                    "movement_type",
                    models.CharField(
                        max_length=20,
                        choices=[
                            ("purchase", "Purchase"),
                            ("sale", "Sale"),
                            ("adjustment", "Write-down Adjustment"),
                        ],
                    ),
                ),
                ("quantity", models.IntegerField(help_text="Signed quantity (+in / -out).")),
                (
                    "unit_cost",
                    models.DecimalField(
                        max_digits=18,
                        decimal_places=4,
                        help_text="Unit cost applied at movement time (immutable).",
                    ),
                ),
                ("reason", models.CharField(max_length=255, blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "adjustment",
                    models.ForeignKey(
                        to="products.stockadjustment",
                        on_delete=django.db.models.deletion.PROTECT,
                        null=True,
                        blank=True,
                        related_name="stock_movements",
                    ),
                ),
                (
                    "batch",
                    models.ForeignKey(
                        to="products.purchasebatch",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="stock_movements",
                    ),
                ),
                (
                    "variant",
                    models.ForeignKey(
                        to="products.productvariant",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="stock_movements",
                    ),
                ),
            ],
            options={
                "ordering": ["created_at", "id"],
                "indexes": [
                    models.Index(fields=["variant", "created_at"], name="movement_variant_idx"),
                    models.Index(fields=["batch", "created_at"], name="movement_batch_idx"),
                    models.Index(fields=["movement_type"], name="movement_type_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=["batch", "adjustment"],
                        condition=models.Q(adjustment__isnull=False),
                        name="unique_movement_per_batch_adjustment",
                    ),
                    models.CheckConstraint(
                        condition=~models.Q(quantity=0),
                        name="chk_movement_quantity_nonzero",
                    ),
                ],
            },
        ),
    ]
