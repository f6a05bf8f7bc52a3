"""
======================================================
PATH: purchases/migrations/0001_initial.py
======================================================
MIGRATION: CREATE PurchaseOrder

Purpose:
- Order header carrying the landed-cost inputs shared by its batches
  (exchange rate, logistics fee, actual payment).
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.db import migrations, models
import django.utils.timezone

import purchases.models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="PurchaseOrder",
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
                    "order_number",
                    models.CharField(
                        max_length=64,
                        unique=True,
                        default=purchases.models._generate_order_number,
                    ),
                ),
                ("supplier", models.CharField(max_length=200, blank=True, default="")),
                (
                    "exchange_rate",
                    models.DecimalField(
                        max_digits=14,
                        decimal_places=6,
                        help_text="Home-currency value of one unit of the supplier currency.",
                    ),
                ),
                (
                    "total_logistics_fee",
                    models.DecimalField(
                        max_digits=14, decimal_places=2, default=Decimal("0.00")
                    ),
                ),
                (
                    "total_payment",
                    models.DecimalField(
                        max_digits=14,
                        decimal_places=2,
                        null=True,
                        blank=True,
                        help_text="Actual amount paid (home currency). Empty = unknown, no payment gap.",
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        max_length=20,
                        choices=[
                            ("pending", "Pending"),
                            ("completed", "Completed"),
                            ("cancelled", "Cancelled"),
                        ],
                        default="pending",
                    ),
                ),
                ("order_date", models.DateField(default=django.utils.timezone.localdate)),
                ("expected_delivery", models.DateField(null=True, blank=True)),
                ("actual_delivery", models.DateField(null=True, blank=True)),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["status", "created_at"], name="purchase_order_status_idx"),
                    models.Index(fields=["order_date"], name="purchase_order_date_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(exchange_rate__gt=Decimal("0")),
                        name="purchase_order_exchange_rate_gt_zero",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(total_logistics_fee__gte=Decimal("0.00")),
                        name="purchase_order_logistics_nonnegative",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(total_payment__isnull=True)
                        | models.Q(total_payment__gte=Decimal("0.00")),
                        name="purchase_order_payment_nonnegative",
                    ),
                ],
            },
        ),
    ]
