# sales/tests/test_sales.py

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import SimpleTestCase, TestCase

from products.models import PurchaseBatch, StockMovement
from products.services.exceptions import (
    DuplicateInvoiceError,
    InsufficientStockError,
    LedgerObjectNotFoundError,
)
from products.tests.factories import add_batches, make_variant
from sales.models import SalesInvoice, SalesInvoiceItem
from sales.services.sale_service import record_sale_invoice, split_revenue


class SplitRevenueTests(SimpleTestCase):
    def test_split_is_proportional_to_quantity(self):
        self.assertEqual(
            split_revenue(total=Decimal("90.00"), quantities=[7, 2]),
            [Decimal("70.00"), Decimal("20.00")],
        )

    def test_last_line_absorbs_rounding(self):
        shares = split_revenue(total=Decimal("100.00"), quantities=[1, 1, 1])
        self.assertEqual(shares, [Decimal("33.33"), Decimal("33.33"), Decimal("33.34")])
        self.assertEqual(sum(shares), Decimal("100.00"))


class RecordSaleInvoiceTests(TestCase):
    """
    GUARANTEES:
    - Each item is costed by FIFO (COGS snapshot per item and per invoice)
    - Revenue is split across items by quantity
    - Any failing item rolls back the whole invoice
    """

    def setUp(self):
        self.shirt = make_variant()
        self.scarf = make_variant(name="Silk Scarf", variant="SS-RED", size="OS")
        self.s1, self.s2 = add_batches(self.shirt, (5, "10.00"), (5, "12.00"))
        (self.c1,) = add_batches(self.scarf, (3, "7.00"))

    def _record(self, number="SHP-1001", shirt_qty=7, scarf_qty=2):
        return record_sale_invoice(
            invoice_number=number,
            marketplace="Shopee",
            total_selling_price=Decimal("90.00"),
            items=[
                {"variant": self.shirt, "quantity": shirt_qty},
                {"variant": self.scarf.id, "quantity": scarf_qty},
            ],
        )

    def test_record_sale_costs_items_fifo(self):
        invoice = self._record()

        shirt_item = invoice.items.get(variant=self.shirt)
        scarf_item = invoice.items.get(variant=self.scarf)

        self.assertEqual(shirt_item.cogs_used, Decimal("74.0000"))
        self.assertEqual(scarf_item.cogs_used, Decimal("14.0000"))
        self.assertEqual(shirt_item.proportional_revenue, Decimal("70.00"))
        self.assertEqual(scarf_item.proportional_revenue, Decimal("20.00"))

        invoice.refresh_from_db()
        self.assertEqual(invoice.total_cogs, Decimal("88.0000"))
        self.assertEqual(invoice.gross_profit, Decimal("2.0000"))

        self.shirt.refresh_from_db()
        self.assertEqual(self.shirt.total_quantity, 3)
        self.assertEqual(self.shirt.average_cost, Decimal("12.0000"))

        self.assertEqual(
            StockMovement.objects.filter(invoice_item=shirt_item).count(), 2
        )

    def test_duplicate_invoice_number_is_rejected(self):
        self._record()

        with self.assertRaises(DuplicateInvoiceError):
            self._record(shirt_qty=1, scarf_qty=1)

        self.shirt.refresh_from_db()
        self.assertEqual(self.shirt.total_quantity, 3)

    def test_insufficient_item_rolls_back_whole_invoice(self):
        with self.assertRaises(InsufficientStockError):
            self._record(shirt_qty=2, scarf_qty=4)

        self.assertFalse(SalesInvoice.objects.exists())
        self.assertFalse(SalesInvoiceItem.objects.exists())

        self.s1.refresh_from_db()
        self.shirt.refresh_from_db()
        self.assertEqual(self.s1.remaining_quantity, 5)
        self.assertEqual(self.shirt.total_quantity, 10)

    def test_item_without_variant_is_not_found(self):
        with self.assertRaises(LedgerObjectNotFoundError):
            record_sale_invoice(
                invoice_number="SHP-NOVAR",
                total_selling_price=Decimal("20.00"),
                items=[
                    {"variant": self.shirt, "quantity": 1},
                    {"variant": None, "quantity": 1},
                ],
            )

        self.assertFalse(SalesInvoice.objects.exists())
        self.shirt.refresh_from_db()
        self.assertEqual(self.shirt.total_quantity, 10)

    def test_variant_id_in_any_case_is_accepted(self):
        invoice = record_sale_invoice(
            invoice_number="SHP-UPPER",
            total_selling_price=Decimal("20.00"),
            items=[{"variant": str(self.shirt.pk).upper(), "quantity": 2}],
        )

        self.assertEqual(invoice.items.get().variant_id, self.shirt.pk)

    def test_recorded_invoices_are_immutable(self):
        invoice = self._record()
        invoice.marketplace = "Lazada"

        with self.assertRaises(ValidationError):
            invoice.save()

        with self.assertRaises(ValidationError):
            invoice.delete()

    def test_batches_keep_their_costs_after_sale(self):
        self._record()

        self.assertEqual(
            list(
                PurchaseBatch.objects.filter(variant=self.shirt)
                .order_by("arrival_sequence")
                .values_list("remaining_quantity", "unit_cost")
            ),
            [(0, Decimal("10.0000")), (3, Decimal("12.0000"))],
        )
