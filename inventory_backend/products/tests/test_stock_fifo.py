# products/tests/test_stock_fifo.py

from decimal import Decimal

from django.test import TestCase

from products.models import StockMovement
from products.services.consumption import (
    ConsumptionPurpose,
    ConsumptionRequest,
    record_consumption,
)
from products.services.exceptions import InsufficientStockError, InvalidQuantityError
from products.services.stock_fifo import consume, to_int_quantity
from products.tests.factories import add_batches, make_invoice_item, make_variant, stock_value


class FifoConsumptionTests(TestCase):
    """
    GUARANTEES:
    - Batches are drawn strictly in arrival order
    - COGS = SUM(taken * batch unit_cost)
    - All-or-nothing: an uncovered request changes nothing
    """

    def setUp(self):
        self.variant = make_variant()

    def test_consume_spans_batches_in_arrival_order(self):
        b1, b2 = add_batches(self.variant, (5, "10.00"), (5, "12.00"))
        item = make_invoice_item(self.variant, 7)

        result = consume(variant=self.variant, quantity=7, invoice_item=item)

        b1.refresh_from_db()
        b2.refresh_from_db()
        self.variant.refresh_from_db()

        self.assertEqual(result.cogs, Decimal("74"))
        self.assertEqual(b1.remaining_quantity, 0)
        self.assertFalse(b1.is_active)
        self.assertEqual(b2.remaining_quantity, 3)
        self.assertEqual(self.variant.total_quantity, 3)
        self.assertEqual(self.variant.average_cost, Decimal("12.0000"))

        self.assertEqual(
            [(m.batch_id, m.quantity, m.unit_cost) for m in result.movements],
            [(b1.id, -5, Decimal("10.0000")), (b2.id, -2, Decimal("12.0000"))],
        )

    def test_oldest_batches_are_drained_first(self):
        b1, b2, b3 = add_batches(self.variant, (2, "1.00"), (3, "2.00"), (5, "3.00"))
        item = make_invoice_item(self.variant, 4)

        result = consume(variant=self.variant, quantity=4, invoice_item=item)

        for batch in (b1, b2, b3):
            batch.refresh_from_db()

        self.assertEqual([b1.remaining_quantity, b2.remaining_quantity, b3.remaining_quantity], [0, 1, 5])
        self.assertEqual(result.cogs, Decimal("6"))
        self.assertEqual(result.quantity, 4)
        self.assertFalse(StockMovement.objects.filter(batch=b3, invoice_item=item).exists())

    def test_consumption_conserves_quantity_and_value(self):
        add_batches(self.variant, (4, "7.50"), (6, "8.25"), (3, "9.10"))
        qty_before = self.variant.total_quantity
        value_before = stock_value(self.variant)

        item = make_invoice_item(self.variant, 8)
        result = consume(variant=self.variant, quantity=8, invoice_item=item)

        self.variant.refresh_from_db()
        self.assertEqual(self.variant.total_quantity, qty_before - 8)
        self.assertEqual(stock_value(self.variant), value_before - result.cogs)

    def test_insufficient_stock_changes_nothing(self):
        b1, b2 = add_batches(self.variant, (5, "10.00"), (5, "12.00"))
        item = make_invoice_item(self.variant, 11)

        with self.assertRaises(InsufficientStockError) as ctx:
            consume(variant=self.variant, quantity=11, invoice_item=item)

        self.assertEqual(ctx.exception.requested, 11)
        self.assertEqual(ctx.exception.available, 10)

        b1.refresh_from_db()
        b2.refresh_from_db()
        self.variant.refresh_from_db()
        self.assertEqual((b1.remaining_quantity, b2.remaining_quantity), (5, 5))
        self.assertEqual(self.variant.total_quantity, 10)
        self.assertFalse(
            StockMovement.objects.filter(movement_type=StockMovement.MovementType.SALE).exists()
        )

    def test_invalid_quantities_are_rejected(self):
        add_batches(self.variant, (5, "10.00"))
        item = make_invoice_item(self.variant, 1)

        for bad in (0, -1, 1.5, True, "abc", None):
            with self.subTest(quantity=bad):
                with self.assertRaises(InvalidQuantityError):
                    consume(variant=self.variant, quantity=bad, invoice_item=item)

    def test_quantity_normalizer_accepts_whole_units(self):
        self.assertEqual(to_int_quantity(3), 3)
        self.assertEqual(to_int_quantity("4"), 4)
        self.assertEqual(to_int_quantity(Decimal("5.0")), 5)
        self.assertEqual(to_int_quantity(2.0), 2)


class RecordConsumptionTests(TestCase):
    def setUp(self):
        self.variant = make_variant()
        add_batches(self.variant, (4, "10.00"))

    def test_sale_purpose_returns_cogs(self):
        item = make_invoice_item(self.variant, 3)

        result = record_consumption(self.variant, 3, ConsumptionPurpose.SALE, item)

        self.assertEqual(result.cogs, Decimal("30"))
        self.assertIsNone(result.adjustment)
        self.assertEqual(len(result.movements), 1)

    def test_adjustment_purpose_returns_no_cogs(self):
        result = record_consumption(self.variant, 1, ConsumptionPurpose.ADJUSTMENT, "damage")

        self.assertIsNone(result.cogs)
        self.assertEqual(result.adjustment.reason, "damage")
        self.assertEqual(result.movements[0].movement_type, StockMovement.MovementType.ADJUSTMENT)

    def test_unknown_purpose_is_rejected(self):
        with self.assertRaises(ValueError):
            ConsumptionRequest.build(variant=self.variant, quantity=1, purpose="gift")
