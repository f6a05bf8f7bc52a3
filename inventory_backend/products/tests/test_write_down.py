# products/tests/test_write_down.py

from decimal import Decimal

from django.test import TestCase

from products.models import StockAdjustment, StockMovement
from products.services.exceptions import (
    InsufficientStockError,
    InvalidAdjustmentReasonError,
    InvalidQuantityError,
)
from products.services.stock_adjustments import write_down
from products.tests.factories import add_batches, make_variant, stock_value


class WriteDownTests(TestCase):
    """
    GUARANTEES:
    - A write-down removes units FIFO but keeps the batch value on the survivors
    - Emptying a batch writes its value off (recorded, not an error)
    - Movements carry the unit cost that applied before redistribution
    """

    def setUp(self):
        self.variant = make_variant()

    def test_value_moves_onto_remaining_units(self):
        (batch,) = add_batches(self.variant, (4, "10.00"))

        result = write_down(variant=self.variant, quantity=1)

        batch.refresh_from_db()
        self.variant.refresh_from_db()

        self.assertEqual(batch.remaining_quantity, 3)
        self.assertEqual(batch.unit_cost, Decimal("13.3333"))
        self.assertAlmostEqual(batch.remaining_value, Decimal("40"), delta=Decimal("0.001"))
        self.assertEqual(batch.value_multiplier, Decimal("1.333333333333"))

        self.assertEqual(self.variant.total_quantity, 3)
        self.assertEqual(self.variant.average_cost, Decimal("13.3333"))

        self.assertEqual(result.value_written_off, Decimal("0"))
        self.assertEqual(result.adjustment.reason, StockAdjustment.Reason.DEFECT)

        (movement,) = result.movements
        self.assertEqual(movement.movement_type, StockMovement.MovementType.ADJUSTMENT)
        self.assertEqual(movement.quantity, -1)
        self.assertEqual(movement.unit_cost, Decimal("10.0000"))
        self.assertEqual(movement.reason, "Defect")
        self.assertEqual(movement.adjustment_id, result.adjustment.id)

    def test_emptying_a_batch_writes_its_value_off(self):
        b1, b2 = add_batches(self.variant, (2, "10.00"), (3, "12.00"))
        value_before = stock_value(self.variant)

        with self.assertLogs("products.services.stock_adjustments", level="WARNING"):
            result = write_down(variant=self.variant, quantity=2, reason="lost", note="Missing at count")

        b1.refresh_from_db()
        b2.refresh_from_db()

        self.assertEqual(b1.remaining_quantity, 0)
        self.assertEqual(b2.remaining_quantity, 3)
        self.assertEqual(b2.unit_cost, Decimal("12.0000"))

        self.assertEqual(result.value_written_off, Decimal("20.0000"))
        self.assertEqual(stock_value(self.variant), value_before - Decimal("20"))
        self.assertEqual(result.movements[0].reason, "Lost / Missing: Missing at count")

    def test_write_down_spanning_batches(self):
        b1, b2 = add_batches(self.variant, (2, "10.00"), (4, "12.00"))

        result = write_down(variant=self.variant, quantity=3, reason="damage")

        b1.refresh_from_db()
        b2.refresh_from_db()
        self.variant.refresh_from_db()

        self.assertEqual(b1.remaining_quantity, 0)
        self.assertEqual(b2.remaining_quantity, 3)
        self.assertEqual(b2.unit_cost, Decimal("16.0000"))
        self.assertEqual(result.value_written_off, Decimal("20.0000"))
        self.assertEqual(self.variant.average_cost, Decimal("16.0000"))
        self.assertEqual(
            [(m.batch_id, m.quantity) for m in result.movements],
            [(b1.id, -2), (b2.id, -1)],
        )

    def test_rejected_write_downs_leave_no_trace(self):
        add_batches(self.variant, (2, "10.00"))

        with self.assertRaises(InsufficientStockError):
            write_down(variant=self.variant, quantity=3)
        with self.assertRaises(InvalidQuantityError):
            write_down(variant=self.variant, quantity=0)
        with self.assertRaises(InvalidAdjustmentReasonError):
            write_down(variant=self.variant, quantity=1, reason="theft")

        self.assertFalse(StockAdjustment.objects.exists())
        self.variant.refresh_from_db()
        self.assertEqual(self.variant.total_quantity, 2)
