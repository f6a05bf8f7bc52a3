# purchases/tests/test_receiving.py

from contextlib import contextmanager
from decimal import Decimal
from unittest import mock

from django.test import TestCase, override_settings

from products.models import PurchaseBatch, StockMovement
from products.services.exceptions import (
    InvalidLandedCostError,
    LedgerObjectNotFoundError,
    PurchaseOrderStateError,
)
from products.services.stock_adjustments import write_down
from products.tests.factories import make_variant
from purchases.models import PurchaseOrder
from purchases.services import receiving_service
from purchases.services.receiving_service import (
    cancel_purchase_order,
    create_purchase_order,
    finalize_order_logistics,
    record_purchase_batch,
)


class RecordPurchaseBatchTests(TestCase):
    """
    GUARANTEES:
    - A batch's unit cost is its landed cost (price * rate + freight + gap per unit)
    - Only PENDING orders accept batches
    - Adding a batch re-spreads the order-level payment gap across siblings
    """

    def setUp(self):
        self.shirt = make_variant()
        self.scarf = make_variant(name="Silk Scarf", variant="SS-RED", size="OS")

    @override_settings(INVENTORY_DEFAULT_EXCHANGE_RATE=Decimal("1"))
    def test_batch_without_order_uses_default_rate(self):
        batch = record_purchase_batch(self.shirt, Decimal("12.50"), 4)

        self.assertIsNone(batch.purchase_order)
        self.assertEqual(batch.unit_cost, Decimal("12.5000"))
        self.assertEqual(batch.remaining_quantity, 4)
        self.assertEqual(batch.arrival_sequence, 1)

        self.shirt.refresh_from_db()
        self.assertEqual(self.shirt.total_quantity, 4)
        self.assertEqual(self.shirt.average_cost, Decimal("12.5000"))

        movement = StockMovement.objects.get(batch=batch)
        self.assertEqual(movement.movement_type, StockMovement.MovementType.PURCHASE)
        self.assertEqual(movement.quantity, 4)
        self.assertEqual(movement.reason, "Opening stock")

    def test_batch_is_priced_at_order_exchange_rate(self):
        order = create_purchase_order(exchange_rate=Decimal("2"))

        batch = record_purchase_batch(self.shirt, Decimal("10.00"), 3, order=order)

        self.assertEqual(batch.unit_cost, Decimal("20.0000"))
        self.assertEqual(batch.purchase_order_id, order.id)
        self.assertEqual(
            StockMovement.objects.get(batch=batch).reason, f"Purchase {order.order_number}"
        )

    def test_new_batch_respreads_payment_gap(self):
        order = create_purchase_order(exchange_rate=Decimal("1"), total_payment=Decimal("100.00"))

        first = record_purchase_batch(self.shirt, Decimal("10.00"), 5, order=order)
        # alone: nominal 50, paid 100 -> gap 10 per unit
        self.assertEqual(first.gap_per_unit, Decimal("10.0000"))
        self.assertEqual(first.unit_cost, Decimal("20.0000"))

        second = record_purchase_batch(self.scarf, Decimal("6.00"), 5, order=order)
        # together: nominal 80, paid 100, 10 units -> gap 2 per unit
        first.refresh_from_db()
        self.assertEqual(first.gap_per_unit, Decimal("2.0000"))
        self.assertEqual(first.unit_cost, Decimal("12.0000"))
        self.assertEqual(second.unit_cost, Decimal("8.0000"))

        self.shirt.refresh_from_db()
        self.assertEqual(self.shirt.average_cost, Decimal("12.0000"))

    def test_closed_orders_reject_batches(self):
        order = create_purchase_order(exchange_rate=Decimal("1"))
        record_purchase_batch(self.shirt, Decimal("10.00"), 1, order=order)
        finalize_order_logistics(order, Decimal("0"))

        with self.assertRaises(PurchaseOrderStateError):
            record_purchase_batch(self.shirt, Decimal("10.00"), 1, order=order)

        self.assertEqual(PurchaseBatch.objects.filter(purchase_order=order).count(), 1)

    def test_negative_landed_cost_rolls_back(self):
        order = create_purchase_order(exchange_rate=Decimal("1"), total_payment=Decimal("0.00"))
        record_purchase_batch(self.shirt, Decimal("0.00"), 1, order=order)

        with self.assertRaises(InvalidLandedCostError):
            record_purchase_batch(self.scarf, Decimal("50.00"), 1, order=order)

        self.assertFalse(PurchaseBatch.objects.filter(variant=self.scarf).exists())

    def test_unknown_variant_is_not_found(self):
        order = create_purchase_order(exchange_rate=Decimal("1"))
        with self.assertRaises(LedgerObjectNotFoundError):
            record_purchase_batch(
                "00000000-0000-0000-0000-000000000000", Decimal("1.00"), 1, order=order
            )

    def test_variant_id_in_any_case_is_accepted(self):
        order = create_purchase_order(exchange_rate=Decimal("1"))

        batch = record_purchase_batch(str(self.shirt.pk).upper(), Decimal("5.00"), 3, order=order)

        self.assertEqual(batch.variant_id, self.shirt.pk)
        self.shirt.refresh_from_db()
        self.assertEqual(self.shirt.total_quantity, 3)


class FinalizeOrderLogisticsTests(TestCase):
    def setUp(self):
        self.shirt = make_variant()
        self.scarf = make_variant(name="Silk Scarf", variant="SS-RED", size="OS")
        self.order = create_purchase_order(
            supplier="Guangzhou Textiles",
            exchange_rate=Decimal("2"),
            lines=[
                {"variant": self.shirt, "source_price": Decimal("10.00"), "quantity": 3},
                {"variant": self.scarf, "source_price": Decimal("20.00"), "quantity": 2},
            ],
        )

    def test_finalize_reprices_every_batch_and_summary(self):
        finalize_order_logistics(self.order, Decimal("50.00"), total_paid=Decimal("150.00"))

        self.order.refresh_from_db()
        self.assertEqual(self.order.status, PurchaseOrder.STATUS_COMPLETED)
        self.assertIsNotNone(self.order.actual_delivery)
        self.assertEqual(self.order.logistics_fee_per_unit, Decimal("10.0000"))

        shirt_batch = PurchaseBatch.objects.get(variant=self.shirt)
        scarf_batch = PurchaseBatch.objects.get(variant=self.scarf)

        self.assertEqual(shirt_batch.freight_per_unit, Decimal("10.0000"))
        self.assertEqual(shirt_batch.gap_per_unit, Decimal("2.0000"))
        self.assertEqual(shirt_batch.unit_cost, Decimal("32.0000"))
        self.assertEqual(scarf_batch.unit_cost, Decimal("52.0000"))

        self.shirt.refresh_from_db()
        self.scarf.refresh_from_db()
        self.assertEqual(self.shirt.average_cost, Decimal("32.0000"))
        self.assertEqual(self.scarf.average_cost, Decimal("52.0000"))

    def test_finalize_without_payment_keeps_recorded_payment(self):
        finalize_order_logistics(self.order, Decimal("0"), total_paid=Decimal("150.00"))
        finalize_order_logistics(self.order, Decimal("50.00"))

        self.order.refresh_from_db()
        self.assertEqual(self.order.total_payment, Decimal("150.00"))
        self.assertEqual(
            PurchaseBatch.objects.get(variant=self.shirt).unit_cost, Decimal("32.0000")
        )

    def test_repricing_keeps_write_down_redistribution(self):
        hat = make_variant(name="Bucket Hat", variant="BH-TAN", size="OS")
        order = create_purchase_order(
            exchange_rate=Decimal("1"),
            lines=[{"variant": hat, "source_price": Decimal("10.00"), "quantity": 4}],
        )
        write_down(variant=hat, quantity=1)

        batch = PurchaseBatch.objects.get(purchase_order=order)
        self.assertEqual(batch.unit_cost, Decimal("13.3333"))

        finalize_order_logistics(order, Decimal("40.00"))

        batch.refresh_from_db()
        # landed 10 + 40/4 = 20, carried by 3 surviving units -> 80 / 3
        self.assertEqual(batch.unit_cost, Decimal("26.6667"))
        self.assertAlmostEqual(batch.remaining_value, Decimal("80"), delta=Decimal("0.001"))

    def test_cancelled_orders_cannot_be_finalized(self):
        empty = create_purchase_order(exchange_rate=Decimal("1"))
        cancel_purchase_order(empty)

        with self.assertRaises(PurchaseOrderStateError):
            finalize_order_logistics(empty, Decimal("10.00"))

    def test_orders_with_batches_cannot_be_cancelled(self):
        with self.assertRaises(PurchaseOrderStateError):
            cancel_purchase_order(self.order)

    def test_negative_freight_is_rejected(self):
        with self.assertRaises(InvalidLandedCostError):
            finalize_order_logistics(self.order, Decimal("-1.00"))

        self.order.refresh_from_db()
        self.assertEqual(self.order.status, PurchaseOrder.STATUS_PENDING)


class OrderLockOrderingTests(TestCase):
    """
    Order services lock variant rows before batch rows, the same order
    consume() and write_down() use.
    """

    def setUp(self):
        self.shirt = make_variant()
        self.scarf = make_variant(name="Silk Scarf", variant="SS-RED", size="OS")
        self.order = create_purchase_order(
            exchange_rate=Decimal("1"),
            lines=[{"variant": self.shirt, "source_price": Decimal("10.00"), "quantity": 2}],
        )

    @contextmanager
    def _traced_locks(self):
        calls = []
        lock_variants = receiving_service.lock_variants
        locked_order_batches = receiving_service._locked_order_batches

        def trace_variants(*args, **kwargs):
            calls.append("variants")
            return lock_variants(*args, **kwargs)

        def trace_batches(*args, **kwargs):
            calls.append("batches")
            return locked_order_batches(*args, **kwargs)

        with mock.patch.object(receiving_service, "lock_variants", side_effect=trace_variants), \
                mock.patch.object(receiving_service, "_locked_order_batches", side_effect=trace_batches):
            yield calls

    def test_finalize_locks_variants_before_batches(self):
        with self._traced_locks() as calls:
            finalize_order_logistics(self.order, Decimal("4.00"))

        self.assertEqual(calls, ["variants", "batches"])

    def test_record_batch_locks_variants_before_batches(self):
        with self._traced_locks() as calls:
            record_purchase_batch(self.scarf, Decimal("5.00"), 1, order=self.order)

        self.assertEqual(calls, ["variants", "batches"])
