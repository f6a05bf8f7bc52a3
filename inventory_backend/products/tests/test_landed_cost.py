# products/tests/test_landed_cost.py

from decimal import Decimal

from django.test import SimpleTestCase

from products.services.exceptions import InvalidLandedCostError
from products.services.landed_cost import (
    OrderCostContext,
    OrderLine,
    allocate_order_costs,
    landed_unit_cost,
    nominal_order_total,
)


class LandedCostCalculatorTests(SimpleTestCase):
    """
    unit_cost = price * rate + freight / order_qty + (paid - nominal) / order_qty
    """

    def setUp(self):
        self.lines = [
            OrderLine(source_price=Decimal("10.00"), quantity=3),
            OrderLine(source_price=Decimal("20.00"), quantity=2),
        ]

    def test_nominal_total_uses_exchange_rate_and_quantity(self):
        total = nominal_order_total(exchange_rate=Decimal("2"), lines=self.lines)
        self.assertEqual(total, Decimal("140"))

    def test_freight_and_gap_are_spread_per_unit(self):
        allocation = allocate_order_costs(
            context=OrderCostContext(
                exchange_rate=Decimal("2"),
                total_freight=Decimal("50.00"),
                total_paid=Decimal("150.00"),
            ),
            lines=self.lines,
        )

        self.assertEqual(allocation.total_quantity, 5)
        self.assertEqual(allocation.freight_per_unit, Decimal("10.0000"))
        self.assertEqual(allocation.gap_per_unit, Decimal("2.0000"))

        first = landed_unit_cost(
            source_price=Decimal("10.00"), exchange_rate=Decimal("2"), allocation=allocation
        )
        second = landed_unit_cost(
            source_price=Decimal("20.00"), exchange_rate=Decimal("2"), allocation=allocation
        )

        self.assertEqual(first.base_cost, Decimal("20.0000"))
        self.assertEqual(first.unit_cost, Decimal("32.0000"))
        self.assertEqual(second.unit_cost, Decimal("52.0000"))

        # Every unit of the order carries the same freight + gap, so the order's
        # landed value equals what was paid plus freight.
        landed_total = first.unit_cost * 3 + second.unit_cost * 2
        self.assertEqual(landed_total, Decimal("200.0000"))

    def test_unknown_payment_means_no_gap(self):
        allocation = allocate_order_costs(
            context=OrderCostContext(exchange_rate=Decimal("1"), total_freight=Decimal("5")),
            lines=self.lines,
        )
        self.assertEqual(allocation.gap_per_unit, Decimal("0.0000"))
        self.assertEqual(allocation.freight_per_unit, Decimal("1.0000"))

    def test_underpayment_produces_negative_gap(self):
        allocation = allocate_order_costs(
            context=OrderCostContext(exchange_rate=Decimal("1"), total_paid=Decimal("60.00")),
            lines=self.lines,
        )
        # nominal 70, paid 60, 5 units
        self.assertEqual(allocation.gap_per_unit, Decimal("-2.0000"))

    def test_empty_order_allocates_nothing(self):
        allocation = allocate_order_costs(
            context=OrderCostContext(
                exchange_rate=Decimal("1"),
                total_freight=Decimal("100"),
                total_paid=Decimal("100"),
            ),
            lines=[],
        )
        self.assertEqual(allocation.total_quantity, 0)
        self.assertEqual(allocation.freight_per_unit, Decimal("0"))
        self.assertEqual(allocation.gap_per_unit, Decimal("0"))

    def test_shares_are_rounded_to_four_places(self):
        allocation = allocate_order_costs(
            context=OrderCostContext(exchange_rate=Decimal("1"), total_freight=Decimal("10")),
            lines=[OrderLine(source_price=Decimal("1.00"), quantity=3)],
        )
        self.assertEqual(allocation.freight_per_unit, Decimal("3.3333"))

    def test_value_multiplier_scales_the_landed_cost(self):
        allocation = allocate_order_costs(
            context=OrderCostContext(exchange_rate=Decimal("1"), total_freight=Decimal("40")),
            lines=[OrderLine(source_price=Decimal("10.00"), quantity=4)],
        )
        landed = landed_unit_cost(
            source_price=Decimal("10.00"),
            exchange_rate=Decimal("1"),
            allocation=allocation,
            value_multiplier=Decimal("1.333333333333"),
        )
        self.assertEqual(landed.unit_cost, Decimal("26.6667"))

    def test_negative_landed_cost_is_rejected(self):
        allocation = allocate_order_costs(
            context=OrderCostContext(exchange_rate=Decimal("1"), total_paid=Decimal("0")),
            lines=[
                OrderLine(source_price=Decimal("1.00"), quantity=1),
                OrderLine(source_price=Decimal("99.00"), quantity=1),
            ],
        )
        with self.assertRaises(InvalidLandedCostError):
            landed_unit_cost(
                source_price=Decimal("1.00"), exchange_rate=Decimal("1"), allocation=allocation
            )

    def test_invalid_order_inputs_are_rejected(self):
        with self.assertRaises(InvalidLandedCostError):
            allocate_order_costs(
                context=OrderCostContext(exchange_rate=Decimal("0")), lines=self.lines
            )

        with self.assertRaises(InvalidLandedCostError):
            allocate_order_costs(
                context=OrderCostContext(exchange_rate=Decimal("1"), total_freight=Decimal("-1")),
                lines=self.lines,
            )

        with self.assertRaises(InvalidLandedCostError):
            allocate_order_costs(
                context=OrderCostContext(exchange_rate=Decimal("1")),
                lines=[OrderLine(source_price=Decimal("1.00"), quantity=0)],
            )
