# products/tests/test_api.py

from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIClient

from products.models import StockMovement
from products.tests.factories import add_batches, make_variant


User = get_user_model()


class ProductsApiTests(TestCase):
    """
    GUARANTEES:
    - Inventory endpoints require authentication
    - Summary fields are read-only over the API
    - Write-downs go through the consumption service
    """

    def setUp(self):
        self.user = User.objects.create_user(username="stock_clerk", password="password123")
        self.client = APIClient()
        self.client.force_authenticate(user=self.user)

        self.variant = make_variant()
        self.b1, self.b2 = add_batches(self.variant, (4, "10.00"), (2, "16.00"))

    def test_anonymous_requests_are_rejected(self):
        anon = APIClient()
        res = anon.get("/api/products/variants/")
        self.assertEqual(res.status_code, 401)

    def test_variant_summary_reflects_batches(self):
        res = self.client.get(f"/api/products/variants/{self.variant.id}/")

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["sku"], "LS-BLUE-M")
        self.assertEqual(res.data["total_quantity"], 6)
        self.assertEqual(Decimal(res.data["average_cost"]), Decimal("12.0000"))
        self.assertEqual(Decimal(res.data["total_value"]), Decimal("72.0000"))

    def test_batches_are_listed_in_fifo_order(self):
        res = self.client.get(f"/api/products/variants/{self.variant.id}/batches/")

        self.assertEqual(res.status_code, 200)
        self.assertEqual([row["arrival_sequence"] for row in res.data], [1, 2])
        self.assertEqual(res.data[0]["id"], str(self.b1.id))
        self.assertIsNone(res.data[0]["order_number"])

    def test_create_variant_ignores_summary_fields(self):
        res = self.client.post(
            "/api/products/variants/",
            {
                "product": str(self.variant.product_id),
                "variant": "LS-RED",
                "size": "L",
                "total_quantity": 500,
                "average_cost": "99.00",
            },
            format="json",
        )

        self.assertEqual(res.status_code, 201, res.data)
        self.assertEqual(res.data["sku"], "LS-RED-L")
        self.assertEqual(res.data["total_quantity"], 0)
        self.assertEqual(Decimal(res.data["average_cost"]), Decimal("0"))

    def test_duplicate_sku_is_rejected(self):
        res = self.client.post(
            "/api/products/variants/",
            {"product": str(self.variant.product_id), "variant": "LS-BLUE", "size": "M"},
            format="json",
        )
        self.assertEqual(res.status_code, 400)

    def test_adjust_writes_down_stock(self):
        res = self.client.post(
            f"/api/products/variants/{self.variant.id}/adjust/",
            {"quantity": 1, "reason": "damage", "note": "Torn seam"},
            format="json",
        )

        self.assertEqual(res.status_code, 201, res.data)
        self.assertEqual(res.data["reason"], "damage")
        self.assertEqual(len(res.data["movements"]), 1)
        self.assertEqual(res.data["movements"][0]["quantity"], -1)

        self.b1.refresh_from_db()
        self.assertEqual(self.b1.remaining_quantity, 3)
        self.assertEqual(self.b1.unit_cost, Decimal("13.3333"))

    def test_adjust_more_than_stock_is_400(self):
        res = self.client.post(
            f"/api/products/variants/{self.variant.id}/adjust/",
            {"quantity": 7},
            format="json",
        )

        self.assertEqual(res.status_code, 400)
        self.assertIn("Insufficient stock", res.data["detail"])
        self.variant.refresh_from_db()
        self.assertEqual(self.variant.total_quantity, 6)

    def test_adjust_rejects_invalid_quantity(self):
        res = self.client.post(
            f"/api/products/variants/{self.variant.id}/adjust/",
            {"quantity": 0},
            format="json",
        )
        self.assertEqual(res.status_code, 400)

    def test_movements_filter_by_variant_and_type(self):
        other = make_variant(variant="LS-GREEN")
        add_batches(other, (1, "5.00"))

        res = self.client.get(
            "/api/products/movements/",
            {"variant": str(self.variant.id), "movement_type": StockMovement.MovementType.PURCHASE},
        )

        self.assertEqual(res.status_code, 200)
        rows = res.data["results"]
        self.assertEqual(len(rows), 2)
        self.assertTrue(all(row["sku"] == "LS-BLUE-M" for row in rows))

    def test_products_cannot_be_deleted(self):
        res = self.client.delete(f"/api/products/products/{self.variant.product_id}/")
        self.assertEqual(res.status_code, 405)
