# purchases/tests/test_api.py

import uuid
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIClient

from products.models import PurchaseBatch
from products.tests.factories import make_variant
from purchases.models import PurchaseOrder
from purchases.services.receiving_service import cancel_purchase_order, create_purchase_order


User = get_user_model()


class PurchaseOrderApiTests(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="buyer", password="password123")
        self.client = APIClient()
        self.client.force_authenticate(user=self.user)

        self.shirt = make_variant()
        self.scarf = make_variant(name="Silk Scarf", variant="SS-RED", size="OS")

    def _create_order(self, **extra):
        payload = {
            "supplier": "Guangzhou Textiles",
            "exchange_rate": "2.000000",
            "items": [
                {"variant_id": str(self.shirt.id), "source_price": "10.00", "quantity": 3},
                {"variant_id": str(self.scarf.id), "source_price": "20.00", "quantity": 2},
            ],
        }
        payload.update(extra)
        return self.client.post("/api/purchases/orders/", payload, format="json")

    def test_create_order_with_batches(self):
        res = self._create_order()

        self.assertEqual(res.status_code, 201, res.data)
        self.assertEqual(res.data["status"], PurchaseOrder.STATUS_PENDING)
        self.assertEqual(res.data["total_quantity"], 5)
        self.assertEqual(len(res.data["batches"]), 2)

        costs = sorted(Decimal(b["unit_cost"]) for b in res.data["batches"])
        self.assertEqual(costs, [Decimal("20.0000"), Decimal("40.0000")])

        self.shirt.refresh_from_db()
        self.assertEqual(self.shirt.total_quantity, 3)

    def test_unknown_variant_creates_nothing(self):
        res = self.client.post(
            "/api/purchases/orders/",
            {
                "exchange_rate": "1",
                "items": [{"variant_id": str(uuid.uuid4()), "source_price": "1.00", "quantity": 1}],
            },
            format="json",
        )

        self.assertEqual(res.status_code, 400)
        self.assertFalse(PurchaseOrder.objects.exists())

    def test_complete_reprices_batches(self):
        order_id = self._create_order().data["id"]

        res = self.client.post(
            f"/api/purchases/orders/{order_id}/complete/",
            {"total_logistics_fee": "50.00", "total_payment": "150.00"},
            format="json",
        )

        self.assertEqual(res.status_code, 200, res.data)
        self.assertEqual(res.data["status"], PurchaseOrder.STATUS_COMPLETED)
        self.assertEqual(Decimal(res.data["logistics_fee_per_unit"]), Decimal("10.0000"))

        shirt_batch = PurchaseBatch.objects.get(variant=self.shirt)
        self.assertEqual(shirt_batch.unit_cost, Decimal("32.0000"))

    def test_complete_cancelled_order_is_400(self):
        order = create_purchase_order(exchange_rate=Decimal("1"))
        cancel_purchase_order(order)

        res = self.client.post(
            f"/api/purchases/orders/{order.id}/complete/",
            {"total_logistics_fee": "10.00"},
            format="json",
        )
        self.assertEqual(res.status_code, 400)

    def test_complete_unknown_order_is_404(self):
        res = self.client.post(
            f"/api/purchases/orders/{uuid.uuid4()}/complete/",
            {"total_logistics_fee": "10.00"},
            format="json",
        )
        self.assertEqual(res.status_code, 404)

    def test_list_filters_by_status(self):
        self._create_order()
        cancel_purchase_order(create_purchase_order(exchange_rate=Decimal("1")))

        res = self.client.get("/api/purchases/orders/", {"status": "cancelled"})

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["count"], 1)
        self.assertEqual(res.data["results"][0]["status"], PurchaseOrder.STATUS_CANCELLED)

    def test_detail(self):
        order_id = self._create_order().data["id"]

        res = self.client.get(f"/api/purchases/orders/{order_id}/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["supplier"], "Guangzhou Textiles")

        missing = self.client.get(f"/api/purchases/orders/{uuid.uuid4()}/")
        self.assertEqual(missing.status_code, 404)
