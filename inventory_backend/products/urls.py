# products/urls.py

"""
PRODUCTS URLS

Purpose:
- Register inventory ledger routes under /api/products/
    /products/                       catalog
    /variants/                       inventory summary per SKU
    /variants/{id}/batches/          batches in FIFO order
    /variants/{id}/adjust/           write-down
    /movements/?variant=<id>         movement ledger
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from products.views import ProductVariantViewSet, ProductViewSet, StockMovementViewSet

router = DefaultRouter()

router.register(r"products", ProductViewSet, basename="products")
router.register(r"variants", ProductVariantViewSet, basename="variants")
router.register(r"movements", StockMovementViewSet, basename="movements")

urlpatterns = [
    path("", include(router.urls)),
]
