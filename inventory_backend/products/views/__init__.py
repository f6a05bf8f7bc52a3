# products/views/__init__.py

"""
Products views package exports.

Purpose:
- Central export point for router imports.
"""

from .product import ProductVariantViewSet, ProductViewSet
from .stock_batch import StockMovementViewSet

__all__ = [
    "ProductViewSet",
    "ProductVariantViewSet",
    "StockMovementViewSet",
]
