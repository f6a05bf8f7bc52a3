"""
PATH: products/models/__init__.py

Products models export surface.
"""

from .product import Product, ProductVariant
from .purchase_batch import PurchaseBatch
from .stock_adjustment import StockAdjustment
from .stock_movement import StockMovement

__all__ = [
    "Product",
    "ProductVariant",
    "PurchaseBatch",
    "StockAdjustment",
    "StockMovement",
]
