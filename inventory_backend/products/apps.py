# products/apps.py

"""
PRODUCTS APP CONFIG

Inventory valuation ledger:
- Catalog (Product / ProductVariant)
- Batch store (PurchaseBatch / StockMovement / StockAdjustment)
- FIFO consumption, write-downs, summary recomputation
"""

from django.apps import AppConfig


class ProductsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "products"
    verbose_name = "Products & Inventory"
