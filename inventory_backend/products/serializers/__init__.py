from .product import ProductSerializer, ProductVariantSerializer
from .stock_batch import (
    PurchaseBatchSerializer,
    StockAdjustmentSerializer,
    StockMovementSerializer,
    WriteDownInputSerializer,
)

__all__ = [
    "ProductSerializer",
    "ProductVariantSerializer",
    "PurchaseBatchSerializer",
    "StockAdjustmentSerializer",
    "StockMovementSerializer",
    "WriteDownInputSerializer",
]
