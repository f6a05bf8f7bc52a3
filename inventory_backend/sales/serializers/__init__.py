from .invoice import (
    SalesInvoiceCreateSerializer,
    SalesInvoiceItemSerializer,
    SalesInvoiceSerializer,
)

__all__ = [
    "SalesInvoiceCreateSerializer",
    "SalesInvoiceItemSerializer",
    "SalesInvoiceSerializer",
]
