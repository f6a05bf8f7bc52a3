# sales/api/urls.py

"""
SALES API URLS

Provides:
    GET  /api/sales/invoices/                          (list)
    POST /api/sales/invoices/                          (record a sale)
    GET  /api/sales/invoices/<invoice_number>/         (retrieve)
    POST /api/sales/invoices/<invoice_number>/revert/  (reverse a sale)
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from sales.api.viewsets.invoice import SalesInvoiceViewSet

router = DefaultRouter()
router.register(r"invoices", SalesInvoiceViewSet, basename="sales-invoices")

urlpatterns = [
    path("", include(router.urls)),
]
