# purchases/api/urls.py

from django.urls import path

from purchases.api.views import (
    PurchaseOrderCompleteView,
    PurchaseOrderDetailView,
    PurchaseOrderListCreateView,
)

urlpatterns = [
    path("orders/", PurchaseOrderListCreateView.as_view(), name="purchase-orders"),
    path(
        "orders/<uuid:order_id>/",
        PurchaseOrderDetailView.as_view(),
        name="purchase-order-detail",
    ),
    path(
        "orders/<uuid:order_id>/complete/",
        PurchaseOrderCompleteView.as_view(),
        name="purchase-order-complete",
    ),
]
