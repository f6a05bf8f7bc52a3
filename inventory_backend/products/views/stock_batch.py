"""
======================================================
PATH: products/views/stock_batch.py
======================================================
STOCK MOVEMENT VIEWSET

Purpose:
- Read-only ledger of batch movements (purchase / sale / adjustment).
- Filterable by variant, batch, movement type and sale line item.

Movements are append-only; nothing here mutates stock.
"""

from __future__ import annotations

import django_filters
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import viewsets
from rest_framework.permissions import IsAuthenticated

from products.models import StockMovement
from products.serializers import StockMovementSerializer


class StockMovementFilter(django_filters.FilterSet):
    variant = django_filters.UUIDFilter(field_name="variant_id")
    batch = django_filters.UUIDFilter(field_name="batch_id")
    invoice_item = django_filters.UUIDFilter(field_name="invoice_item_id")
    movement_type = django_filters.ChoiceFilter(choices=StockMovement.MovementType.choices)
    date_from = django_filters.DateFilter(field_name="created_at", lookup_expr="date__gte")
    date_to = django_filters.DateFilter(field_name="created_at", lookup_expr="date__lte")

    class Meta:
        model = StockMovement
        fields = ["variant", "batch", "invoice_item", "movement_type"]


class StockMovementViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = StockMovementSerializer
    permission_classes = [IsAuthenticated]
    filter_backends = [DjangoFilterBackend]
    filterset_class = StockMovementFilter

    def get_queryset(self):
        return StockMovement.objects.select_related("variant", "batch").order_by(
            "-created_at", "-id"
        )
