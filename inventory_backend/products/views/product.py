# products/views/product.py

"""
PRODUCT + VARIANT VIEWSETS

Purpose:
- Catalog endpoints (products, variants).
- Variant inventory summary (read-only, derived from batches).
- Per-variant batch listing and write-down (value-preserving adjustment).

Key rule alignment:
- Summary fields are never writable through the API.
- Stock leaves a variant ONLY through the consumption services.
"""

from django.db.models import Q
from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from products.models import Product, ProductVariant, PurchaseBatch
from products.serializers import (
    ProductSerializer,
    ProductVariantSerializer,
    PurchaseBatchSerializer,
    StockAdjustmentSerializer,
    WriteDownInputSerializer,
)
from products.services.consumption import ConsumptionPurpose, record_consumption
from products.services.exceptions import InventoryLedgerError
from products.views.errors import ledger_error_response


class ProductViewSet(viewsets.ModelViewSet):
    """
    Catalog product endpoints (create / update). Products are never deleted through the API;
    their variants carry stock history.
    """

    serializer_class = ProductSerializer
    permission_classes = [IsAuthenticated]
    http_method_names = ["get", "post", "put", "patch", "head", "options"]
    filter_backends = [DjangoFilterBackend, OrderingFilter]
    filterset_fields = ["brand", "is_active"]
    ordering_fields = ["name", "created_at"]

    def get_queryset(self):
        qs = Product.objects.prefetch_related("variants").order_by("name")

        q = (self.request.query_params.get("q") or "").strip()
        if q:
            qs = qs.filter(Q(name__icontains=q) | Q(brand__icontains=q))

        return qs


class ProductVariantViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.CreateModelMixin,
    viewsets.GenericViewSet,
):
    """
    Variant endpoints.

    - GET  /variants/                 inventory summary per SKU
    - GET  /variants/{id}/batches/    batches oldest-first (FIFO order)
    - POST /variants/{id}/adjust/     write-down (defect / damage / lost / other)
    """

    serializer_class = ProductVariantSerializer
    permission_classes = [IsAuthenticated]
    filter_backends = [DjangoFilterBackend, OrderingFilter]
    filterset_fields = ["product", "is_active"]
    ordering_fields = ["sku", "total_quantity", "average_cost"]

    def get_queryset(self):
        qs = ProductVariant.objects.select_related("product").order_by("sku")

        q = (self.request.query_params.get("q") or "").strip()
        if q:
            qs = qs.filter(Q(sku__icontains=q) | Q(product__name__icontains=q))

        in_stock = (self.request.query_params.get("in_stock") or "").strip().lower()
        if in_stock in ("1", "true", "yes"):
            qs = qs.filter(total_quantity__gt=0)

        return qs

    @extend_schema(responses=PurchaseBatchSerializer(many=True))
    @action(detail=True, methods=["get"], url_path="batches")
    def batches(self, request, pk=None):
        variant = self.get_object()

        qs = (
            PurchaseBatch.objects.filter(variant=variant)
            .select_related("variant", "purchase_order")
            .order_by("arrival_sequence", "created_at", "id")
        )

        include_inactive = (request.query_params.get("include_inactive") or "true").strip().lower() in (
            "1", "true", "yes"
        )
        if not include_inactive:
            qs = qs.filter(is_active=True)

        return Response(PurchaseBatchSerializer(qs, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        request=WriteDownInputSerializer,
        responses={
            201: StockAdjustmentSerializer,
            400: OpenApiResponse(description="Invalid quantity or insufficient stock"),
        },
    )
    @action(detail=True, methods=["post"], url_path="adjust")
    def adjust(self, request, pk=None):
        variant = self.get_object()

        ser = WriteDownInputSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        try:
            result = record_consumption(
                variant,
                data["quantity"],
                ConsumptionPurpose.ADJUSTMENT,
                data["reason"],
                note=data.get("note", ""),
            )
        except InventoryLedgerError as exc:
            return ledger_error_response(exc, operation="write_down")

        return Response(
            StockAdjustmentSerializer(result.adjustment).data,
            status=status.HTTP_201_CREATED,
        )
