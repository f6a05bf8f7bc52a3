# purchases/api/views.py

from django.db import transaction
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.generics import GenericAPIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from products.models import ProductVariant
from products.services.exceptions import InventoryLedgerError
from products.views.errors import ledger_error_response
from purchases.api.serializers import (
    CompletePurchaseOrderSerializer,
    PurchaseOrderCreateSerializer,
    PurchaseOrderSerializer,
)
from purchases.models import PurchaseOrder
from purchases.services.receiving_service import (
    create_purchase_order,
    finalize_order_logistics,
)


def _order_queryset():
    return PurchaseOrder.objects.prefetch_related("batches", "batches__variant")


class PurchaseOrderListCreateView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = PurchaseOrderSerializer

    @extend_schema(tags=["purchases"], responses=PurchaseOrderSerializer(many=True))
    def get(self, request):
        qs = _order_queryset().order_by("-created_at")

        status_filter = (request.query_params.get("status") or "").strip().lower()
        if status_filter:
            qs = qs.filter(status=status_filter)

        page = self.paginate_queryset(qs)
        if page is not None:
            return self.get_paginated_response(PurchaseOrderSerializer(page, many=True).data)

        return Response(
            PurchaseOrderSerializer(qs, many=True).data, status=status.HTTP_200_OK
        )

    @extend_schema(
        tags=["purchases"],
        request=PurchaseOrderCreateSerializer,
        responses={201: PurchaseOrderSerializer},
    )
    @transaction.atomic
    def post(self, request):
        s = PurchaseOrderCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        lines = []
        for line in data["items"]:
            try:
                variant = ProductVariant.objects.get(id=line["variant_id"])
            except ProductVariant.DoesNotExist:
                return Response(
                    {"detail": f"Product variant not found: {line['variant_id']}"},
                    status=status.HTTP_400_BAD_REQUEST,
                )
            lines.append(
                {
                    "variant": variant,
                    "source_price": line["source_price"],
                    "quantity": line["quantity"],
                }
            )

        try:
            order = create_purchase_order(
                supplier=data.get("supplier", ""),
                exchange_rate=data.get("exchange_rate"),
                total_logistics_fee=data.get("total_logistics_fee"),
                total_payment=data.get("total_payment"),
                order_date=data.get("order_date"),
                expected_delivery=data.get("expected_delivery"),
                notes=data.get("notes", ""),
                lines=lines,
            )
        except InventoryLedgerError as exc:
            transaction.set_rollback(True)
            return ledger_error_response(exc, operation="create_purchase_order")

        order = _order_queryset().get(id=order.id)
        return Response(
            PurchaseOrderSerializer(order).data, status=status.HTTP_201_CREATED
        )


class PurchaseOrderDetailView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = PurchaseOrderSerializer

    @extend_schema(tags=["purchases"], responses=PurchaseOrderSerializer)
    def get(self, request, order_id):
        order = _order_queryset().filter(id=order_id).first()
        if order is None:
            return Response(
                {"detail": "Purchase order not found"}, status=status.HTTP_404_NOT_FOUND
            )
        return Response(PurchaseOrderSerializer(order).data, status=status.HTTP_200_OK)


class PurchaseOrderCompleteView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = CompletePurchaseOrderSerializer

    @extend_schema(
        tags=["purchases"],
        request=CompletePurchaseOrderSerializer,
        responses={200: PurchaseOrderSerializer},
    )
    def post(self, request, order_id):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            order = finalize_order_logistics(
                order_id,
                data["total_logistics_fee"],
                total_paid=data.get("total_payment"),
            )
        except InventoryLedgerError as exc:
            return ledger_error_response(exc, operation="finalize_order_logistics")

        order = _order_queryset().get(id=order.id)
        return Response(PurchaseOrderSerializer(order).data, status=status.HTTP_200_OK)
