# sales/api/viewsets/invoice.py

"""
======================================================
PATH: sales/api/viewsets/invoice.py
======================================================
SALES INVOICE VIEWSET

Purpose:
- List + retrieve recorded sales (with items, COGS and profit).
- Record a sale (POST): revenue split + FIFO consumption in one transaction.
- Revert a sale (POST .../revert/): restore stock to the originating batches
  and remove the invoice.

Lookup is by invoice_number (the marketplace reference callers know).
======================================================
"""

from __future__ import annotations

from datetime import datetime

from django.db.models import Q
from drf_spectacular.utils import extend_schema
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from products.models import ProductVariant
from products.services.exceptions import InventoryLedgerError
from products.views.errors import ledger_error_response
from sales.models import SalesInvoice
from sales.serializers import SalesInvoiceCreateSerializer, SalesInvoiceSerializer
from sales.services.reversal_service import reverse_transaction
from sales.services.sale_service import record_sale_invoice


def _parse_date(s: str):
    try:
        return datetime.strptime(s, "%Y-%m-%d").date()
    except ValueError:
        return None


class SalesInvoiceViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = SalesInvoiceSerializer
    permission_classes = [IsAuthenticated]
    lookup_field = "invoice_number"
    lookup_value_regex = "[^/]+"

    # ======================================================
    # QUERYSET
    # ======================================================

    def get_queryset(self):
        qs = SalesInvoice.objects.prefetch_related("items", "items__variant").order_by(
            "-sale_date", "-created_at"
        )

        params = self.request.query_params

        marketplace = (params.get("marketplace") or "").strip()
        if marketplace:
            qs = qs.filter(marketplace__iexact=marketplace)

        q = (params.get("q") or "").strip()
        if q:
            qs = qs.filter(Q(invoice_number__icontains=q))

        date_from = _parse_date((params.get("date_from") or "").strip())
        if date_from:
            qs = qs.filter(sale_date__gte=date_from)

        date_to = _parse_date((params.get("date_to") or "").strip())
        if date_to:
            qs = qs.filter(sale_date__lte=date_to)

        return qs

    # ======================================================
    # RECORD SALE
    # ======================================================

    @extend_schema(
        tags=["sales"],
        request=SalesInvoiceCreateSerializer,
        responses={201: SalesInvoiceSerializer},
    )
    def create(self, request):
        ser = SalesInvoiceCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        items = []
        for line in data["items"]:
            variant = ProductVariant.objects.filter(id=line["variant_id"]).first()
            if variant is None:
                return Response(
                    {"detail": f"Product variant not found: {line['variant_id']}"},
                    status=status.HTTP_400_BAD_REQUEST,
                )
            items.append({"variant": variant, "quantity": line["quantity"]})

        try:
            invoice = record_sale_invoice(
                invoice_number=data["invoice_number"],
                marketplace=data.get("marketplace", ""),
                total_selling_price=data["total_selling_price"],
                sale_date=data.get("sale_date"),
                items=items,
            )
        except InventoryLedgerError as exc:
            return ledger_error_response(exc, operation="record_sale_invoice")

        invoice = self.get_queryset().get(pk=invoice.pk)
        return Response(SalesInvoiceSerializer(invoice).data, status=status.HTTP_201_CREATED)

    # ======================================================
    # REVERT SALE
    # POST /api/sales/invoices/:invoice_number/revert/
    # ======================================================

    @extend_schema(tags=["sales"], request=None, responses={200: None})
    @action(detail=True, methods=["post"], url_path="revert")
    def revert(self, request, invoice_number=None):
        try:
            reverse_transaction(invoice_number)
        except InventoryLedgerError as exc:
            return ledger_error_response(exc, operation="reverse_transaction")

        return Response(
            {"detail": f"Invoice {invoice_number} reversed", "invoice_number": invoice_number},
            status=status.HTTP_200_OK,
        )
