# sales/admin.py

from django.contrib import admin

from sales.models import SalesInvoice, SalesInvoiceItem


# ======================================================
# SALES INVOICE ADMIN
# ======================================================


class SalesInvoiceItemInline(admin.TabularInline):
    model = SalesInvoiceItem
    extra = 0
    fields = ("variant", "quantity", "proportional_revenue", "cogs_used")
    readonly_fields = fields
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(SalesInvoice)
class SalesInvoiceAdmin(admin.ModelAdmin):
    """
    Read-only: sales are recorded and reversed through the sales services so
    stock and COGS stay consistent.
    """

    list_display = (
        "invoice_number",
        "marketplace",
        "sale_date",
        "total_selling_price",
        "total_cogs",
        "created_at",
    )
    readonly_fields = (
        "invoice_number",
        "marketplace",
        "sale_date",
        "total_selling_price",
        "total_cogs",
        "created_at",
    )
    search_fields = ("invoice_number",)
    list_filter = ("marketplace", "sale_date")
    inlines = [SalesInvoiceItemInline]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
