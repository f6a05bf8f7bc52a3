# products/tests/factories.py

"""
Small builders shared by the ledger tests.

Stock always enters through the intake service (never by writing batch rows),
so every fixture starts from a consistent ledger.
"""

from decimal import Decimal

from products.models import Product, ProductVariant
from products.services.stock_intake import receive_opening_stock


def make_variant(name="Linen Shirt", variant="LS-BLUE", size="M") -> ProductVariant:
    product, _ = Product.objects.get_or_create(name=name)
    return ProductVariant.objects.create(product=product, variant=variant, size=size)


def add_batches(variant, *lots):
    """lots: (quantity, unit_cost) pairs, received in the given order."""
    batches = [
        receive_opening_stock(variant=variant, quantity=qty, unit_cost=Decimal(str(cost)))
        for qty, cost in lots
    ]
    variant.refresh_from_db()
    return batches


def make_invoice_item(variant, quantity, invoice_number="INV-TEST-1"):
    from sales.models import SalesInvoice, SalesInvoiceItem

    invoice, _ = SalesInvoice.objects.get_or_create(
        invoice_number=invoice_number,
        defaults={"total_selling_price": Decimal("0.00")},
    )
    return SalesInvoiceItem.objects.create(invoice=invoice, variant=variant, quantity=quantity)


def stock_value(variant) -> Decimal:
    total = Decimal("0")
    for batch in variant.batches.all():
        total += Decimal(batch.remaining_quantity) * batch.unit_cost
    return total
