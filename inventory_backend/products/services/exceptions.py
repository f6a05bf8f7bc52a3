# products/services/exceptions.py

"""
INVENTORY LEDGER SERVICE ERRORS

Centralized domain errors for the batch ledger services.

Validation failures (surfaced to the end user):
- InsufficientStockError, InvalidQuantityError, InvalidLandedCostError,
  InvalidAdjustmentReasonError,
  PurchaseOrderStateError, DuplicateInvoiceError

Operational failures (logged incidents):
- LedgerObjectNotFoundError, InconsistentLedgerStateError
"""


class InventoryLedgerError(Exception):
    """Base exception for all inventory ledger failures."""


class InsufficientStockError(InventoryLedgerError):
    """Raised when a consumption asks for more than the variant has left."""

    def __init__(self, *, sku: str, requested: int, available: int):
        self.sku = sku
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock for {sku}. Requested: {requested}, Available: {available}"
        )


class InvalidQuantityError(InventoryLedgerError, ValueError):
    """Raised when a quantity is zero, negative or not a whole unit."""


class InvalidLandedCostError(InventoryLedgerError, ValueError):
    """Raised when purchase inputs would produce an invalid unit cost."""


class PurchaseOrderStateError(InventoryLedgerError):
    """Raised when a purchase order is not in a state that allows the operation."""


class DuplicateInvoiceError(InventoryLedgerError):
    """Raised when a sales invoice number is already recorded."""


class LedgerObjectNotFoundError(InventoryLedgerError, LookupError):
    """Raised when a variant, order or sale transaction does not exist."""


class InconsistentLedgerStateError(InventoryLedgerError):
    """
    Raised when batch state violates a ledger invariant.

    This is a programming error, never a user error: it must abort the
    operation and be logged, never clamped.
    """


class InvalidAdjustmentReasonError(InventoryLedgerError, ValueError):
    """Raised when a write-down names an unknown reason."""
