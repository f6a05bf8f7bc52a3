# products/views/errors.py

"""
Translate inventory ledger errors into API responses.

- user-correctable errors -> 400
- missing variant / order / invoice -> 404
- InconsistentLedgerStateError is logged as CRITICAL and re-raised (500)
"""

import logging

from rest_framework import status
from rest_framework.response import Response

from products.services.exceptions import (
    InconsistentLedgerStateError,
    InventoryLedgerError,
    LedgerObjectNotFoundError,
)


logger = logging.getLogger(__name__)


def ledger_error_response(exc: InventoryLedgerError, *, operation: str) -> Response:
    if isinstance(exc, InconsistentLedgerStateError):
        logger.critical(
            "Inventory ledger invariant violated",
            extra={"operation": operation, "error": str(exc)},
        )
        raise exc

    if isinstance(exc, LedgerObjectNotFoundError):
        return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)

    logger.info(
        "Inventory ledger request rejected",
        extra={"operation": operation, "error": str(exc), "error_type": type(exc).__name__},
    )
    return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
