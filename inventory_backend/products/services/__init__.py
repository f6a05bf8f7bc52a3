from .consumption import ConsumptionRequest, ConsumptionResult, record_consumption
from .inventory_summary import recompute_variant_summary
from .stock_adjustments import write_down
from .stock_fifo import consume

__all__ = [
    "ConsumptionRequest",
    "ConsumptionResult",
    "record_consumption",
    "recompute_variant_summary",
    "write_down",
    "consume",
]
