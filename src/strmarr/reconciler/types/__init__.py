from .item_result import ItemOutcome, ItemResult
from .sweep_results import SweepResults

__all__ = [
    "ItemOutcome",
    "ItemResult",
    "SweepResults",
]
