from .engine import ReconciliationEngine
from .season_policy import SeasonPolicyResult, apply_latest_season_policy
from .strm_reconciler import StrmReconciler
from .topology import EngineTopology, SeriesAndMovies, SeriesOnly

__all__ = [
    "EngineTopology",
    "ReconciliationEngine",
    "SeasonPolicyResult",
    "SeriesAndMovies",
    "SeriesOnly",
    "StrmReconciler",
    "apply_latest_season_policy",
]
