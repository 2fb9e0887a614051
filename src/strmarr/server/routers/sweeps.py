"""Endpoints that run sweeps on demand."""

import logging

from fastapi import APIRouter, Query

from ..dependencies import EngineDep
from ..models import SweepResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sweeps")


@router.post("/wanted", response_model=SweepResponse)
async def run_wanted_sweep(engine: EngineDep) -> SweepResponse:
    """Run the combined wanted/missing sweep for every configured catalog.

    Args:
        engine: Reconciliation engine dependency.

    Returns:
        The merged counters of the episode and movie sweeps.
    """
    results = await engine.run_wanted_missing_sweep()
    logger.info("Manual wanted/missing sweep finished.", extra=results.summary_dict())
    return SweepResponse.from_results(results)


@router.post("/full", response_model=SweepResponse)
async def run_full_sweep(
    engine: EngineDep,
    only_monitored: bool = Query(
        default=True, description="Restrict the sweep to monitored series."
    ),
) -> SweepResponse:
    """Run the full series sweep.

    Args:
        engine: Reconciliation engine dependency.
        only_monitored: Restrict the sweep to monitored series.

    Returns:
        The sweep's counters.
    """
    results = await engine.run_full_sweep(only_monitored=only_monitored)
    logger.info("Manual full sweep finished.", extra=results.summary_dict())
    return SweepResponse.from_results(results)
