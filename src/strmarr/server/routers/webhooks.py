"""Sonarr and Radarr webhook endpoints.

Each catalog posts its "Connect" webhooks to its own endpoint. The
``/monitor/wanted`` endpoints run that catalog's wanted/missing sweep on
demand.
"""

import logging

from fastapi import APIRouter

from ...catalog.types import RadarrWebhookPayload, SonarrWebhookPayload
from ..dependencies import EngineDep, WebhookOrchestratorDep
from ..models import SweepResponse, WebhookResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/sonarr", response_model=WebhookResponse)
async def sonarr_webhook(
    payload: SonarrWebhookPayload,
    orchestrator: WebhookOrchestratorDep,
) -> WebhookResponse:
    """Handle a Sonarr webhook.

    Args:
        payload: The webhook body.
        orchestrator: Webhook orchestrator dependency.

    Returns:
        Summary of the work done.
    """
    logger.debug("Sonarr webhook request received.", extra={"event_type": payload.event_type})
    summary = await orchestrator.handle_event(payload)
    return WebhookResponse.from_summary(summary)


@router.post("/radarr", response_model=WebhookResponse)
async def radarr_webhook(
    payload: RadarrWebhookPayload,
    orchestrator: WebhookOrchestratorDep,
) -> WebhookResponse:
    """Handle a Radarr webhook.

    Args:
        payload: The webhook body.
        orchestrator: Webhook orchestrator dependency.

    Returns:
        Summary of the work done.
    """
    logger.debug("Radarr webhook request received.", extra={"event_type": payload.event_type})
    summary = await orchestrator.handle_event(payload)
    return WebhookResponse.from_summary(summary)


@router.post("/sonarr/monitor/wanted", response_model=SweepResponse)
async def sonarr_monitor_wanted(engine: EngineDep) -> SweepResponse:
    """Run the wanted/missing episodes sweep and return its counters."""
    results = await engine.run_wanted_episodes_sweep()
    return SweepResponse.from_results(results)


@router.post("/radarr/monitor/wanted", response_model=SweepResponse)
async def radarr_monitor_wanted(engine: EngineDep) -> SweepResponse:
    """Run the wanted/missing movies sweep and return its counters.

    Responds 404 when movies are not configured.
    """
    results = await engine.run_wanted_movies_sweep()
    return SweepResponse.from_results(results)
