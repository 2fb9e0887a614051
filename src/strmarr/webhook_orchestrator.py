"""Handling of Sonarr and Radarr "item added" webhooks.

This module defines the WebhookOrchestrator, which runs the add-item workflow
for a newly added series or movie: fetch its details, apply the monitoring
policy, reconcile its artifacts and, for every item whose link is valid,
stop monitoring it and ask the catalog to rescan.
"""

from dataclasses import dataclass
import logging
from typing import Any

from .catalog import RadarrClient
from .catalog.types import (
    Movie,
    RadarrWebhookPayload,
    SonarrWebhookPayload,
    WebhookPayload,
)
from .exceptions import WebhookPayloadError
from .reconciler import ReconciliationEngine, apply_latest_season_policy
from .reconciler.types import ItemOutcome, SweepResults

logger = logging.getLogger(__name__)

ACKNOWLEDGED_MESSAGE = "Webhook received"


@dataclass(frozen=True)
class WebhookSummary:
    """Outcome of one webhook.

    Attributes:
        message: Human-readable summary.
        event_type: The event type as received.
        item_id: Series or movie id, None for acknowledged-only events.
        title: Series or movie title.
        season_count: Seasons of the series.
        episode_count: Episodes of the series.
        items_processed: Episodes or movies reconciled.
        valid_links: Items whose link validated.
        missing: Items with an invalid link or a processing failure.
        artifacts_created: Artifacts newly written.
        unmonitored: Items flipped to unmonitored.
        rescan_triggered: Whether a rescan was accepted.
    """

    message: str
    event_type: str
    item_id: int | None = None
    title: str | None = None
    season_count: int | None = None
    episode_count: int | None = None
    items_processed: int = 0
    valid_links: int = 0
    missing: int = 0
    artifacts_created: int = 0
    unmonitored: int = 0
    rescan_triggered: bool = False

    def summary_dict(self) -> dict[str, Any]:
        """Return a dictionary summary suitable for logging."""
        return {
            "event_type": self.event_type,
            "item_id": self.item_id,
            "items_processed": self.items_processed,
            "valid_links": self.valid_links,
            "missing": self.missing,
            "artifacts_created": self.artifacts_created,
            "unmonitored": self.unmonitored,
            "rescan_triggered": self.rescan_triggered,
        }


class WebhookOrchestrator:
    """Run the add-item workflow for catalog webhooks.

    Attributes:
        _engine: Engine providing the catalogs and per-item reconciliation.
        _movie_quality_profile: Quality profile name assigned to added
            movies, or None to keep the catalog's choice.
    """

    def __init__(
        self,
        engine: ReconciliationEngine,
        movie_quality_profile: str | None = None,
    ):
        self._engine = engine
        self._movie_quality_profile = (
            movie_quality_profile.strip() if movie_quality_profile else None
        )
        logger.debug(
            "WebhookOrchestrator initialized.",
            extra={"movie_quality_profile": self._movie_quality_profile},
        )

    async def handle_event(self, payload: WebhookPayload) -> WebhookSummary:
        """Dispatch a webhook payload.

        Series-added and movie-added events run the add-item workflow; every
        other event (including "Test") is acknowledged without work.

        Args:
            payload: The parsed webhook payload.

        Returns:
            A summary of what was done.

        Raises:
            WebhookPayloadError: If an add event lacks its item.
            UnsupportedOperationError: If a movie event arrives while movies
                are not configured.
            CatalogApiError: If the item cannot be fetched or updated.
        """
        log_params = {"event_type": payload.event_type}
        logger.info("Webhook received.", extra=log_params)

        match payload:
            case SonarrWebhookPayload() if payload.is_series_add:
                summary = await self._handle_series_add(payload)
            case RadarrWebhookPayload() if payload.is_movie_add:
                radarr = self._engine.require_radarr("movie_add_webhook")
                summary = await self._handle_movie_add(radarr, payload)
            case _:
                logger.debug("Webhook event acknowledged without action.", extra=log_params)
                return WebhookSummary(
                    message=ACKNOWLEDGED_MESSAGE, event_type=payload.event_type
                )

        logger.info("Webhook processed.", extra=summary.summary_dict())
        return summary

    async def _handle_series_add(self, payload: SonarrWebhookPayload) -> WebhookSummary:
        if payload.series is None:
            raise WebhookPayloadError(
                "Series data missing in webhook.", event_type=payload.event_type
            )

        sonarr = self._engine.sonarr
        series_id = payload.series.id
        log_params = {"series_id": series_id, "title": payload.series.title}
        logger.info("Processing series added event.", extra=log_params)

        series = await sonarr.get_series_details(series_id)
        episodes = await sonarr.get_episodes(series_id)
        await apply_latest_season_policy(sonarr, series, episodes)

        results = SweepResults(sweep_name="series_add_webhook")
        reconciled = await self._engine.reconcile_series_episodes(
            series, (e for e in episodes if e.monitored), results
        )

        unmonitored = 0
        for episode, result in reconciled:
            if not result.outcome.is_valid_link:
                continue
            episode.monitored = False
            if await sonarr.update_episode(episode):
                unmonitored += 1

        rescanned = False
        if results.valid_links:
            rescanned = await sonarr.rescan_series(series.id)
        else:
            logger.info("No valid links for series, leaving it monitored.", extra=log_params)

        return WebhookSummary(
            message=(
                f"SeriesAdd event processed - validated {results.items_processed} episodes, "
                f"{results.valid_links} with valid links, {results.missing} missing"
            ),
            event_type=payload.event_type,
            item_id=series.id,
            title=series.title,
            season_count=len(series.seasons),
            episode_count=len(episodes),
            items_processed=results.items_processed,
            valid_links=results.valid_links,
            missing=results.missing,
            artifacts_created=results.artifacts_created,
            unmonitored=unmonitored,
            rescan_triggered=rescanned,
        )

    async def _assign_quality_profile(self, radarr: RadarrClient, movie: Movie) -> None:
        if self._movie_quality_profile is None:
            return
        wanted = self._movie_quality_profile.casefold()
        profiles = await radarr.get_quality_profiles()
        match [p for p in profiles if p.name.casefold() == wanted]:
            case [profile, *_]:
                movie.quality_profile_id = profile.id
            case []:
                logger.warning(
                    "Configured quality profile not found in Radarr.",
                    extra={
                        "movie_id": movie.id,
                        "quality_profile": self._movie_quality_profile,
                        "available": [p.name for p in profiles],
                    },
                )

    async def _handle_movie_add(
        self, radarr: RadarrClient, payload: RadarrWebhookPayload
    ) -> WebhookSummary:
        if payload.movie is None:
            raise WebhookPayloadError(
                "Movie data missing in webhook.", event_type=payload.event_type
            )

        movie_id = payload.movie.id
        log_params = {"movie_id": movie_id, "title": payload.movie.title}
        logger.info("Processing movie added event.", extra=log_params)

        movie = await radarr.get_movie_details(movie_id)
        movie.monitored = True
        await self._assign_quality_profile(radarr, movie)
        await radarr.update_movie(movie)

        result = await self._engine.reconcile_movie_safely(radarr, movie)
        if not result.outcome.is_valid_link:
            logger.info("Movie link is not valid, leaving it monitored.", extra=log_params)
            return WebhookSummary(
                message=f"MovieAdd event processed - {movie.title} has no valid link, left monitored",
                event_type=payload.event_type,
                item_id=movie.id,
                title=movie.title,
                items_processed=1,
                missing=int(result.outcome == ItemOutcome.MISSING),
            )

        movie.monitored = False
        await radarr.update_movie(movie)
        rescanned = await radarr.rescan_movie(movie.id)
        return WebhookSummary(
            message=(
                f"MovieAdd event processed - validated {movie.title}, "
                f"strm file created: {result.created}"
            ),
            event_type=payload.event_type,
            item_id=movie.id,
            title=movie.title,
            items_processed=1,
            valid_links=1,
            artifacts_created=int(result.created),
            unmonitored=1,
            rescan_triggered=rescanned,
        )
