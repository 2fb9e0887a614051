"""Latest-season monitoring policy for series.

A series is kept monitored with only its highest-numbered regular season
(and that season's episodes) monitored. Specials (season 0) are never
monitored.
"""

from dataclasses import dataclass
import logging

from ..catalog import SonarrClient
from ..catalog.types import Episode, Series

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SeasonPolicyResult:
    """Changes made while applying the policy.

    Attributes:
        latest_season: The season left monitored, None if the series has no
            regular season.
        series_updated: Whether the series was written back.
        episode_updates: Episodes successfully written back.
        episode_update_failures: Episode write-backs that failed.
    """

    latest_season: int | None
    series_updated: bool = False
    episode_updates: int = 0
    episode_update_failures: int = 0


async def apply_latest_season_policy(
    sonarr: SonarrClient, series: Series, episodes: list[Episode]
) -> SeasonPolicyResult:
    """Force a series to "latest season only" monitoring.

    ``series`` and ``episodes`` are updated in place. The series is written
    back only if its own or a season's flag changed; only episodes whose
    flag changed are written back.

    Args:
        sonarr: Client used for the write-backs.
        series: The series, with its seasons.
        episodes: Every episode of the series.

    Returns:
        What was changed.

    Raises:
        CatalogApiError: If the series write-back fails. Episode write-back
            failures are counted instead.
    """
    latest = series.latest_season_number
    if latest is None:
        # series without season data; fall back to the episodes
        regular = [e.season_number for e in episodes if e.season_number > 0]
        latest = max(regular) if regular else None
    log_params = {"series_id": series.id, "latest_season": latest}

    series_changed = not series.monitored
    series.monitored = True
    for season in series.seasons:
        should_monitor = latest is not None and season.season_number == latest
        if season.monitored != should_monitor:
            season.monitored = should_monitor
            series_changed = True

    if series_changed:
        await sonarr.update_series(series)
        logger.info("Series monitoring updated to latest season only.", extra=log_params)

    updates = 0
    failures = 0
    for episode in episodes:
        should_monitor = latest is not None and episode.season_number == latest
        if episode.monitored == should_monitor:
            continue
        episode.monitored = should_monitor
        if await sonarr.update_episode(episode):
            updates += 1
        else:
            failures += 1

    if updates or failures:
        logger.info(
            "Episode monitoring updated.",
            extra={**log_params, "updated": updates, "failed": failures},
        )
    return SeasonPolicyResult(
        latest_season=latest,
        series_updated=series_changed,
        episode_updates=updates,
        episode_update_failures=failures,
    )
