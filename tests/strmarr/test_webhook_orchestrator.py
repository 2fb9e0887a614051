# pyright: reportPrivateUsage=false

"""Tests for the WebhookOrchestrator add-item workflows."""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from strmarr.catalog import RadarrClient, SonarrClient
from strmarr.catalog.types import (
    Episode,
    Movie,
    QualityProfile,
    RadarrWebhookPayload,
    Season,
    Series,
    SonarrWebhookPayload,
)
from strmarr.exceptions import UnsupportedOperationError, WebhookPayloadError
from strmarr.reconciler import (
    ReconciliationEngine,
    SeriesAndMovies,
    SeriesOnly,
    StrmReconciler,
)
from strmarr.reconciler.types import ItemOutcome, ItemResult
from strmarr.webhook_orchestrator import ACKNOWLEDGED_MESSAGE, WebhookOrchestrator

CREATED = ItemResult(ItemOutcome.CREATED, Path("created.strm"))
VALID = ItemResult(ItemOutcome.VALID, Path("valid.strm"))
MISSING = ItemResult(ItemOutcome.MISSING, Path("missing.strm"))

SERIES_ADD = SonarrWebhookPayload.model_validate(
    {"eventType": "SeriesAdd", "series": {"id": 1, "title": "Show"}}
)
MOVIE_ADDED = RadarrWebhookPayload.model_validate(
    {"eventType": "MovieAdded", "movie": {"id": 42, "title": "Alien"}}
)


def _series() -> Series:
    return Series(
        id=1,
        title="Show",
        path="/tv/Show",
        imdb_id="tt1",
        monitored=True,
        seasons=[Season(season_number=1, monitored=True)],
    )


def _episodes() -> list[Episode]:
    return [
        Episode(id=i, series_id=1, season_number=1, episode_number=i, monitored=True)
        for i in (1, 2, 3)
    ]


def _movie() -> Movie:
    return Movie(
        id=42,
        title="Alien",
        year=1979,
        path="/movies/Alien (1979)",
        imdb_id="tt0078748",
        monitored=False,
        quality_profile_id=1,
    )


# --- Fixtures ---


@pytest.fixture
def mock_sonarr() -> MagicMock:
    """Provides a SonarrClient mock for a compliant three-episode series."""
    mock = MagicMock(spec=SonarrClient)
    mock.get_series_details = AsyncMock(return_value=_series())
    mock.get_episodes = AsyncMock(return_value=_episodes())
    mock.update_series = AsyncMock()
    mock.update_episode = AsyncMock(return_value=True)
    mock.rescan_series = AsyncMock(return_value=True)
    return mock


@pytest.fixture
def mock_radarr() -> MagicMock:
    """Provides a RadarrClient mock."""
    mock = MagicMock(spec=RadarrClient)
    mock.get_movie_details = AsyncMock(return_value=_movie())
    mock.update_movie = AsyncMock()
    mock.rescan_movie = AsyncMock(return_value=True)
    mock.get_quality_profiles = AsyncMock(
        return_value=[QualityProfile(id=1, name="Any"), QualityProfile(id=4, name="HD-1080p")]
    )
    return mock


@pytest.fixture
def mock_reconciler() -> MagicMock:
    """Provides a StrmReconciler mock."""
    mock = MagicMock(spec=StrmReconciler)
    mock.reconcile_episode = AsyncMock(side_effect=[CREATED, VALID, MISSING])
    mock.reconcile_movie = AsyncMock(return_value=CREATED)
    return mock


@pytest.fixture
def orchestrator(
    mock_sonarr: MagicMock, mock_radarr: MagicMock, mock_reconciler: MagicMock
) -> WebhookOrchestrator:
    """Provides an orchestrator over an engine with both catalogs."""
    engine = ReconciliationEngine(SeriesAndMovies(mock_sonarr, mock_radarr), mock_reconciler)
    return WebhookOrchestrator(engine, movie_quality_profile=" hd-1080p ")


# --- Tests for non-add events ---


@pytest.mark.unit
@pytest.mark.asyncio
async def test_test_event_is_acknowledged(
    orchestrator: WebhookOrchestrator, mock_sonarr: MagicMock
):
    """Events other than adds are acknowledged without work."""
    payload = SonarrWebhookPayload.model_validate({"eventType": "Test"})

    summary = await orchestrator.handle_event(payload)

    assert summary.message == ACKNOWLEDGED_MESSAGE
    assert summary.event_type == "Test"
    mock_sonarr.get_series_details.assert_not_awaited()


# --- Tests for series add ---


@pytest.mark.unit
@pytest.mark.asyncio
async def test_series_add_unmonitors_valid_episodes_and_rescans(
    orchestrator: WebhookOrchestrator, mock_sonarr: MagicMock
):
    """Episodes with a valid link are unmonitored and the series is rescanned."""
    summary = await orchestrator.handle_event(SERIES_ADD)

    assert summary.item_id == 1
    assert summary.items_processed == 3
    assert summary.valid_links == 2
    assert summary.missing == 1
    assert summary.artifacts_created == 1
    assert summary.unmonitored == 2
    assert summary.rescan_triggered is True
    assert summary.season_count == 1
    assert summary.episode_count == 3
    updated = [c.args[0] for c in mock_sonarr.update_episode.await_args_list]
    assert [(e.id, e.monitored) for e in updated] == [(1, False), (2, False)]
    mock_sonarr.rescan_series.assert_awaited_once_with(1)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_series_add_without_valid_links_does_not_rescan(
    orchestrator: WebhookOrchestrator,
    mock_sonarr: MagicMock,
    mock_reconciler: MagicMock,
):
    """A series with no valid link stays monitored and is not rescanned."""
    mock_reconciler.reconcile_episode.side_effect = None
    mock_reconciler.reconcile_episode.return_value = MISSING

    summary = await orchestrator.handle_event(SERIES_ADD)

    assert summary.unmonitored == 0
    assert summary.rescan_triggered is False
    mock_sonarr.update_episode.assert_not_awaited()
    mock_sonarr.rescan_series.assert_not_awaited()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_series_add_without_series_rejected(orchestrator: WebhookOrchestrator):
    """A series-add event must carry its series."""
    payload = SonarrWebhookPayload.model_validate({"eventType": "SeriesAdd"})

    with pytest.raises(WebhookPayloadError) as exc_info:
        await orchestrator.handle_event(payload)

    assert exc_info.value.event_type == "SeriesAdd"


# --- Tests for movie add ---


@pytest.mark.unit
@pytest.mark.asyncio
async def test_movie_add_valid_link_unmonitors_and_rescans(
    orchestrator: WebhookOrchestrator, mock_radarr: MagicMock
):
    """A valid movie is monitored, given the profile, then unmonitored and rescanned."""
    monitored_states: list[bool] = []
    profile_ids: list[int] = []

    async def record_update(movie: Movie) -> None:
        monitored_states.append(movie.monitored)
        profile_ids.append(movie.quality_profile_id)

    mock_radarr.update_movie.side_effect = record_update

    summary = await orchestrator.handle_event(MOVIE_ADDED)

    assert monitored_states == [True, False]
    assert profile_ids == [4, 4]
    assert summary.valid_links == 1
    assert summary.artifacts_created == 1
    assert summary.unmonitored == 1
    assert summary.rescan_triggered is True
    mock_radarr.rescan_movie.assert_awaited_once_with(42)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_movie_add_invalid_link_stays_monitored(
    orchestrator: WebhookOrchestrator,
    mock_radarr: MagicMock,
    mock_reconciler: MagicMock,
):
    """A movie without a valid link is left monitored."""
    mock_reconciler.reconcile_movie.return_value = MISSING

    summary = await orchestrator.handle_event(MOVIE_ADDED)

    assert "left monitored" in summary.message
    assert summary.missing == 1
    assert summary.rescan_triggered is False
    assert mock_radarr.update_movie.await_count == 1
    mock_radarr.rescan_movie.assert_not_awaited()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_movie_add_unknown_quality_profile_keeps_current(
    mock_sonarr: MagicMock,
    mock_radarr: MagicMock,
    mock_reconciler: MagicMock,
):
    """An unknown profile name leaves the movie's profile unchanged."""
    engine = ReconciliationEngine(SeriesAndMovies(mock_sonarr, mock_radarr), mock_reconciler)
    orchestrator = WebhookOrchestrator(engine, movie_quality_profile="Ultra-4K")

    await orchestrator.handle_event(MOVIE_ADDED)

    first_update = mock_radarr.update_movie.await_args_list[0].args[0]
    assert first_update.quality_profile_id == 1


@pytest.mark.unit
@pytest.mark.asyncio
async def test_movie_add_without_radarr_rejected(
    mock_sonarr: MagicMock, mock_reconciler: MagicMock
):
    """Movie events are unsupported on a series-only engine."""
    orchestrator = WebhookOrchestrator(
        ReconciliationEngine(SeriesOnly(mock_sonarr), mock_reconciler)
    )

    with pytest.raises(UnsupportedOperationError):
        await orchestrator.handle_event(MOVIE_ADDED)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_movie_add_without_movie_rejected(orchestrator: WebhookOrchestrator):
    """A movie-add event must carry its movie."""
    payload = RadarrWebhookPayload.model_validate({"eventType": "MovieAdd"})

    with pytest.raises(WebhookPayloadError):
        await orchestrator.handle_event(payload)
