# pyright: reportPrivateUsage=false

"""Tests for the ReconciliationEngine sweeps."""

import asyncio
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from strmarr.catalog import RadarrClient, SonarrClient
from strmarr.catalog.types import Episode, Movie, Season, Series
from strmarr.exceptions import CatalogApiError, UnsupportedOperationError
from strmarr.reconciler import (
    ReconciliationEngine,
    SeriesAndMovies,
    SeriesOnly,
    StrmReconciler,
)
from strmarr.reconciler.types import ItemOutcome, ItemResult, SweepResults

CREATED = ItemResult(ItemOutcome.CREATED, Path("created.strm"))
VALID = ItemResult(ItemOutcome.VALID, Path("valid.strm"))
MISSING = ItemResult(ItemOutcome.MISSING, Path("missing.strm"))


def _series(series_id: int, monitored: bool = True) -> Series:
    return Series(
        id=series_id,
        title=f"Show {series_id}",
        path=f"/tv/Show {series_id}",
        imdb_id=f"tt{series_id}",
        monitored=monitored,
        seasons=[Season(season_number=1, monitored=True)],
    )


def _episode(
    episode_id: int, series_id: int = 1, season: int = 1, number: int | None = None
) -> Episode:
    return Episode(
        id=episode_id,
        series_id=series_id,
        season_number=season,
        episode_number=number if number is not None else episode_id,
        monitored=True,
    )


def _movie(movie_id: int) -> Movie:
    return Movie(
        id=movie_id,
        title=f"Movie {movie_id}",
        year=2000,
        path=f"/movies/Movie {movie_id}",
        imdb_id=f"tt{movie_id}",
        monitored=True,
    )


# --- Fixtures ---


@pytest.fixture
def mock_sonarr() -> MagicMock:
    """Provides a SonarrClient mock serving one monitored series with two episodes."""
    mock = MagicMock(spec=SonarrClient)
    mock.get_all_series = AsyncMock(return_value=[_series(1)])
    mock.get_series_details = AsyncMock(side_effect=lambda series_id: _series(series_id))
    mock.get_episodes = AsyncMock(
        side_effect=lambda series_id: [
            _episode(series_id * 10 + 1, series_id),
            _episode(series_id * 10 + 2, series_id),
        ]
    )
    mock.update_series = AsyncMock()
    mock.update_episode = AsyncMock(return_value=True)
    mock.rescan_series = AsyncMock(return_value=True)
    mock.get_all_wanted_missing = AsyncMock(return_value=[])
    mock.close = AsyncMock()
    return mock


@pytest.fixture
def mock_radarr() -> MagicMock:
    """Provides a RadarrClient mock."""
    mock = MagicMock(spec=RadarrClient)
    mock.get_all_wanted_missing = AsyncMock(return_value=[])
    mock.rescan_movie = AsyncMock(return_value=True)
    mock.close = AsyncMock()
    return mock


@pytest.fixture
def mock_reconciler() -> MagicMock:
    """Provides a StrmReconciler mock reporting every item valid."""
    mock = MagicMock(spec=StrmReconciler)
    mock.reconcile_episode = AsyncMock(return_value=VALID)
    mock.reconcile_movie = AsyncMock(return_value=VALID)
    return mock


@pytest.fixture
def engine(mock_sonarr: MagicMock, mock_reconciler: MagicMock) -> ReconciliationEngine:
    """Provides a series-only engine."""
    return ReconciliationEngine(SeriesOnly(mock_sonarr), mock_reconciler, sweep_workers=2)


@pytest.fixture
def movie_engine(
    mock_sonarr: MagicMock, mock_radarr: MagicMock, mock_reconciler: MagicMock
) -> ReconciliationEngine:
    """Provides an engine handling series and movies."""
    return ReconciliationEngine(
        SeriesAndMovies(mock_sonarr, mock_radarr), mock_reconciler, sweep_workers=2
    )


# --- Tests for topology handling ---


@pytest.mark.unit
def test_require_radarr_on_series_only_engine(engine: ReconciliationEngine):
    """Movie operations are rejected without Radarr."""
    assert engine.handles_movies is False
    with pytest.raises(UnsupportedOperationError) as exc_info:
        engine.require_radarr("movie_op")
    assert exc_info.value.operation == "movie_op"


@pytest.mark.unit
def test_require_radarr_returns_client(
    movie_engine: ReconciliationEngine, mock_radarr: MagicMock
):
    """The Radarr client is returned when configured."""
    assert movie_engine.handles_movies is True
    assert movie_engine.require_radarr("movie_op") is mock_radarr


@pytest.mark.unit
def test_invalid_worker_count_rejected(
    mock_sonarr: MagicMock, mock_reconciler: MagicMock
):
    """At least one sweep worker is required."""
    with pytest.raises(ValueError):
        ReconciliationEngine(SeriesOnly(mock_sonarr), mock_reconciler, sweep_workers=0)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_close_closes_all_clients(
    movie_engine: ReconciliationEngine, mock_sonarr: MagicMock, mock_radarr: MagicMock
):
    """Closing the engine closes both catalog clients."""
    await movie_engine.close()

    mock_sonarr.close.assert_awaited_once()
    mock_radarr.close.assert_awaited_once()


# --- Tests for per-item handling ---


@pytest.mark.unit
@pytest.mark.asyncio
async def test_item_failure_counts_as_missing(
    engine: ReconciliationEngine, mock_reconciler: MagicMock
):
    """An exception while reconciling one item becomes MISSING."""
    mock_reconciler.reconcile_episode.side_effect = OSError("disk full")

    result = await engine.reconcile_episode_safely(_series(1), _episode(1))

    assert result.outcome == ItemOutcome.MISSING


@pytest.mark.unit
@pytest.mark.asyncio
async def test_item_cancellation_propagates(
    engine: ReconciliationEngine, mock_reconciler: MagicMock
):
    """Cancellation is not folded into MISSING."""
    mock_reconciler.reconcile_episode.side_effect = asyncio.CancelledError()

    with pytest.raises(asyncio.CancelledError):
        await engine.reconcile_episode_safely(_series(1), _episode(1))


# --- Tests for run_full_sweep ---


@pytest.mark.unit
@pytest.mark.asyncio
async def test_full_sweep_rescans_when_artifact_created(
    engine: ReconciliationEngine, mock_sonarr: MagicMock, mock_reconciler: MagicMock
):
    """A series with a created artifact is rescanned once."""
    mock_reconciler.reconcile_episode.side_effect = [CREATED, VALID]

    results = await engine.run_full_sweep()

    assert results.parents_processed == 1
    assert results.items_processed == 2
    assert results.artifacts_created == 1
    assert results.valid_links == 2
    assert results.rescans_triggered == 1
    mock_sonarr.rescan_series.assert_awaited_once_with(1)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_full_sweep_no_changes_means_no_rescan(
    engine: ReconciliationEngine, mock_sonarr: MagicMock
):
    """A series whose artifacts were all present is not rescanned."""
    results = await engine.run_full_sweep()

    assert results.valid_links == 2
    assert results.rescans_triggered == 0
    mock_sonarr.rescan_series.assert_not_awaited()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_full_sweep_rescans_after_deletion(
    engine: ReconciliationEngine, mock_sonarr: MagicMock, mock_reconciler: MagicMock
):
    """Removing an artifact also triggers a rescan."""
    mock_reconciler.reconcile_episode.side_effect = [
        ItemResult(ItemOutcome.MISSING, Path("x.strm"), artifacts_deleted=1),
        VALID,
    ]

    results = await engine.run_full_sweep()

    assert results.missing == 1
    assert results.artifacts_deleted == 1
    mock_sonarr.rescan_series.assert_awaited_once_with(1)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_full_sweep_filters_unmonitored_series(
    engine: ReconciliationEngine, mock_sonarr: MagicMock
):
    """Unmonitored series are skipped unless requested."""
    mock_sonarr.get_all_series.return_value = [_series(1), _series(2, monitored=False)]

    monitored_only = await engine.run_full_sweep()
    everything = await engine.run_full_sweep(only_monitored=False)

    assert monitored_only.parents_processed == 1
    assert everything.parents_processed == 2


@pytest.mark.unit
@pytest.mark.asyncio
async def test_full_sweep_series_failure_is_isolated(
    engine: ReconciliationEngine, mock_sonarr: MagicMock
):
    """One failing series is counted and the others still run."""
    mock_sonarr.get_all_series.return_value = [_series(1), _series(2)]

    async def details(series_id: int) -> Series:
        if series_id == 2:
            raise CatalogApiError("boom", service="sonarr", status_code=500)
        return _series(series_id)

    mock_sonarr.get_series_details.side_effect = details

    results = await engine.run_full_sweep()

    assert results.parents_processed == 1
    assert results.parents_failed == 1
    assert results.items_processed == 2


@pytest.mark.unit
@pytest.mark.asyncio
async def test_full_sweep_applies_season_policy(
    engine: ReconciliationEngine, mock_sonarr: MagicMock, mock_reconciler: MagicMock
):
    """Older seasons are unmonitored and only monitored episodes are reconciled."""
    series = Series(
        id=1,
        title="Show",
        path="/tv/Show",
        imdb_id="tt1",
        monitored=True,
        seasons=[
            Season(season_number=1, monitored=True),
            Season(season_number=2, monitored=True),
        ],
    )
    mock_sonarr.get_series_details.side_effect = None
    mock_sonarr.get_series_details.return_value = series
    mock_sonarr.get_episodes.side_effect = None
    mock_sonarr.get_episodes.return_value = [
        _episode(1, season=1, number=1),
        _episode(2, season=2, number=1),
    ]

    results = await engine.run_full_sweep()

    mock_sonarr.update_series.assert_awaited_once()
    assert results.monitoring_updates == 2
    reconciled = [c.args[2].id for c in mock_reconciler.reconcile_episode.await_args_list]
    assert reconciled == [2]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_full_sweep_bounds_concurrency(
    engine: ReconciliationEngine, mock_sonarr: MagicMock
):
    """No more than sweep_workers series are processed at once."""
    mock_sonarr.get_all_series.return_value = [_series(i) for i in range(1, 6)]
    active = 0
    peak = 0

    async def details(series_id: int) -> Series:
        nonlocal active, peak
        active += 1
        peak = max(peak, active)
        await asyncio.sleep(0.01)
        active -= 1
        return _series(series_id)

    mock_sonarr.get_series_details.side_effect = details

    results = await engine.run_full_sweep()

    assert results.parents_processed == 5
    assert peak == 2


@pytest.mark.unit
@pytest.mark.asyncio
async def test_series_episodes_skip_specials_and_run_in_order(
    engine: ReconciliationEngine, mock_reconciler: MagicMock
):
    """Season 0 is ignored and episodes are reconciled in season/episode order."""
    episodes = [
        _episode(3, season=2, number=1),
        _episode(1, season=0, number=1),
        _episode(2, season=1, number=2),
        _episode(4, season=1, number=1),
    ]

    reconciled = await engine.reconcile_series_episodes(
        _series(1), episodes, SweepResults(sweep_name="test")
    )

    assert [e.id for e, _ in reconciled] == [4, 2, 3]


# --- Tests for wanted/missing sweeps ---


@pytest.mark.unit
@pytest.mark.asyncio
async def test_wanted_episodes_grouped_and_rescanned_on_create(
    engine: ReconciliationEngine, mock_sonarr: MagicMock, mock_reconciler: MagicMock
):
    """Missing episodes are grouped by series; only series with a new artifact are rescanned."""
    mock_sonarr.get_all_wanted_missing.return_value = [
        _episode(1, series_id=1),
        _episode(2, series_id=2),
        _episode(3, series_id=1),
    ]

    async def reconcile(sonarr: object, series: Series, episode: Episode) -> ItemResult:
        return CREATED if series.id == 1 and episode.id == 3 else VALID

    mock_reconciler.reconcile_episode.side_effect = reconcile

    results = await engine.run_wanted_episodes_sweep()

    assert results.parents_processed == 2
    assert results.items_processed == 3
    assert results.artifacts_created == 1
    mock_sonarr.rescan_series.assert_awaited_once_with(1)
    assert mock_sonarr.get_series_details.await_count == 2


@pytest.mark.unit
@pytest.mark.asyncio
async def test_wanted_episodes_deletion_does_not_rescan(
    engine: ReconciliationEngine, mock_sonarr: MagicMock, mock_reconciler: MagicMock
):
    """Wanted sweeps rescan only when something was created."""
    mock_sonarr.get_all_wanted_missing.return_value = [_episode(1)]
    mock_reconciler.reconcile_episode.return_value = ItemResult(
        ItemOutcome.MISSING, Path("x.strm"), artifacts_deleted=1
    )

    results = await engine.run_wanted_episodes_sweep()

    assert results.missing == 1
    mock_sonarr.rescan_series.assert_not_awaited()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_wanted_movies_requires_radarr(engine: ReconciliationEngine):
    """The movie sweep is unsupported without Radarr."""
    with pytest.raises(UnsupportedOperationError):
        await engine.run_wanted_movies_sweep()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_wanted_movies_rescans_created_only(
    movie_engine: ReconciliationEngine,
    mock_radarr: MagicMock,
    mock_reconciler: MagicMock,
):
    """Only movies whose artifact was created are rescanned."""
    mock_radarr.get_all_wanted_missing.return_value = [_movie(1), _movie(2), _movie(3)]
    mock_reconciler.reconcile_movie.side_effect = [CREATED, VALID, MISSING]

    results = await movie_engine.run_wanted_movies_sweep()

    assert results.items_processed == 3
    assert results.valid_links == 2
    assert results.missing == 1
    assert results.rescans_triggered == 1
    mock_radarr.rescan_movie.assert_awaited_once_with(1)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_wanted_missing_sweep_merges_both_catalogs(
    movie_engine: ReconciliationEngine,
    mock_sonarr: MagicMock,
    mock_radarr: MagicMock,
):
    """The combined sweep sums episode and movie counters."""
    mock_sonarr.get_all_wanted_missing.return_value = [_episode(1)]
    mock_radarr.get_all_wanted_missing.return_value = [_movie(1)]

    results = await movie_engine.run_wanted_missing_sweep()

    assert results.sweep_name == "wanted_missing"
    assert results.items_processed == 2
    assert results.valid_links == 2


@pytest.mark.unit
@pytest.mark.asyncio
async def test_wanted_missing_sweep_series_only(
    engine: ReconciliationEngine, mock_sonarr: MagicMock
):
    """Without Radarr only episodes are swept."""
    mock_sonarr.get_all_wanted_missing.return_value = [_episode(1)]

    results = await engine.run_wanted_missing_sweep()

    assert results.items_processed == 1


@pytest.mark.unit
@pytest.mark.asyncio
async def test_wanted_missing_sweep_waits_for_movies_when_episodes_fail(
    movie_engine: ReconciliationEngine,
    mock_sonarr: MagicMock,
    mock_radarr: MagicMock,
):
    """A failed episode sweep is raised only once the movie sweep has finished."""
    release = asyncio.Event()
    movies_finished = asyncio.Event()

    async def slow_movies(page_size: int) -> list[Movie]:
        await release.wait()
        movies_finished.set()
        return [_movie(1)]

    mock_sonarr.get_all_wanted_missing.side_effect = CatalogApiError(
        "Sonarr is down.", service="sonarr"
    )
    mock_radarr.get_all_wanted_missing.side_effect = slow_movies

    sweep = asyncio.create_task(movie_engine.run_wanted_missing_sweep())
    for _ in range(5):
        await asyncio.sleep(0)
    assert not sweep.done()

    release.set()
    with pytest.raises(CatalogApiError):
        await sweep

    assert movies_finished.is_set()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_wanted_missing_sweep_cancellation_cancels_movies(
    movie_engine: ReconciliationEngine,
    mock_radarr: MagicMock,
):
    """Cancelling the combined sweep leaves no movie sweep running behind it."""
    started = asyncio.Event()
    cancelled = asyncio.Event()

    async def blocked_movies(page_size: int) -> list[Movie]:
        started.set()
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            cancelled.set()
            raise
        return []

    mock_radarr.get_all_wanted_missing.side_effect = blocked_movies

    sweep = asyncio.create_task(movie_engine.run_wanted_missing_sweep())
    await started.wait()
    sweep.cancel()
    with pytest.raises(asyncio.CancelledError):
        await sweep

    assert cancelled.is_set()
