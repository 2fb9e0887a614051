"""Sweep orchestration over the catalogs.

This module defines the ReconciliationEngine class, which drives the
StrmReconciler across whole catalogs: the full series sweep and the
wanted/missing sweeps for episodes and movies.
"""

import asyncio
from collections.abc import Iterable
import logging
import time

from ..catalog import RadarrClient, SonarrClient
from ..catalog.types import Episode, Movie, Series
from ..exceptions import UnsupportedOperationError
from .season_policy import apply_latest_season_policy
from .strm_reconciler import StrmReconciler
from .topology import EngineTopology, SeriesAndMovies, close_topology, radarr_of
from .types import ItemOutcome, ItemResult, SweepResults

logger = logging.getLogger(__name__)

DEFAULT_SWEEP_WORKERS = 4
DEFAULT_WANTED_PAGE_SIZE = 100


class ReconciliationEngine:
    """Run reconciliation sweeps.

    A full sweep processes up to ``sweep_workers`` series concurrently; the
    episodes of one series are always reconciled one after another. Failures
    of one item are counted as missing and failures of one series are
    counted as failed parents; neither stops the sweep. Cancellation always
    propagates.

    Attributes:
        _topology: The configured catalogs.
        _reconciler: Per-item reconciliation logic.
        _sweep_workers: Series processed concurrently by a full sweep.
        _wanted_page_size: Page size of wanted/missing queries.
    """

    def __init__(
        self,
        topology: EngineTopology,
        reconciler: StrmReconciler,
        sweep_workers: int = DEFAULT_SWEEP_WORKERS,
        wanted_page_size: int = DEFAULT_WANTED_PAGE_SIZE,
    ):
        if sweep_workers < 1:
            raise ValueError(f"sweep_workers must be positive, got {sweep_workers}")
        self._topology = topology
        self._reconciler = reconciler
        self._sweep_workers = sweep_workers
        self._wanted_page_size = wanted_page_size
        logger.debug(
            "ReconciliationEngine initialized.",
            extra={
                "topology": type(topology).__name__,
                "sweep_workers": sweep_workers,
            },
        )

    @property
    def topology(self) -> EngineTopology:
        """The configured catalogs."""
        return self._topology

    @property
    def reconciler(self) -> StrmReconciler:
        """The per-item reconciler."""
        return self._reconciler

    @property
    def sonarr(self) -> SonarrClient:
        """The Sonarr client."""
        return self._topology.sonarr

    @property
    def handles_movies(self) -> bool:
        """Whether the engine was built with Radarr."""
        return isinstance(self._topology, SeriesAndMovies)

    def require_radarr(self, operation: str) -> RadarrClient:
        """Return the Radarr client or reject ``operation``.

        Raises:
            UnsupportedOperationError: If the engine handles series only.
        """
        radarr = radarr_of(self._topology)
        if radarr is None:
            raise UnsupportedOperationError(
                "Movies are not configured (RADARR_URL is unset).",
                operation=operation,
            )
        return radarr

    async def close(self) -> None:
        """Close the catalog clients."""
        await close_topology(self._topology)

    # --- Per-item boundaries ---

    async def reconcile_episode_safely(
        self, series: Series, episode: Episode
    ) -> ItemResult:
        """Reconcile one episode, folding any failure into MISSING."""
        try:
            return await self._reconciler.reconcile_episode(self.sonarr, series, episode)
        except Exception as e:
            logger.error(
                "Failed to reconcile episode, counting it as missing.",
                extra={
                    "series_id": series.id,
                    "episode_id": episode.id,
                    "season": episode.season_number,
                    "episode": episode.episode_number,
                },
                exc_info=e,
            )
            return ItemResult(ItemOutcome.MISSING)

    async def reconcile_movie_safely(
        self, radarr: RadarrClient, movie: Movie
    ) -> ItemResult:
        """Reconcile one movie, folding any failure into MISSING."""
        try:
            return await self._reconciler.reconcile_movie(radarr, movie)
        except Exception as e:
            logger.error(
                "Failed to reconcile movie, counting it as missing.",
                extra={"movie_id": movie.id, "title": movie.title},
                exc_info=e,
            )
            return ItemResult(ItemOutcome.MISSING)

    async def reconcile_series_episodes(
        self,
        series: Series,
        episodes: Iterable[Episode],
        results: SweepResults,
    ) -> list[tuple[Episode, ItemResult]]:
        """Reconcile episodes of one series sequentially.

        Specials (season 0) are ignored.

        Returns:
            Each reconciled episode with its result, in episode order.
        """
        reconciled: list[tuple[Episode, ItemResult]] = []
        ordered = sorted(
            (e for e in episodes if e.season_number > 0),
            key=lambda e: (e.season_number, e.episode_number),
        )
        for episode in ordered:
            result = await self.reconcile_episode_safely(series, episode)
            results.record(result)
            reconciled.append((episode, result))
        return reconciled

    async def _rescan_series(self, series_id: int, results: SweepResults) -> None:
        if await self.sonarr.rescan_series(series_id):
            results.rescans_triggered += 1

    async def _rescan_movie(
        self, radarr: RadarrClient, movie_id: int, results: SweepResults
    ) -> None:
        if await radarr.rescan_movie(movie_id):
            results.rescans_triggered += 1

    # --- Full sweep ---

    async def _full_sweep_series(
        self,
        series_id: int,
        semaphore: asyncio.Semaphore,
        results: SweepResults,
    ) -> None:
        log_params = {"series_id": series_id, "sweep_name": results.sweep_name}
        async with semaphore:
            try:
                series = await self.sonarr.get_series_details(series_id)
                episodes = await self.sonarr.get_episodes(series_id)

                policy = await apply_latest_season_policy(self.sonarr, series, episodes)
                results.monitoring_updates += policy.episode_updates + int(
                    policy.series_updated
                )

                reconciled = await self.reconcile_series_episodes(
                    series, (e for e in episodes if e.monitored), results
                )
                if any(r.created or r.artifacts_deleted for _, r in reconciled):
                    await self._rescan_series(series_id, results)
            except Exception as e:
                results.parents_failed += 1
                logger.error(
                    "Failed to process series during full sweep.",
                    extra=log_params,
                    exc_info=e,
                )
                return
            results.parents_processed += 1
            logger.debug("Series processed.", extra=log_params)

    async def run_full_sweep(self, only_monitored: bool = True) -> SweepResults:
        """Reconcile every series in the library.

        Args:
            only_monitored: Restrict the sweep to monitored series.

        Returns:
            The sweep's counters.

        Raises:
            CatalogApiError: If the series list cannot be fetched.
        """
        results = SweepResults(sweep_name="full_series")
        start = time.perf_counter()
        logger.info("Starting full series sweep.", extra={"only_monitored": only_monitored})

        all_series = await self.sonarr.get_all_series()
        selected = [s for s in all_series if s.monitored or not only_monitored]
        logger.info(
            "Series selected for full sweep.",
            extra={"selected": len(selected), "total": len(all_series)},
        )

        semaphore = asyncio.Semaphore(self._sweep_workers)
        await asyncio.gather(
            *(self._full_sweep_series(s.id, semaphore, results) for s in selected)
        )

        results.total_duration_seconds = time.perf_counter() - start
        logger.info("Full series sweep completed.", extra=results.summary_dict())
        return results

    # --- Wanted/missing sweeps ---

    async def _wanted_series(
        self, series_id: int, episodes: list[Episode], results: SweepResults
    ) -> None:
        log_params = {"series_id": series_id, "episode_count": len(episodes)}
        try:
            series = await self.sonarr.get_series_details(series_id)
            reconciled = await self.reconcile_series_episodes(series, episodes, results)
            if any(r.created for _, r in reconciled):
                await self._rescan_series(series_id, results)
        except Exception as e:
            results.parents_failed += 1
            logger.error(
                "Failed to process missing episodes of series.",
                extra=log_params,
                exc_info=e,
            )
            return
        results.parents_processed += 1

    async def run_wanted_episodes_sweep(self) -> SweepResults:
        """Reconcile every monitored missing episode.

        Episodes are grouped by series; a series is rescanned once, and only
        if at least one artifact was created for it.

        Returns:
            The sweep's counters.

        Raises:
            CatalogApiError: If the wanted/missing list cannot be fetched.
        """
        results = SweepResults(sweep_name="wanted_episodes")
        start = time.perf_counter()
        logger.info("Starting wanted/missing episodes sweep.")

        missing = await self.sonarr.get_all_wanted_missing(self._wanted_page_size)
        by_series: dict[int, list[Episode]] = {}
        for episode in missing:
            by_series.setdefault(episode.series_id, []).append(episode)
        logger.info(
            "Missing episodes grouped by series.",
            extra={"episodes": len(missing), "series": len(by_series)},
        )

        for series_id, episodes in by_series.items():
            await self._wanted_series(series_id, episodes, results)

        results.total_duration_seconds = time.perf_counter() - start
        logger.info("Wanted/missing episodes sweep completed.", extra=results.summary_dict())
        return results

    async def run_wanted_movies_sweep(self) -> SweepResults:
        """Reconcile every monitored missing movie.

        Returns:
            The sweep's counters.

        Raises:
            UnsupportedOperationError: If movies are not configured.
            CatalogApiError: If the wanted/missing list cannot be fetched.
        """
        radarr = self.require_radarr("run_wanted_movies_sweep")
        results = SweepResults(sweep_name="wanted_movies")
        start = time.perf_counter()
        logger.info("Starting wanted/missing movies sweep.")

        missing = await radarr.get_all_wanted_missing(self._wanted_page_size)
        for movie in missing:
            result = await self.reconcile_movie_safely(radarr, movie)
            results.record(result)
            if result.created:
                try:
                    await self._rescan_movie(radarr, movie.id, results)
                except Exception as e:
                    results.parents_failed += 1
                    logger.error(
                        "Failed to rescan movie.",
                        extra={"movie_id": movie.id},
                        exc_info=e,
                    )
                    continue
            results.parents_processed += 1

        results.total_duration_seconds = time.perf_counter() - start
        logger.info("Wanted/missing movies sweep completed.", extra=results.summary_dict())
        return results

    async def run_wanted_missing_sweep(self) -> SweepResults:
        """Run the episode and (when configured) movie sweeps concurrently.

        Both sweeps always finish before this returns, even when one of them
        fails; the counters of the successful sweep are merged either way.

        Returns:
            The merged counters of both sweeps.

        Raises:
            CatalogApiError: If a wanted/missing list cannot be fetched. Raised
                only after the other sweep has finished.
        """
        results = SweepResults(sweep_name="wanted_missing")
        start = time.perf_counter()

        sweeps = [self.run_wanted_episodes_sweep()]
        if self.handles_movies:
            sweeps.append(self.run_wanted_movies_sweep())
        else:
            logger.info("Movies are not configured, skipping wanted/missing movies.")

        errors: list[BaseException] = []
        for outcome in await asyncio.gather(*sweeps, return_exceptions=True):
            match outcome:
                case SweepResults():
                    results.merge(outcome)
                case BaseException():
                    errors.append(outcome)

        results.total_duration_seconds = time.perf_counter() - start
        if errors:
            for extra in errors[1:]:
                logger.error(
                    "Wanted/missing sub-sweep also failed.",
                    extra=results.summary_dict(),
                    exc_info=extra,
                )
            raise errors[0]
        return results
