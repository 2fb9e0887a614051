"""Default mode implementation for strmarr.

This module wires every component from the settings, starts the sweep
scheduler and the HTTP server, and shuts everything down in order.
"""

from datetime import datetime, timedelta
import logging

import httpx

from ..catalog import RadarrClient, SonarrClient
from ..config import AppSettings
from ..file_store import FileStore
from ..link_validator import LinkValidator
from ..reconciler import (
    EngineTopology,
    ReconciliationEngine,
    SeriesAndMovies,
    SeriesOnly,
    StrmReconciler,
)
from ..reconciler.types import SweepResults
from ..retry_executor import RetryExecutor
from ..schedule import CronCadence, IntervalCadence, ScheduledSweep, SweepScheduler
from ..server import create_server
from ..webhook_orchestrator import WebhookOrchestrator

logger = logging.getLogger(__name__)


async def graceful_shutdown(
    scheduler: SweepScheduler | None,
    engine: ReconciliationEngine | None,
    probe_client: httpx.AsyncClient | None,
) -> None:
    """Perform graceful shutdown of all components in correct order.

    Args:
        scheduler: The sweep scheduler to stop.
        engine: The engine whose catalog clients are closed.
        probe_client: The HTTP client used for link probes.
    """
    logger.info("Shutdown signal received.")

    # Step 1: stop ticking and cancel in-flight sweeps
    if scheduler:
        try:
            await scheduler.stop()
            logger.info("Scheduler shutdown completed.")
        except Exception as e:
            logger.error("Error shutting down scheduler.", exc_info=e)

    # Step 2: close HTTP clients
    if engine:
        try:
            await engine.close()
        except Exception as e:
            logger.error("Error closing catalog clients.", exc_info=e)
    if probe_client:
        try:
            await probe_client.aclose()
        except Exception as e:
            logger.error("Error closing link probe client.", exc_info=e)

    logger.info("strmarr shutdown completed.")


def _build_topology(settings: AppSettings, retry: RetryExecutor) -> EngineTopology:
    sonarr = SonarrClient(
        settings.sonarr_url,
        settings.sonarr_api_key,
        retry,
        timeout_seconds=settings.http_timeout_seconds,
    )
    if not settings.radarr_enabled:
        logger.info("Radarr is not configured, handling series only.")
        return SeriesOnly(sonarr)
    radarr = RadarrClient(
        settings.radarr_url,
        settings.radarr_api_key,
        retry,
        timeout_seconds=settings.http_timeout_seconds,
    )
    return SeriesAndMovies(sonarr, radarr)


def _build_sweeps(
    settings: AppSettings, engine: ReconciliationEngine
) -> list[ScheduledSweep]:
    only_monitored = settings.full_sweep_only_monitored

    async def full_sweep() -> SweepResults:
        return await engine.run_full_sweep(only_monitored=only_monitored)

    return [
        ScheduledSweep(
            name="full_series",
            cadence=CronCadence(settings.full_sweep_schedule),
            sweep=full_sweep,
            enabled=settings.full_sweep_enabled,
        ),
        ScheduledSweep(
            name="wanted_missing",
            cadence=IntervalCadence(
                timedelta(minutes=settings.wanted_sweep_interval_minutes)
            ),
            sweep=engine.run_wanted_missing_sweep,
            enabled=settings.wanted_sweep_enabled,
        ),
    ]


def _init(
    settings: AppSettings,
) -> tuple[
    httpx.AsyncClient,
    ReconciliationEngine,
    WebhookOrchestrator,
    SweepScheduler,
]:
    retry = RetryExecutor(
        max_retries=settings.max_retries,
        delays_ms=settings.retry_delays_ms,
        retry_status_codes=settings.retryable_status_codes,
    )
    topology = _build_topology(settings, retry)

    probe_client = httpx.AsyncClient(timeout=settings.validation_timeout_seconds)
    link_validator = LinkValidator(
        probe_client,
        timeout_seconds=settings.validation_timeout_seconds,
        error_host_marker=settings.error_host_marker,
    )
    reconciler = StrmReconciler(
        link_validator=link_validator,
        file_store=FileStore(),
        series_url_template=settings.series_url_template,
        movie_url_template=settings.movie_url_template,
        username=settings.provider_username,
        password=settings.provider_password,
        validate_urls=settings.validate_urls,
    )
    engine = ReconciliationEngine(
        topology,
        reconciler,
        sweep_workers=settings.sweep_workers,
        wanted_page_size=settings.wanted_page_size,
    )
    orchestrator = WebhookOrchestrator(
        engine, movie_quality_profile=settings.movie_quality_profile
    )

    tz = settings.tz

    def clock() -> datetime:
        return datetime.now(tz) if tz else datetime.now().astimezone()

    scheduler = SweepScheduler(_build_sweeps(settings, engine), clock=clock)
    return probe_client, engine, orchestrator, scheduler


async def default(settings: AppSettings) -> None:
    """Main async entry point for default mode.

    Wires all components, starts the scheduler (whose first tick runs the
    wanted/missing sweep right away) and serves HTTP until shutdown.

    Args:
        settings: Application settings object containing configuration.
    """
    logger.debug(
        "Starting strmarr in default mode.",
        extra={"config_file": str(settings.config_file)},
    )

    probe_client: httpx.AsyncClient | None = None
    engine: ReconciliationEngine | None = None
    scheduler: SweepScheduler | None = None
    try:
        probe_client, engine, orchestrator, scheduler = _init(settings)

        server = create_server(
            settings=settings,
            engine=engine,
            webhook_orchestrator=orchestrator,
            shutdown_callback=lambda: graceful_shutdown(scheduler, engine, probe_client),
        )

        logger.info(
            "Starting scheduler and HTTP server...",
            extra={
                "server_host": settings.server_host,
                "server_port": settings.server_port,
                "full_sweep_schedule": str(settings.full_sweep_schedule),
                "wanted_sweep_interval_minutes": settings.wanted_sweep_interval_minutes,
            },
        )

        await scheduler.start()

        # Will gracefully shutdown on SIGINT/SIGTERM
        await server.serve()
    except Exception as e:
        logger.error("Unexpected error during execution.", exc_info=e)
        await graceful_shutdown(scheduler, engine, probe_client)
        raise
