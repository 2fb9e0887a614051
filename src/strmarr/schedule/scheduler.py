"""Scheduler module for periodic reconciliation sweeps.

This module provides the SweepScheduler class. An APScheduler interval job
fires a tick once a minute; each tick decides which sweeps are due and
launches them as detached tasks, so a long sweep never delays the tick.
"""

import asyncio
from collections.abc import Callable, Sequence
from datetime import UTC, datetime
import logging
import time

from ..logging_config import set_context_id
from ..reconciler.types import SweepResults
from .apscheduler_core import APSchedulerCore
from .types import (
    CronCadence,
    IntervalCadence,
    ScheduledSweep,
    ScheduleState,
    TickReport,
)

logger = logging.getLogger(__name__)

TICK_JOB_ID = "sweep_tick"
DEFAULT_TICK_SECONDS = 60.0


def _utc_now() -> datetime:
    return datetime.now(UTC)


class SweepScheduler:
    """Launch sweeps on their cadences without overlap.

    Checking whether a sweep is due and marking it in flight happen together
    under one lock, so a sweep is never launched twice. A run's in-flight flag
    is cleared when it finishes however it finishes. ``last_run`` advances
    when a run succeeds or fails, so a failing catalog is retried once per
    interval; a cancelled run leaves it unchanged.

    Attributes:
        _sweeps: Sweeps keyed by name.
        _states: Run state keyed by sweep name.
        _clock: Returns the current time.
        _tick_seconds: Seconds between ticks.
        _lock: Guards claim-and-launch.
        _scheduler: APSchedulerCore driving the tick.
    """

    def __init__(
        self,
        sweeps: Sequence[ScheduledSweep],
        clock: Callable[[], datetime] = _utc_now,
        tick_seconds: float = DEFAULT_TICK_SECONDS,
    ):
        names = [s.name for s in sweeps]
        if len(set(names)) != len(names):
            raise ValueError(f"Sweep names must be unique, got {names}")

        self._sweeps = {s.name: s for s in sweeps}
        self._states = {s.name: ScheduleState() for s in sweeps}
        self._clock = clock
        self._tick_seconds = tick_seconds
        self._lock = asyncio.Lock()
        self._scheduler = APSchedulerCore()

        self._scheduler.schedule_interval_job(TICK_JOB_ID, tick_seconds, self.tick)
        self._scheduler.on_job_problem(self._tick_problem_callback)

        logger.debug(
            "SweepScheduler initialized.",
            extra={
                "sweeps": [s.name for s in sweeps if s.enabled],
                "disabled_sweeps": [s.name for s in sweeps if not s.enabled],
            },
        )

    @property
    def running(self) -> bool:
        """Whether the underlying scheduler is running."""
        return self._scheduler.running

    def state(self, name: str) -> ScheduleState:
        """Return the run state of the sweep called ``name``."""
        return self._states[name]

    async def start(self) -> None:
        """Start ticking; the first tick runs immediately."""
        self._scheduler.start()
        logger.info(
            "Sweep scheduler started.", extra={"tick_seconds": self._tick_seconds}
        )

    async def stop(self) -> None:
        """Stop ticking, cancel in-flight sweeps and wait for them to finish."""
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)

        tasks = [
            state.task
            for state in self._states.values()
            if state.task is not None and not state.task.done()
        ]
        if tasks:
            logger.info("Cancelling in-flight sweeps.", extra={"count": len(tasks)})
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("Sweep scheduler stopped.")

    def is_due(self, sweep: ScheduledSweep, state: ScheduleState, now: datetime) -> bool:
        """Decide whether ``sweep`` should be launched at ``now``.

        Does not look at the in-flight flag.
        """
        if not sweep.enabled:
            return False
        match sweep.cadence:
            case IntervalCadence(interval=interval):
                return state.last_run is None or now - state.last_run >= interval
            case CronCadence(schedule=schedule, grace=grace):
                slot = schedule.latest_slot(now)
                return slot != state.last_slot and now - slot <= grace

    async def tick(self) -> TickReport:
        """Launch every due sweep that is not already in flight.

        Returns:
            What the tick launched and skipped.
        """
        launched: list[str] = []
        in_flight: list[str] = []
        async with self._lock:
            now = self._clock()
            for name, sweep in self._sweeps.items():
                state = self._states[name]
                if not self.is_due(sweep, state, now):
                    continue
                if state.running:
                    in_flight.append(name)
                    continue

                state.running = True
                if isinstance(sweep.cadence, CronCadence):
                    state.last_slot = sweep.cadence.schedule.latest_slot(now)
                state.task = asyncio.create_task(
                    self._run_sweep(sweep, state), name=f"sweep-{name}"
                )
                launched.append(name)
        if launched or in_flight:
            logger.debug(
                "Scheduler tick completed.",
                extra={"launched": launched, "in_flight": in_flight},
            )
        return TickReport(
            tick_time=now, launched=tuple(launched), in_flight=tuple(in_flight)
        )

    async def _run_sweep(
        self, sweep: ScheduledSweep, state: ScheduleState
    ) -> SweepResults | None:
        """Run one sweep, keeping its state consistent however it ends.

        Failures are logged, still count as a run and are reported as None.
        Cancellation propagates.
        """
        set_context_id(f"{sweep.name}-{int(time.time())}")
        log_params = {"sweep_name": sweep.name}
        logger.info("Starting scheduled sweep.", extra=log_params)
        try:
            results = await sweep.sweep()
        except asyncio.CancelledError:
            logger.warning("Scheduled sweep cancelled.", extra=log_params)
            raise
        except Exception as e:
            logger.error(
                "Scheduled sweep failed.",
                extra={**log_params, "exception_type": type(e).__name__},
                exc_info=e,
            )
            state.last_run = self._clock()
            return None
        else:
            state.last_run = self._clock()
            logger.info(
                "Scheduled sweep completed.",
                extra={**log_params, **results.summary_dict()},
            )
            return results
        finally:
            state.running = False

    @staticmethod
    def _tick_problem_callback(
        job_id: str, scheduled_run_time: datetime, exception: BaseException | None
    ) -> None:
        log_params = {
            "job_id": job_id,
            "scheduled_run_time": scheduled_run_time.isoformat(),
        }
        if exception is None:
            logger.warning(
                "Scheduler tick missed its execution window.", extra=log_params
            )
            return
        logger.error(
            "Scheduler tick failed with error.",
            extra={**log_params, "exception_type": type(exception).__name__},
            exc_info=exception,
        )
