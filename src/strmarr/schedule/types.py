"""Cadence and state types for the sweep scheduler."""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from ..config.types import CronExpression
from ..reconciler.types import SweepResults


@dataclass(frozen=True)
class IntervalCadence:
    """Run every ``interval`` after the last successful run.

    Attributes:
        interval: Minimum time between the end of a run that was not
            cancelled and the start of the next one.
    """

    interval: timedelta


@dataclass(frozen=True)
class CronCadence:
    """Run once per matching cron slot.

    Attributes:
        schedule: The cron expression, e.g. ``"15 * * * *"`` for hourly at
            minute 15.
        grace: How late after its slot a run may still start.
    """

    schedule: CronExpression
    grace: timedelta = timedelta(minutes=2)


type Cadence = IntervalCadence | CronCadence


@dataclass(frozen=True)
class ScheduledSweep:
    """A sweep and when to run it.

    Attributes:
        name: Sweep name, used in logs and context ids.
        cadence: When the sweep is due.
        sweep: Coroutine function running the sweep.
        enabled: Disabled sweeps are never launched.
    """

    name: str
    cadence: Cadence
    sweep: Callable[[], Awaitable[SweepResults]]
    enabled: bool = True


@dataclass
class ScheduleState:
    """Mutable run state of one scheduled sweep.

    Lives only in memory; a restart begins with every sweep never run.

    Attributes:
        last_run: Completion time of the last run that was not cancelled.
        last_slot: Cron slot most recently claimed.
        running: Whether a run is in flight.
        task: The in-flight run, if any.
    """

    last_run: datetime | None = None
    last_slot: datetime | None = None
    running: bool = False
    task: asyncio.Task[SweepResults | None] | None = field(default=None, repr=False)


@dataclass(frozen=True)
class TickReport:
    """What one scheduler tick did.

    Attributes:
        tick_time: When the tick ran.
        launched: Names of sweeps launched by the tick.
        in_flight: Names of sweeps skipped because a run was in flight.
    """

    tick_time: datetime
    launched: tuple[str, ...] = ()
    in_flight: tuple[str, ...] = ()
