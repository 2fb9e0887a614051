from .scheduler import SweepScheduler
from .types import (
    Cadence,
    CronCadence,
    IntervalCadence,
    ScheduledSweep,
    ScheduleState,
    TickReport,
)

__all__ = [
    "Cadence",
    "CronCadence",
    "IntervalCadence",
    "ScheduleState",
    "ScheduledSweep",
    "SweepScheduler",
    "TickReport",
]
