"""Thin APScheduler wrapper driving strmarr's polling tick.

Only this module imports APScheduler. It runs a single interval job on an
in-memory AsyncIOScheduler and reports job errors and missed runs through one
typed callback.
"""

from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
import logging

from apscheduler.events import (  # type: ignore
    EVENT_JOB_ERROR,  # type: ignore
    EVENT_JOB_MISSED,  # type: ignore
    JobExecutionEvent,  # type: ignore
)
from apscheduler.executors.asyncio import AsyncIOExecutor  # type: ignore
from apscheduler.jobstores.memory import MemoryJobStore  # type: ignore
from apscheduler.schedulers.asyncio import AsyncIOScheduler  # type: ignore
from apscheduler.triggers.interval import IntervalTrigger  # type: ignore

logger = logging.getLogger(__name__)

type JobProblemCallback = Callable[[str, datetime, BaseException | None], None]


class APSchedulerCore:
    """In-memory AsyncIOScheduler running non-overlapping interval jobs.

    A job never runs alongside itself (``max_instances=1``) and a backlog of
    missed runs collapses into one.
    """

    def __init__(self, misfire_grace_seconds: int = 30):
        self._scheduler = AsyncIOScheduler(  # type: ignore
            jobstores={"default": MemoryJobStore()},
            executors={"default": AsyncIOExecutor()},
            job_defaults={
                "coalesce": True,
                "max_instances": 1,
                "misfire_grace_time": misfire_grace_seconds,
            },
            timezone="UTC",
        )

    def on_job_problem(self, callback: JobProblemCallback) -> None:
        """Report failed and missed job runs to ``callback``.

        Args:
            callback: Called with the job id, the scheduled run time and the
                exception, which is None for a missed run.
        """

        def dispatch(event: JobExecutionEvent) -> None:  # type: ignore
            callback(
                event.job_id,  # type: ignore
                event.scheduled_run_time,  # type: ignore
                getattr(event, "exception", None),  # type: ignore
            )

        self._scheduler.add_listener(dispatch, EVENT_JOB_ERROR | EVENT_JOB_MISSED)  # type: ignore

    def schedule_interval_job(
        self,
        job_id: str,
        seconds: float,
        job: Callable[[], Awaitable[object]],
        run_immediately: bool = True,
    ) -> None:
        """Run ``job`` every ``seconds`` seconds, replacing any job with that id."""
        # APScheduler pauses a job added with next_run_time=None
        extra: dict[str, datetime] = (
            {"next_run_time": datetime.now(UTC)} if run_immediately else {}
        )
        self._scheduler.add_job(  # type: ignore
            job,
            trigger=IntervalTrigger(seconds=seconds),  # type: ignore
            id=job_id,
            replace_existing=True,
            **extra,
        )

    def get_job_ids(self) -> list[str]:
        """Return the ids of all scheduled jobs."""
        return [job.id for job in self._scheduler.get_jobs()]  # type: ignore

    @property
    def running(self) -> bool:
        """Whether the scheduler is running."""
        return self._scheduler.running  # type: ignore

    def start(self) -> None:
        self._scheduler.start()  # type: ignore

    def shutdown(self, wait: bool = True) -> None:
        self._scheduler.shutdown(wait=wait)  # type: ignore
