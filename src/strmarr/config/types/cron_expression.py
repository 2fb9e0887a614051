"""Cron expression data type for sweep cadences.

This module provides the CronExpression dataclass used to describe clock-based
sweep cadences, such as "hourly at minute M".
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta

from croniter import croniter


@dataclass
class CronExpression:
    """Data representation of a 5-field cron expression.

    Each position is:
        * * * * *
        | | | | |
        | | | | day of the week (0-6) (Sunday to Saturday; 7 is also Sunday)
        | | | month (1-12)
        | | day of the month (1-31)
        | hour (0-23)
        minute (0-59)

    Aliases such as ``@hourly`` and ``@daily`` are accepted. A sixth
    "seconds" field is rejected since cadences are evaluated once per minute.

    Attributes:
        cron_str: Cron expression string.
    """

    cron_str: str
    _itr: croniter = field(init=False, repr=False, hash=False, compare=False)

    def __post_init__(self):
        self.cron_str = self.cron_str.strip()
        try:
            self._itr = croniter(self.cron_str)
        except (ValueError, KeyError) as e:
            raise ValueError(f"Invalid cron expression: {self.cron_str}") from e
        match self._itr.expressions:
            case (_, _, _, _, _):
                pass
            case _:
                raise ValueError(
                    f"Invalid cron expression: expected 5 fields, got '{self.cron_str}'"
                )

    @classmethod
    def hourly_at(cls, minute: int) -> "CronExpression":
        """Build an expression that fires once an hour at ``minute``.

        Args:
            minute: Minute of the hour (0-59).

        Returns:
            The CronExpression.

        Raises:
            ValueError: If minute is out of range.
        """
        if not 0 <= minute <= 59:
            raise ValueError(f"minute must be between 0 and 59, got {minute}")
        return cls(f"{minute} * * * *")

    def next(self, start_time: datetime) -> datetime:
        """Get the next datetime after ``start_time`` that matches the expression."""
        return self._itr.get_next(datetime, start_time=start_time)  # type: ignore

    def prev(self, start_time: datetime) -> datetime:
        """Get the latest datetime before ``start_time`` that matches the expression."""
        return self._itr.get_prev(datetime, start_time=start_time)  # type: ignore

    def latest_slot(self, now: datetime) -> datetime:
        """Return the most recent fire time at or before ``now``'s minute.

        Args:
            now: The current (timezone-aware) time.

        Returns:
            The start of the latest minute slot matching the expression.
        """
        minute_start = now.replace(second=0, microsecond=0)
        return self.prev(minute_start + timedelta(minutes=1))

    def __str__(self) -> str:
        """Return the cron expression string."""
        return self.cron_str
