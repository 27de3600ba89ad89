"""
Schedule entry model and match evaluation.

An entry is either a one-time job pinned to a calendar minute or a
recurring job that fires whenever the minute-of-hour is a multiple of
its interval.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Union


@dataclass
class OneTimeEntry:
    """Job that runs once, at an exact minute."""
    scheduled_time: datetime
    command: str
    executed: bool = field(default=False, compare=False)

    def mark_executed(self):
        self.executed = True


@dataclass
class RecurringEntry:
    """
    Job that runs every `interval_minutes` minutes.

    The interval is applied to the minute-of-hour only, so an interval of
    60 (or 1440) fires at the top of every hour.
    """
    interval_minutes: int
    command: str

    def __post_init__(self):
        if isinstance(self.interval_minutes, bool) or not isinstance(self.interval_minutes, int):
            raise ValueError(f"interval_minutes must be an integer, got {self.interval_minutes!r}")
        if self.interval_minutes <= 0:
            raise ValueError(f"interval_minutes must be positive, got {self.interval_minutes}")

    def mark_executed(self):
        pass


ScheduleEntry = Union[OneTimeEntry, RecurringEntry]


def truncate_to_minute(dt: datetime) -> datetime:
    """Drop seconds and microseconds."""
    return dt.replace(second=0, microsecond=0)


def should_run(entry: ScheduleEntry, now: datetime) -> bool:
    """
    Decide whether an entry is due at `now`.

    Args:
        entry: Entry to evaluate
        now: Current time, truncated to the minute

    Returns:
        True if the entry should be dispatched on this tick
    """
    if isinstance(entry, OneTimeEntry):
        return not entry.executed and now == entry.scheduled_time
    if isinstance(entry, RecurringEntry):
        return now.minute % entry.interval_minutes == 0
    raise TypeError(f"Unknown schedule entry type: {type(entry).__name__}")


def describe(entry: ScheduleEntry) -> str:
    """Short human-readable schedule description for log lines."""
    if isinstance(entry, OneTimeEntry):
        return f"once at {entry.scheduled_time.strftime('%Y-%m-%d %H:%M')}"
    return f"every {entry.interval_minutes} minute(s)"
