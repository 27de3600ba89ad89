"""
Minimal local job scheduler.

Reads scheduled shell commands from a text file, checks them once per
minute and runs the due ones, appending their output to a log file.

Features:
- One-time jobs pinned to an exact minute
- Recurring jobs every N minutes (minute-of-hour based)
- Sequential execution with per-command timeout
- Graceful shutdown on SIGINT/SIGTERM
"""

from minicron.entries import OneTimeEntry, RecurringEntry, should_run
from minicron.loader import ParseError, load_entries, load_schedule_file
from minicron.jobs import CommandExecutor, JobExecutionError, OutputLog, execute_entry
from minicron.service import SchedulerService
from minicron.config import SchedulerConfig

__version__ = "0.1.0"
__all__ = [
    "OneTimeEntry",
    "RecurringEntry",
    "should_run",
    "ParseError",
    "load_entries",
    "load_schedule_file",
    "CommandExecutor",
    "JobExecutionError",
    "OutputLog",
    "execute_entry",
    "SchedulerService",
    "SchedulerConfig",
]
