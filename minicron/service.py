"""
Tick loop driving the scheduler.

Once per tick the service takes the current minute, walks every entry in
load order and synchronously runs the ones that are due. It then waits a
fixed interval before the next tick. Only one command runs at a time.

The loop can be stopped at any point between ticks or before the next
dispatch via stop(), which the CLI wires to SIGINT and SIGTERM.
"""

import logging
import signal
import threading
from datetime import datetime
from typing import Callable, List, Optional

from minicron.config import DEFAULT_COMMAND_TIMEOUT, DEFAULT_TICK_SECONDS
from minicron.entries import ScheduleEntry, describe, should_run, truncate_to_minute
from minicron.jobs import OutputLog, execute_entry

logger = logging.getLogger(__name__)


class SchedulerService:
    """
    Single-threaded scheduler over a fixed list of entries.

    The clock, the dispatch function and the tick interval are injectable
    so ticks can be driven without waiting on the wall clock.
    """

    def __init__(
        self,
        entries: List[ScheduleEntry],
        output_log: Optional[OutputLog] = None,
        command_timeout: Optional[float] = DEFAULT_COMMAND_TIMEOUT,
        tick_interval: float = DEFAULT_TICK_SECONDS,
        clock: Callable[[], datetime] = datetime.now,
        dispatch: Optional[Callable[[ScheduleEntry], bool]] = None
    ):
        """
        Initialize scheduler service.

        Args:
            entries: Loaded schedule entries, in file order
            output_log: Output log for run records (required unless dispatch is given)
            command_timeout: Per-command timeout in seconds
            tick_interval: Seconds to wait after each tick
            clock: Source of the current time
            dispatch: Callable running a due entry (defaults to execute_entry)
        """
        if dispatch is None and output_log is None:
            raise ValueError("Either output_log or dispatch must be provided")

        self.entries = entries
        self.output_log = output_log
        self.command_timeout = command_timeout
        self.tick_interval = tick_interval
        self.clock = clock
        self._dispatch = dispatch or self._execute
        self._stop_event = threading.Event()
        self._running = False
        self.tick_count = 0

    def _execute(self, entry: ScheduleEntry) -> bool:
        return execute_entry(entry, self.output_log, timeout=self.command_timeout)

    def run_tick(self, now: Optional[datetime] = None) -> int:
        """
        Evaluate every entry once and run the due ones.

        Args:
            now: Tick time (defaults to the clock, truncated to the minute)

        Returns:
            Number of entries dispatched
        """
        now = truncate_to_minute(now or self.clock())
        self.tick_count += 1
        dispatched = 0

        for entry in self.entries:
            if not should_run(entry, now):
                continue
            if self._stop_event.is_set():
                logger.info("Stop requested, skipping remaining entries for this tick")
                break

            logger.info(f"Running: {entry.command} at {now.isoformat()} ({describe(entry)})")
            if not self._dispatch(entry):
                logger.warning(f"Command did not complete: {entry.command}")
            dispatched += 1

        logger.debug(f"Tick {self.tick_count} at {now.isoformat()}: {dispatched} dispatched")
        return dispatched

    def run_forever(self):
        """Run ticks until stop() is called."""
        self._running = True
        logger.info(
            f"Scheduler started with {len(self.entries)} entries "
            f"(tick every {self.tick_interval:g}s)"
        )
        try:
            while not self._stop_event.is_set():
                self.run_tick()
                self._stop_event.wait(self.tick_interval)
        finally:
            self._running = False
            logger.info("Scheduler stopped")

    def stop(self):
        """Request the loop to exit before the next tick or dispatch."""
        if not self._stop_event.is_set():
            logger.info("Stopping scheduler...")
        self._stop_event.set()

    def is_running(self) -> bool:
        return self._running

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def install_signal_handlers(self):
        """Stop gracefully on SIGINT/SIGTERM. Must be called from the main thread."""

        def signal_handler(signum, frame):
            logger.info(f"Received signal {signum}, shutting down...")
            self.stop()

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)
