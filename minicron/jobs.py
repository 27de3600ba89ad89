"""
Command execution for due schedule entries.

Runs an entry's command through the host shell, waits for it, and records
the outcome in the output log. Failures never escape into the tick loop.
"""

import logging
import os
import signal
import subprocess
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from minicron.entries import ScheduleEntry

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 3600
# Seconds to wait for a killed command to release its output pipes
REAP_TIMEOUT = 5
TIMESTAMP_FORMAT = '%Y-%m-%d %H:%M'


class JobExecutionError(Exception):
    """Raised when a command cannot be launched or does not finish in time."""
    pass


class OutputLog:
    """
    Append-only record of command runs.

    Write errors are reported through the diagnostic logger and swallowed,
    so a broken log destination never stops scheduling.
    """

    def __init__(self, stream, path: Optional[Path] = None):
        self.stream = stream
        self.path = path

    @classmethod
    def open(cls, path) -> 'OutputLog':
        """Open (and create if needed) the log file in append mode."""
        path = Path(path).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        stream = open(path, 'a', encoding='utf-8')
        return cls(stream, path)

    def _write(self, text: str):
        try:
            self.stream.write(text)
            self.stream.flush()
        except (OSError, ValueError) as e:
            logger.error(f"Failed to write output log {self.path or ''}: {e}")

    def write_run(self, command: str, stdout: str, stderr: str,
                  timestamp: Optional[datetime] = None):
        timestamp = timestamp or datetime.now()
        parts = [f"[{timestamp.strftime(TIMESTAMP_FORMAT)}] {command}\n"]
        if stdout:
            parts.append(f"{stdout}\n")
        if stderr:
            parts.append(f"ERROR: {stderr}\n")
        self._write(''.join(parts))

    def write_failure(self, command: str, error):
        self._write(f"Execution failed for: {command} -> {error}\n")

    def close(self):
        try:
            self.stream.close()
        except OSError as e:
            logger.error(f"Failed to close output log {self.path or ''}: {e}")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


def _kill(process: subprocess.Popen):
    """Kill a command together with anything its shell started."""
    if os.name == 'nt':
        process.kill()
        return
    try:
        os.killpg(process.pid, signal.SIGKILL)
    except ProcessLookupError:
        pass


def _reap(process: subprocess.Popen):
    """
    Collect a killed command without blocking the tick loop.

    On Windows only the shell is killed, so a grandchild can keep the pipes
    open. After REAP_TIMEOUT the process is abandoned.
    """
    try:
        process.communicate(timeout=REAP_TIMEOUT)
    except subprocess.TimeoutExpired:
        logger.warning(
            f"Process {process.pid} still holds its output pipes after kill, not waiting for it"
        )


class CommandExecutor:
    """Executes shell commands synchronously, one at a time."""

    def execute_command(
        self,
        command: str,
        timeout: Optional[float] = DEFAULT_TIMEOUT
    ) -> Dict[str, Any]:
        """
        Execute a shell command and capture its output.

        The command is handed to the platform shell unmodified.

        Args:
            command: Shell command to execute
            timeout: Timeout in seconds, None or <= 0 to wait forever

        Returns:
            Dict with stdout, stderr, returncode

        Raises:
            JobExecutionError: If the command cannot be started or times out
        """
        if timeout is not None and timeout <= 0:
            timeout = None

        try:
            process = subprocess.Popen(
                command,
                shell=True,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                errors='replace',
                start_new_session=(os.name != 'nt')
            )
        except (OSError, ValueError) as e:
            logger.error(f"Command execution failed: {e}")
            raise JobExecutionError(f"Command execution failed: {e}") from e

        try:
            stdout, stderr = process.communicate(timeout=timeout)
        except subprocess.TimeoutExpired as e:
            _kill(process)
            _reap(process)
            logger.error(f"Command timed out after {timeout:g}s: {command}")
            raise JobExecutionError(f"Command timed out after {timeout:g}s") from e
        except OSError as e:
            _kill(process)
            process.wait()
            logger.error(f"Command execution failed: {e}")
            raise JobExecutionError(f"Command execution failed: {e}") from e

        return {
            'stdout': stdout,
            'stderr': stderr,
            'returncode': process.returncode
        }


def execute_entry(
    entry: ScheduleEntry,
    output_log: OutputLog,
    timeout: Optional[float] = DEFAULT_TIMEOUT,
    executor: Optional[CommandExecutor] = None,
    clock: Callable[[], datetime] = datetime.now
) -> bool:
    """
    Run a due entry and record the result.

    Args:
        entry: Entry to run
        output_log: Destination for the run record
        timeout: Command timeout in seconds
        executor: Command executor (a fresh one if not provided)
        clock: Source of the completion timestamp

    Returns:
        True if the command ran to completion and the entry was marked executed
    """
    executor = executor or CommandExecutor()

    try:
        result = executor.execute_command(entry.command, timeout=timeout)
    except JobExecutionError as e:
        output_log.write_failure(entry.command, e)
        return False

    output_log.write_run(entry.command, result['stdout'], result['stderr'], clock())

    if result['returncode'] != 0:
        logger.warning(f"Command exited with code {result['returncode']}: {entry.command}")

    entry.mark_executed()
    return True
