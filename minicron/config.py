"""
Scheduler configuration.

Settings are resolved from, in order of priority:
1. Explicit arguments
2. Environment variables (a .env file in the working directory is loaded)
3. Defaults under the data directory (~/.minicron)
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = Path.home() / ".minicron"
DEFAULT_COMMAND_TIMEOUT = 3600
DEFAULT_TICK_SECONDS = 60.0

LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')


def _get_data_dir() -> Path:
    """Get the data directory for scheduler files."""
    data_dir = os.environ.get('MINICRON_DATA_DIR')
    if data_dir:
        return Path(data_dir).expanduser()
    return DEFAULT_DATA_DIR


def _env_path(name: str, default: Path) -> Path:
    value = os.environ.get(name)
    if value:
        return Path(value).expanduser()
    return default


def _env_number(name: str, default: float, cast=float):
    value = os.environ.get(name)
    if value is None or not value.strip():
        return default
    try:
        return cast(value.strip())
    except ValueError:
        raise ValueError(f"{name} must be a number, got {value!r}") from None


@dataclass
class SchedulerConfig:
    """
    Runtime configuration for the scheduler.

    Attributes:
        schedule_file: Schedule definition file to load at startup
        output_log: Append-only record of command runs
        log_file: Diagnostic log file
        log_level: Diagnostic log level name
        command_timeout: Per-command timeout in seconds (<= 0 disables)
        tick_interval: Seconds to wait between ticks
    """
    schedule_file: Path
    output_log: Path
    log_file: Path
    log_level: str = "INFO"
    command_timeout: float = DEFAULT_COMMAND_TIMEOUT
    tick_interval: float = DEFAULT_TICK_SECONDS

    @classmethod
    def from_env(cls, schedule_file: Optional[str] = None) -> 'SchedulerConfig':
        """
        Build configuration from the environment.

        Args:
            schedule_file: Schedule file path. If None, uses env var or default.

        Raises:
            ValueError: If a numeric environment variable is malformed
        """
        data_dir = _get_data_dir()

        if schedule_file:
            schedule_path = Path(schedule_file).expanduser()
        else:
            schedule_path = _env_path('MINICRON_SCHEDULE_FILE', data_dir / "commands.txt")

        return cls(
            schedule_file=schedule_path,
            output_log=_env_path('MINICRON_OUTPUT_LOG', data_dir / "output.log"),
            log_file=_env_path('MINICRON_LOG_FILE', data_dir / "logs" / "minicron.log"),
            log_level=os.environ.get('MINICRON_LOG_LEVEL', 'INFO').strip().upper(),
            command_timeout=_env_number('MINICRON_COMMAND_TIMEOUT', DEFAULT_COMMAND_TIMEOUT),
            tick_interval=_env_number('MINICRON_TICK_SECONDS', DEFAULT_TICK_SECONDS),
        )

    @property
    def timeout(self) -> Optional[float]:
        """Command timeout, or None when disabled."""
        if self.command_timeout <= 0:
            return None
        return self.command_timeout

    def validate(self) -> List[str]:
        """
        Validate configuration.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        if self.tick_interval <= 0:
            errors.append("'tick_interval' must be positive")

        if self.log_level not in LOG_LEVELS:
            errors.append(
                f"'log_level' must be one of {', '.join(LOG_LEVELS)}, got {self.log_level!r}"
            )

        return errors

    def __repr__(self):
        return f"SchedulerConfig(schedule={self.schedule_file}, output={self.output_log})"
