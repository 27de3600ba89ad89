"""
Command-line entry point.

    minicron [SCHEDULE_FILE]

Loads the schedule file (default from configuration), then runs the tick
loop until interrupted. Startup errors exit with status 1.
"""

import argparse
import logging
import sys
from pathlib import Path

from minicron.config import SchedulerConfig
from minicron.jobs import OutputLog
from minicron.loader import ParseError, load_schedule_file
from minicron.service import SchedulerService

logger = logging.getLogger(__name__)


def setup_logging(log_file: str = None, level: str = "INFO"):
    """Setup logging configuration."""
    level = getattr(logging, level.upper(), logging.INFO)

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_formatter = logging.Formatter(
        '%(asctime)s [%(levelname)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    console_handler.setFormatter(console_formatter)

    # Root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.addHandler(console_handler)

    # File handler
    if log_file:
        log_path = Path(log_file).expanduser()
        try:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_path, encoding='utf-8')
        except OSError as e:
            logger.warning(f"Cannot open log file {log_path}: {e}")
            return

        file_handler.setLevel(level)
        file_formatter = logging.Formatter(
            '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
        )
        file_handler.setFormatter(file_formatter)
        root_logger.addHandler(file_handler)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='minicron',
        description="Run shell commands from a schedule file, checking once per minute"
    )
    parser.add_argument(
        'schedule_file',
        nargs='?',
        help='Path to the schedule file (default: $MINICRON_SCHEDULE_FILE or ~/.minicron/commands.txt)'
    )
    return parser


def main(argv=None) -> int:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    try:
        config = SchedulerConfig.from_env(args.schedule_file)
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 1

    setup_logging(log_file=str(config.log_file), level=config.log_level)

    errors = config.validate()
    if errors:
        logger.error("Configuration validation failed:")
        for error in errors:
            logger.error(f"  - {error}")
        return 1

    try:
        entries = load_schedule_file(config.schedule_file)
    except ParseError as e:
        logger.error(f"Invalid schedule file {config.schedule_file}: {e}")
        return 1
    except OSError as e:
        logger.error(f"Cannot read schedule file {config.schedule_file}: {e}")
        return 1

    logger.info(f"Loaded {len(entries)} command(s) from {config.schedule_file}")

    try:
        output_log = OutputLog.open(config.output_log)
    except OSError as e:
        logger.error(f"Cannot open output log {config.output_log}: {e}")
        return 1

    with output_log:
        service = SchedulerService(
            entries,
            output_log,
            command_timeout=config.timeout,
            tick_interval=config.tick_interval
        )
        service.install_signal_handlers()
        logger.info(f"Writing command output to {config.output_log}")
        service.run_forever()

    return 0


if __name__ == '__main__':
    sys.exit(main())
