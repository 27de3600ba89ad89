"""
Schedule file loading.

Turns the plain-text schedule definition into an ordered list of entries:

    # comment
    */15 echo hello
    30 14 25 12 2024 echo Merry Christmas

Any malformed line aborts the whole load.
"""

import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Union

from minicron.entries import OneTimeEntry, RecurringEntry, ScheduleEntry

logger = logging.getLogger(__name__)

RECURRING_PATTERN = re.compile(r'^\*/(\S*)(?:\s+(.*))?$')
DIGITS_PATTERN = re.compile(r'[0-9]+')


class ParseError(ValueError):
    """Raised when a schedule line cannot be parsed."""

    def __init__(self, message: str, line_number: int = None, line: str = None):
        self.message = message
        self.line_number = line_number
        self.line = line
        if line_number is not None:
            message = f"line {line_number}: {message}: {line!r}"
        super().__init__(message)


def _parse_recurring(match, line_number: int, line: str) -> RecurringEntry:
    interval_text, command = match.group(1), match.group(2)

    if not DIGITS_PATTERN.fullmatch(interval_text) or int(interval_text) <= 0:
        raise ParseError(
            f"interval must be a positive integer, got {interval_text!r}",
            line_number, line
        )
    if not command:
        raise ParseError("missing command", line_number, line)

    return RecurringEntry(interval_minutes=int(interval_text), command=command)


def _parse_one_time(line_number: int, line: str) -> OneTimeEntry:
    parts = line.split(None, 5)
    if len(parts) < 6:
        raise ParseError(
            "expected 'minute hour day month year command'",
            line_number, line
        )

    names = ('minute', 'hour', 'day', 'month', 'year')
    values = {}
    for name, text in zip(names, parts[:5]):
        if not DIGITS_PATTERN.fullmatch(text):
            raise ParseError(f"invalid {name} {text!r}", line_number, line)
        values[name] = int(text)

    try:
        scheduled_time = datetime(
            values['year'], values['month'], values['day'],
            values['hour'], values['minute']
        )
    except ValueError as e:
        raise ParseError(f"invalid date/time ({e})", line_number, line) from None

    return OneTimeEntry(scheduled_time=scheduled_time, command=parts[5])


def parse_line(line: str, line_number: int = None) -> Union[ScheduleEntry, None]:
    """
    Parse a single schedule line.

    Returns:
        The entry, or None for blank and comment lines

    Raises:
        ParseError: If the line is malformed
    """
    line = line.strip()
    if not line or line.startswith('#'):
        return None

    match = RECURRING_PATTERN.match(line)
    if match:
        return _parse_recurring(match, line_number, line)
    return _parse_one_time(line_number, line)


def load_entries(lines: Iterable[str]) -> List[ScheduleEntry]:
    """
    Load entries from schedule lines, preserving line order.

    Raises:
        ParseError: On the first malformed line
    """
    entries = []
    for line_number, line in enumerate(lines, start=1):
        entry = parse_line(line, line_number)
        if entry is not None:
            entries.append(entry)
    return entries


def load_schedule_file(path) -> List[ScheduleEntry]:
    """Read a UTF-8 schedule file and load its entries."""
    path = Path(path).expanduser()
    logger.debug(f"Reading schedule from {path}")

    try:
        with open(path, 'r', encoding='utf-8') as f:
            entries = load_entries(f)
    except UnicodeDecodeError as e:
        raise ParseError(f"{path} is not valid UTF-8 ({e})") from None

    logger.debug(f"Parsed {len(entries)} entries from {path}")
    return entries
