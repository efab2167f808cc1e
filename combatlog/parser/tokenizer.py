"""
Line framing for combat log lines.

Splits a raw line into its timestamp and event body.
"""

import re
from dataclasses import dataclass, asdict
from typing import Dict, Optional, Tuple

from .errors import FramingError


@dataclass(frozen=True)
class EventDateTime:
    """Timestamp of a combat log line, kept as the raw digit runs."""

    month: str
    day: str
    hour: str
    minute: str
    second: str
    ms: str
    # Only present in newer "M/D/YYYY HH:MM:SS.mmm-Z" logs
    year: Optional[str] = None
    tz_offset: Optional[str] = None

    def __str__(self) -> str:
        date = f"{self.month}/{self.day}"
        if self.year is not None:
            date = f"{date}/{self.year}"
        time = f"{self.hour}:{self.minute}:{self.second}.{self.ms}"
        return f"{date} {time}{self.tz_offset or ''}"

    def to_dict(self) -> Dict[str, Optional[str]]:
        return asdict(self)


# Format: "M/D HH:MM:SS.mmm  EVENT_TYPE,params..." with an optional year
# after the day and an optional timezone offset after the milliseconds
LINE_PATTERN = re.compile(
    r"([0-9]+)/([0-9]+)(?:/([0-9]+))? ([0-9]+):([0-9]+):([0-9]+)\.([0-9]+)([-+][0-9]+)?"
    r"  ([^\r\n]*)([\r\n]*)\Z"
)


def frame_line(line: str) -> Tuple[str, EventDateTime, str]:
    """
    Split a combat log line into timestamp and event body.

    Args:
        line: Raw line, with or without its line terminator

    Returns:
        Tuple of (remainder, timestamp, body) where remainder holds the
        stripped line terminator characters

    Raises:
        FramingError: If the line does not start with a timestamp followed
            by two spaces
    """
    match = LINE_PATTERN.match(line)
    if not match:
        raise FramingError(line)

    month, day, year, hour, minute, second, ms, tz_offset, body, terminator = match.groups()
    timestamp = EventDateTime(
        month=month,
        day=day,
        hour=hour,
        minute=minute,
        second=second,
        ms=ms,
        year=year,
        tz_offset=tz_offset,
    )
    return terminator, timestamp, body
