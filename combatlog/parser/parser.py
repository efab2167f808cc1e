"""
Combat log driver that feeds lines through framing and event decoding.
"""

import logging
import time
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional

from ..config.settings import FramingPolicy, ParserSettings, get_settings
from .errors import CombatLogError, FramingError
from .events import BaseEvent, EventDispatcher, Unsupported, read_event_type
from .tokenizer import EventDateTime, frame_line


logger = logging.getLogger(__name__)


class LineStatus(Enum):
    """Outcome of decoding one line."""

    DECODED = "decoded"
    UNSUPPORTED = "unsupported"
    # Event decoded but part of the line was left over
    TRAILING_DATA = "trailing_data"
    FAILED = "failed"


@dataclass
class LineResult:
    """Result of decoding a single combat log line."""

    line_number: int
    line: str
    status: LineStatus
    timestamp: Optional[EventDateTime] = None
    event: Optional[BaseEvent] = None
    event_type: Optional[str] = None
    remainder: str = ""
    error: Optional[CombatLogError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def cause(self) -> str:
        """Human readable reason the line did not decode cleanly."""
        if self.error is not None:
            return str(self.error)
        if self.status == LineStatus.TRAILING_DATA:
            return f"Failed to parse remainder: {self.remainder[:100]!r}"
        return ""


class CombatLogParser:
    """
    Driver for combat log files.

    Decodes lines one at a time and reports a LineResult for each non-blank
    line. Per-line failures are collected and never stop the run, except for
    framing failures as configured by the framing policy.
    """

    def __init__(self, settings: Optional[ParserSettings] = None):
        """
        Initialize the combat log parser.

        Args:
            settings: Parser settings, defaults to the global settings
        """
        self.settings = settings or get_settings()
        self.dispatcher = EventDispatcher(nil_is_false=self.settings.nil_is_false)
        self.current_file: Optional[Path] = None
        self.reset_counters()

    def reset_counters(self):
        self.lines_processed = 0
        self.status_counts: Counter = Counter()
        self.event_counts: Counter = Counter()
        self.parse_errors: List[Dict[str, Any]] = []
        self.elapsed = 0.0

    def decode_line(self, line: str, line_number: int = 1) -> LineResult:
        """
        Decode one line into a LineResult without applying the framing policy.

        Args:
            line: Raw combat log line
            line_number: Line number reported in the result

        Returns:
            LineResult describing the outcome
        """
        try:
            _, timestamp, body = frame_line(line)
        except FramingError as e:
            return LineResult(line_number, line, LineStatus.FAILED, error=e)

        event_type = None
        try:
            event_type = read_event_type(body)
            remainder, event = self.dispatcher.dispatch(body)
        except CombatLogError as e:
            return LineResult(
                line_number,
                line,
                LineStatus.FAILED,
                timestamp=timestamp,
                event_type=event_type,
                error=e,
            )

        if isinstance(event, Unsupported):
            status = LineStatus.UNSUPPORTED
        elif remainder:
            status = LineStatus.TRAILING_DATA
        else:
            status = LineStatus.DECODED

        return LineResult(
            line_number,
            line,
            status,
            timestamp=timestamp,
            event=event,
            event_type=event_type,
            remainder=remainder,
        )

    def parse_lines(self, lines: Iterable[str]) -> Iterator[LineResult]:
        """
        Decode lines and yield a result per non-blank line.

        Args:
            lines: Raw combat log lines

        Yields:
            LineResult objects

        Raises:
            FramingError: If the framing policy treats a framing failure as fatal
        """
        for line_number, line in enumerate(lines, 1):
            result = self._process_line(line, line_number)
            if result is not None:
                yield result

    def parse_file(self, file_path, progress_callback=None) -> Iterator[LineResult]:
        """
        Decode a combat log file.

        Args:
            file_path: Path to the combat log file
            progress_callback: Optional callback called with
                (progress, bytes_read, file_size)

        Yields:
            LineResult objects
        """
        file_path = Path(file_path)
        if not file_path.exists():
            raise FileNotFoundError(f"Combat log file not found: {file_path}")

        self.current_file = file_path
        file_size = file_path.stat().st_size

        logger.info(f"Starting parse of {file_path.name} ({file_size / 1024 / 1024:.1f} MB)")

        yield from self.parse_lines(self._read_lines(file_path, file_size, progress_callback))

        logger.info(
            f"Parsed {self.lines_processed} lines of {file_path.name} in {self.elapsed:.2f}s: "
            f"{self.status_counts[LineStatus.DECODED]} decoded, "
            f"{len(self.parse_errors)} errors"
        )

    def _read_lines(self, file_path: Path, file_size: int, progress_callback=None) -> Iterator[str]:
        bytes_read = 0
        with open(file_path, "rb") as f:
            for count, raw in enumerate(f, 1):
                bytes_read += len(raw)
                if progress_callback and count % 1000 == 0:
                    progress_callback(bytes_read / max(file_size, 1), bytes_read, file_size)
                yield raw.decode("utf-8", errors=self.settings.encoding_errors)

        if progress_callback:
            progress_callback(1.0, bytes_read, file_size)

    def _process_line(self, line: str, line_number: int) -> Optional[LineResult]:
        start = time.perf_counter()
        try:
            return self._record_line(line, line_number)
        finally:
            # Decode time only, time spent by the consumer between lines is excluded
            self.elapsed += time.perf_counter() - start

    def _record_line(self, line: str, line_number: int) -> Optional[LineResult]:
        if not line.strip():
            return None

        first_line = self.lines_processed == 0
        self.lines_processed += 1

        result = self.decode_line(line, line_number)
        self.status_counts[result.status] += 1

        if isinstance(result.error, FramingError) and self._framing_is_fatal(first_line):
            logger.error(f"Line {line_number} is not in combat log format, aborting")
            raise result.error

        if result.event_type:
            self.event_counts[result.event_type] += 1

        if result.status == LineStatus.TRAILING_DATA:
            logger.warning(
                f"Line {line_number}: {result.event_type} left unparsed remainder "
                f"{result.remainder[:60]!r}"
            )
        elif result.status == LineStatus.FAILED:
            logger.debug(f"Parse error on line {line_number}: {result.error}")
            if len(self.parse_errors) < self.settings.max_reported_errors:
                self.parse_errors.append(
                    {
                        "line_number": line_number,
                        "line": line[:100],
                        "error": str(result.error),
                    }
                )

        return result

    def _framing_is_fatal(self, first_line: bool) -> bool:
        policy = self.settings.framing_policy
        if policy == FramingPolicy.ABORT:
            return True
        return policy == FramingPolicy.ABORT_ON_FIRST_LINE and first_line

    def get_stats(self) -> Dict[str, Any]:
        """
        Get parsing statistics.

        Returns:
            Dictionary with parsing stats
        """
        return {
            "file": str(self.current_file) if self.current_file else None,
            "lines_processed": self.lines_processed,
            "decoded": self.status_counts[LineStatus.DECODED],
            "unsupported": self.status_counts[LineStatus.UNSUPPORTED],
            "trailing_data": self.status_counts[LineStatus.TRAILING_DATA],
            "failed": self.status_counts[LineStatus.FAILED],
            "event_types": dict(self.event_counts),
            "elapsed": self.elapsed,
        }

    def reset(self):
        """Reset parser state for new file."""
        self.current_file = None
        self.reset_counters()


def find_log_files(directory, pattern: Optional[str] = None) -> List[Path]:
    """
    List combat log files in a log directory.

    Args:
        directory: Directory to search
        pattern: Glob pattern, defaults to the configured log pattern

    Returns:
        Matching files sorted by name
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise NotADirectoryError(f"Log directory not found: {directory}")

    pattern = pattern or get_settings().log_pattern
    return sorted(path for path in directory.glob(pattern) if path.is_file())
