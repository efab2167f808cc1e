"""
Exceptions raised while decoding combat log lines.
"""

from typing import Optional


class CombatLogError(Exception):
    """Base class for all combat log decoding errors."""


class GrammarError(CombatLogError):
    """No cell alternative matched at the current position."""

    def __init__(self, message: str, text: str = ""):
        self.text = text
        super().__init__(f"{message} at {text[:40]!r}" if text else message)


class FramingError(CombatLogError):
    """The line does not start with a timestamp followed by two spaces."""

    def __init__(self, line: str):
        self.line = line
        super().__init__(f"Line is not in combat log format: {line[:100]!r}")


class DispatchError(CombatLogError):
    """The event body has no comma after its event type."""

    def __init__(self, body: str):
        self.body = body
        super().__init__(f"Missing event type delimiter in: {body[:100]!r}")


class ArityError(CombatLogError):
    """A decoded event does not have the number of fields its schema expects."""

    def __init__(self, event_type: str, expected: int, actual: int, line: Optional[str] = None):
        self.event_type = event_type
        self.expected = expected
        self.actual = actual
        self.line = line
        super().__init__(
            f"{event_type} event malformed. Should have {expected} fields, had: {actual}"
        )
