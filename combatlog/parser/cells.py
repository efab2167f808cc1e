"""
Cell grammar for combat log event bodies.

A combat log body is a comma separated list of cells. A cell is a number,
a resource pair such as ``3|100``, a string (quoted, unquoted, a ``0x``
literal or a ``|T...!`` icon escape) or a bracketed array of cells.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

from .errors import GrammarError


INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1
# Significant digits of INT64_MIN, longer digit runs are out of range
_INT64_DIGITS = 19

_ARRAY_DELIMITERS = {"[": "]", "(": ")"}
_NUMBER_START = frozenset("012345678-")

_MULTI_POWER_PATTERN = re.compile(r"([0-9]+)\|([0-9]+)")
_FLOAT_PATTERN = re.compile(r"-?[0-9]+\.[0-9]+")
_INTEGER_PATTERN = re.compile(r"-?[0-9]+")
_HEX_PATTERN = re.compile(r"0x[0-9A-Za-z]+")
_ICON_PATTERN = re.compile(r"\|T([^\x00-\x1f!]+)!")
_QUOTED_PATTERN = re.compile(r'"([^\x00-\x1f"\\]*)"')
_UNQUOTED_PATTERN = re.compile(r'[^\x00-\x1f"\\\],)]+')


@dataclass(frozen=True)
class Cell(ABC):
    """Base class for a single decoded value."""

    @abstractmethod
    def as_bool(self) -> bool:
        pass

    @abstractmethod
    def to_python(self) -> Any:
        """Return the cell as plain Python data suitable for JSON."""
        pass


@dataclass(frozen=True)
class IntegerCell(Cell):
    value: int

    def as_bool(self) -> bool:
        return self.value != 0

    def to_python(self) -> Any:
        return self.value


@dataclass(frozen=True)
class FloatCell(Cell):
    value: float

    def as_bool(self) -> bool:
        return self.value != 0.0

    def to_python(self) -> Any:
        return self.value


@dataclass(frozen=True)
class MultiPowerCell(Cell):
    """Resource type and amount pair, written as ``type|amount``."""

    power_type: int
    amount: int

    def as_bool(self) -> bool:
        return self.power_type != 0

    def to_python(self) -> Any:
        return [self.power_type, self.amount]


@dataclass(frozen=True)
class StringCell(Cell):
    value: str

    def as_bool(self) -> bool:
        return self.value != ""

    def to_python(self) -> Any:
        return self.value


@dataclass(frozen=True)
class ArrayCell(Cell):
    """Ordered cells from a ``[...]`` or ``(...)`` group."""

    items: Tuple[Cell, ...] = ()

    def as_bool(self) -> bool:
        return len(self.items) != 0

    def to_python(self) -> Any:
        return [item.to_python() for item in self.items]

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)


NIL = "nil"


def to_bool(cell: Cell, nil_is_false: bool = False) -> bool:
    """
    Coerce a flag cell to a boolean.

    Numbers are true when nonzero, resource pairs when their type is nonzero,
    strings and arrays when nonempty.

    Args:
        cell: Decoded cell
        nil_is_false: Treat the bare ``nil`` token as false instead of as a
            nonempty string

    Returns:
        Boolean value of the cell
    """
    if nil_is_false and isinstance(cell, StringCell) and cell.value == NIL:
        return False
    return cell.as_bool()


def decode_cell(text: str) -> Tuple[str, Cell]:
    """
    Decode one cell from the start of ``text``.

    Args:
        text: Input starting with a cell

    Returns:
        Tuple of (remainder, cell)

    Raises:
        GrammarError: If no cell alternative matches or arrays nest deeper
            than the interpreter stack allows
    """
    try:
        cell, pos = _decode_at(text, 0)
    except RecursionError:
        raise GrammarError("Array nesting too deep", text) from None
    return text[pos:], cell


def decode_cell_list(text: str) -> Tuple[str, List[Cell]]:
    """
    Decode one or more comma separated cells.

    The first cell must decode. Decoding stops at the first comma that is not
    followed by a valid cell; the remainder then starts at that comma.

    Args:
        text: Comma separated cells

    Returns:
        Tuple of (remainder, cells)

    Raises:
        GrammarError: If the first cell does not decode or arrays nest
            deeper than the interpreter stack allows
    """
    try:
        cell, pos = _decode_at(text, 0)
        cells = [cell]

        while text.startswith(",", pos):
            try:
                cell, next_pos = _decode_at(text, pos + 1)
            except GrammarError:
                break
            cells.append(cell)
            pos = next_pos
    except RecursionError:
        raise GrammarError("Array nesting too deep", text) from None

    return text[pos:], cells


def _decode_at(text: str, pos: int) -> Tuple[Cell, int]:
    if pos >= len(text):
        raise GrammarError("Unexpected end of input")

    first = text[pos]
    if first in _ARRAY_DELIMITERS:
        return _decode_array(text, pos)

    # No two character lookahead on the last character
    if pos + 1 == len(text):
        if first in _NUMBER_START:
            return _decode_integer(text, pos)
        return _decode_string(text, pos)

    if text.startswith("0x", pos):
        return _decode_hex(text, pos)
    if first in _NUMBER_START:
        return _decode_number(text, pos)
    return _decode_string(text, pos)


def _decode_array(text: str, pos: int) -> Tuple[Cell, int]:
    opening = text[pos]
    closing = _ARRAY_DELIMITERS[opening]
    pos += 1
    items = []

    if pos < len(text) and text[pos] != closing:
        item, pos = _decode_at(text, pos)
        items.append(item)
        while text.startswith(",", pos):
            item, pos = _decode_at(text, pos + 1)
            items.append(item)

    if not text.startswith(closing, pos):
        raise GrammarError(f"Expected {closing!r} to close {opening!r}", text[pos:])

    return ArrayCell(tuple(items)), pos + 1


def _decode_hex(text: str, pos: int) -> Tuple[Cell, int]:
    match = _HEX_PATTERN.match(text, pos)
    if not match:
        raise GrammarError("Invalid hex literal", text[pos:])
    return StringCell(match.group(0)), match.end()


def _decode_number(text: str, pos: int) -> Tuple[Cell, int]:
    # A resource pair must win over a bare integer followed by "|..."
    for alternative in (_match_multi_power, _match_float, _match_integer):
        result = alternative(text, pos)
        if result is not None:
            return result
    raise GrammarError("Invalid number", text[pos:])


def _decode_integer(text: str, pos: int) -> Tuple[Cell, int]:
    result = _match_integer(text, pos)
    if result is None:
        raise GrammarError("Invalid integer", text[pos:])
    return result


def _match_multi_power(text: str, pos: int) -> Optional[Tuple[Cell, int]]:
    match = _MULTI_POWER_PATTERN.match(text, pos)
    if not match:
        return None
    power_type, amount = _to_int64(match.group(1)), _to_int64(match.group(2))
    if power_type is None or amount is None:
        return None
    return MultiPowerCell(power_type, amount), match.end()


def _match_float(text: str, pos: int) -> Optional[Tuple[Cell, int]]:
    match = _FLOAT_PATTERN.match(text, pos)
    if not match:
        return None
    return FloatCell(float(match.group(0))), match.end()


def _match_integer(text: str, pos: int) -> Optional[Tuple[Cell, int]]:
    match = _INTEGER_PATTERN.match(text, pos)
    if not match:
        return None
    value = _to_int64(match.group(0))
    if value is None:
        return None
    return IntegerCell(value), match.end()


def _to_int64(digits: str) -> Optional[int]:
    # Length check first, int() refuses very long digit runs
    if len(digits.lstrip("-").lstrip("0")) > _INT64_DIGITS:
        return None
    value = int(digits)
    if not INT64_MIN <= value <= INT64_MAX:
        return None
    return value


def _decode_string(text: str, pos: int) -> Tuple[Cell, int]:
    if text.startswith("|T", pos):
        match = _ICON_PATTERN.match(text, pos)
        if not match:
            raise GrammarError("Unterminated icon escape", text[pos:])
        return StringCell(match.group(1)), match.end()

    if text.startswith('"', pos):
        match = _QUOTED_PATTERN.match(text, pos)
        if not match:
            raise GrammarError("Unterminated quoted string", text[pos:])
        return StringCell(match.group(1)), match.end()

    match = _UNQUOTED_PATTERN.match(text, pos)
    if not match:
        raise GrammarError("Expected a value", text[pos:])
    return StringCell(match.group(0)), match.end()
