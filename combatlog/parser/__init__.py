"""
Combat log parser module for decoding combat log lines.
"""

from .cells import (
    ArrayCell,
    Cell,
    FloatCell,
    IntegerCell,
    MultiPowerCell,
    StringCell,
    decode_cell,
    decode_cell_list,
    to_bool,
)
from .errors import ArityError, CombatLogError, DispatchError, FramingError, GrammarError
from .events import (
    UNSUPPORTED,
    BaseEvent,
    Emote,
    EventDispatcher,
    EventType,
    SpellCastSuccess,
    SpellDamage,
    SpellHeal,
    Unsupported,
)
from .parser import CombatLogParser, LineResult, LineStatus, find_log_files
from .tokenizer import EventDateTime, frame_line

__all__ = [
    "ArrayCell",
    "Cell",
    "FloatCell",
    "IntegerCell",
    "MultiPowerCell",
    "StringCell",
    "decode_cell",
    "decode_cell_list",
    "to_bool",
    "ArityError",
    "CombatLogError",
    "DispatchError",
    "FramingError",
    "GrammarError",
    "UNSUPPORTED",
    "BaseEvent",
    "Emote",
    "EventDispatcher",
    "EventType",
    "SpellCastSuccess",
    "SpellDamage",
    "SpellHeal",
    "Unsupported",
    "CombatLogParser",
    "LineResult",
    "LineStatus",
    "find_log_files",
    "EventDateTime",
    "frame_line",
]
