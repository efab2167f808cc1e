"""
Event records, per-event decoders and the event dispatcher.
"""

import logging
from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Callable, ClassVar, Dict, FrozenSet, Optional, Tuple

from .cells import Cell, decode_cell_list, to_bool
from .errors import ArityError, DispatchError, GrammarError


logger = logging.getLogger(__name__)


class EventType(Enum):
    """Event types with a dedicated decoder."""

    EMOTE = "EMOTE"
    SPELL_CAST_SUCCESS = "SPELL_CAST_SUCCESS"
    SPELL_DAMAGE = "SPELL_DAMAGE"
    SPELL_HEAL = "SPELL_HEAL"


@dataclass
class BaseEvent:
    """Base class for all decoded events."""

    EVENT_TYPE: ClassVar[Optional[str]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert the event to plain data for export."""
        data: Dict[str, Any] = {"event_type": self.EVENT_TYPE}
        for f in fields(self):
            value = getattr(self, f.name)
            data[f.name] = value.to_python() if isinstance(value, Cell) else value
        return data


@dataclass
class Unsupported(BaseEvent):
    """A well-formed line whose event type has no decoder."""


UNSUPPORTED = Unsupported()


@dataclass
class Emote(BaseEvent):
    """EMOTE event. All fields are plain text, the message is free text."""

    EVENT_TYPE: ClassVar[Optional[str]] = EventType.EMOTE.value

    source_guid: str
    source_name: str
    source_flags: str
    source_raid_flags: str
    text: str


@dataclass
class SpellEvent(BaseEvent):
    """
    Fields shared by advanced-logging spell events.

    Base parameters, spell prefix and the unit snapshot of the caster
    (health, power, resources and position).
    """

    # Number of cells the event carries, checked before any field is mapped
    ARITY: ClassVar[int] = 28
    # Fields coerced from flag cells to booleans
    FLAG_FIELDS: ClassVar[FrozenSet[str]] = frozenset()

    source_guid: Cell
    source_name: Cell
    source_flags: Cell
    source_raid_flags: Cell
    dest_guid: Cell
    dest_name: Cell
    dest_flags: Cell
    dest_raid_flags: Cell
    spell_id: Cell
    spell_name: Cell
    spell_school: Cell
    unit_guid: Cell
    owner_guid: Cell
    current_hp: Cell
    max_hp: Cell
    attack_power: Cell
    spell_power: Cell
    armor: Cell
    absorb: Cell
    resource_type: Cell
    current_resource: Cell
    max_resource: Cell
    resource_cost: Cell
    y: Cell
    x: Cell
    map_id: Cell
    facing: Cell
    item_level: Cell


@dataclass
class SpellCastSuccess(SpellEvent):
    EVENT_TYPE: ClassVar[Optional[str]] = EventType.SPELL_CAST_SUCCESS.value
    ARITY: ClassVar[int] = 28


@dataclass
class SpellDamage(SpellEvent):
    """SPELL_DAMAGE event."""

    EVENT_TYPE: ClassVar[Optional[str]] = EventType.SPELL_DAMAGE.value
    ARITY: ClassVar[int] = 38
    FLAG_FIELDS: ClassVar[FrozenSet[str]] = frozenset(
        ["critical", "glancing", "crushing", "is_off_hand"]
    )

    amount: Cell
    overkill: Cell
    school: Cell
    resisted: Cell
    blocked: Cell
    absorbed: Cell
    critical: bool
    glancing: bool
    crushing: bool
    is_off_hand: bool


@dataclass
class SpellHeal(SpellEvent):
    """
    SPELL_HEAL event.

    The line carries one more cell than there are fields. The last cell is
    always nil and is not kept.
    """

    EVENT_TYPE: ClassVar[Optional[str]] = EventType.SPELL_HEAL.value
    ARITY: ClassVar[int] = 33
    FLAG_FIELDS: ClassVar[FrozenSet[str]] = frozenset(["critical"])

    amount: Cell
    overhealing: Cell
    absorbed: Cell
    critical: bool


EMOTE_FIELD_COUNT = 5


def decode_emote(body: str, nil_is_false: bool = False) -> Tuple[str, Emote]:
    """
    Decode an EMOTE body.

    The first four fields are split on commas; everything after the fourth
    comma up to the end of the line is the message, commas included.

    Args:
        body: Event body starting with ``EMOTE,``
        nil_is_false: Unused, emotes have no flag fields

    Returns:
        Tuple of (remainder, event)
    """
    rest = _consume_tag(body, EventType.EMOTE.value)

    parts = rest.split(",", EMOTE_FIELD_COUNT - 1)
    if len(parts) < EMOTE_FIELD_COUNT:
        raise ArityError(EventType.EMOTE.value, EMOTE_FIELD_COUNT, len(parts), body)
    for part in parts[:-1]:
        if not part:
            raise GrammarError("Empty emote field", rest)

    text, remainder = _split_line_ending(parts[-1])
    event = Emote(
        source_guid=parts[0],
        source_name=_unquote(parts[1]),
        source_flags=parts[2],
        source_raid_flags=parts[3],
        text=text,
    )
    return remainder, event


def decode_spell_event(event_class, body: str, nil_is_false: bool = False) -> Tuple[str, SpellEvent]:
    """
    Decode a fixed-arity spell event body into ``event_class``.

    Args:
        event_class: SpellEvent subclass to build
        body: Event body starting with the event type
        nil_is_false: Coerce ``nil`` flag cells to False

    Returns:
        Tuple of (remainder, event)

    Raises:
        ArityError: If the cell count does not match ``event_class.ARITY``
        GrammarError: If the first cell cannot be decoded
    """
    rest = _consume_tag(body, event_class.EVENT_TYPE)
    remainder, cells = decode_cell_list(rest)

    if len(cells) != event_class.ARITY:
        raise ArityError(event_class.EVENT_TYPE, event_class.ARITY, len(cells), body)

    values = {}
    for index, f in enumerate(fields(event_class)):
        cell = cells[index]
        if f.name in event_class.FLAG_FIELDS:
            values[f.name] = to_bool(cell, nil_is_false)
        else:
            values[f.name] = cell

    return remainder, event_class(**values)


def decode_spell_cast_success(body: str, nil_is_false: bool = False) -> Tuple[str, SpellEvent]:
    return decode_spell_event(SpellCastSuccess, body, nil_is_false)


def decode_spell_damage(body: str, nil_is_false: bool = False) -> Tuple[str, SpellEvent]:
    return decode_spell_event(SpellDamage, body, nil_is_false)


def decode_spell_heal(body: str, nil_is_false: bool = False) -> Tuple[str, SpellEvent]:
    return decode_spell_event(SpellHeal, body, nil_is_false)


def _consume_tag(body: str, event_type: str) -> str:
    prefix = f"{event_type},"
    if not body.startswith(prefix):
        raise GrammarError(f"Expected {prefix!r}", body)
    return body[len(prefix):]


def _split_line_ending(text: str) -> Tuple[str, str]:
    for index, char in enumerate(text):
        if char in "\r\n":
            return text[:index], text[index:]
    return text, ""


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == '"' and value[-1] == '"':
        return value[1:-1]
    return value


Decoder = Callable[[str, bool], Tuple[str, BaseEvent]]

DEFAULT_DECODERS: Dict[str, Decoder] = {
    EventType.EMOTE.value: decode_emote,
    EventType.SPELL_CAST_SUCCESS.value: decode_spell_cast_success,
    EventType.SPELL_DAMAGE.value: decode_spell_damage,
    EventType.SPELL_HEAL.value: decode_spell_heal,
}


def read_event_type(body: str) -> str:
    """
    Return the event type at the head of an event body.

    Raises:
        DispatchError: If the body has no comma
    """
    event_type, separator, _ = body.partition(",")
    if not separator:
        raise DispatchError(body)
    return event_type


class EventDispatcher:
    """Routes event bodies to the decoder registered for their event type."""

    def __init__(self, nil_is_false: bool = False):
        """
        Initialize the dispatcher with the built-in decoders.

        Args:
            nil_is_false: Coerce ``nil`` flag cells to False
        """
        self.nil_is_false = nil_is_false
        self._decoders: Dict[str, Decoder] = dict(DEFAULT_DECODERS)

    def register_decoder(self, event_type: str, decoder: Decoder) -> None:
        """Register a decoder for a specific event type."""
        self._decoders[event_type] = decoder

    def supported_event_types(self) -> FrozenSet[str]:
        return frozenset(self._decoders)

    def dispatch(self, body: str) -> Tuple[str, BaseEvent]:
        """
        Decode an event body.

        Args:
            body: Event body, e.g. ``SPELL_DAMAGE,Player-1-ABC,...``

        Returns:
            Tuple of (remainder, event). Unknown event types return the body
            untouched as remainder together with ``UNSUPPORTED``.
        """
        event_type = read_event_type(body)

        decoder = self._decoders.get(event_type)
        if decoder is None:
            logger.debug(f"No decoder for event type {event_type}")
            return body, UNSUPPORTED

        return decoder(body, self.nil_is_false)
