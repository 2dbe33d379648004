"""MT-SICS command verbs and the declarative operation catalog.

Each operation is one :class:`CatalogEntry`: a template producing the command
line(s), the reply pattern every line must be acknowledged with, and an
extractor turning the converted reply fields into the operation's result.
The generic engine in :mod:`mt_sics_mcp.balance` executes entries; no
operation carries protocol logic of its own.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from ..models.status import UnitChannel
from .framing import build_line, format_decimal, quote
from .parser import FieldKind, ResponsePattern, measurement_from


class Verb(str, Enum):
    """MT-SICS command verbs used by the catalog."""

    WEIGHT = "S"
    WEIGHT_IMMEDIATELY = "SI"
    TARE = "T"
    ZERO = "Z"
    POWER = "PWR"
    STREAM = "ST"
    TARGET = "A10"
    RESULT_ID = "A36"
    TASK_ID = "A37"
    DISPLAY_TEXT = "D"
    DISPLAY_WEIGHT = "DW"
    UNIT = "M21"
    DOORS = "WS"
    MODEL = "I2"
    SERIAL_NUMBER = "I4"


# Second parameter of A10
TARGET_WEIGHT = 0
UPPER_TOLERANCE = 1
LOWER_TOLERANCE = 2

# Door positions for WS <n>
DOOR_CLOSE_ALL = 0
DOOR_OPEN_RIGHT = 1
DOOR_OPEN_LEFT = 2

# Label slot used by A36/A37
LABEL_SLOT = 1


def acknowledged(verb: Verb, *, logical_ok: bool = False) -> ResponsePattern:
    """``<VERB> A`` (or ``<VERB> L`` too, for toggles)."""
    letters = "AL" if logical_ok else "A"
    return ResponsePattern(
        rf"{verb.value} (?P<status>[{letters}])", status=FieldKind.STATUS
    )


def refused(verb: Verb) -> ResponsePattern:
    """``<VERB> I`` / ``<VERB> +`` / ``<VERB> -``: not executed."""
    return ResponsePattern(rf"{verb.value} [I+\-]")


def weight_reply(verb: Verb, stability: str = "S") -> ResponsePattern:
    """``<VERB> S <value> <unit>`` with the given stability letters."""
    return ResponsePattern(
        rf"{verb.value} (?P<stability>[{stability}]) +(?P<value>\S+) +(?P<unit>\S+)",
        stability=FieldKind.STATUS,
        value=FieldKind.DECIMAL,
        unit=FieldKind.TOKEN,
    )


def _fixed(*lines: str) -> Callable[..., list[str]]:
    def template() -> list[str]:
        return list(lines)

    return template


def _field(name: str) -> Callable[[dict[str, Any]], Any]:
    def extract(fields: dict[str, Any]) -> Any:
        return fields[name]

    return extract


def _nothing(fields: dict[str, Any]) -> None:
    return None


@dataclass(frozen=True)
class CatalogEntry:
    """One semantic operation, declared as data."""

    name: str
    commands: Callable[..., list[str]]
    pattern: ResponsePattern
    extract: Callable[[dict[str, Any]], Any] = _nothing
    reject: ResponsePattern | None = None
    description: str = ""

    def render(self, **params: Any) -> list[str]:
        """Build the command line(s) for the given parameters."""
        return self.commands(**params)


# --- command templates ---------------------------------------------------


def _power(on: bool) -> Callable[..., list[str]]:
    return _fixed(build_line(Verb.POWER.value, 1 if on else 0))


def _door(position: int) -> Callable[..., list[str]]:
    return _fixed(build_line(Verb.DOORS.value, position))


def target_commands(
    target: float,
    unit: str,
    upper_tolerance: float,
    lower_tolerance: float,
    relative: bool = False,
) -> list[str]:
    """Target weight, then upper and lower tolerance (``%`` when relative)."""
    tolerance_unit = "%" if relative else unit
    return [
        build_line(Verb.TARGET.value, TARGET_WEIGHT, format_decimal(target), unit),
        build_line(
            Verb.TARGET.value,
            UPPER_TOLERANCE,
            format_decimal(upper_tolerance),
            tolerance_unit,
        ),
        build_line(
            Verb.TARGET.value,
            LOWER_TOLERANCE,
            format_decimal(lower_tolerance),
            tolerance_unit,
        ),
    ]


def _label(verb: Verb) -> Callable[..., list[str]]:
    def template(label: str, value: str) -> list[str]:
        return [build_line(verb.value, LABEL_SLOT, quote(label), quote(value))]

    return template


def message_commands(message: str) -> list[str]:
    return [build_line(Verb.DISPLAY_TEXT.value, quote(message))]


def get_unit_commands(channel: int = UnitChannel.HOST) -> list[str]:
    return [build_line(Verb.UNIT.value, int(UnitChannel(channel)))]


def set_unit_commands(unit: str, channel: int = UnitChannel.HOST) -> list[str]:
    if not unit or " " in unit:
        raise ValueError(f"Unit must be a single token, got {unit!r}")
    return [build_line(Verb.UNIT.value, int(UnitChannel(channel)), unit)]


# --- the catalog -------------------------------------------------------------


def _entries() -> list[CatalogEntry]:
    toggle_power = acknowledged(Verb.POWER, logical_ok=True)
    toggle_doors = acknowledged(Verb.DOORS, logical_ok=True)
    return [
        CatalogEntry(
            "power_on",
            _power(True),
            toggle_power,
            _field("status"),
            refused(Verb.POWER),
            "Switch the balance on from stand-by",
        ),
        CatalogEntry(
            "power_off",
            _power(False),
            toggle_power,
            _field("status"),
            refused(Verb.POWER),
            "Switch the balance to stand-by",
        ),
        CatalogEntry(
            "zero",
            _fixed(Verb.ZERO.value),
            acknowledged(Verb.ZERO),
            _field("status"),
            refused(Verb.ZERO),
            "Set the current weight as zero",
        ),
        CatalogEntry(
            "tare",
            _fixed(Verb.TARE.value),
            weight_reply(Verb.TARE),
            measurement_from,
            refused(Verb.TARE),
            "Set the current weight as tare; returns the tare weight",
        ),
        CatalogEntry(
            "weight",
            _fixed(Verb.WEIGHT.value),
            weight_reply(Verb.WEIGHT),
            measurement_from,
            refused(Verb.WEIGHT),
            "Stable weight value",
        ),
        CatalogEntry(
            "weight_immediately",
            _fixed(Verb.WEIGHT_IMMEDIATELY.value),
            # SI replies with the S verb, stable or dynamic
            weight_reply(Verb.WEIGHT, stability="SD"),
            measurement_from,
            refused(Verb.WEIGHT),
            "Current weight value, stable or not",
        ),
        CatalogEntry(
            "set_target",
            target_commands,
            acknowledged(Verb.TARGET),
            _nothing,
            refused(Verb.TARGET),
            "Set target weight with upper and lower tolerance",
        ),
        CatalogEntry(
            "set_result_id",
            _label(Verb.RESULT_ID),
            acknowledged(Verb.RESULT_ID),
            _nothing,
            refused(Verb.RESULT_ID),
            "Label the result, e.g. sample number",
        ),
        CatalogEntry(
            "set_task_id",
            _label(Verb.TASK_ID),
            acknowledged(Verb.TASK_ID),
            _nothing,
            refused(Verb.TASK_ID),
            "Label the task step, e.g. duplicate number",
        ),
        CatalogEntry(
            "set_message",
            message_commands,
            acknowledged(Verb.DISPLAY_TEXT),
            _nothing,
            refused(Verb.DISPLAY_TEXT),
            "Show a message over the weight display; empty text clears it",
        ),
        CatalogEntry(
            "show_weight",
            _fixed(Verb.DISPLAY_WEIGHT.value),
            acknowledged(Verb.DISPLAY_WEIGHT),
            _nothing,
            refused(Verb.DISPLAY_WEIGHT),
            "Clear any message and show the weight",
        ),
        CatalogEntry(
            "get_unit",
            get_unit_commands,
            ResponsePattern(
                r"M21 A (?P<channel>\d) (?P<unit>\S+)",
                channel=FieldKind.CHANNEL,
                unit=FieldKind.TOKEN,
            ),
            _field("unit"),
            refused(Verb.UNIT),
            "Unit used on a channel (0 host, 1 display, 2 info)",
        ),
        CatalogEntry(
            "set_unit",
            set_unit_commands,
            # some firmware echoes the channel and unit after the status
            ResponsePattern(r"M21 (?P<status>A)(?: \d \S+)?", status=FieldKind.STATUS),
            _nothing,
            refused(Verb.UNIT),
            "Set the unit used on a channel (0 host, 1 display, 2 info)",
        ),
        CatalogEntry(
            "close_all_doors",
            _door(DOOR_CLOSE_ALL),
            toggle_doors,
            _field("status"),
            refused(Verb.DOORS),
            "Close all draft shield doors",
        ),
        CatalogEntry(
            "open_right_door",
            _door(DOOR_OPEN_RIGHT),
            toggle_doors,
            _field("status"),
            refused(Verb.DOORS),
            "Open the right draft shield door",
        ),
        CatalogEntry(
            "open_left_door",
            _door(DOOR_OPEN_LEFT),
            toggle_doors,
            _field("status"),
            refused(Verb.DOORS),
            "Open the left draft shield door",
        ),
        CatalogEntry(
            "door_status",
            _fixed(Verb.DOORS.value),
            ResponsePattern(r"WS (?P<status>\d)", status=FieldKind.DOOR),
            _field("status"),
            refused(Verb.DOORS),
            "Draft shield door status (0-7 positions, 8 error, 9 intermediate)",
        ),
        CatalogEntry(
            "model",
            _fixed(Verb.MODEL.value),
            ResponsePattern(r'I2 A (?P<text>".*")', text=FieldKind.TEXT),
            _field("text"),
            refused(Verb.MODEL),
            "Balance type and capacity",
        ),
        CatalogEntry(
            "serial_number",
            _fixed(Verb.SERIAL_NUMBER.value),
            ResponsePattern(r'I4 A (?P<text>".*")', text=FieldKind.TEXT),
            _field("text"),
            refused(Verb.SERIAL_NUMBER),
            "Serial number of the balance",
        ),
    ]


CATALOG: dict[str, CatalogEntry] = {entry.name: entry for entry in _entries()}

# Continuous mode (driven by StreamingReader, not by the catalog engine)
STREAM_START = build_line(Verb.STREAM.value, 1)
STREAM_STOP = build_line(Verb.STREAM.value, 0)
STREAM_ACK = acknowledged(Verb.STREAM, logical_ok=True)
STREAM_FRAME = ResponsePattern(
    r"ST(?: [SD])? +(?P<value>\S+) +(?P<unit>\S+)",
    value=FieldKind.DECIMAL,
    unit=FieldKind.TOKEN,
)
