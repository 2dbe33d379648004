"""Response patterns with typed captures, and their field converters."""

from __future__ import annotations

import re
from enum import Enum
from typing import Any

from ..errors import ParseError
from ..models.measurement import Measurement
from ..models.status import DoorStatus, StatusCode, UnitChannel
from .framing import ENCODING, unquote

_DECIMAL = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


class FieldKind(Enum):
    """How a captured group is converted to a Python value."""

    DECIMAL = "decimal"
    TOKEN = "token"
    STATUS = "status"
    DOOR = "door"
    CHANNEL = "channel"
    TEXT = "text"


def to_decimal(text: str) -> float:
    """Parse a signed decimal such as ``-0.02`` or ``12.34``."""
    if not _DECIMAL.fullmatch(text):
        raise ValueError(f"not a decimal: {text!r}")
    return float(text)


def to_token(text: str) -> str:
    """Accept a contiguous alphabetic run, e.g. a unit like ``mg``."""
    if not (text.isascii() and text.isalpha()):
        raise ValueError(f"not an alphabetic token: {text!r}")
    return text


def to_status(text: str) -> StatusCode:
    if len(text) != 1:
        raise ValueError(f"status must be one character: {text!r}")
    return StatusCode(text)


def to_door(text: str) -> DoorStatus:
    return DoorStatus(int(text))


def to_channel(text: str) -> UnitChannel:
    return UnitChannel(int(text))


CONVERTERS = {
    FieldKind.DECIMAL: to_decimal,
    FieldKind.TOKEN: to_token,
    FieldKind.STATUS: to_status,
    FieldKind.DOOR: to_door,
    FieldKind.CHANNEL: to_channel,
    FieldKind.TEXT: unquote,
}


class ResponsePattern:
    """A line matcher over raw reply bytes with named, typed captures.

    The expression is anchored to a whole line: ``^<regex>`` followed by
    optional trailing blanks and the line end. Named groups listed in
    ``fields`` are converted with the matching :class:`FieldKind`.

    Example::

        WEIGHT = ResponsePattern(
            r"S S +(?P<value>\\S+) +(?P<unit>\\S+)",
            value=FieldKind.DECIMAL,
            unit=FieldKind.TOKEN,
        )
        WEIGHT.parse(b"S S    12.34 g\\r\\n")  # {"value": 12.34, "unit": "g"}
    """

    def __init__(self, regex: str, **fields: FieldKind) -> None:
        self.source = regex
        self.fields = fields
        self._regex = re.compile(
            b"^" + regex.encode(ENCODING) + rb"[ \t]*\r?$", re.MULTILINE
        )
        unknown = set(fields) - set(self._regex.groupindex)
        if unknown:
            raise ValueError(f"Fields {sorted(unknown)} are not groups in {regex!r}")

    def __repr__(self) -> str:
        return f"ResponsePattern({self.source!r})"

    def __str__(self) -> str:
        return self.source

    def search(self, data: bytes) -> re.Match[bytes] | None:
        """Find the first line in ``data`` that matches."""
        return self._regex.search(data)

    def matches(self, data: bytes) -> bool:
        return self.search(data) is not None

    def convert(self, match: re.Match[bytes]) -> dict[str, Any]:
        """Convert the typed groups of a successful match.

        Raises:
            ParseError: If a captured field fails conversion.
        """
        result: dict[str, Any] = {}
        for name, kind in self.fields.items():
            raw = match.group(name)
            if raw is None:
                result[name] = None
                continue
            try:
                text = raw.decode(ENCODING)
                result[name] = CONVERTERS[kind](text)
            except ValueError as e:  # UnicodeDecodeError is a ValueError
                raise ParseError(
                    name, raw.decode(ENCODING, errors="replace"), match.group(0)
                ) from e
        return result

    def parse(self, data: bytes | str) -> dict[str, Any] | None:
        """Match ``data`` and convert the captures.

        Returns:
            The converted fields, or ``None`` if no line matches.
        """
        if isinstance(data, str):
            data = data.encode(ENCODING, errors="replace")
        match = self.search(data)
        if match is None:
            return None
        return self.convert(match)


# Any weight reply: "<verb> <S|D> <value> <unit>", e.g. "S S    12.34 g"
WEIGHT_REPLY = ResponsePattern(
    r"[A-Z]+ (?P<stability>[SD]) +(?P<value>\S+) +(?P<unit>\S+)",
    stability=FieldKind.STATUS,
    value=FieldKind.DECIMAL,
    unit=FieldKind.TOKEN,
)


def measurement_from(fields: dict[str, Any]) -> Measurement:
    """Build a Measurement from converted ``value`` and ``unit`` fields."""
    return Measurement(value=fields["value"], unit=fields["unit"])


def parse_measurement(
    reply: bytes | str, pattern: ResponsePattern = WEIGHT_REPLY
) -> Measurement | None:
    """Parse a weight reply line into a Measurement.

    Returns ``None`` if the reply is not a weight line.
    """
    fields = pattern.parse(reply)
    if fields is None:
        return None
    return measurement_from(fields)
