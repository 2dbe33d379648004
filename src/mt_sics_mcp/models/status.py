"""Status enumerations reported by the balance in place of data."""

from __future__ import annotations

from enum import Enum, IntEnum


class StatusCode(str, Enum):
    """Single-letter status that follows the command verb in a reply."""

    ACKNOWLEDGED = "A"
    LOGICAL = "L"  # already in the requested state
    INTERMEDIATE = "I"  # busy / not executable right now
    STABLE = "S"
    DYNAMIC = "D"
    OVERLOAD = "+"
    UNDERLOAD = "-"


class DoorStatus(IntEnum):
    """Draft shield door state reported by ``WS``."""

    ALL_CLOSED = 0
    RIGHT_OPEN = 1
    LEFT_OPEN = 2
    TOP_OPEN = 3
    RIGHT_AND_LEFT_OPEN = 4
    ALL_OPEN = 5
    RIGHT_AND_TOP_OPEN = 6
    LEFT_AND_TOP_OPEN = 7
    ERROR = 8
    INTERMEDIATE = 9


class UnitChannel(IntEnum):
    """Where a weighing unit applies (``M21`` channel argument)."""

    HOST = 0  # units sent over the MT-SICS connection
    DISPLAY = 1
    INFO = 2  # info field on the display
