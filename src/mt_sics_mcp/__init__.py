"""MT-SICS protocol engine and MCP server for Mettler Toledo laboratory balances."""

from .balance import Balance
from .errors import (
    Cancelled,
    ConfigurationError,
    MtSicsError,
    ParseError,
    ProtocolTimeout,
    ProtocolViolation,
    TransportError,
)
from .models import DoorStatus, Measurement, StatusCode, UnitChannel
from .protocol.channel import CancelToken

__version__ = "0.1.0"
