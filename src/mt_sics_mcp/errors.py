"""Exception hierarchy for the MT-SICS protocol engine.

No layer retries on its own; every failure reaches the caller, who decides
whether to retry or abort.
"""

from __future__ import annotations


class MtSicsError(Exception):
    """Base class for all protocol engine errors."""


class TransportError(MtSicsError):
    """The underlying byte stream failed (I/O error, port closed)."""


class ProtocolTimeout(MtSicsError):
    """No reply matching the expected pattern arrived before the deadline."""

    def __init__(self, command: str, pattern: str, last_bytes: bytes) -> None:
        self.command = command
        self.pattern = pattern
        self.last_bytes = last_bytes
        super().__init__(
            f"command {command!r} timed out, want: {pattern}, got: {last_bytes!r}"
        )


class ProtocolViolation(MtSicsError):
    """The device answered, but with an error or a status we do not accept."""

    def __init__(self, command: str, response: bytes) -> None:
        self.command = command
        self.response = response
        super().__init__(f"command {command!r} rejected by device: {response!r}")


class ParseError(MtSicsError):
    """A reply matched its pattern but a captured field failed conversion."""

    def __init__(self, field: str, text: str, response: bytes = b"") -> None:
        self.field = field
        self.text = text
        self.response = response
        super().__init__(
            f"cannot convert field {field!r} from {text!r} in reply {response!r}"
        )


class ConfigurationError(MtSicsError, ValueError):
    """Invalid call parameters, rejected before any I/O happens."""


class Cancelled(MtSicsError):
    """The caller cancelled the operation through a CancelToken."""
