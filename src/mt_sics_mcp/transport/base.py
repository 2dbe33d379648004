"""Byte stream contract the protocol engine runs on."""

from __future__ import annotations

from typing import Protocol


class Transport(Protocol):
    """A duplex byte stream with no message framing of its own.

    Any object with these three methods works, e.g. :class:`SerialConnection`
    or an in-memory fake in tests. Failures are reported by raising
    ``OSError`` (pyserial's ``SerialException`` is one) or
    :class:`~mt_sics_mcp.errors.TransportError`.
    """

    def write(self, data: bytes) -> int:
        """Write ``data`` and return the number of bytes written."""
        ...

    def read(self, size: int) -> bytes:
        """Return up to ``size`` bytes; ``b""`` if nothing arrived in time."""
        ...

    def close(self) -> None:
        """Release the underlying stream."""
        ...
