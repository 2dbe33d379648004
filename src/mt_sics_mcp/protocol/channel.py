"""Synchronous command/response engine.

One command line goes out, then the channel reads until a reply line matches
the expected pattern, a reject pattern fires, or the deadline passes. Bytes
read during one call accumulate, so a reply split across several reads is
still recognised.

The channel is not reentrant and does no locking: exactly one command may be
outstanding per instance, and callers sharing a channel across threads must
serialise access themselves.
"""

from __future__ import annotations

import logging
import threading
import time

from ..config import DEFAULT_TIMEOUT
from ..errors import Cancelled, ProtocolTimeout, ProtocolViolation, TransportError
from ..transport.base import Transport
from .framing import complete_part, encode_command
from .parser import ResponsePattern

logger = logging.getLogger(__name__)

READ_SIZE = 128

# Generic MT-SICS error lines: syntax error, transmission error, logical error
DEVICE_ERRORS = ResponsePattern(r"E[SLT]")


class CancelToken:
    """Lets another thread abort a blocked command wait or stream session."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise Cancelled("operation cancelled by caller")


class CommandChannel:
    """Sends command lines over a transport and waits for matching replies.

    Usage::

        channel = CommandChannel(transport, timeout=5.0)
        reply = channel.send_and_await("Z", ResponsePattern(r"Z A"))
    """

    def __init__(self, transport: Transport, timeout: float = DEFAULT_TIMEOUT) -> None:
        if timeout <= 0:
            raise ValueError(f"Timeout must be positive, got {timeout}")
        self._transport = transport
        self.timeout = timeout
        self._owner: object | None = None

    @property
    def transport(self) -> Transport:
        return self._transport

    # --- exclusive ownership (streaming sessions) --------------------------

    def claim(self, owner: object) -> None:
        """Reserve the channel for ``owner`` until :meth:`release`."""
        if self._owner is not None and self._owner is not owner:
            raise RuntimeError("Channel is busy with an active streaming session")
        self._owner = owner

    def release(self, owner: object) -> None:
        if self._owner is owner:
            self._owner = None

    def _check_owner(self, owner: object | None) -> None:
        if self._owner is not None and self._owner is not owner:
            raise RuntimeError("Channel is busy with an active streaming session")

    # --- raw I/O -------------------------------------------------------------

    def write_line(self, command: str) -> None:
        """Write one command line plus terminator.

        Raises:
            TransportError: If the transport fails.
        """
        data = encode_command(command)
        logger.debug("TX %r", data)
        try:
            self._transport.write(data)
        except TransportError:
            raise
        except OSError as e:
            raise TransportError(f"Write of {command!r} failed: {e}") from e

    def read_chunk(self, size: int = READ_SIZE) -> bytes:
        """Read whatever the transport has, possibly nothing.

        Raises:
            TransportError: If the transport fails.
        """
        try:
            chunk = self._transport.read(size)
        except TransportError:
            raise
        except OSError as e:
            raise TransportError(f"Read failed: {e}") from e
        if chunk:
            logger.debug("RX %r", chunk)
        return chunk or b""

    # --- request/response ----------------------------------------------------

    def send_and_await(
        self,
        command: str,
        pattern: ResponsePattern,
        timeout: float | None = None,
        *,
        reject: ResponsePattern | None = None,
        cancel: CancelToken | None = None,
        owner: object | None = None,
    ) -> bytes:
        """Send ``command`` and block until a reply line matches ``pattern``.

        Args:
            command: Command line without terminator, e.g. ``"M21 0 g"``.
            pattern: Expected reply.
            timeout: Seconds to wait; defaults to the channel timeout.
            reject: Reply that means the device refused the command. The
                generic ``ES``/``ET``/``EL`` error lines are always rejected.
            cancel: Optional token checked before writing and between reads.
            owner: Streaming session holding the channel, if any.

        Returns:
            All bytes read during the call, up to and including the match.

        Raises:
            ProtocolTimeout: If nothing matched in time.
            ProtocolViolation: If the device answered with a rejected reply.
            TransportError: If the transport failed.
            Cancelled: If ``cancel`` fired.
        """
        self._check_owner(owner)
        if timeout is None:
            timeout = self.timeout
        if cancel is not None:
            cancel.raise_if_cancelled()

        self.write_line(command)

        buffer = bytearray()
        deadline = time.monotonic() + timeout
        while True:
            chunk = self.read_chunk()
            if chunk:
                buffer.extend(chunk)
                lines = complete_part(bytes(buffer))
                if pattern.matches(lines):
                    return bytes(buffer)
                if DEVICE_ERRORS.matches(lines) or (
                    reject is not None and reject.matches(lines)
                ):
                    raise ProtocolViolation(command, bytes(buffer))
            if cancel is not None:
                cancel.raise_if_cancelled()
            if time.monotonic() >= deadline:
                raise ProtocolTimeout(command, str(pattern), bytes(buffer))
