"""High-level balance API generated from the command catalog.

Every entry of :data:`~mt_sics_mcp.protocol.commands.CATALOG` becomes a
method of :class:`Balance` with the same name, e.g. ``balance.tare()`` or
``balance.set_unit("mg", channel=UnitChannel.DISPLAY)``. All of them run
through :meth:`Balance.execute`.
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Callable

from .config import DEFAULT_BAUDRATE, DEFAULT_TIMEOUT, READ_TIMEOUT
from .models.measurement import Measurement
from .protocol.channel import CancelToken, CommandChannel
from .protocol.commands import CATALOG, CatalogEntry
from .protocol.streaming import StreamingReader
from .transport.base import Transport
from .transport.serial_connection import SerialConnection

logger = logging.getLogger(__name__)


class Balance:
    """One balance on one exclusively owned transport.

    Usage::

        with Balance.open("/dev/ttyUSB0") as balance:
            balance.zero()
            balance.set_target(12.5, "g", 0.1, 0.2)
            print(balance.weight())
            readings = balance.stream(target_count=3)
    """

    def __init__(self, transport: Transport, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.channel = CommandChannel(transport, timeout=timeout)
        self.reader = StreamingReader(self.channel)

    @classmethod
    def open(
        cls,
        port: str,
        baudrate: int = DEFAULT_BAUDRATE,
        timeout: float = DEFAULT_TIMEOUT,
        read_timeout: float = READ_TIMEOUT,
    ) -> Balance:
        """Open a serial port and wrap it."""
        connection = SerialConnection(port, baudrate=baudrate, read_timeout=read_timeout)
        connection.open()
        return cls(connection, timeout=timeout)

    def close(self) -> None:
        self.channel.transport.close()

    def __enter__(self) -> Balance:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def execute(
        self,
        operation: str,
        *,
        timeout: float | None = None,
        cancel: CancelToken | None = None,
        **params: Any,
    ) -> Any:
        """Run one catalog operation by name.

        Each command line of the operation is sent in turn and must be
        answered with the entry's pattern before the next one goes out. The
        result is extracted from the last reply.

        Raises:
            KeyError: If ``operation`` is not in the catalog.
            ProtocolTimeout, ProtocolViolation, ParseError, TransportError,
            Cancelled: As raised by the channel or the parser.
        """
        entry = CATALOG[operation]
        logger.debug("Executing %s %s", operation, params)
        reply = b""
        for command in entry.render(**params):
            reply = self.channel.send_and_await(
                command,
                entry.pattern,
                timeout,
                reject=entry.reject,
                cancel=cancel,
            )
        match = entry.pattern.search(reply)
        return entry.extract(entry.pattern.convert(match))

    def stream(
        self,
        target_count: int | None = None,
        timeout: float | None = None,
        cancel: CancelToken | None = None,
    ) -> list[Measurement]:
        """Collect streamed measurements; see :meth:`StreamingReader.stream`."""
        return self.reader.stream(target_count, timeout, cancel)


def _operation(entry: CatalogEntry) -> Callable[..., Any]:
    def operation(
        self: Balance,
        *args: Any,
        timeout: float | None = None,
        cancel: CancelToken | None = None,
        **params: Any,
    ) -> Any:
        bound = inspect.signature(entry.commands).bind(*args, **params)
        return self.execute(
            entry.name, timeout=timeout, cancel=cancel, **bound.arguments
        )

    operation.__name__ = entry.name
    operation.__qualname__ = f"Balance.{entry.name}"
    operation.__doc__ = entry.description
    return operation


for _entry in CATALOG.values():
    setattr(Balance, _entry.name, _operation(_entry))
del _entry
