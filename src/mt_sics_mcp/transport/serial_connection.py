"""Serial (RS-232 / USB-serial) connection to an MT-SICS balance.

Uses ``pyserial``. The balance's factory settings are 9600 baud, 8 data
bits, no parity, 1 stop bit; the read timeout is kept short so that the
protocol engine can poll its own deadlines between reads.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import serial

from ..config import DEFAULT_BAUDRATE, READ_TIMEOUT
from ..errors import TransportError

logger = logging.getLogger(__name__)

WRITE_TIMEOUT = 1.0


@dataclass
class PortInfo:
    """Settings of the opened port."""

    port: str = ""
    baudrate: int = DEFAULT_BAUDRATE
    bytesize: int = serial.EIGHTBITS
    parity: str = serial.PARITY_NONE
    stopbits: float = serial.STOPBITS_ONE


class SerialConnection:
    """Manages the serial port to the balance.

    Usage::

        conn = SerialConnection("/dev/ttyUSB0")
        conn.open()
        conn.write(b"S\\r\\n")
        reply = conn.read(128)
        conn.close()
    """

    def __init__(
        self,
        port: str,
        baudrate: int = DEFAULT_BAUDRATE,
        read_timeout: float = READ_TIMEOUT,
    ) -> None:
        self._info = PortInfo(port=port, baudrate=baudrate)
        self._read_timeout = read_timeout
        self._serial: serial.Serial | None = None

    @property
    def connected(self) -> bool:
        return self._serial is not None and self._serial.is_open

    def open(self) -> PortInfo:
        """Open the serial port.

        Raises:
            TransportError: If the port cannot be opened.
        """
        if self.connected:
            return self._info
        try:
            self._serial = serial.Serial(
                port=self._info.port,
                baudrate=self._info.baudrate,
                bytesize=self._info.bytesize,
                parity=self._info.parity,
                stopbits=self._info.stopbits,
                timeout=self._read_timeout,
                write_timeout=WRITE_TIMEOUT,
            )
        except serial.SerialException as e:
            raise TransportError(
                f"Could not open {self._info.port} at {self._info.baudrate} baud. "
                f"Ensure the balance is connected and you have permissions. "
                f"Last error: {e}"
            ) from e

        logger.info("Connected to %s at %d baud", self._info.port, self._info.baudrate)
        return self._info

    def close(self) -> None:
        """Close the serial port."""
        if self._serial is None:
            return
        try:
            self._serial.close()
        except serial.SerialException as e:
            logger.warning("Error closing %s: %s", self._info.port, e)
        finally:
            self._serial = None
            logger.info("Disconnected from %s", self._info.port)

    def _port(self) -> serial.Serial:
        if not self.connected:
            raise TransportError("Not connected to balance")
        return self._serial

    def write(self, data: bytes) -> int:
        """Write raw bytes and wait until they are sent.

        Raises:
            TransportError: If not connected or the write fails.
        """
        port = self._port()
        try:
            written = port.write(data)
            port.flush()
        except serial.SerialException as e:
            raise TransportError(f"Write to {self._info.port} failed: {e}") from e
        return written or 0

    def read(self, size: int) -> bytes:
        """Read what is waiting (at most ``size`` bytes).

        Blocks for at most the read timeout when nothing is waiting.

        Raises:
            TransportError: If not connected or the read fails.
        """
        port = self._port()
        try:
            waiting = port.in_waiting
            return port.read(min(size, waiting) if waiting else 1)
        except serial.SerialException as e:
            raise TransportError(f"Read from {self._info.port} failed: {e}") from e
