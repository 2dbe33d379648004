"""Runtime settings read from the environment."""

from __future__ import annotations

import os

# Serial port the MCP server connects to when no port is given
DEFAULT_PORT = os.getenv("MT_SICS_PORT", "/dev/ttyUSB0")

# MT-SICS factory default is 9600 baud, 8 data bits, no parity, 1 stop bit
DEFAULT_BAUDRATE = int(os.getenv("MT_SICS_BAUDRATE", "9600"))

# Seconds to wait for a matching reply to one command
DEFAULT_TIMEOUT = float(os.getenv("MT_SICS_TIMEOUT", "5.0"))

# Seconds a single serial read may block; bounds how far a deadline can overrun
READ_TIMEOUT = float(os.getenv("MT_SICS_READ_TIMEOUT", "0.1"))

LOG_LEVEL = os.getenv("MT_SICS_LOG_LEVEL", "INFO").upper()
