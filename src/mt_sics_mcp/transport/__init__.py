"""Transport layer: the byte stream contract and a pyserial implementation."""

from .base import Transport
from .serial_connection import SerialConnection
