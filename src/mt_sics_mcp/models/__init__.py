"""Data models for measurements, device status codes, and streaming sessions."""

from .measurement import Measurement
from .status import StatusCode, DoorStatus, UnitChannel
from .session import SessionState, StreamSession
