"""State of one continuous-acquisition (``ST``) session."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum

from ..errors import ConfigurationError


class SessionState(Enum):
    IDLE = "idle"
    ACTIVE = "active"
    STOPPED = "stopped"


@dataclass
class StreamSession:
    """Bounds and progress of a streaming session.

    A session moves Idle -> Active -> Stopped exactly once. At least one of
    ``target_count`` and ``deadline`` must be set, otherwise the acquisition
    loop would never end.
    """

    target_count: int | None = None
    deadline: float | None = None  # time.monotonic() value
    state: SessionState = SessionState.IDLE
    measurements_collected: int = field(default=0, init=False)
    # bytes read after the start acknowledgement, not yet parsed
    backlog: bytes = field(default=b"", init=False, repr=False)

    def __post_init__(self) -> None:
        if self.target_count is None and self.deadline is None:
            raise ConfigurationError(
                "target_count and timeout cannot both be unbounded"
            )
        if self.target_count is not None and self.target_count < 0:
            raise ConfigurationError(
                f"target_count must be >= 0, got {self.target_count}"
            )

    @classmethod
    def bounded(
        cls, target_count: int | None = None, timeout: float | None = None
    ) -> StreamSession:
        """Build a session from a count and a relative timeout in seconds."""
        if timeout is not None and timeout < 0:
            raise ConfigurationError(f"timeout must be >= 0, got {timeout}")
        deadline = None if timeout is None else time.monotonic() + timeout
        return cls(target_count=target_count, deadline=deadline)

    @property
    def active(self) -> bool:
        return self.state is SessionState.ACTIVE

    def activate(self) -> None:
        if self.state is not SessionState.IDLE:
            raise RuntimeError(f"Cannot start a session in state {self.state.value}")
        self.state = SessionState.ACTIVE

    def stop(self) -> None:
        if not self.active:
            raise RuntimeError(f"Cannot stop a session in state {self.state.value}")
        self.state = SessionState.STOPPED

    def record(self) -> None:
        """Count one collected measurement."""
        self.measurements_collected += 1

    def count_reached(self) -> bool:
        return (
            self.target_count is not None
            and self.measurements_collected >= self.target_count
        )

    def expired(self, now: float | None = None) -> bool:
        if self.deadline is None:
            return False
        return (time.monotonic() if now is None else now) >= self.deadline

    def finished(self) -> bool:
        return self.count_reached() or self.expired()
