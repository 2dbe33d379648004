"""Shared fixtures: an in-memory transport that replays scripted replies."""

from __future__ import annotations

import time

import pytest


class ScriptedTransport:
    """Fake byte stream.

    ``reply(command, *chunks)`` queues ``chunks`` for reading once
    ``command`` is written; ``feed(*chunks)`` queues them right away. A queued
    exception instance is raised by the read that reaches it.
    """

    def __init__(self) -> None:
        self.pending: list[bytes | Exception] = []
        self.replies: dict[str, list[list[bytes | Exception]]] = {}
        self.writes: list[bytes] = []
        self.write_error: Exception | None = None
        self.closed = False

    def reply(self, command: str, *chunks: bytes | Exception) -> ScriptedTransport:
        self.replies.setdefault(command, []).append(list(chunks))
        return self

    def feed(self, *chunks: bytes | Exception) -> ScriptedTransport:
        self.pending.extend(chunks)
        return self

    @property
    def commands(self) -> list[str]:
        return [w.decode("ascii").rstrip("\r\n") for w in self.writes]

    def write(self, data: bytes) -> int:
        if self.write_error is not None:
            raise self.write_error
        self.writes.append(data)
        queued = self.replies.get(data.decode("ascii").rstrip("\r\n"))
        if queued:
            self.pending.extend(queued.pop(0))
        return len(data)

    def read(self, size: int) -> bytes:
        if not self.pending:
            time.sleep(0.001)
            return b""
        item = self.pending.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def transport() -> ScriptedTransport:
    return ScriptedTransport()
