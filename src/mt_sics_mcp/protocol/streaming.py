"""Continuous weight acquisition (``ST 1`` / ``ST 0``).

While streaming is active the balance sends one ``ST <value> <unit>`` frame
per transfer-key press (or per update, depending on the device setup). The
reader collects frames until a count or a deadline is reached and always
sends the stop command on the way out, whatever ended the session.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from ..errors import MtSicsError
from ..models.measurement import Measurement
from ..models.session import StreamSession
from .channel import CancelToken, CommandChannel
from .commands import (
    STREAM_ACK,
    STREAM_FRAME,
    STREAM_START,
    STREAM_STOP,
    Verb,
    refused,
)
from .framing import split_lines
from .parser import ResponsePattern, measurement_from

logger = logging.getLogger(__name__)


class StreamingReader:
    """Runs streaming sessions on a :class:`CommandChannel`.

    The channel is claimed for the whole session; other commands sent
    through it while a session is active raise ``RuntimeError``.
    """

    def __init__(self, channel: CommandChannel) -> None:
        self._channel = channel

    @contextmanager
    def session(
        self,
        target_count: int | None = None,
        timeout: float | None = None,
        cancel: CancelToken | None = None,
    ) -> Iterator[StreamSession]:
        """Start continuous mode and guarantee it is stopped on exit.

        Raises:
            ConfigurationError: If both bounds are ``None``, before any I/O.
        """
        session = StreamSession.bounded(target_count=target_count, timeout=timeout)
        self._channel.claim(session)
        try:
            reply = self._channel.send_and_await(
                STREAM_START,
                STREAM_ACK,
                reject=refused(Verb.STREAM),
                cancel=cancel,
                owner=session,
            )
            session.backlog = _after_line(STREAM_ACK, reply)
            session.activate()
            logger.debug("Streaming started (target=%s, timeout=%s)", target_count, timeout)
            try:
                yield session
            finally:
                self._stop(session)
        finally:
            self._channel.release(session)

    def _stop(self, session: StreamSession) -> None:
        session.stop()
        try:
            self._channel.send_and_await(STREAM_STOP, STREAM_ACK, owner=session)
        except MtSicsError as e:
            logger.warning("Stopping continuous mode failed: %s", e)
        logger.debug(
            "Streaming stopped after %d measurement(s)", session.measurements_collected
        )

    def stream(
        self,
        target_count: int | None = None,
        timeout: float | None = None,
        cancel: CancelToken | None = None,
    ) -> list[Measurement]:
        """Collect measurements until ``target_count`` or ``timeout`` is reached.

        Args:
            target_count: Number of measurements to collect, or ``None`` for
                no count limit.
            timeout: Seconds the session may run, or ``None`` for no limit.
            cancel: Optional token to abort the session from another thread.

        Returns:
            The measurements collected, in arrival order.

        Raises:
            ConfigurationError: If both bounds are ``None``.
            TransportError: If the transport fails mid-session.
            ParseError: If a frame's value or unit cannot be converted.
            Cancelled: If ``cancel`` fired.
        """
        measurements: list[Measurement] = []
        with self.session(target_count, timeout, cancel) as session:
            pending, chunk = b"", session.backlog
            while not session.finished():
                if cancel is not None:
                    cancel.raise_if_cancelled()
                if not chunk:
                    chunk = self._channel.read_chunk()
                    if not chunk:
                        continue
                lines, pending = split_lines(pending + chunk)
                chunk = b""
                for line in lines:
                    match = STREAM_FRAME.search(line)
                    if match is None:
                        logger.debug("Ignoring non-frame line %r", line)
                        continue
                    measurements.append(measurement_from(STREAM_FRAME.convert(match)))
                    session.record()
                    if session.count_reached():
                        break
        return measurements


def _after_line(pattern: ResponsePattern, data: bytes) -> bytes:
    """Bytes following the first line of ``data`` that matches ``pattern``."""
    match = pattern.search(data)
    if match is None:
        return b""
    end = data.find(b"\n", match.end())
    return b"" if end < 0 else data[end + 1 :]
