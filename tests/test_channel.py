"""Tests for the command/response engine."""

from __future__ import annotations

import threading
import time

import pytest

from mt_sics_mcp.errors import (
    Cancelled,
    ProtocolTimeout,
    ProtocolViolation,
    TransportError,
)
from mt_sics_mcp.protocol.channel import CancelToken, CommandChannel
from mt_sics_mcp.protocol.commands import CATALOG
from mt_sics_mcp.protocol.parser import ResponsePattern

ZERO_ACK = ResponsePattern(r"Z A")


def test_send_writes_terminated_line(transport):
    transport.reply("Z", b"Z A\r\n")
    channel = CommandChannel(transport, timeout=1.0)

    reply = channel.send_and_await("Z", ZERO_ACK)

    assert transport.writes == [b"Z\r\n"]
    assert reply == b"Z A\r\n"


def test_reply_split_across_reads(transport):
    """Bytes from several reads accumulate until the reply is complete."""
    transport.reply("Z", b"Z", b" A", b"\r\n")
    channel = CommandChannel(transport, timeout=1.0)

    assert channel.send_and_await("Z", ZERO_ACK) == b"Z A\r\n"


def test_partial_line_is_not_matched_early(transport):
    """A unit cut in half must not be taken as the full unit."""
    transport.reply("S", b"S S     12.34 m", b"g\r\n")
    channel = CommandChannel(transport, timeout=1.0)
    pattern = CATALOG["weight"].pattern

    reply = channel.send_and_await("S", pattern)

    assert pattern.parse(reply)["unit"] == "mg"


def test_unrelated_lines_before_reply(transport):
    """Stale lines ahead of the reply are kept but skipped by the match."""
    transport.reply("Z", b"ST    1.00 g\r\n", b"Z A\r\n")
    channel = CommandChannel(transport, timeout=1.0)

    assert channel.send_and_await("Z", ZERO_ACK) == b"ST    1.00 g\r\nZ A\r\n"


def test_timeout_reports_command_pattern_and_bytes(transport):
    transport.reply("Z", b"Z ?\r\n")
    channel = CommandChannel(transport, timeout=0.05)

    start = time.monotonic()
    with pytest.raises(ProtocolTimeout) as exc:
        channel.send_and_await("Z", ZERO_ACK)

    assert time.monotonic() - start < 1.0
    assert exc.value.command == "Z"
    assert exc.value.pattern == "Z A"
    assert exc.value.last_bytes == b"Z ?\r\n"


def test_per_call_timeout_overrides_channel(transport):
    channel = CommandChannel(transport, timeout=30.0)

    start = time.monotonic()
    with pytest.raises(ProtocolTimeout):
        channel.send_and_await("Z", ZERO_ACK, timeout=0.05)
    assert time.monotonic() - start < 1.0


def test_read_failure_is_transport_error(transport):
    transport.reply("Z", OSError("port vanished"), b"Z A\r\n")
    channel = CommandChannel(transport, timeout=1.0)

    with pytest.raises(TransportError):
        channel.send_and_await("Z", ZERO_ACK)
    # the wait was aborted, later bytes were never read
    assert transport.pending == [b"Z A\r\n"]


def test_write_failure_is_transport_error(transport):
    transport.write_error = OSError("write failed")
    channel = CommandChannel(transport, timeout=1.0)

    with pytest.raises(TransportError):
        channel.send_and_await("Z", ZERO_ACK)


def test_generic_error_line_is_violation(transport):
    """ES/ET/EL replies fail fast instead of waiting for the timeout."""
    transport.reply("Z", b"ES\r\n")
    channel = CommandChannel(transport, timeout=5.0)

    start = time.monotonic()
    with pytest.raises(ProtocolViolation) as exc:
        channel.send_and_await("Z", ZERO_ACK)
    assert time.monotonic() - start < 1.0
    assert exc.value.response == b"ES\r\n"


def test_reject_pattern_is_violation(transport):
    transport.reply("PWR 1", b"PWR I\r\n")
    channel = CommandChannel(transport, timeout=5.0)
    entry = CATALOG["power_on"]

    with pytest.raises(ProtocolViolation):
        channel.send_and_await("PWR 1", entry.pattern, reject=entry.reject)


def test_cancelled_before_write(transport):
    token = CancelToken()
    assert not token.cancelled
    token.cancel()
    assert token.cancelled
    channel = CommandChannel(transport, timeout=1.0)

    with pytest.raises(Cancelled):
        channel.send_and_await("Z", ZERO_ACK, cancel=token)
    assert transport.writes == []


def test_cancelled_while_waiting(transport):
    token = CancelToken()
    channel = CommandChannel(transport, timeout=10.0)
    timer = threading.Timer(0.05, token.cancel)
    timer.start()

    start = time.monotonic()
    try:
        with pytest.raises(Cancelled):
            channel.send_and_await("Z", ZERO_ACK, cancel=token)
    finally:
        timer.cancel()
    assert time.monotonic() - start < 2.0


def test_claimed_channel_refuses_other_callers(transport):
    channel = CommandChannel(transport, timeout=1.0)
    owner = object()
    channel.claim(owner)

    with pytest.raises(RuntimeError):
        channel.send_and_await("Z", ZERO_ACK)

    channel.release(owner)
    transport.reply("Z", b"Z A\r\n")
    assert channel.send_and_await("Z", ZERO_ACK) == b"Z A\r\n"


def test_timeout_must_be_positive(transport):
    with pytest.raises(ValueError):
        CommandChannel(transport, timeout=0)
