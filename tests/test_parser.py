"""Tests for response patterns and field conversion."""

import pytest

from mt_sics_mcp.errors import ParseError
from mt_sics_mcp.models import DoorStatus, Measurement, StatusCode, UnitChannel
from mt_sics_mcp.protocol.commands import CATALOG
from mt_sics_mcp.protocol.parser import (
    FieldKind,
    ResponsePattern,
    parse_measurement,
    to_decimal,
    to_token,
)


def test_parse_stable_weight():
    assert parse_measurement("S S    12.34 g") == Measurement(12.34, "g")


def test_parse_negative_weight():
    assert parse_measurement("S S   -0.02 g") == Measurement(-0.02, "g")


def test_parse_weight_bytes_with_crlf():
    assert parse_measurement(b"T S     100.000 mg\r\n") == Measurement(100.0, "mg")


def test_parse_non_weight_reply():
    """Replies that are not weight lines yield None."""
    assert parse_measurement("Z A") is None
    assert parse_measurement("S I") is None


def test_parse_bad_value_raises():
    """A matched line with an unconvertible value is a ParseError."""
    with pytest.raises(ParseError) as exc:
        parse_measurement("S S   12,34 g")
    assert exc.value.field == "value"
    assert exc.value.text == "12,34"


def test_parse_bad_unit_raises():
    with pytest.raises(ParseError) as exc:
        parse_measurement("S S   12.34 g2")
    assert exc.value.field == "unit"


@pytest.mark.parametrize("text,expected", [
    ("12.34", 12.34),
    ("-0.02", -0.02),
    ("+5", 5.0),
    (".5", 0.5),
    ("1.5e3", 1500.0),
])
def test_to_decimal(text, expected):
    assert to_decimal(text) == expected


@pytest.mark.parametrize("text", ["inf", "nan", "1.2.3", "", "--1", "12,3"])
def test_to_decimal_rejects(text):
    with pytest.raises(ValueError):
        to_decimal(text)


def test_to_token():
    assert to_token("ozt") == "ozt"
    with pytest.raises(ValueError):
        to_token("%")


@pytest.mark.parametrize("digit", range(10))
def test_door_status_codes(digit):
    """WS 0 through WS 9 map one-to-one onto DoorStatus."""
    fields = CATALOG["door_status"].pattern.parse(f"WS {digit}\r\n")
    assert fields["status"] is DoorStatus(digit)


def test_door_status_special_codes():
    pattern = CATALOG["door_status"].pattern
    assert pattern.parse("WS 8")["status"] is DoorStatus.ERROR
    assert pattern.parse("WS 9")["status"] is DoorStatus.INTERMEDIATE


def test_door_status_ignores_acknowledgement():
    """WS A is a toggle acknowledgement, not a door status."""
    assert CATALOG["door_status"].pattern.parse("WS A") is None


def test_patterns_are_line_anchored():
    """A tare pattern must not match inside a stream frame."""
    pattern = CATALOG["tare"].pattern
    assert pattern.parse(b"ST S    1.00 g\r\n") is None
    assert pattern.parse(b"ST S    1.00 g\r\nT S    1.00 g\r\n") == {
        "stability": StatusCode.STABLE,
        "value": 1.0,
        "unit": "g",
    }


def test_pattern_needs_whole_line():
    """Trailing text after the expected reply prevents a match."""
    assert not CATALOG["zero"].pattern.matches(b"Z A extra\r\n")
    assert CATALOG["zero"].pattern.matches(b"Z A  \r\n")


def test_status_field():
    fields = CATALOG["power_on"].pattern.parse("PWR L")
    assert fields["status"] is StatusCode.LOGICAL


def test_channel_field():
    fields = CATALOG["get_unit"].pattern.parse("M21 A 1 mg")
    assert fields == {"channel": UnitChannel.DISPLAY, "unit": "mg"}


def test_channel_out_of_range_raises():
    with pytest.raises(ParseError):
        CATALOG["get_unit"].pattern.parse("M21 A 7 mg")


def test_text_field_unquoted():
    fields = CATALOG["serial_number"].pattern.parse('I4 A "B123456789"')
    assert fields["text"] == "B123456789"


def test_unknown_field_rejected():
    with pytest.raises(ValueError):
        ResponsePattern(r"S S (?P<value>\S+)", unit=FieldKind.TOKEN)


def test_measurement_requires_alphabetic_unit():
    with pytest.raises(ValueError):
        Measurement(1.0, "g1")
