"""Tests for MT-SICS line framing."""

import pytest

from mt_sics_mcp.protocol.framing import (
    TERMINATOR,
    build_line,
    complete_part,
    encode_command,
    format_decimal,
    quote,
    split_lines,
    unquote,
)


def test_encode_appends_crlf():
    """Every command goes out as ASCII followed by CRLF."""
    assert encode_command("S") == b"S\r\n"
    assert encode_command("M21 0 g").endswith(TERMINATOR)


def test_encode_rejects_line_breaks():
    """A command must be a single line."""
    with pytest.raises(ValueError):
        encode_command("S\r\nZ")


def test_encode_rejects_non_ascii():
    with pytest.raises(ValueError):
        encode_command('D "Gewicht µg"')


def test_build_line_joins_with_spaces():
    assert build_line("A10", 0, "12.50", "g") == "A10 0 12.50 g"
    assert build_line("DW") == "DW"


def test_quote_plain_text():
    assert quote("Sample No.:") == '"Sample No.:"'


def test_quote_escapes_embedded_quotes():
    """Embedded quotes must not terminate the parameter early."""
    quoted = quote('say "hi"')
    assert quoted == '"say \\"hi\\""'
    assert unquote(quoted) == 'say "hi"'


def test_unquote_leaves_bare_text():
    assert unquote("XPE205") == "XPE205"


def test_format_decimal_two_places():
    assert format_decimal(12.5) == "12.50"
    assert format_decimal(0.1) == "0.10"
    assert format_decimal(-0.02) == "-0.02"


def test_split_lines_keeps_partial_tail():
    """A trailing partial line is returned as the remainder."""
    lines, rest = split_lines(b"ST    1.00 g\r\nST    2.00 g\r\nST   3")
    assert lines == [b"ST    1.00 g", b"ST    2.00 g"]
    assert rest == b"ST   3"


def test_split_lines_no_complete_line():
    lines, rest = split_lines(b"ST   1.2")
    assert lines == []
    assert rest == b"ST   1.2"


def test_complete_part():
    assert complete_part(b"Z A\r\nS S 1") == b"Z A\r\n"
    assert complete_part(b"partial") == b""
