"""ASCII line framing for MT-SICS.

Line layout (both directions)::

    +------+-------+---------+-------+---------+------+
    | Verb | Space | Param 1 | Space | Param N | CRLF |
    +------+-------+---------+-------+---------+------+

- Verb: command name, e.g. ``S``, ``M21``, ``A10``
- Params: bare tokens, or double-quoted strings for free text
- CRLF: ``\\r\\n`` terminates every line; there is no other framing

Replies use the same layout, with a status letter usually following the verb
(``PWR A``, ``S S     12.34 g``).
"""

from __future__ import annotations

TERMINATOR = b"\r\n"
ENCODING = "ascii"


def encode_command(line: str) -> bytes:
    """Encode one command line and append the terminator.

    Raises:
        ValueError: If the line contains non-ASCII characters or a line break.
    """
    if "\r" in line or "\n" in line:
        raise ValueError(f"Command must be a single line, got {line!r}")
    try:
        return line.encode(ENCODING) + TERMINATOR
    except UnicodeEncodeError as e:
        raise ValueError(f"Command must be ASCII, got {line!r}") from e


def build_line(verb: str, *params: object) -> str:
    """Join a verb and its parameters with single spaces."""
    return " ".join([verb, *(str(p) for p in params)])


def quote(text: str) -> str:
    """Quote a free-text parameter, escaping embedded quotes and backslashes."""
    escaped = text.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def unquote(text: str) -> str:
    """Reverse :func:`quote`. Unquoted input is returned unchanged."""
    if len(text) >= 2 and text[0] == text[-1] == '"':
        text = text[1:-1]
        return text.replace('\\"', '"').replace("\\\\", "\\")
    return text


def format_decimal(value: float, places: int = 2) -> str:
    """Format a number in fixed-point notation, e.g. ``12.5 -> '12.50'``."""
    return f"{value:.{places}f}"


def split_lines(buffer: bytes) -> tuple[list[bytes], bytes]:
    """Split complete lines off the front of a receive buffer.

    Returns:
        ``(lines, remainder)`` where each line has its CR/LF stripped and
        ``remainder`` holds a trailing partial line, if any.
    """
    *lines, remainder = buffer.split(b"\n")
    return [line.rstrip(b"\r") for line in lines], remainder


def complete_part(buffer: bytes) -> bytes:
    """Return the portion of ``buffer`` up to and including the last LF."""
    return buffer[: buffer.rfind(b"\n") + 1]
