"""Protocol layer: line framing, response patterns, the command catalog, and the engines that run them."""

from .framing import encode_command, split_lines
from .parser import FieldKind, ResponsePattern, parse_measurement
from .commands import CATALOG, CatalogEntry, Verb
from .channel import CancelToken, CommandChannel
from .streaming import StreamingReader
