"""Protocol module for KV-Wire."""

from .commands import Command, CommandType, Response, ResponseStatus
from .framing import FrameReader, write_all
from .parser import ProtocolParser, parse_key, parse_size

__all__ = [
    "Command",
    "CommandType",
    "Response",
    "ResponseStatus",
    "FrameReader",
    "write_all",
    "ProtocolParser",
    "parse_key",
    "parse_size",
]
