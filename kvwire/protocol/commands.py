"""
Protocol Command and Response Definitions

This module defines the data structures for protocol commands and responses.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional


class CommandType(Enum):
    """Enumeration of supported command types."""
    CREATE = auto()
    READ = auto()
    UPDATE = auto()
    DELETE = auto()
    UNKNOWN = auto()


class ResponseStatus(Enum):
    """Enumeration of response statuses."""
    OK = "OK"
    ERROR = "ERR"


@dataclass
class Command:
    """
    Represents a parsed control line.

    Attributes:
        type: The type of command (CREATE, READ, UPDATE, DELETE, UNKNOWN)
        key: The integer key for the operation
        size: Number of raw value bytes following the control line.
              Set whenever the size field parsed, even for an UNKNOWN
              command, so the receiver can keep the stream framed.
        error: Error message for UNKNOWN commands
        raw: The original control line
    """
    type: CommandType
    key: int = 0
    size: int = 0
    error: str = ""
    raw: str = ""

    @property
    def is_valid(self) -> bool:
        """Check if the command can be dispatched."""
        return self.type != CommandType.UNKNOWN

    @property
    def has_value(self) -> bool:
        """Whether value bytes follow the control line."""
        return self.size > 0


@dataclass
class Response:
    """
    Represents a protocol response.

    Attributes:
        status: OK or ERROR
        message: Error description (ERROR only)
        value: The value bytes returned by READ, None otherwise
    """
    status: ResponseStatus
    message: str = ""
    value: Optional[bytes] = None

    @property
    def is_ok(self) -> bool:
        return self.status == ResponseStatus.OK

    @classmethod
    def ok(cls, value: Optional[bytes] = None) -> "Response":
        """Create a successful response, optionally carrying a value."""
        return cls(status=ResponseStatus.OK, value=value)

    @classmethod
    def error(cls, message: str) -> "Response":
        """Create an error response."""
        return cls(status=ResponseStatus.ERROR, message=message)

    @classmethod
    def from_exception(cls, exc: Exception) -> "Response":
        """Create an error response from a KVError."""
        return cls.error(str(exc))

    @classmethod
    def value_response(cls, value: bytes) -> "Response":
        """Create a READ response with a value."""
        return cls.ok(value=bytes(value))
