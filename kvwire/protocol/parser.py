"""
Protocol Parser Module

This module handles parsing of control lines and formatting of responses
for both ends of the connection.
"""

import re
from typing import Optional, Tuple

from .commands import Command, CommandType, Response, ResponseStatus
from ..config.settings import settings
from ..exceptions import ProtocolError

_KEY_RE = re.compile(r"[+-]?[0-9]+")
_SIZE_RE = re.compile(r"[0-9]+")

_VALUE_COMMANDS = {
    "CREATE": CommandType.CREATE,
    "UPDATE": CommandType.UPDATE,
}
_KEY_COMMANDS = {
    "READ": CommandType.READ,
    "DELETE": CommandType.DELETE,
}


def parse_key(token: str) -> Optional[int]:
    """Parse a base-10 signed 32-bit key, or return None."""
    if not _KEY_RE.fullmatch(token):
        return None
    key = int(token)
    if not settings.KEY_MIN <= key <= settings.KEY_MAX:
        return None
    return key


def parse_size(token: str) -> Optional[int]:
    """Parse a base-10 non-negative byte count, or return None."""
    if not _SIZE_RE.fullmatch(token):
        return None
    return int(token)


class ProtocolParser:
    """
    Parser for the KV-Wire protocol.

    Protocol Format:
        Request:  <COMMAND> <key> [size]\\n [size raw bytes]
        Response: OK\\n | OK <size>\\n<size raw bytes> | ERR <message>\\n

    Commands:
        CREATE <key> <size> + bytes  -> OK | ERR key exists
        READ <key>                   -> OK <size> + bytes | ERR no such key
        UPDATE <key> <size> + bytes  -> OK | ERR no such key | ERR size must be > 0
        DELETE <key>                 -> OK | ERR no such key

    Constraints:
        - Keys: signed 32-bit base-10 integers
        - Sizes: non-negative base-10 integers; UPDATE requires size > 0
        - Fields separated by one or more spaces/tabs, keyword case-insensitive
    """

    def parse_request(self, data: str) -> Command:
        """
        Parse a control line into a Command object.

        Args:
            data: Control line, with or without its line terminator

        Returns:
            Command object. Malformed lines yield type=UNKNOWN with the
            error message set; ``size`` is still filled in when it parsed,
            so the caller knows how many value bytes to skip.

        Examples:
            >>> parser = ProtocolParser()
            >>> cmd = parser.parse_request("CREATE 1 5")
            >>> cmd.type == CommandType.CREATE, cmd.key, cmd.size
            (True, 1, 5)
            >>> parser.parse_request("READ x").error
            'invalid key'
        """
        raw = data.rstrip("\n")
        if raw.endswith("\r"):
            raw = raw[:-1]

        parts = raw.split()
        if not parts:
            return self._invalid(raw, "malformed command")

        name = parts[0].upper()
        if name in _VALUE_COMMANDS:
            return self._parse_value_command(_VALUE_COMMANDS[name], parts, raw)
        if name in _KEY_COMMANDS:
            return self._parse_key_command(_KEY_COMMANDS[name], parts, raw)

        return self._invalid(raw, "unknown command")

    @staticmethod
    def _invalid(raw: str, error: str, size: int = 0) -> Command:
        return Command(type=CommandType.UNKNOWN, size=size, error=error, raw=raw)

    def _parse_value_command(self, command_type: CommandType, parts: list, raw: str) -> Command:
        """
        Parse CREATE or UPDATE.

        Format: CREATE|UPDATE <key> <size>
        """
        size = parse_size(parts[2]) if len(parts) >= 3 else None
        if len(parts) != 3:
            # A size that parsed still frames the value that follows
            return self._invalid(raw, "malformed command", size=size or 0)

        if size is None:
            return self._invalid(raw, "invalid size")

        if command_type == CommandType.UPDATE and size == 0:
            return self._invalid(raw, "size must be > 0")

        key = parse_key(parts[1])
        if key is None:
            return self._invalid(raw, "invalid key", size=size)

        return Command(type=command_type, key=key, size=size, raw=raw)

    def _parse_key_command(self, command_type: CommandType, parts: list, raw: str) -> Command:
        """
        Parse READ or DELETE.

        Format: READ|DELETE <key>
        """
        if len(parts) != 2:
            return self._invalid(raw, "malformed command")

        key = parse_key(parts[1])
        if key is None:
            return self._invalid(raw, "invalid key")

        return Command(type=command_type, key=key, raw=raw)

    def format_request(self, command_type: CommandType, key: int, size: Optional[int] = None) -> bytes:
        """
        Format a control line for a request.

        >>> ProtocolParser().format_request(CommandType.CREATE, 1, 5)
        b'CREATE 1 5\\n'
        """
        if command_type in (CommandType.CREATE, CommandType.UPDATE):
            return f"{command_type.name} {key} {size}\n".encode("ascii")
        return f"{command_type.name} {key}\n".encode("ascii")

    def format_response(self, response: Response) -> bytes:
        """
        Format a Response object into wire bytes.

        Examples:
            >>> parser = ProtocolParser()
            >>> parser.format_response(Response.ok())
            b'OK\\n'
            >>> parser.format_response(Response.value_response(b"hello"))
            b'OK 5\\nhello'
            >>> parser.format_response(Response.error("no such key"))
            b'ERR no such key\\n'
        """
        prefix = response.status.value

        if response.status == ResponseStatus.ERROR:
            return f"{prefix} {response.message}\n".encode("ascii", "replace")

        if response.value is not None:
            return f"{prefix} {len(response.value)}\n".encode("ascii") + bytes(response.value)

        return f"{prefix}\n".encode("ascii")

    def parse_response_header(self, line: str) -> Tuple[ResponseStatus, Optional[int], str]:
        """
        Parse the control line of a response.

        Returns:
            (status, size, message): size is the number of value bytes
            that follow (None if none do); message is the error text for
            ERR responses.

        Raises:
            ProtocolError: the line is neither an OK nor an ERR response
        """
        parts = line.split()
        if parts and parts[0] == "OK":
            if len(parts) == 1:
                return ResponseStatus.OK, None, ""
            if len(parts) == 2:
                size = parse_size(parts[1])
                if size is not None:
                    return ResponseStatus.OK, size, ""
        elif line == "ERR" or line.startswith("ERR "):
            return ResponseStatus.ERROR, None, line[4:]

        raise ProtocolError(f"unexpected response: {line}")
