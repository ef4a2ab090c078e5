"""
Client Session

Interprets operator command lines. Local commands (connect, disconnect,
status, help, quit/exit) never reach the network; server-bound commands
(create, read, update, delete) are validated locally and only then
encoded and sent over the KVConnection.
"""

import logging
import re
import sys
from typing import Optional, TextIO

from ..config.settings import settings
from ..exceptions import ClientConnectionError, ProtocolError
from ..protocol.commands import CommandType, Response
from ..protocol.parser import ProtocolParser, parse_key, parse_size
from .connection import KVConnection

logger = logging.getLogger(__name__)

# <cmd> <key> <size>, then exactly one separator; the rest is the value verbatim
_VALUE_LINE_RE = re.compile(r"[ \t]*(\S+)[ \t]+(\S+)[ \t]+(\S+)(?:[ \t](.*))?", re.DOTALL)

HELP_TEXT = """Commands:
  connect <server-ip> <server-port>
  disconnect
  create <key> <value-size> <value>
  read <key>
  update <key> <value-size> <value>
  delete <key>
  status
  quit | exit | help"""


class ClientSession:
    """
    Command interpreter in front of a KVConnection.

    Every command prints at least one line to ``out``: ``OK``, a value,
    or an ``ERR ...`` line.

    Usage:
        session = ClientSession()
        session.handle_line("connect 127.0.0.1 5000")
        session.handle_line("create 1 5 hello")
        session.handle_line("read 1")   # prints "hello"
    """

    def __init__(self, connection: KVConnection = None, out: TextIO = None, max_line_length: int = None):
        self.connection = connection if connection is not None else KVConnection()
        self.out = out if out is not None else sys.stdout
        self.max_line_length = (
            max_line_length if max_line_length is not None else settings.CLIENT_MAX_LINE_LENGTH
        )
        self.parser = ProtocolParser()

    def _emit(self, text: str) -> None:
        print(text, file=self.out, flush=True)

    def close(self) -> None:
        self.connection.close()

    def handle_line(self, line: str) -> bool:
        """
        Execute one command line.

        Returns:
            False if the operator asked to quit, True otherwise
        """
        text = line.rstrip("\n")
        if text.endswith("\r"):
            text = text[:-1]
        if len(text) > self.max_line_length:
            logger.warning(f"Command line exceeded {self.max_line_length} characters; truncated")
            text = text[:self.max_line_length]

        parts = text.split()
        if not parts:
            return True
        name = parts[0].lower()

        if name in ("quit", "exit"):
            self.close()
            return False

        if name == "connect":
            self._connect(parts)
        elif name == "disconnect":
            self.close()
            self._emit("OK")
        elif name == "help":
            self._emit(HELP_TEXT)
        elif name == "status":
            self._status()
        elif name in ("create", "update", "read", "delete"):
            # Server-bound commands
            if not self.connection.connected:
                self._emit("ERR not connected")
            elif name in ("create", "update"):
                self._send_value_command(name, text)
            else:
                self._send_key_command(name, parts)
        else:
            self._emit("ERR unknown command (type 'help')")

        return True

    def _connect(self, parts: list) -> None:
        port = parse_size(parts[2]) if len(parts) >= 3 else None
        if port is None or not 0 < port <= 65535:
            self._emit("ERR usage: connect <server-ip> <server-port>")
            return

        try:
            self.connection.connect(parts[1], port)
        except ClientConnectionError as exc:
            self._emit(f"ERR {exc}")
            return
        self._emit("OK")

    def _status(self) -> None:
        if self.connection.connected:
            host, port = self.connection.peer
            self._emit(f"connected to {host}:{port}")
        else:
            self._emit("not connected")

    def _send_value_command(self, name: str, text: str) -> None:
        match = _VALUE_LINE_RE.fullmatch(text)
        if match is None:
            self._emit(f"ERR usage: {name} <key> <value-size> <value>")
            return

        _, key_token, size_token, value_text = match.groups()
        key = parse_key(key_token)
        if key is None:
            self._emit("ERR invalid key")
            return
        size = parse_size(size_token)
        if size is None:
            self._emit("ERR invalid size")
            return

        value = (value_text or "").encode("utf-8")
        if len(value) != size:
            self._emit(f"ERR value-size ({size}) does not match actual length ({len(value)})")
            return

        command_type = CommandType.CREATE if name == "create" else CommandType.UPDATE
        self._request(self.parser.format_request(command_type, key, size), value)

    def _send_key_command(self, name: str, parts: list) -> None:
        if len(parts) < 2:
            self._emit(f"ERR usage: {name} <key>")
            return

        key = parse_key(parts[1])
        if key is None:
            self._emit("ERR invalid key")
            return

        command_type = CommandType.READ if name == "read" else CommandType.DELETE
        self._request(self.parser.format_request(command_type, key))

    def _request(self, header: bytes, value: bytes = b"") -> Optional[Response]:
        try:
            response = self.connection.request(header, value)
        except (ClientConnectionError, ProtocolError) as exc:
            self._emit(f"ERR {exc}")
            return None

        self._display(response)
        return response

    def _display(self, response: Response) -> None:
        if not response.is_ok:
            self._emit(f"ERR {response.message}".rstrip())
        elif response.value is not None:
            # Values are opaque bytes; shown as text for the operator
            self._emit(response.value.decode("utf-8", "replace"))
        else:
            self._emit("OK")
