"""
Client Connection

A single outbound connection to a KV-Wire server. It frames requests,
reads back exactly one response per request, and drops itself on any
I/O failure so the caller is never left holding a desynchronized stream.
"""

import logging
import socket
from typing import Optional, Tuple

from ..config.settings import settings
from ..exceptions import (
    AddressResolutionError,
    AlreadyConnectedError,
    ConnectFailedError,
    FramingError,
    NotConnectedError,
    ServerClosedError,
)
from ..protocol.commands import Response, ResponseStatus
from ..protocol.framing import FrameReader, write_all
from ..protocol.parser import ProtocolParser

logger = logging.getLogger(__name__)


class KVConnection:
    """
    TCP connection to a KV-Wire server.

    At most one socket is open at a time; a second connect() while
    connected is refused without touching the open socket.
    """

    def __init__(self, max_line_length: int = None):
        self.max_line_length = (
            max_line_length if max_line_length is not None else settings.MAX_LINE_LENGTH
        )
        self.parser = ProtocolParser()
        self.peer: Optional[Tuple[str, int]] = None
        self._sock: Optional[socket.socket] = None
        self._stream = None
        self._reader: Optional[FrameReader] = None

    @property
    def connected(self) -> bool:
        return self._sock is not None

    def connect(self, host: str, port: int) -> None:
        """
        Connect to the server at host:port (IPv4).

        Raises:
            AlreadyConnectedError: a connection is already open
            AddressResolutionError: host could not be resolved
            ConnectFailedError: no resolved address accepted the connection
        """
        if self._sock is not None:
            raise AlreadyConnectedError()

        try:
            infos = socket.getaddrinfo(host, port, socket.AF_INET, socket.SOCK_STREAM)
        except (socket.gaierror, UnicodeError) as exc:
            raise AddressResolutionError(f"cannot resolve {host}") from exc

        last_error = None
        for family, socktype, proto, _, sockaddr in infos:
            sock = socket.socket(family, socktype, proto)
            try:
                sock.connect(sockaddr)
            except OSError as exc:
                sock.close()
                last_error = exc
                continue

            self._sock = sock
            self._stream = sock.makefile("rb")
            self._reader = FrameReader(self._stream, max_line_length=self.max_line_length)
            self.peer = (host, port)
            logger.debug(f"Connected to {host}:{port} via {sockaddr}")
            return

        raise ConnectFailedError() from last_error

    def close(self) -> None:
        """Close the connection; does nothing when not connected."""
        if self._sock is None:
            return
        try:
            try:
                self._stream.close()
            finally:
                self._sock.close()
        finally:
            logger.debug(f"Disconnected from {self.peer[0]}:{self.peer[1]}")
            self._sock = None
            self._stream = None
            self._reader = None
            self.peer = None

    def request(self, header: bytes, value: bytes = b"") -> Response:
        """
        Send one request and read its response.

        Args:
            header: Encoded control line, newline included
            value: Raw value bytes to send after the control line

        Returns:
            The decoded Response

        Raises:
            NotConnectedError: no connection is open
            ServerClosedError: an I/O error, EOF or truncated value; the
                connection is closed before this is raised
            ProtocolError: the server sent a line that is not a response
        """
        if self._sock is None:
            raise NotConnectedError()

        try:
            write_all(self._sock, header, value)
            logger.debug(f"Sent {header!r} + {len(value)} value bytes")

            line = self._reader.read_line()
            if line is None:
                raise ServerClosedError()
            text = line.decode("ascii", "replace")
            logger.debug(f"Received {text!r}")

            status, size, message = self.parser.parse_response_header(text)
            if status == ResponseStatus.ERROR:
                return Response.error(message)
            if size is None:
                return Response.ok()
            return Response.value_response(self._reader.read_exact(size))

        except FramingError:
            self.close()
            raise ServerClosedError("truncated value from server") from None
        except ServerClosedError:
            self.close()
            raise
        except OSError as exc:
            self.close()
            raise ServerClosedError() from exc

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
