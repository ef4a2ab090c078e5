"""
TCP Server Module

This module implements the session handler for KV-Wire.

The server is deliberately sequential: it accepts one connection, serves
it to completion (clean close, framing error or I/O failure) and only
then accepts the next. Pending connections wait in the listen backlog.
All I/O is blocking and there are no timeouts.
"""

import logging
import socket
from typing import Optional, Tuple

from ..config.settings import settings
from ..exceptions import FramingError, StoreError
from ..protocol.commands import Command, CommandType, Response
from ..protocol.framing import FrameReader, write_all
from ..protocol.parser import ProtocolParser
from ..store.engine import KVStore

logger = logging.getLogger(__name__)


class KVServer:
    """
    Blocking TCP server for the KV-Wire store.

    Sessions are served one at a time. The store is owned by the server
    and outlives every session; it is only touched by the active session,
    so it needs no locking.

    Usage:
        server = KVServer(host='0.0.0.0', port=5000)
        server.bind()
        server.serve_forever()  # Runs until stop()

    Attributes:
        host: Server bind address (IPv4 literal)
        port: Server port number (0 picks a free port)
        store: The KVStore instance shared by all sessions
        parser: The ProtocolParser for parsing commands
    """

    def __init__(
            self,
            host: str,
            port: int,
            store: KVStore = None,
            backlog: int = None,
            max_line_length: int = None,
            max_value_size: int = None,
    ):
        """
        Initialize the server.

        Args:
            host: Bind address
            port: Port number
            store: KVStore instance (creates new one if not provided)
            backlog: Listen backlog (default from settings)
            max_line_length: Control-line capacity (default from settings)
            max_value_size: Largest accepted value (default from settings)
        """
        self.host = host
        self.port = port
        self.store = store if store is not None else KVStore()
        self.parser = ProtocolParser()
        self.backlog = backlog if backlog is not None else settings.BACKLOG
        self.max_line_length = (
            max_line_length if max_line_length is not None else settings.MAX_LINE_LENGTH
        )
        self.max_value_size = (
            max_value_size if max_value_size is not None else settings.MAX_VALUE_SIZE
        )

        # Server state
        self._sock: Optional[socket.socket] = None
        self._running = False
        self._connection_count = 0
        self._total_requests = 0

    @property
    def address(self) -> Tuple[str, int]:
        """The bound (host, port); only meaningful after bind()."""
        if self._sock is None:
            return self.host, self.port
        return self._sock.getsockname()[:2]

    def bind(self) -> None:
        """
        Create the listening socket.

        Raises:
            OSError: socket creation, bind or listen failed
        """
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((self.host, self.port))
            sock.listen(self.backlog)
        except OSError:
            sock.close()
            raise
        self._sock = sock
        host, port = self.address
        logger.info(f"KV server listening on {host}:{port}")

    def serve_forever(self) -> None:
        """
        Accept and serve connections one at a time until stop() is called.

        Binds first if bind() has not been called.
        """
        if self._sock is None:
            self.bind()

        sock = self._sock
        self._running = True
        try:
            while self._running:
                try:
                    conn, addr = sock.accept()
                except OSError as exc:
                    if not self._running or self._sock is not sock:
                        break
                    logger.error(f"accept failed: {exc}")
                    continue

                # Handle one client to completion before the next accept
                self.handle_client(conn, addr)
        finally:
            self._running = False

    def stop(self) -> None:
        """Close the listening socket, ending serve_forever()."""
        self._running = False
        if self._sock is None:
            return
        try:
            # Wakes a thread blocked in accept()
            self._sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        self._sock.close()
        self._sock = None

    def handle_client(self, conn: socket.socket, addr) -> None:
        """
        Serve a single connection until it ends.

        Protocol flow:
            1. Read a control line (EOF before any byte ends the session)
            2. Parse it; read or skip the declared value bytes
            3. Execute the command on the KVStore
            4. Send exactly one response
            5. Repeat

        A premature EOF inside a value and any socket error are fatal to
        the session; store and grammar errors are answered with ERR and
        the loop continues. The connection is closed on every path.
        """
        peer = f"{addr[0]}:{addr[1]}"
        self._connection_count += 1
        served_before = self._total_requests
        logger.info(f"Client connected from {peer}")

        try:
            with conn.makefile("rb") as stream:
                reader = FrameReader(stream, max_line_length=self.max_line_length)
                while True:
                    line = reader.read_line()
                    if line is None:
                        break

                    response = self._handle_request(line, reader)
                    self._total_requests += 1
                    write_all(conn, self.parser.format_response(response))

        except FramingError as exc:
            logger.warning(f"Client {peer}: {exc}; closing session")
            self._send_error(conn, Response.from_exception(exc))
        except OSError as exc:
            logger.warning(f"I/O error with client {peer}: {exc}")
        except Exception as exc:  # Log unexpected errors but keep server alive
            logger.exception(f"Error handling client {peer}: {exc}")
        finally:
            conn.close()
            served = self._total_requests - served_before
            logger.info(f"Client disconnected: {peer} ({served} requests)")

    def _send_error(self, conn: socket.socket, response: Response) -> None:
        """Best-effort ERR line on a session that is about to close."""
        try:
            write_all(conn, self.parser.format_response(response))
        except OSError as exc:
            logger.debug(f"Could not deliver final error: {exc}")

    def _handle_request(self, line: bytes, reader: FrameReader) -> Response:
        """
        Decode one request (control line plus value bytes) and execute it.

        Raises:
            FramingError: the value bytes were cut short
        """
        try:
            text = line.decode("ascii")
        except UnicodeDecodeError:
            return Response.error("invalid encoding")

        command = self.parser.parse_request(text)

        if not command.is_valid:
            # Keep the stream framed when the size field is known
            if command.has_value:
                reader.discard_exact(command.size)
            return Response.error(command.error)

        if command.size > self.max_value_size:
            reader.discard_exact(command.size)
            return Response.error("value too large")

        value = reader.read_exact(command.size) if command.has_value else b""
        logger.debug(f"{command.type.name} {command.key} ({len(value)} bytes)")
        return self._execute_command(command, value)

    def _execute_command(self, command: Command, value: bytes = b"") -> Response:
        """
        Execute a parsed command on the store.

        Args:
            command: The Command object to execute
            value: Value bytes for CREATE/UPDATE

        Returns:
            Response object with the result
        """
        try:
            if command.type == CommandType.CREATE:
                self.store.create(command.key, value)
                return Response.ok()

            if command.type == CommandType.READ:
                return Response.value_response(self.store.read(command.key))

            if command.type == CommandType.UPDATE:
                self.store.update(command.key, value)
                return Response.ok()

            if command.type == CommandType.DELETE:
                self.store.delete(command.key)
                return Response.ok()

        except StoreError as exc:
            return Response.from_exception(exc)

        return Response.error("unknown command")

    def is_running(self) -> bool:
        """Check if the server is currently accepting connections."""
        return self._running

    def get_stats(self) -> dict:
        """
        Get server statistics.

        Returns:
            Dictionary with server stats including connection counts,
            request counts, and store occupancy.
        """
        host, port = self.address
        return {
            "running": self._running,
            "host": host,
            "port": port,
            "total_connections": self._connection_count,
            "total_requests": self._total_requests,
            "total_keys": len(self.store),
            "total_bytes": self.store.total_bytes,
        }
