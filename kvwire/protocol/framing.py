"""
Framing Helpers

A protocol message is a newline-terminated control line optionally
followed by exactly N raw value bytes, where N is carried in the control
line. This module reads those two shapes off a blocking binary stream
(``socket.makefile("rb")`` in production, ``io.BytesIO`` in tests).

Line-length policy:
    A control line longer than ``max_line_length`` bytes is truncated to
    its first ``max_line_length`` bytes. The remainder of that line, up to
    and including its newline, is read and discarded so the next read
    starts on a line boundary.
"""

import logging
import socket
from typing import BinaryIO, Optional

from ..config.settings import settings
from ..exceptions import FramingError

logger = logging.getLogger(__name__)


class FrameReader:
    """
    Reads control lines and exact-size values from a binary stream.

    Attributes:
        max_line_length: Line capacity in bytes, excluding the newline
        truncated_lines: Number of lines truncated so far
    """

    def __init__(self, stream: BinaryIO, max_line_length: int = None, chunk_size: int = None):
        self._stream = stream
        self.max_line_length = (
            max_line_length if max_line_length is not None else settings.MAX_LINE_LENGTH
        )
        self.chunk_size = chunk_size if chunk_size is not None else settings.RECV_CHUNK_SIZE
        self.truncated_lines = 0

    def read_line(self) -> Optional[bytes]:
        """
        Read one control line.

        Returns:
            The line without its ``\\n`` and without one trailing ``\\r``.
            None on EOF before any byte of the line. A partial line cut
            short by EOF is returned as is.
        """
        data = self._stream.readline(self.max_line_length + 1)
        if not data:
            return None

        if data.endswith(b"\n"):
            line = data[:-1]
        elif len(data) > self.max_line_length:
            line = data[:self.max_line_length]
            self._discard_rest_of_line()
            self.truncated_lines += 1
            logger.warning(f"Control line exceeded {self.max_line_length} bytes; truncated")
        else:
            line = data

        if line.endswith(b"\r"):
            line = line[:-1]
        return line

    def _discard_rest_of_line(self) -> None:
        while True:
            chunk = self._stream.readline(self.chunk_size)
            if not chunk or chunk.endswith(b"\n"):
                return

    def read_exact(self, n: int) -> bytes:
        """
        Read exactly ``n`` raw bytes.

        Raises:
            FramingError: the stream ended before ``n`` bytes arrived
        """
        buf = bytearray()
        while len(buf) < n:
            chunk = self._stream.read(min(n - len(buf), self.chunk_size))
            if not chunk:
                raise FramingError()
            buf.extend(chunk)
        return bytes(buf)

    def discard_exact(self, n: int) -> None:
        """
        Read and drop exactly ``n`` raw bytes without buffering them.

        Raises:
            FramingError: the stream ended before ``n`` bytes arrived
        """
        left = n
        while left > 0:
            chunk = self._stream.read(min(left, self.chunk_size))
            if not chunk:
                raise FramingError()
            left -= len(chunk)


def write_all(sock: socket.socket, *parts: bytes) -> None:
    """Send every part in order; raises OSError on a failed or partial write."""
    sock.sendall(b"".join(parts))
