"""
Pytest Configuration and Fixtures

This module provides shared fixtures and configuration for all tests.
"""

import socket
import threading
import time
from typing import Generator

import pytest

from kvwire.network.tcp_server import KVServer
from kvwire.protocol.parser import ProtocolParser
from kvwire.store.engine import KVStore


# ============================================================================
# KVStore Fixtures
# ============================================================================

@pytest.fixture
def store() -> KVStore:
    """Create a fresh KVStore instance with the default budget."""
    return KVStore()


@pytest.fixture
def small_store() -> KVStore:
    """Create a KVStore with a 16-byte budget for out-of-memory testing."""
    return KVStore(max_bytes=16)


# ============================================================================
# Protocol Fixtures
# ============================================================================

@pytest.fixture
def parser() -> ProtocolParser:
    """Create a ProtocolParser instance."""
    return ProtocolParser()


# ============================================================================
# Server Fixtures
# ============================================================================

def start_server(srv: KVServer) -> threading.Thread:
    """Bind ``srv`` and run its accept loop in a daemon thread."""
    srv.bind()
    thread = threading.Thread(target=srv.serve_forever, daemon=True)
    thread.start()

    # Wait for the accept loop to be live
    deadline = time.monotonic() + 2
    while not srv.is_running() and time.monotonic() < deadline:
        time.sleep(0.01)
    return thread


@pytest.fixture
def server() -> Generator[KVServer, None, None]:
    """
    Create and start a server instance for testing.

    This fixture:
    1. Creates a KVServer on 127.0.0.1 with an ephemeral port
    2. Runs its accept loop in a background thread
    3. Yields the server for testing
    4. Stops it after the test
    """
    srv = KVServer(host='127.0.0.1', port=0, max_line_length=64, max_value_size=1024)
    thread = start_server(srv)

    yield srv

    srv.stop()
    thread.join(timeout=2)


@pytest.fixture
def server_port(server: KVServer) -> int:
    """The port the test server is listening on."""
    return server.address[1]


# ============================================================================
# Client Fixtures
# ============================================================================

class LineClient:
    """
    Helper class for speaking the raw wire protocol in tests.

    Usage:
        with LineClient('127.0.0.1', port) as client:
            assert client.request(b"CREATE 1 5\\nhello") == b"OK\\n"
    """

    def __init__(self, host: str, port: int, timeout: float = 5.0):
        self.sock = socket.create_connection((host, port), timeout=timeout)
        self.stream = self.sock.makefile("rb")

    def send(self, data: bytes) -> None:
        self.sock.sendall(data)

    def read_response(self) -> bytes:
        """Read one response: the control line plus any value bytes."""
        line = self.stream.readline()
        if line.startswith(b"OK "):
            return line + self.stream.read(int(line[3:]))
        return line

    def request(self, data: bytes) -> bytes:
        """Send raw request bytes and return the raw response."""
        self.send(data)
        return self.read_response()

    def close(self) -> None:
        self.stream.close()
        self.sock.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


@pytest.fixture
def client_factory(server_port: int):
    """
    Factory fixture to create raw protocol clients.

    Clients left open by a test are closed before the server stops.

    Usage:
        def test_something(client_factory):
            client = client_factory()
            assert client.request(b"READ 1\\n") == b"ERR no such key\\n"
    """
    clients = []

    def factory() -> LineClient:
        client = LineClient('127.0.0.1', server_port)
        clients.append(client)
        return client

    yield factory

    for client in clients:
        client.close()


# ============================================================================
# Pytest Configuration
# ============================================================================

def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
