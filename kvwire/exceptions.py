"""
KV-Wire Exceptions

Every error that can be reported to a peer or an operator derives from
KVError. The default message of each class is the text that follows
``ERR`` on the wire, so ``f"ERR {exc}"`` is always a valid response.
"""


class KVError(Exception):
    """Base class for all KV-Wire errors."""

    message = "internal error"

    def __init__(self, message: str = None):
        super().__init__(message if message is not None else self.message)


# ---------------------------------------------------------------------------
# Store errors (recoverable within a session)
# ---------------------------------------------------------------------------

class StoreError(KVError):
    """An operation on the store could not be carried out."""


class KeyExistsError(StoreError):
    message = "key exists"


class KeyNotFoundError(StoreError):
    message = "no such key"


class OutOfMemoryError(StoreError):
    message = "out of memory"


# ---------------------------------------------------------------------------
# Protocol errors
# ---------------------------------------------------------------------------

class ProtocolError(KVError):
    """A control line violates the grammar. The session can continue."""

    message = "malformed command"


class FramingError(ProtocolError):
    """The byte stream ended inside a value; the session cannot continue."""

    message = "premature EOF on value"


# ---------------------------------------------------------------------------
# Client connection errors
# ---------------------------------------------------------------------------

class ClientConnectionError(KVError):
    """Base class for client-side connection state errors."""

    message = "connection error"


class AlreadyConnectedError(ClientConnectionError):
    message = "already connected"


class NotConnectedError(ClientConnectionError):
    message = "not connected"


class AddressResolutionError(ClientConnectionError):
    message = "cannot resolve host"


class ConnectFailedError(ClientConnectionError):
    message = "connect failed"


class ServerClosedError(ClientConnectionError):
    message = "server closed or read error"
