"""
Key-Value Store Engine

This module implements the in-memory store behind the server: a mapping
from signed 32-bit integer keys to owned byte values, with create / read /
update / delete semantics and a byte budget that stands in for allocation
failure.
"""

from typing import Dict

from ..config.settings import settings
from ..exceptions import KeyExistsError, KeyNotFoundError, OutOfMemoryError


class KVStore:
    """
    In-memory key-value store with strict create/update semantics.

    Unlike a cache, the store never evicts: ``create`` refuses keys that
    already exist and ``update``/``read``/``delete`` refuse keys that do
    not. Access is strictly sequential (one session at a time), so no
    locking is done here.

    Internal Storage:
        Plain dict, key -> bytes. Values are immutable copies owned by
        the store; their lifetime is exactly the entry's lifetime.

    Attributes:
        max_bytes: Upper bound on the sum of all stored value lengths
    """

    def __init__(self, max_bytes: int = None):
        """
        Initialize an empty store.

        Args:
            max_bytes: Memory budget in bytes (default from settings.MAX_STORE_BYTES)
        """
        self.max_bytes = max_bytes if max_bytes is not None else settings.MAX_STORE_BYTES
        self._store: Dict[int, bytes] = {}
        self._total_bytes = 0

    @staticmethod
    def _check_key(key: int) -> None:
        if not settings.KEY_MIN <= key <= settings.KEY_MAX:
            raise ValueError(f"key out of 32-bit range: {key}")

    def _copy(self, value, released: int = 0) -> bytes:
        """Take an owned copy of ``value`` if it fits the budget."""
        if self._total_bytes - released + len(value) > self.max_bytes:
            raise OutOfMemoryError()
        try:
            return bytes(value)
        except MemoryError:
            raise OutOfMemoryError() from None

    def create(self, key: int, value: bytes) -> None:
        """
        Insert a new entry.

        Args:
            key: 32-bit signed integer key
            value: Value bytes (any bytes-like object, may be empty)

        Raises:
            KeyExistsError: if the key is already present
            OutOfMemoryError: if the value does not fit the byte budget
        """
        self._check_key(key)
        if key in self._store:
            raise KeyExistsError()

        owned = self._copy(value)
        self._store[key] = owned
        self._total_bytes += len(owned)

    def read(self, key: int) -> memoryview:
        """
        Return a read-only view of the stored value.

        The view is not a copy; it stays valid as long as the caller holds
        it, but reflects the value as it was when read.

        Raises:
            KeyNotFoundError: if the key is absent
        """
        self._check_key(key)
        try:
            return memoryview(self._store[key])
        except KeyError:
            raise KeyNotFoundError() from None

    def update(self, key: int, value: bytes) -> None:
        """
        Replace the value of an existing entry.

        The replacement is copied and checked against the budget before
        the entry is touched, so a failed update leaves the old value in
        place. The old value is released only after the swap.

        Raises:
            KeyNotFoundError: if the key is absent
            OutOfMemoryError: if the new value does not fit the byte budget
        """
        self._check_key(key)
        if key not in self._store:
            raise KeyNotFoundError()

        old = self._store[key]
        owned = self._copy(value, released=len(old))
        self._store[key] = owned
        self._total_bytes += len(owned) - len(old)
        del old

    def delete(self, key: int) -> None:
        """
        Remove an entry and release its value.

        Raises:
            KeyNotFoundError: if the key is absent
        """
        self._check_key(key)
        try:
            old = self._store.pop(key)
        except KeyError:
            raise KeyNotFoundError() from None
        self._total_bytes -= len(old)

    def exists(self, key: int) -> bool:
        """Check if a key is present."""
        return key in self._store

    def __contains__(self, key: int) -> bool:
        return self.exists(key)

    def __len__(self) -> int:
        return len(self._store)

    @property
    def total_bytes(self) -> int:
        """Sum of the lengths of all stored values."""
        return self._total_bytes


