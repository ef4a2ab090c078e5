"""
Tests for the Store Engine

These tests verify the KVStore operations:
- create(): Insert a new entry, refusing existing keys
- read(): Return a read-only view of a value
- update(): Replace an existing value (allocate, swap, release)
- delete(): Remove an entry

Run with: python -m pytest tests/test_store.py -v
"""

import pytest

from kvwire.exceptions import KeyExistsError, KeyNotFoundError, OutOfMemoryError
from kvwire.store.engine import KVStore


class TestKVStoreCreate:
    """Test create() method."""

    def test_create_new_key(self, store: KVStore):
        """Test inserting a new entry."""
        store.create(1, b"value1")
        assert len(store) == 1
        assert bytes(store.read(1)) == b"value1"

    def test_create_existing_key_fails(self, store: KVStore):
        """Test a second create on the same key is refused and keeps the old value."""
        store.create(1, b"first")

        with pytest.raises(KeyExistsError) as exc_info:
            store.create(1, b"second")

        assert str(exc_info.value) == "key exists"
        assert bytes(store.read(1)) == b"first"
        assert len(store) == 1

    def test_create_empty_value(self, store: KVStore):
        """Test an empty value is a valid entry."""
        store.create(7, b"")
        assert store.exists(7)
        assert bytes(store.read(7)) == b""

    def test_create_copies_value(self, store: KVStore):
        """Test the store owns a copy, not the caller's buffer."""
        buf = bytearray(b"hello")
        store.create(1, buf)
        buf[0:5] = b"XXXXX"
        assert bytes(store.read(1)) == b"hello"

    def test_create_binary_value(self, store: KVStore):
        """Test values are opaque bytes."""
        value = bytes(range(256))
        store.create(3, value)
        assert bytes(store.read(3)) == value

    def test_create_key_range(self, store: KVStore):
        """Test the signed 32-bit key bounds."""
        store.create(-(2 ** 31), b"min")
        store.create(2 ** 31 - 1, b"max")
        assert bytes(store.read(-(2 ** 31))) == b"min"
        assert bytes(store.read(2 ** 31 - 1)) == b"max"

        with pytest.raises(ValueError):
            store.create(2 ** 31, b"too big")

    @pytest.mark.parametrize("key", [2 ** 31, -(2 ** 31) - 1])
    def test_out_of_range_key_rejected_everywhere(self, store: KVStore, key):
        """Test every operation refuses keys outside the signed 32-bit range."""
        with pytest.raises(ValueError):
            store.read(key)
        with pytest.raises(ValueError):
            store.update(key, b"v")
        with pytest.raises(ValueError):
            store.delete(key)

    def test_create_over_budget(self, small_store: KVStore):
        """Test a value exceeding the byte budget is refused without side effects."""
        small_store.create(1, b"x" * 10)

        with pytest.raises(OutOfMemoryError):
            small_store.create(2, b"y" * 7)

        assert not small_store.exists(2)
        assert small_store.total_bytes == 10


class TestKVStoreRead:
    """Test read() method."""

    def test_read_missing_key(self, store: KVStore):
        """Test reading an absent key raises KeyNotFoundError."""
        with pytest.raises(KeyNotFoundError) as exc_info:
            store.read(42)
        assert str(exc_info.value) == "no such key"

    def test_read_returns_readonly_view(self, store: KVStore):
        """Test read returns a memoryview that cannot modify the store."""
        store.create(1, b"abc")
        view = store.read(1)

        assert isinstance(view, memoryview)
        assert view.readonly
        assert len(view) == 3


class TestKVStoreUpdate:
    """Test update() method."""

    def test_update_existing_key(self, store: KVStore):
        """Test the new value replaces the old one."""
        store.create(1, b"hello")
        store.update(1, b"bye")

        assert bytes(store.read(1)) == b"bye"
        assert len(store) == 1
        assert store.total_bytes == 3

    def test_update_missing_key(self, store: KVStore):
        """Test updating an absent key raises KeyNotFoundError."""
        with pytest.raises(KeyNotFoundError):
            store.update(1, b"value")
        assert not store.exists(1)

    def test_update_over_budget_keeps_old_value(self, small_store: KVStore):
        """Test a failed update leaves the previous value in place."""
        small_store.create(1, b"old")

        with pytest.raises(OutOfMemoryError):
            small_store.update(1, b"z" * 17)

        assert bytes(small_store.read(1)) == b"old"
        assert small_store.total_bytes == 3

    def test_update_releases_old_bytes_from_budget(self, small_store: KVStore):
        """Test the old value's bytes count as released when the new one fits."""
        small_store.create(1, b"a" * 10)
        small_store.update(1, b"b" * 16)
        assert small_store.total_bytes == 16

    def test_view_taken_before_update_is_unchanged(self, store: KVStore):
        """Test a view held across an update keeps showing the value it was taken from."""
        store.create(1, b"before")
        view = store.read(1)
        store.update(1, b"after")

        assert bytes(view) == b"before"
        assert bytes(store.read(1)) == b"after"


class TestKVStoreDelete:
    """Test delete() method."""

    def test_delete_existing_key(self, store: KVStore):
        """Test deleting an entry makes it unreadable."""
        store.create(1, b"value1")
        store.delete(1)

        assert not store.exists(1)
        with pytest.raises(KeyNotFoundError):
            store.read(1)

    def test_delete_missing_key(self, store: KVStore):
        """Test deleting an absent key raises KeyNotFoundError."""
        with pytest.raises(KeyNotFoundError):
            store.delete(1)

    def test_delete_then_create(self, store: KVStore):
        """Test a deleted key can be created again."""
        store.create(1, b"one")
        store.delete(1)
        store.create(1, b"uno")
        assert bytes(store.read(1)) == b"uno"

    def test_delete_releases_budget(self, small_store: KVStore):
        """Test deleting an entry frees its bytes."""
        small_store.create(1, b"x" * 16)
        small_store.delete(1)
        small_store.create(2, b"y" * 16)
        assert small_store.total_bytes == 16


class TestKVStoreStats:
    """Test size and membership helpers."""

    def test_len_and_contains(self, store: KVStore):
        store.create(1, b"a")
        store.create(2, b"b")
        assert len(store) == 2
        assert 1 in store
        assert 3 not in store

