"""Store module for KV-Wire."""

from .engine import KVStore

__all__ = ["KVStore"]
