"""Client module for KV-Wire."""

from .connection import KVConnection
from .session import ClientSession

__all__ = ["KVConnection", "ClientSession"]
