"""Network module for KV-Wire."""

from .tcp_server import KVServer

__all__ = ["KVServer"]
