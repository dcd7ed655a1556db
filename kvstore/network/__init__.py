"""Network module for KV-Store."""

from .http_server import KVServer

__all__ = ["KVServer"]
