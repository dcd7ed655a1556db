"""Cache module for KV-Store."""

from .store import KVStore

__all__ = ["KVStore"]
