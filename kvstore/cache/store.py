"""
Key-Value Store Module

This module implements the in-memory key-value storage shared by every
request the server handles.
"""

import threading
from typing import Dict, Tuple, Any


class KVStore:
    """
    Thread-safe in-memory key-value store.

    All operations run under one exclusive lock for their full duration, so
    the "check existence, then mutate" steps of set() and delete() are
    atomic and the history of operations is the order in which they acquire
    the lock. There is no reader/writer split: every operation is an O(1)
    dict access and no I/O happens while the lock is held.

    Absence is reported through return values (found/created flags), never
    through exceptions.
    """

    def __init__(self):
        """Initialize an empty store."""
        self._store: Dict[str, str] = {}
        self._lock = threading.Lock()

    def set(self, key: str, value: str) -> bool:
        """
        Insert or overwrite a key-value pair.

        Args:
            key: The key to store (any string, including empty)
            value: The value to associate with the key (any string)

        Returns:
            True if the key was newly created, False if an existing
            value was overwritten
        """
        with self._lock:
            created = key not in self._store
            self._store[key] = value
            return created

    def get(self, key: str) -> Tuple[str, bool]:
        """
        Retrieve the value for a given key.

        Returns:
            (value, True) if the key is present, ("", False) otherwise
        """
        with self._lock:
            if key in self._store:
                return self._store[key], True
            return "", False

    def delete(self, key: str) -> bool:
        """
        Delete a key-value pair.

        Returns:
            True if the key existed and was removed, False otherwise
        """
        with self._lock:
            if key not in self._store:
                return False
            del self._store[key]
            return True

    def size(self) -> int:
        """Get the current number of keys in the store."""
        with self._lock:
            return len(self._store)

    def clear(self) -> None:
        """Remove all keys from the store."""
        with self._lock:
            self._store.clear()

    def get_stats(self) -> Dict[str, Any]:
        """
        Get statistics about the store.

        Returns:
            Dictionary containing:
            - total_keys: Total keys in store
            - total_value_bytes: Sum of UTF-8 encoded value sizes
        """
        with self._lock:
            return {
                "total_keys": len(self._store),
                "total_value_bytes": sum(len(v.encode("utf-8", "surrogateescape")) for v in self._store.values()),
            }
