"""Durable key-value storage.

- KeyValueStore: async interface consumed by the core components
- SqliteKeyValueStore: SQLite-backed implementation surviving restarts
- MemoryKeyValueStore: in-process implementation
"""

from chatcore.storage.base import KeyValueStore
from chatcore.storage.keys import (
    HISTORY_ID_KEY,
    SESSION_KEYS,
    USER_ID_KEY,
    USER_TOKEN_KEY,
    USERNAME_KEY,
)
from chatcore.storage.memory_store import MemoryKeyValueStore
from chatcore.storage.sqlite_store import SqliteKeyValueStore

__all__ = [
    "KeyValueStore",
    "MemoryKeyValueStore",
    "SqliteKeyValueStore",
    "USER_TOKEN_KEY",
    "USER_ID_KEY",
    "USERNAME_KEY",
    "HISTORY_ID_KEY",
    "SESSION_KEYS",
]
