"""
Local key-value storage (SQLite, in-memory).
"""

from taskfiles.storage.factory import get_store, init_store
from taskfiles.storage.interface import KeyValueStore

__all__ = [
    "KeyValueStore",
    "get_store",
    "init_store",
]
