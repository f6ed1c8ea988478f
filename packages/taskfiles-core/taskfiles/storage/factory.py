"""
Key-value store factory.

Creates the appropriate local store based on configuration.
"""

import logging

from taskfiles.storage.interface import KeyValueStore

logger = logging.getLogger(__name__)

# Global store instance (singleton pattern)
_store: KeyValueStore | None = None


def get_store(config=None) -> KeyValueStore:
    """
    Get or create the local key-value store based on configuration.

    Args:
        config: Optional TaskfilesConfig. If not provided, loads from default location.

    Returns:
        KeyValueStore instance (SQLiteKeyValueStore or MemoryKeyValueStore)

    Raises:
        ValueError: If storage type is unknown
    """
    global _store

    if _store is not None:
        return _store

    if config is None:
        from taskfiles.config import load_config
        config = load_config()

    store_type = config.storage.type.lower()

    if store_type == "sqlite":
        from taskfiles.storage.sqlite import SQLiteKeyValueStore

        path = config.storage.sqlite_path
        _store = SQLiteKeyValueStore(path)
        logger.info(f"Using SQLite store: {path}")

    elif store_type == "memory":
        from taskfiles.storage.memory import MemoryKeyValueStore

        _store = MemoryKeyValueStore()
        logger.info("Using in-memory store")

    else:
        raise ValueError(
            f"Unknown storage type: {store_type}. "
            "Use 'sqlite' or 'memory'."
        )

    return _store


async def init_store(config=None) -> KeyValueStore:
    """Get the store and connect it."""
    store = get_store(config)
    await store.connect()
    return store


async def close_store() -> None:
    """Close the global store."""
    global _store

    if _store is not None:
        await _store.close()
        _store = None


def reset_store() -> None:
    """Reset the global store instance."""
    global _store
    _store = None
