"""
In-memory key-value store. Nothing survives the process.
"""

from typing import Dict, Optional

from taskfiles.storage.interface import KeyValueStore


class MemoryKeyValueStore(KeyValueStore):
    """Dictionary-backed store for tests and ephemeral sessions."""

    def __init__(self):
        self.data: Dict[str, str] = {}

    async def connect(self) -> None:
        pass

    async def close(self) -> None:
        pass

    async def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    async def set(self, key: str, value: str) -> None:
        self.data[key] = value

    async def remove(self, key: str) -> None:
        self.data.pop(key, None)
