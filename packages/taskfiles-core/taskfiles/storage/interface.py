"""
Abstract local key-value store interface.

Local state (the unsaved draft) must survive a restart, so it goes through a
small string-keyed store rather than process memory.
"""

from abc import ABC, abstractmethod
from typing import Optional


class KeyValueStore(ABC):
    """
    Abstract base class for local key-value stores.

    Keys and values are strings; callers serialize their own data.
    """

    @abstractmethod
    async def connect(self) -> None:
        """Open the underlying storage."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close the underlying storage."""
        pass

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Value for ``key``, or None if absent."""
        pass

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""
        pass

    @abstractmethod
    async def remove(self, key: str) -> None:
        """Delete ``key``; a missing key is not an error."""
        pass
