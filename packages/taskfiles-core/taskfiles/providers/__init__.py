"""
Git provider abstraction (GitHub, in-memory).
"""

from taskfiles.providers.factory import get_provider, init_provider
from taskfiles.providers.interface import (
    FileContent,
    FileEntry,
    FileMetadata,
    FileNotFoundInRepo,
    GitProvider,
    ProviderError,
    ProviderTimeoutError,
)

__all__ = [
    "GitProvider",
    "get_provider",
    "init_provider",
    "FileContent",
    "FileEntry",
    "FileMetadata",
    "FileNotFoundInRepo",
    "ProviderError",
    "ProviderTimeoutError",
]
