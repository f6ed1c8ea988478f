"""
Taskfiles Core Library

Tasks stored as Markdown files in a Git repository, with metadata encoded in
the filename, local draft autosave and cached version history.
"""

__version__ = "0.1.0"

from taskfiles.config import TaskfilesConfig, load_config
from taskfiles.providers import GitProvider, get_provider
from taskfiles.storage import KeyValueStore, get_store

__all__ = [
    "load_config",
    "TaskfilesConfig",
    "get_provider",
    "GitProvider",
    "get_store",
    "KeyValueStore",
]
