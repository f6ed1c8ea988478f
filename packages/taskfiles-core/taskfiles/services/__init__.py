"""
Business logic services for Taskfiles.
"""

from taskfiles.services.collisions import CollisionLimitError, CollisionResolver, resolve_unique_path
from taskfiles.services.drafts import DraftStore
from taskfiles.services.history import HistoryCache, HistoryService
from taskfiles.services.tasks import TaskService

__all__ = [
    "TaskService",
    "DraftStore",
    "HistoryCache",
    "HistoryService",
    "CollisionResolver",
    "CollisionLimitError",
    "resolve_unique_path",
]
