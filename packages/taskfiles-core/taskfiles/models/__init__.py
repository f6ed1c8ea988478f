"""
Core data models for Taskfiles.
"""

from taskfiles.models.draft import Draft, stable_draft_key
from taskfiles.models.history import Commit, HistoryPreview, Snapshot
from taskfiles.models.task import FilenameDialect, TaskFilename, TaskRecord

__all__ = [
    "TaskRecord",
    "TaskFilename",
    "FilenameDialect",
    "Draft",
    "stable_draft_key",
    "Commit",
    "Snapshot",
    "HistoryPreview",
]
