"""
Draft model for Taskfiles.

A draft is an unsaved edit kept in local storage so it survives a reload.
"""

from dataclasses import dataclass
from typing import Optional


def stable_draft_key(path: str) -> str:
    """Key that identifies a task across saves (its sha changes, its path does not)."""
    return path.strip().lower()


@dataclass
class Draft:
    """
    An edit in progress.

    Attributes:
        todo_id: Content identity of the task when the draft was taken
        path: Repository path of the task
        edit_content: Raw editor text (header + body)
        view_content: Rendered-view text, including toggled checkboxes
        has_unsaved_changes: Whether the draft differs from the stored file
        timestamp: Last update, epoch milliseconds
        stable_draft_key: Derived from ``path``; filled in when omitted
    """

    todo_id: str
    path: str
    edit_content: str = ""
    view_content: str = ""
    has_unsaved_changes: bool = True
    timestamp: Optional[int] = None
    stable_draft_key: Optional[str] = None

    def __post_init__(self):
        if self.stable_draft_key is None:
            self.stable_draft_key = stable_draft_key(self.path)

    def to_dict(self) -> dict:
        """Convert to the persisted JSON shape."""
        return {
            "todoId": self.todo_id,
            "path": self.path,
            "stableDraftKey": self.stable_draft_key,
            "editContent": self.edit_content,
            "viewContent": self.view_content,
            "hasUnsavedChanges": self.has_unsaved_changes,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Draft":
        """
        Create Draft from its persisted shape.

        Records written before ``stableDraftKey`` existed get it recomputed
        from ``path``.
        """
        path = data.get("path") or ""
        return cls(
            todo_id=data.get("todoId", ""),
            path=path,
            edit_content=data.get("editContent", ""),
            view_content=data.get("viewContent", ""),
            has_unsaved_changes=bool(data.get("hasUnsavedChanges", False)),
            timestamp=data.get("timestamp"),
            stable_draft_key=data.get("stableDraftKey") or stable_draft_key(path),
        )
