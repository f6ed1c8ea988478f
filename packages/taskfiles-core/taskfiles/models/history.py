"""
Version history models for Taskfiles.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class Commit:
    """A commit that touched a task file."""

    sha: str
    message: str = ""
    author: str = ""
    date: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "sha": self.sha,
            "message": self.message,
            "author": self.author,
            "date": self.date,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Commit":
        return cls(
            sha=data.get("sha") or data.get("id", ""),
            message=data.get("message", ""),
            author=data.get("author", ""),
            date=data.get("date"),
        )


@dataclass
class Snapshot:
    """
    A task file as it existed at one commit.

    ``body`` is what a preview displays (headers stripped). Restoring a
    version must use ``restore_content``, which is the untouched raw text.
    """

    path: str
    commit_sha: str
    raw_content: str
    body: str
    frontmatter: Dict[str, Any] = field(default_factory=dict)
    priority: int = 3
    date: Optional[str] = None
    title: str = ""

    @property
    def restore_content(self) -> str:
        return self.raw_content

    def to_dict(self) -> dict:
        return {
            "path": self.path,
            "commit_sha": self.commit_sha,
            "body": self.body,
            "frontmatter": self.frontmatter,
            "priority": self.priority,
            "date": self.date,
            "title": self.title,
        }


@dataclass
class HistoryPreview:
    """Result of previewing one commit; ``error`` is set instead of raising."""

    commit_sha: str
    snapshot: Optional[Snapshot] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.snapshot is not None

    def to_dict(self) -> dict:
        return {
            "commit_sha": self.commit_sha,
            "snapshot": self.snapshot.to_dict() if self.snapshot else None,
            "error": self.error,
        }
