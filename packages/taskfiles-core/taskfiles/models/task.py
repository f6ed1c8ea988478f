"""
Task models for Taskfiles.

A task lives in a single Markdown file. Its priority, creation date and title
are encoded in the filename; everything else sits in the metadata header.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class FilenameDialect(Enum):
    """Filename encoding schemes recognized for task files."""

    CURRENT = "current"  # P{priority}--{date}--{slug}.md
    LEGACY = "legacy"  # {date}-{slug}.md
    UNRECOGNIZED = "unrecognized"


@dataclass
class TaskFilename:
    """
    Metadata decoded from a task filename.

    Attributes:
        priority: Priority 1-5 (always 3 for legacy names, whose priority
                  lives in the metadata header)
        date: Creation date as YYYY-MM-DD
        title: Title as it appears in the filename
        display_title: Title with separators turned back into spaces
        dialect: Which filename scheme produced this value
    """

    priority: int
    date: str
    title: str
    display_title: str
    dialect: FilenameDialect = FilenameDialect.CURRENT

    @property
    def is_current(self) -> bool:
        return self.dialect is FilenameDialect.CURRENT

    @property
    def is_legacy(self) -> bool:
        return self.dialect is FilenameDialect.LEGACY

    @property
    def is_task(self) -> bool:
        return self.dialect is not FilenameDialect.UNRECOGNIZED


@dataclass
class TaskRecord:
    """
    A task as the user edits it.

    Attributes:
        title: Display title
        path: Repository path of the file
        sha: Content identity reported by the provider (changes on every save)
        content: Markdown body without the metadata header
        priority: Priority 1 (highest) to 5 (lowest)
        priority_coerced: True when an invalid priority was replaced by 3
        created_at: Creation date at midnight UTC
        is_archived: Whether the file lives in the archive folder
        tags: Tags from the metadata header
        frontmatter: The full parsed metadata header
        dialect: Filename dialect of ``path``
    """

    title: str
    path: str
    sha: Optional[str] = None
    content: str = ""
    priority: int = 3
    priority_coerced: bool = False
    created_at: Optional[datetime] = None
    is_archived: bool = False
    tags: List[str] = field(default_factory=list)
    frontmatter: Dict[str, Any] = field(default_factory=dict)
    dialect: FilenameDialect = FilenameDialect.CURRENT

    @property
    def id(self) -> Optional[str]:
        """Content identity used by editors to track the selected task."""
        return self.sha

    @property
    def filename(self) -> str:
        return self.path.rsplit("/", 1)[-1]

    @property
    def folder(self) -> str:
        """Directory holding the file, without a trailing slash."""
        if "/" not in self.path:
            return ""
        return self.path.rsplit("/", 1)[0]

    @property
    def date(self) -> Optional[str]:
        """Creation date as YYYY-MM-DD."""
        return self.created_at.strftime("%Y-%m-%d") if self.created_at else None

    @property
    def is_legacy(self) -> bool:
        return self.dialect is FilenameDialect.LEGACY

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "title": self.title,
            "path": self.path,
            "sha": self.sha,
            "content": self.content,
            "priority": self.priority,
            "priority_coerced": self.priority_coerced,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "is_archived": self.is_archived,
            "tags": self.tags,
            "dialect": self.dialect.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TaskRecord":
        """Create TaskRecord from dictionary."""
        created_at = data.get("created_at")
        if created_at and isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at.replace("Z", "+00:00"))

        return cls(
            title=data.get("title", ""),
            path=data.get("path", ""),
            sha=data.get("sha"),
            content=data.get("content", ""),
            priority=data.get("priority", 3),
            priority_coerced=data.get("priority_coerced", False),
            created_at=created_at,
            is_archived=data.get("is_archived", False),
            tags=data.get("tags", []),
            frontmatter=data.get("frontmatter", {}),
            dialect=FilenameDialect(data.get("dialect", FilenameDialect.CURRENT.value)),
        )


# Priority bounds; 1 is the most urgent
MIN_PRIORITY = 1
MAX_PRIORITY = 5
DEFAULT_PRIORITY = 3

# Header keys written by older clients that now live in the filename
LEGACY_HEADER_KEYS = ("title", "createdAt", "priority", "isArchived", "chatHistory")
