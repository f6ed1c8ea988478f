"""
Metadata header parsing for task files.

Task files may start with a YAML header:

    ---
    tags: [work]
    ---
    # Body

Parsing fails open: a header that is unterminated or not valid YAML is
treated as part of the body, never as an error.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import date as date_type
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import yaml

from taskfiles.filenames import basename, classify_filename, coerce_priority
from taskfiles.models.task import DEFAULT_PRIORITY, TaskRecord

logger = logging.getLogger(__name__)

_HEADER_PATTERN = re.compile(r"\A---[ \t]*\r?\n(.*?)^---[ \t]*(?:\r?\n|\Z)", re.S | re.M)


@dataclass
class ParsedContent:
    """
    A task file split into header and body.

    Attributes:
        frontmatter: Parsed header mapping ({} when absent or malformed)
        body: Text to display, with the header removed
        has_header: Whether a well-formed header was found
        duplicate_header: Whether a second, consecutive header was found and
                          removed from ``body`` as well
    """

    frontmatter: Dict[str, Any] = field(default_factory=dict)
    body: str = ""
    has_header: bool = False
    duplicate_header: bool = False


def _match_header(content: str) -> Optional[tuple]:
    """Return (mapping, rest) for a well-formed leading header, else None."""
    match = _HEADER_PATTERN.match(content)
    if not match:
        return None

    try:
        data = yaml.safe_load(match.group(1))
    except yaml.YAMLError as e:
        logger.warning(f"Could not parse metadata header: {e}")
        return None

    if data is None:
        data = {}
    if not isinstance(data, dict):
        logger.warning(f"Metadata header is not a mapping: {type(data).__name__}")
        return None

    return data, content[match.end():]


def split_frontmatter(content: Optional[str]) -> ParsedContent:
    """
    Split raw file content into metadata header and body.

    Only the first header supplies metadata. If the body itself starts with
    another header (a duplicated block left by an older bug), that block is
    dropped from the display body too. The caller keeps the raw content for
    anything that writes it back.
    """
    content = content or ""

    first = _match_header(content)
    if first is None:
        return ParsedContent(frontmatter={}, body=content, has_header=False)

    frontmatter, body = first
    duplicate = _match_header(body)
    if duplicate is not None:
        logger.debug("Dropping duplicated metadata header from display body")
        body = duplicate[1]

    return ParsedContent(
        frontmatter=frontmatter,
        body=body,
        has_header=True,
        duplicate_header=duplicate is not None,
    )


def stringify_frontmatter(frontmatter: Optional[Dict[str, Any]], body: str) -> str:
    """Serialize a header and body back into file content."""
    data = dict(frontmatter or {})
    if not data:
        data = {"tags": []}

    header = yaml.safe_dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True)
    return f"---\n{header}---\n{body}"


def extract_tags(frontmatter: Dict[str, Any]) -> List[str]:
    """Tags from a header; anything but a list yields no tags."""
    tags = frontmatter.get("tags")
    if not isinstance(tags, list):
        return []
    return [str(tag) for tag in tags if tag is not None]


def midnight_utc(day: Optional[str]) -> Optional[datetime]:
    """YYYY-MM-DD to midnight UTC, or None if it is not a real date."""
    if not day:
        return None
    try:
        return datetime.strptime(day, "%Y-%m-%d").replace(tzinfo=timezone.utc)
    except ValueError:
        logger.warning(f"Invalid calendar date in filename: {day}")
        return None


def _parse_instant(value: Any) -> Optional[datetime]:
    # PyYAML turns unquoted timestamps into datetime/date objects
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, date_type):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return None


def _header_priority(frontmatter: Dict[str, Any]) -> tuple:
    if "priority" not in frontmatter:
        return DEFAULT_PRIORITY, False
    return coerce_priority(frontmatter["priority"])


def parse_task_content(
    content: str,
    path: str,
    is_archived: bool = False,
    sha: Optional[str] = None,
) -> TaskRecord:
    """
    Build a TaskRecord from file content and its path.

    Current-dialect names supply title, date and priority. Legacy names supply
    the date; priority comes from the header, and so does the title when the
    header has one. Anything else falls back to the header and then to the
    bare filename.

    Args:
        content: Raw file content
        path: Repository path of the file
        is_archived: Whether the file lives in the archive folder
        sha: Content identity from the provider

    Returns:
        TaskRecord
    """
    parsed = split_frontmatter(content)
    frontmatter = parsed.frontmatter
    name = classify_filename(path)

    if name.is_current:
        title = name.display_title
        priority, coerced = name.priority, False
        created_at = midnight_utc(name.date)
    elif name.is_legacy:
        title = str(frontmatter.get("title") or name.display_title)
        priority, coerced = _header_priority(frontmatter)
        created_at = midnight_utc(name.date) or _parse_instant(frontmatter.get("createdAt"))
    else:
        fallback = basename(path)
        if fallback.endswith(".md"):
            fallback = fallback[:-3]
        title = str(frontmatter.get("title") or fallback)
        priority, coerced = _header_priority(frontmatter)
        created_at = _parse_instant(frontmatter.get("createdAt"))

    return TaskRecord(
        title=title,
        path=path,
        sha=sha,
        content=parsed.body,
        priority=priority,
        priority_coerced=coerced,
        created_at=created_at,
        is_archived=is_archived,
        tags=extract_tags(frontmatter),
        frontmatter=frontmatter,
        dialect=name.dialect,
    )
