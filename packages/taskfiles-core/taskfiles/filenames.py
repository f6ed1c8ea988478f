"""
Filename codec for Taskfiles.

Task metadata is encoded in the filename itself:

    P{priority}--{YYYY-MM-DD}--{Title_With_Underscores}.md

e.g. ``P1--2025-07-24--Deploy_Web_Application.md``. Files written by older
clients use ``{YYYY-MM-DD}-{slug}.md`` and carry their priority in the
metadata header instead. Saving or archiving keeps such a name and its
header; migration or a title/priority change moves it to the current form.
"""

from __future__ import annotations

import logging
import re
import string
from datetime import date as date_type
from datetime import datetime, timezone
from typing import Any, Optional, Tuple

from taskfiles.models.task import (
    DEFAULT_PRIORITY,
    MAX_PRIORITY,
    MIN_PRIORITY,
    FilenameDialect,
    TaskFilename,
)

logger = logging.getLogger(__name__)

MAX_SLUG_LENGTH = 50
UNTITLED = "untitled"
EXTENSION = ".md"

_CURRENT_PATTERN = re.compile(r"^P([1-5])--(\d{4}-\d{2}-\d{2})--([A-Za-z0-9_-]+)\.md$")
_LEGACY_PATTERN = re.compile(r"^(\d{4}-\d{2}-\d{2})-(.+)\.md$")
_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

_SEPARATORS = re.compile(r"[\s" + re.escape(string.punctuation) + r"]+")
_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_]")
_UNDERSCORE_RUNS = re.compile(r"_+")
_ASCII_DIGITS = re.compile(r"^[0-9]+$")


def basename(path: str) -> str:
    """Strip any directory prefix."""
    return path.rsplit("/", 1)[-1]


def join_path(folder: Optional[str], filename: str) -> str:
    """Join a repository folder and a filename."""
    folder = (folder or "").strip("/")
    return f"{folder}/{filename}" if folder else filename


def today() -> str:
    """Current UTC date as YYYY-MM-DD."""
    return datetime.now(timezone.utc).date().isoformat()


def normalize_title(title: Any) -> str:
    """
    Collapse a free-text title into a filesystem-safe slug.

    Whitespace and punctuation runs become a single underscore, anything
    outside ``[A-Za-z0-9_]`` is dropped, the result is trimmed of underscores
    and cut to 50 characters. Empty results become ``untitled``.

    Normalizing an already-normalized slug returns it unchanged.
    """
    if title is None:
        title = ""
    slug = _SEPARATORS.sub("_", str(title).strip())
    slug = _UNSAFE_CHARS.sub("", slug)
    slug = _UNDERSCORE_RUNS.sub("_", slug).strip("_")
    # The cut can land right after a separator
    slug = slug[:MAX_SLUG_LENGTH].rstrip("_")
    return slug or UNTITLED


def coerce_priority(value: Any) -> Tuple[int, bool]:
    """
    Validate a priority.

    Returns:
        (priority, coerced) where ``coerced`` is True when the input was not a
        valid 1-5 value and the default of 3 was substituted.
    """
    candidate: Optional[int] = None

    if isinstance(value, bool):
        candidate = None
    elif isinstance(value, int):
        candidate = value
    elif isinstance(value, float) and value.is_integer():
        candidate = int(value)
    elif isinstance(value, str) and _ASCII_DIGITS.match(value.strip()):
        candidate = int(value.strip())

    if candidate is not None and MIN_PRIORITY <= candidate <= MAX_PRIORITY:
        return candidate, False

    logger.warning(f"Invalid priority {value!r}, defaulting to {DEFAULT_PRIORITY}")
    return DEFAULT_PRIORITY, True


def validate_priority(value: Any) -> int:
    """Return a valid priority, falling back to 3."""
    priority, _ = coerce_priority(value)
    return priority


def _coerce_date(value: Any) -> str:
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date_type):
        return value.isoformat()
    if isinstance(value, str) and _DATE_PATTERN.match(value):
        return value

    fallback = today()
    logger.warning(f"Invalid date {value!r}, using {fallback}")
    return fallback


def generate_filename(priority: Any, date: Any, title: Any) -> str:
    """
    Encode priority, creation date and title into a filename.

    Never raises: an invalid priority becomes 3, an invalid date becomes
    today and an empty title becomes ``untitled``.

    Args:
        priority: Priority 1-5
        date: ``datetime.date`` or a ``YYYY-MM-DD`` string
        title: Free-text title

    Returns:
        Filename such as ``P3--2025-07-24--Update_Documentation.md``
    """
    priority, _ = coerce_priority(priority)
    date = _coerce_date(date)
    slug = normalize_title(title)

    filename = f"P{priority}--{date}--{slug}{EXTENSION}"
    logger.debug(f"Generated filename {filename} for title {title!r}")
    return filename


def with_priority(filename: str, priority: Any) -> Optional[str]:
    """
    Re-encode a current-dialect filename with a new priority.

    Date and slug are kept verbatim, so collision suffixes such as ``-1``
    survive. Returns None for names that are not in the current dialect.
    """
    parsed = classify_filename(filename)
    if not parsed.is_current:
        return None

    priority, _ = coerce_priority(priority)
    return f"P{priority}--{parsed.date}--{parsed.title}{EXTENSION}"


def classify_filename(filename: str) -> TaskFilename:
    """
    Decode a filename into its dialect and metadata.

    This is the single place where current and legacy names are told apart.
    The current dialect must start with ``P{n}--`` and the legacy one with a
    date, so no name can match both.

    Args:
        filename: Filename, optionally with a directory prefix

    Returns:
        TaskFilename tagged CURRENT, LEGACY or UNRECOGNIZED
    """
    name = basename(filename)

    match = _CURRENT_PATTERN.match(name)
    if match:
        priority, date, title = match.groups()
        return TaskFilename(
            priority=int(priority),
            date=date,
            title=title,
            display_title=title.replace("_", " "),
            dialect=FilenameDialect.CURRENT,
        )

    match = _LEGACY_PATTERN.match(name)
    if match:
        date, slug = match.groups()
        title = slug.replace("-", " ")
        return TaskFilename(
            priority=DEFAULT_PRIORITY,
            date=date,
            title=title,
            display_title=title,
            dialect=FilenameDialect.LEGACY,
        )

    return TaskFilename(
        priority=DEFAULT_PRIORITY,
        date="",
        title="",
        display_title="",
        dialect=FilenameDialect.UNRECOGNIZED,
    )


def parse_filename(filename: str) -> Optional[TaskFilename]:
    """Decode a current-dialect filename, or None."""
    parsed = classify_filename(filename)
    return parsed if parsed.is_current else None


def parse_legacy_filename(filename: str) -> Optional[TaskFilename]:
    """
    Decode a legacy ``{date}-{slug}.md`` filename, or None.

    The returned priority is a placeholder; the real one comes from the
    file's metadata header.
    """
    parsed = classify_filename(filename)
    return parsed if parsed.is_legacy else None


def is_task_filename(filename: str) -> bool:
    """True for names in either dialect."""
    return classify_filename(filename).is_task


def migrate_legacy_filename(filename: str, priority: Any = DEFAULT_PRIORITY) -> Optional[str]:
    """
    Rewrite a legacy filename in the current dialect.

    Date and title are preserved; the directory prefix is kept. A name that
    is already in the current dialect is returned unchanged, so migrating
    twice is a no-op.

    Returns:
        The migrated path, or None if ``filename`` is not a task file
    """
    parsed = classify_filename(filename)

    if parsed.is_current:
        return filename
    if not parsed.is_legacy:
        logger.warning(f"Cannot migrate {filename}: not a task filename")
        return None

    folder = filename.rsplit("/", 1)[0] if "/" in filename else ""
    migrated = join_path(folder, generate_filename(priority, parsed.date, parsed.title))
    logger.info(f"Migrating {filename} -> {migrated}")
    return migrated
