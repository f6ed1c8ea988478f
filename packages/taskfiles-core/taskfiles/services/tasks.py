"""
Task Service for Taskfiles.

Create, list, save, rename, archive and migrate task files in a Git
repository. Priority, date and title live in the filename, so changing any
of them means writing a new file and deleting the old one.
"""

import asyncio
import logging
from datetime import date as date_type
from typing import Any, List, Optional

from taskfiles.filenames import (
    classify_filename,
    generate_filename,
    join_path,
    migrate_legacy_filename,
    today,
    with_priority,
)
from taskfiles.frontmatter import parse_task_content, stringify_frontmatter
from taskfiles.models.history import Snapshot
from taskfiles.models.task import DEFAULT_PRIORITY, LEGACY_HEADER_KEYS, TaskRecord
from taskfiles.providers import get_provider
from taskfiles.services.collisions import CollisionResolver
from taskfiles.services.drafts import DraftStore

logger = logging.getLogger(__name__)

ARCHIVE_DIR = "archive"


class TaskService:
    """
    Service for managing task files.

    Every write goes through the Git provider; new paths go through the
    collision resolver first.
    """

    def __init__(
        self,
        provider=None,
        config=None,
        drafts: Optional[DraftStore] = None,
        resolver: Optional[CollisionResolver] = None,
    ):
        """
        Initialize task service.

        Args:
            provider: Optional GitProvider. If not provided, uses global provider.
            config: Optional TaskfilesConfig. If not provided, uses cached config.
            drafts: Optional DraftStore, cleared after successful saves
            resolver: Optional CollisionResolver; built from config when omitted
        """
        self._provider = provider
        self._config = config
        self.drafts = drafts
        self._resolver = resolver

    @property
    def provider(self):
        """Get the Git provider."""
        if self._provider is None:
            self._provider = get_provider(self.config)
        return self._provider

    @property
    def config(self):
        if self._config is None:
            from taskfiles.config import get_config
            self._config = get_config()
        return self._config

    @property
    def resolver(self) -> CollisionResolver:
        if self._resolver is None:
            self._resolver = CollisionResolver.from_config(self.provider, self.config)
        return self._resolver

    def _folder(self, folder: Optional[str]) -> str:
        return (folder or self.config.tasks.folder).strip("/")

    @staticmethod
    def _is_archive_path(path: str) -> bool:
        parts = path.strip("/").split("/")
        return len(parts) >= 2 and parts[-2] == ARCHIVE_DIR

    @staticmethod
    def _header(task: TaskRecord, target: str, tags: Optional[List[str]] = None) -> dict:
        """Header to write at ``target``; legacy names keep the keys their filename lacks."""
        if classify_filename(target).is_legacy:
            header = dict(task.frontmatter)
        else:
            header = {k: v for k, v in task.frontmatter.items() if k not in LEGACY_HEADER_KEYS}
        header["tags"] = list(tags if tags is not None else task.tags)
        return header

    async def get_task(self, path: str, is_archived: Optional[bool] = None) -> TaskRecord:
        """
        Load a task by path.

        Raises:
            FileNotFoundInRepo: If the file does not exist
        """
        file = await self.provider.fetch_file(path)
        if is_archived is None:
            is_archived = self._is_archive_path(path)
        return parse_task_content(file.content, path, is_archived=is_archived, sha=file.sha)

    async def list_tasks(
        self,
        folder: Optional[str] = None,
        include_archived: bool = False,
    ) -> List[TaskRecord]:
        """
        List tasks in a folder.

        Names in neither filename dialect are skipped silently.

        Args:
            folder: Task folder (defaults to the configured folder)
            include_archived: List ``{folder}/archive`` instead

        Returns:
            Tasks ordered by priority, then newest first
        """
        base = self._folder(folder)
        directory = join_path(base, ARCHIVE_DIR) if include_archived else base

        entries = await self.provider.list_directory(directory)
        task_entries = [
            entry for entry in entries
            if entry.type == "file" and classify_filename(entry.name).is_task
        ]
        skipped = len(entries) - len(task_entries)
        if skipped:
            logger.debug(f"Skipped {skipped} non-task entries in {directory}")

        files = await asyncio.gather(
            *(self.provider.fetch_file(entry.path) for entry in task_entries)
        )
        tasks = [
            parse_task_content(file.content, entry.path, is_archived=include_archived, sha=file.sha)
            for entry, file in zip(task_entries, files)
        ]

        tasks.sort(key=lambda t: t.created_at.timestamp() if t.created_at else 0.0, reverse=True)
        tasks.sort(key=lambda t: t.priority)
        return tasks

    async def create_task(
        self,
        title: str,
        body: str = "",
        priority: Any = DEFAULT_PRIORITY,
        tags: Optional[List[str]] = None,
        folder: Optional[str] = None,
        created: Optional[date_type] = None,
        message: Optional[str] = None,
    ) -> TaskRecord:
        """
        Create a new task file.

        Args:
            title: Task title
            body: Markdown body
            priority: Priority 1-5 (invalid values become 3)
            tags: Tags for the metadata header
            folder: Target folder (defaults to the configured folder)
            created: Creation date (defaults to today)
            message: Commit message

        Returns:
            Created TaskRecord

        Raises:
            ValueError: If title is empty
            ProviderError: If probing or writing fails; nothing is written
        """
        if not title or not title.strip():
            raise ValueError("Task title is required")

        filename = generate_filename(priority, created or today(), title)
        path = await self.resolver.resolve(join_path(self._folder(folder), filename))

        content = stringify_frontmatter({"tags": list(tags or [])}, body)
        sha = await self.provider.write_file(
            path, content, message or f'feat: Add new todo for "{title.strip()}"'
        )

        logger.info(f"Created task: {path}")
        return parse_task_content(content, path, is_archived=False, sha=sha)

    async def save_task(
        self,
        task: TaskRecord,
        body: str,
        tags: Optional[List[str]] = None,
        message: Optional[str] = None,
    ) -> TaskRecord:
        """
        Update a task's body (and optionally tags) in place.

        Clears the local draft once the write succeeds.
        """
        content = stringify_frontmatter(self._header(task, task.path, tags), body)
        sha = await self.provider.write_file(
            task.path, content, message or f'docs: Update "{task.title}"', sha=task.sha
        )

        if self.drafts is not None:
            await self.drafts.clear_draft()

        logger.info(f"Saved task: {task.path}")
        return parse_task_content(content, task.path, is_archived=task.is_archived, sha=sha)

    async def _move(self, task: TaskRecord, new_path: str, content: str, message: str) -> TaskRecord:
        """Write ``content`` at a collision-free ``new_path`` and delete the old file."""
        final_path = await self.resolver.resolve(new_path)
        sha = await self.provider.write_file(final_path, content, message)
        await self.provider.delete_file(task.path, f"docs: Remove {task.filename} after move", sha=task.sha)

        logger.info(f"Moved task: {task.path} -> {final_path}")
        return parse_task_content(
            content, final_path, is_archived=self._is_archive_path(final_path), sha=sha
        )

    async def update_metadata(
        self,
        task: TaskRecord,
        title: Optional[str] = None,
        priority: Any = None,
        message: Optional[str] = None,
    ) -> TaskRecord:
        """
        Change a task's title and/or priority.

        The creation date is kept, and so is the existing slug (including any
        collision suffix) when the title is not changed. If the filename
        changes the file is renamed (new file at a collision-free path, old
        file deleted); otherwise it is rewritten in place.
        """
        new_title = title if title is not None else task.title
        new_priority = priority if priority is not None else task.priority
        if not new_title or not new_title.strip():
            raise ValueError("Task title cannot be empty")

        filename = None
        if new_title == task.title:
            filename = with_priority(task.filename, new_priority)
        if filename is None:
            filename = generate_filename(new_priority, task.date or today(), new_title)
        new_path = join_path(task.folder, filename)
        content = stringify_frontmatter(self._header(task, new_path), task.content)

        if new_path == task.path:
            sha = await self.provider.write_file(
                task.path, content, message or f'docs: Update "{new_title}"', sha=task.sha
            )
            return parse_task_content(content, task.path, is_archived=task.is_archived, sha=sha)

        return await self._move(
            task, new_path, content, message or f'docs: Rename task to "{new_title}"'
        )

    async def set_archived(self, task: TaskRecord, archived: bool) -> TaskRecord:
        """Move a task into or out of the archive folder."""
        if archived == self._is_archive_path(task.path):
            return task

        if archived:
            target = join_path(join_path(task.folder, ARCHIVE_DIR), task.filename)
        else:
            target = join_path(task.folder.rsplit("/", 1)[0] if "/" in task.folder else "", task.filename)

        content = stringify_frontmatter(self._header(task, target), task.content)
        action = "Archive" if archived else "Unarchive"
        return await self._move(task, target, content, f'docs: {action} "{task.title}"')

    async def migrate_legacy(self, task: TaskRecord, priority: Any = None) -> TaskRecord:
        """
        Rename a legacy ``{date}-{slug}.md`` task to the current dialect.

        Priority comes from the argument, then the old header, then 3. Header
        keys that now live in the filename are dropped; tags are kept.
        Tasks already in the current dialect are returned unchanged.
        """
        if not task.is_legacy:
            return task

        if priority is None:
            priority = task.priority

        new_path = migrate_legacy_filename(task.path, priority)
        content = stringify_frontmatter(self._header(task, new_path), task.content)
        return await self._move(task, new_path, content, f"chore: Migrate {task.filename} to new filename format")

    async def restore_version(
        self,
        task: TaskRecord,
        snapshot: Snapshot,
        message: Optional[str] = None,
    ) -> TaskRecord:
        """Write a historical version's raw content back to the task's path."""
        content = snapshot.restore_content
        sha = await self.provider.write_file(
            task.path,
            content,
            message or f"revert: Restore {task.filename} to {snapshot.commit_sha[:7]}",
            sha=task.sha,
        )

        if self.drafts is not None:
            await self.drafts.clear_draft()

        logger.info(f"Restored {task.path} to {snapshot.commit_sha[:7]}")
        return parse_task_content(content, task.path, is_archived=task.is_archived, sha=sha)

    async def delete_task(self, task: TaskRecord, message: Optional[str] = None) -> None:
        """Delete a task file."""
        await self.provider.delete_file(
            task.path, message or f'docs: Delete "{task.title}"', sha=task.sha
        )
        logger.info(f"Deleted task: {task.path}")

    async def search(self, query: str, folder: Optional[str] = None) -> List[TaskRecord]:
        """Case-insensitive title/body search over active tasks."""
        needle = query.lower()
        tasks = await self.list_tasks(folder)
        return [t for t in tasks if needle in t.title.lower() or needle in t.content.lower()]
