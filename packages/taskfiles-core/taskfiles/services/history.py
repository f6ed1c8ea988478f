"""
Version history for task files.

Previewing a commit fetches the whole file at that commit. HistoryCache keeps
the parsed snapshots for the session so going back and forth through the
history does not refetch them.
"""

import asyncio
import logging
from collections import OrderedDict
from typing import Dict, List, Optional, Tuple

from taskfiles.frontmatter import parse_task_content
from taskfiles.models.history import Commit, HistoryPreview, Snapshot
from taskfiles.providers.interface import GitProvider, ProviderError

logger = logging.getLogger(__name__)

DEFAULT_CACHE_SIZE = 100

CacheKey = Tuple[str, str]


def build_snapshot(path: str, commit_sha: str, raw_content: str) -> Snapshot:
    """Parse file content at a commit into a Snapshot."""
    record = parse_task_content(raw_content, path)
    return Snapshot(
        path=path,
        commit_sha=commit_sha,
        raw_content=raw_content,
        body=record.content,
        frontmatter=record.frontmatter,
        priority=record.priority,
        date=record.date,
        title=record.title,
    )


class HistoryCache:
    """
    Bounded cache of snapshots keyed by (path, commit sha).

    Eviction is first-in-first-out by insertion order. History is usually
    browsed linearly, so recency tracking would not buy more hits.
    """

    def __init__(self, provider: GitProvider, max_entries: int = DEFAULT_CACHE_SIZE):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")

        self.provider = provider
        self.max_entries = max_entries
        self._entries: "OrderedDict[CacheKey, Snapshot]" = OrderedDict()
        self._pending: Dict[CacheKey, asyncio.Task] = {}
        self._generation = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: CacheKey) -> bool:
        return key in self._entries

    def keys(self) -> List[CacheKey]:
        """Cached keys, oldest first."""
        return list(self._entries.keys())

    def peek(self, path: str, commit_sha: str) -> Optional[Snapshot]:
        """Cached snapshot, without fetching."""
        return self._entries.get((path, commit_sha))

    def put(self, snapshot: Snapshot) -> None:
        """Insert a snapshot and evict the oldest entries beyond the bound."""
        key = (snapshot.path, snapshot.commit_sha)
        if key not in self._entries:
            self._entries[key] = snapshot

        while len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug(f"Evicted snapshot {evicted[0]}@{evicted[1][:7]}")

    async def _load(self, path: str, commit_sha: str, generation: int) -> Snapshot:
        file = await self.provider.fetch_file(path, ref=commit_sha)
        snapshot = build_snapshot(path, commit_sha, file.content)
        # A clear() during the fetch means the result must not be cached
        if generation == self._generation:
            self.put(snapshot)
        return snapshot

    async def get(self, path: str, commit_sha: str) -> Snapshot:
        """
        Snapshot of ``path`` at ``commit_sha``, fetching it on a miss.

        Concurrent misses for the same key share one fetch. Failed fetches
        are not cached.

        Raises:
            ProviderError: If the fetch fails
        """
        key = (path, commit_sha)
        cached = self._entries.get(key)
        if cached is not None:
            logger.debug(f"History cache hit: {path}@{commit_sha[:7]}")
            return cached

        task = self._pending.get(key)
        if task is None:
            task = asyncio.ensure_future(self._load(path, commit_sha, self._generation))
            self._pending[key] = task
            task.add_done_callback(lambda t: self._forget(key, t))

        return await asyncio.shield(task)

    def _forget(self, key: CacheKey, task: asyncio.Task) -> None:
        if self._pending.get(key) is task:
            del self._pending[key]

    def clear(self) -> None:
        """
        Drop all snapshots.

        Fetches already in flight still resolve for their callers but are
        not cached, and later lookups start new fetches.
        """
        self._generation += 1
        self._entries.clear()
        self._pending.clear()


class HistoryService:
    """
    History browsing for a task file.

    Failures are contained per commit: one preview that cannot be loaded
    does not stop the commit list or the other previews.
    """

    def __init__(self, provider: GitProvider, cache: Optional[HistoryCache] = None):
        self.provider = provider
        self.cache = cache or HistoryCache(provider)

    async def list_commits(self, path: str) -> List[Commit]:
        """Commits touching ``path``, newest first."""
        return await self.provider.list_commits(path)

    async def preview(self, path: str, commit_sha: str) -> HistoryPreview:
        """Snapshot at one commit, with errors captured in the result."""
        try:
            snapshot = await self.cache.get(path, commit_sha)
        except ProviderError as e:
            logger.warning(f"Could not load {path}@{commit_sha[:7]}: {e}")
            return HistoryPreview(commit_sha=commit_sha, error=str(e))
        return HistoryPreview(commit_sha=commit_sha, snapshot=snapshot)

    async def preload(self, path: str, commits: List[Commit], limit: int = 5) -> List[HistoryPreview]:
        """Preview the newest ``limit`` commits concurrently."""
        return list(
            await asyncio.gather(*(self.preview(path, c.sha) for c in commits[:limit]))
        )
