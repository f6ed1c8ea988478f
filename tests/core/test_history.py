"""
Tests for the History Cache and History Service.
"""

import asyncio
import pytest
from unittest.mock import AsyncMock, MagicMock


def make_snapshot(path, sha, content="body"):
    from taskfiles.services.history import build_snapshot
    return build_snapshot(path, sha, content)


@pytest.fixture
async def history_file(memory_provider):
    """A task file with three versions; returns (provider, path, commits newest first)."""
    path = "todos/P2--2025-01-01--History.md"
    sha = await memory_provider.write_file(path, "---\ntags: []\n---\nv1\n", "create")
    sha = await memory_provider.write_file(path, "---\ntags: []\n---\nv2\n", "edit", sha=sha)
    await memory_provider.write_file(path, "---\ntags: []\n---\nv3\n", "edit again", sha=sha)
    commits = await memory_provider.list_commits(path)
    return memory_provider, path, commits


class TestHistoryCache:
    """Tests for HistoryCache."""

    def test_fifo_bound(self):
        from taskfiles.services.history import HistoryCache

        cache = HistoryCache(MagicMock(), max_entries=100)
        keys = [(f"todos/t{i}.md", f"{i:040x}") for i in range(105)]
        for path, sha in keys:
            cache.put(make_snapshot(path, sha))

        assert len(cache) == 100
        for key in keys[:5]:
            assert key not in cache
        assert cache.keys() == keys[5:]

    def test_reads_do_not_refresh(self):
        from taskfiles.services.history import HistoryCache

        cache = HistoryCache(MagicMock(), max_entries=2)
        cache.put(make_snapshot("a.md", "1"))
        cache.put(make_snapshot("b.md", "2"))
        cache.peek("a.md", "1")
        cache.put(make_snapshot("c.md", "3"))

        assert cache.keys() == [("b.md", "2"), ("c.md", "3")]

    def test_rejects_zero_bound(self):
        from taskfiles.services.history import HistoryCache

        with pytest.raises(ValueError):
            HistoryCache(MagicMock(), max_entries=0)

    @pytest.mark.asyncio
    async def test_get_fetches_once(self, history_file):
        from taskfiles.services.history import HistoryCache

        provider, path, commits = history_file
        provider.fetch_file = AsyncMock(wraps=provider.fetch_file)
        cache = HistoryCache(provider)

        first = await cache.get(path, commits[-1].sha)
        second = await cache.get(path, commits[-1].sha)

        assert first is second
        assert first.body == "v1\n"
        assert provider.fetch_file.await_count == 1

    @pytest.mark.asyncio
    async def test_concurrent_misses_share_fetch(self):
        from taskfiles.providers import FileContent
        from taskfiles.services.history import HistoryCache

        started = asyncio.Event()
        release = asyncio.Event()

        async def slow_fetch(path, ref=None):
            started.set()
            await release.wait()
            return FileContent(path=path, content="body", sha="x")

        provider = MagicMock()
        provider.fetch_file = AsyncMock(side_effect=slow_fetch)
        cache = HistoryCache(provider)

        waiters = [asyncio.ensure_future(cache.get("a.md", "c1")) for _ in range(3)]
        await started.wait()
        release.set()
        results = await asyncio.gather(*waiters)

        assert provider.fetch_file.await_count == 1
        assert results[0] is results[1] is results[2]

    @pytest.mark.asyncio
    async def test_failures_not_cached(self):
        from taskfiles.providers import FileContent, ProviderError
        from taskfiles.services.history import HistoryCache

        provider = MagicMock()
        provider.fetch_file = AsyncMock(side_effect=[
            ProviderError("boom"),
            FileContent(path="a.md", content="ok", sha="x"),
        ])
        cache = HistoryCache(provider)

        with pytest.raises(ProviderError):
            await cache.get("a.md", "c1")
        assert len(cache) == 0

        snapshot = await cache.get("a.md", "c1")
        assert snapshot.body == "ok"

    @pytest.mark.asyncio
    async def test_clear_during_fetch_is_not_cached(self):
        from taskfiles.providers import FileContent
        from taskfiles.services.history import HistoryCache

        started = asyncio.Event()
        release = asyncio.Event()

        async def slow_fetch(path, ref=None):
            started.set()
            await release.wait()
            return FileContent(path=path, content="body", sha="x")

        provider = MagicMock()
        provider.fetch_file = AsyncMock(side_effect=slow_fetch)
        cache = HistoryCache(provider)

        waiter = asyncio.ensure_future(cache.get("a.md", "c1"))
        await started.wait()
        cache.clear()
        release.set()
        snapshot = await waiter

        assert snapshot.body == "body"
        assert len(cache) == 0

        await cache.get("a.md", "c1")
        assert provider.fetch_file.await_count == 2
        assert len(cache) == 1


class TestHistoryService:
    """Tests for HistoryService."""

    @pytest.mark.asyncio
    async def test_list_commits_newest_first(self, history_file):
        from taskfiles.services.history import HistoryService

        provider, path, _ = history_file
        commits = await HistoryService(provider).list_commits(path)

        assert [c.message for c in commits] == ["edit again", "edit", "create"]

    @pytest.mark.asyncio
    async def test_preview_error_is_contained(self, history_file):
        from taskfiles.services.history import HistoryService

        provider, path, commits = history_file
        service = HistoryService(provider)

        bad = await service.preview(path, "0" * 40)
        good = await service.preview(path, commits[0].sha)

        assert not bad.ok
        assert bad.error
        assert good.ok
        assert good.snapshot.body == "v3\n"

    @pytest.mark.asyncio
    async def test_preload_limits_and_caches(self, history_file):
        from taskfiles.services.history import HistoryService

        provider, path, commits = history_file
        service = HistoryService(provider)

        previews = await service.preload(path, commits, limit=2)

        assert [p.commit_sha for p in previews] == [c.sha for c in commits[:2]]
        assert all(p.ok for p in previews)
        assert len(service.cache) == 2

    @pytest.mark.asyncio
    async def test_preload_survives_one_failure(self, history_file):
        from taskfiles.models import Commit
        from taskfiles.services.history import HistoryService

        provider, path, commits = history_file
        bogus = Commit(sha="f" * 40, message="gone", author="x", date="")
        previews = await HistoryService(provider).preload(path, [bogus] + commits, limit=5)

        assert not previews[0].ok
        assert all(p.ok for p in previews[1:])

    @pytest.mark.asyncio
    async def test_duplicated_header_preview_and_restore_content(self, memory_provider):
        from taskfiles.services.history import HistoryService

        block = "---\ntags:\n  - a\n---\n"
        raw = block + block + "Body text\n"
        path = "todos/P3--2025-01-01--Dup.md"
        await memory_provider.write_file(path, raw, "create")
        commit = (await memory_provider.list_commits(path))[0]

        preview = await HistoryService(memory_provider).preview(path, commit.sha)

        assert preview.snapshot.body == "Body text\n"
        assert "---" not in preview.snapshot.body
        assert "tags" not in preview.snapshot.body
        assert preview.snapshot.restore_content == raw
