"""
Tests for Git providers.
"""

import base64
import json

import httpx
import pytest


def b64(text):
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


class FakeGitHub:
    """Minimal contents/commits API over a dict, served through httpx.MockTransport."""

    def __init__(self, files=None):
        self.files = dict(files or {})
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        prefix = "/repos/me/tasks/contents/"
        path = request.url.path

        if path == "/repos/me/tasks/commits":
            return httpx.Response(200, json=[
                {"sha": "c2", "commit": {"message": "edit", "author": {"name": "sam", "date": "2025-01-02T00:00:00Z"}}},
                {"sha": "c1", "commit": {"message": "create", "author": {"name": "sam", "date": "2025-01-01T00:00:00Z"}}},
            ])

        if not path.startswith(prefix):
            return httpx.Response(500)
        file_path = path[len(prefix):]

        if request.method == "GET":
            if file_path in self.files:
                content = self.files[file_path]
                return httpx.Response(200, json={
                    "name": file_path.rsplit("/", 1)[-1],
                    "path": file_path,
                    "sha": f"sha-{len(content)}",
                    "content": b64(content),
                })
            children = [p for p in self.files if p.startswith(file_path + "/")]
            if children:
                return httpx.Response(200, json=[
                    {"name": p.rsplit("/", 1)[-1], "path": p, "sha": "x", "type": "file"}
                    for p in children
                ])
            return httpx.Response(404, json={"message": "Not Found"})

        body = json.loads(request.content)
        if request.method == "PUT":
            self.files[file_path] = base64.b64decode(body["content"]).decode("utf-8")
            return httpx.Response(201, json={"content": {"sha": "new-sha"}})

        if request.method == "DELETE":
            if file_path not in self.files:
                return httpx.Response(404, json={"message": "Not Found"})
            del self.files[file_path]
            return httpx.Response(200, json={})

        return httpx.Response(405)


def make_provider(fake):
    from taskfiles.providers.github import GitHubProvider

    return GitHubProvider(
        owner="me",
        repo="tasks",
        token="ghp_test",
        transport=httpx.MockTransport(fake),
    )


class TestGitHubProvider:
    """Tests for GitHubProvider."""

    def test_requires_owner_and_repo(self):
        from taskfiles.providers.github import GitHubProvider

        with pytest.raises(ValueError):
            GitHubProvider(owner="", repo="tasks")

    @pytest.mark.asyncio
    async def test_fetch_file(self):
        fake = FakeGitHub({"todos/P1--2025-01-01--A.md": "hello"})
        provider = make_provider(fake)

        file = await provider.fetch_file("todos/P1--2025-01-01--A.md")

        assert file.content == "hello"
        assert file.sha == "sha-5"
        request = fake.requests[0]
        assert request.headers["Authorization"] == "Bearer ghp_test"
        assert request.url.params["ref"] == "main"
        await provider.close()

    @pytest.mark.asyncio
    async def test_fetch_file_at_ref(self):
        fake = FakeGitHub({"a.md": "x"})
        provider = make_provider(fake)

        await provider.fetch_file("a.md", ref="c1")

        assert fake.requests[0].url.params["ref"] == "c1"
        await provider.close()

    @pytest.mark.asyncio
    async def test_probe_missing_raises_not_found(self):
        from taskfiles.providers import FileNotFoundInRepo

        provider = make_provider(FakeGitHub())

        with pytest.raises(FileNotFoundInRepo):
            await provider.probe_file("todos/none.md")
        await provider.close()

    @pytest.mark.asyncio
    async def test_server_error_is_provider_error(self):
        from taskfiles.providers import FileNotFoundInRepo, ProviderError

        provider = make_provider(lambda request: httpx.Response(502, text="bad gateway"))

        with pytest.raises(ProviderError) as exc_info:
            await provider.probe_file("a.md")
        assert not isinstance(exc_info.value, FileNotFoundInRepo)
        await provider.close()

    @pytest.mark.asyncio
    async def test_timeout_is_provider_timeout(self):
        from taskfiles.providers import ProviderTimeoutError

        def timeout(request):
            raise httpx.ReadTimeout("slow", request=request)

        provider = make_provider(timeout)

        with pytest.raises(ProviderTimeoutError):
            await provider.probe_file("a.md")
        await provider.close()

    @pytest.mark.asyncio
    async def test_list_directory(self):
        fake = FakeGitHub({"todos/a.md": "a", "todos/b.md": "b"})
        provider = make_provider(fake)

        entries = await provider.list_directory("todos")

        assert sorted(e.name for e in entries) == ["a.md", "b.md"]
        assert await provider.list_directory("missing") == []
        await provider.close()

    @pytest.mark.asyncio
    async def test_list_commits(self):
        fake = FakeGitHub()
        provider = make_provider(fake)

        commits = await provider.list_commits("todos/a.md")

        assert [c.sha for c in commits] == ["c2", "c1"]
        assert commits[0].author == "sam"
        assert fake.requests[0].url.params["path"] == "todos/a.md"
        await provider.close()

    @pytest.mark.asyncio
    async def test_write_and_delete(self):
        fake = FakeGitHub({"todos/old.md": "old"})
        provider = make_provider(fake)

        sha = await provider.write_file("todos/new.md", "new content", "add")
        await provider.delete_file("todos/old.md", "remove")

        assert sha == "new-sha"
        assert fake.files == {"todos/new.md": "new content"}
        put = json.loads(fake.requests[0].content)
        assert put["branch"] == "main"
        assert "sha" not in put
        delete = json.loads(fake.requests[-1].content)
        assert delete["sha"] == "sha-3"
        await provider.close()

    @pytest.mark.asyncio
    async def test_collision_resolver_over_github(self):
        from taskfiles.services.collisions import CollisionResolver

        fake = FakeGitHub({"todos/P3--2025-01-01--A.md": "x"})
        provider = make_provider(fake)

        path = await CollisionResolver(provider).resolve("todos/P3--2025-01-01--A.md")

        assert path == "todos/P3--2025-01-01--A-1.md"
        assert len(fake.requests) == 2
        await provider.close()

    @pytest.mark.asyncio
    async def test_non_json_body_is_provider_error(self):
        from taskfiles.providers import ProviderError

        provider = make_provider(lambda request: httpx.Response(200, text="<html>proxy</html>"))

        with pytest.raises(ProviderError):
            await provider.fetch_file("a.md")
        with pytest.raises(ProviderError):
            await provider.list_commits("a.md")
        await provider.close()

    @pytest.mark.asyncio
    async def test_preload_contains_non_json_commit(self):
        from taskfiles.models import Commit
        from taskfiles.services.history import HistoryService

        def handler(request):
            if request.url.params["ref"] == "bad":
                return httpx.Response(200, text="<html>proxy</html>")
            return httpx.Response(200, json={"name": "a.md", "path": "a.md", "sha": "s", "content": b64("good body")})

        provider = make_provider(handler)

        previews = await HistoryService(provider).preload("a.md", [Commit(sha="bad"), Commit(sha="good")])

        assert [p.ok for p in previews] == [False, True]
        assert previews[0].error
        assert previews[1].snapshot.raw_content == "good body"
        await provider.close()


class TestMemoryProvider:
    """Tests for MemoryProvider."""

    @pytest.mark.asyncio
    async def test_write_conflict(self, memory_provider):
        from taskfiles.providers import ProviderError

        await memory_provider.write_file("a.md", "one", "add")

        with pytest.raises(ProviderError):
            await memory_provider.write_file("a.md", "two", "blind overwrite")

    @pytest.mark.asyncio
    async def test_fetch_at_commit(self, memory_provider):
        sha = await memory_provider.write_file("a.md", "one", "add")
        await memory_provider.write_file("a.md", "two", "edit", sha=sha)
        first = (await memory_provider.list_commits("a.md"))[-1]

        old = await memory_provider.fetch_file("a.md", ref=first.sha)

        assert old.content == "one"
        assert (await memory_provider.fetch_file("a.md")).content == "two"

    @pytest.mark.asyncio
    async def test_list_directory_includes_subdirs(self, memory_provider):
        await memory_provider.write_file("todos/a.md", "", "add")
        await memory_provider.write_file("todos/archive/b.md", "", "add")

        entries = await memory_provider.list_directory("todos")

        assert [(e.name, e.type) for e in entries] == [("a.md", "file"), ("archive", "dir")]


class TestProviderFactory:
    """Tests for get_provider()."""

    def setup_method(self):
        from taskfiles.providers.factory import reset_provider
        reset_provider()

    def teardown_method(self):
        from taskfiles.providers.factory import reset_provider
        reset_provider()

    def test_memory(self, memory_config):
        from taskfiles.providers import get_provider
        from taskfiles.providers.memory import MemoryProvider

        provider = get_provider(memory_config)

        assert isinstance(provider, MemoryProvider)
        assert get_provider(memory_config) is provider

    def test_github(self, memory_config, monkeypatch):
        from taskfiles.providers import get_provider
        from taskfiles.providers.github import GitHubProvider

        monkeypatch.setenv("GITHUB_TOKEN", "ghp_x")
        memory_config.provider.type = "github"
        memory_config.provider.owner = "me"
        memory_config.provider.repo = "tasks"

        provider = get_provider(memory_config)

        assert isinstance(provider, GitHubProvider)
        assert provider.token == "ghp_x"

    def test_unknown(self, memory_config):
        from taskfiles.providers import get_provider

        memory_config.provider.type = "gitlab"

        with pytest.raises(ValueError):
            get_provider(memory_config)
