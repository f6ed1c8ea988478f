"""
In-memory Git provider.

Keeps files and a per-path commit history in process memory. Used for tests
and for trying Taskfiles without a remote repository.
"""

import hashlib
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from taskfiles.models.history import Commit
from taskfiles.providers.interface import (
    FileContent,
    FileEntry,
    FileMetadata,
    FileNotFoundInRepo,
    GitProvider,
    ProviderError,
)

logger = logging.getLogger(__name__)


def blob_sha(content: str) -> str:
    """Git blob hash of ``content``."""
    data = content.encode("utf-8")
    return hashlib.sha1(b"blob %d\0" % len(data) + data).hexdigest()


class MemoryProvider(GitProvider):
    """
    Git provider backed by dictionaries.

    Every write and delete records a commit, so history and
    fetch-at-commit behave like a real repository.
    """

    def __init__(self, author: str = "taskfiles"):
        self.author = author
        self._files: Dict[str, Tuple[str, str]] = {}  # path -> (content, sha)
        self._history: Dict[str, List[Tuple[Commit, Optional[str]]]] = {}
        self._commit_count = 0

    @property
    def name(self) -> str:
        return "memory"

    async def connect(self) -> None:
        pass

    async def close(self) -> None:
        pass

    def _commit(self, path: str, message: str, content: Optional[str]) -> Commit:
        self._commit_count += 1
        seed = f"{self._commit_count}:{path}:{message}".encode("utf-8")
        commit = Commit(
            sha=hashlib.sha1(seed).hexdigest(),
            message=message,
            author=self.author,
            date=datetime.now(timezone.utc).isoformat(),
        )
        self._history.setdefault(path, []).append((commit, content))
        return commit

    async def probe_file(self, path: str) -> FileMetadata:
        if path not in self._files:
            raise FileNotFoundInRepo(path)
        _, sha = self._files[path]
        return FileMetadata(path=path, name=path.rsplit("/", 1)[-1], sha=sha)

    async def fetch_file(self, path: str, ref: Optional[str] = None) -> FileContent:
        if ref is None:
            if path not in self._files:
                raise FileNotFoundInRepo(path)
            content, sha = self._files[path]
            return FileContent(path=path, content=content, sha=sha)

        for commit, content in self._history.get(path, []):
            if commit.sha == ref:
                if content is None:
                    break
                return FileContent(path=path, content=content, sha=blob_sha(content))
        raise FileNotFoundInRepo(path, ref)

    async def list_directory(self, path: str) -> List[FileEntry]:
        prefix = path.strip("/") + "/" if path.strip("/") else ""
        entries: Dict[str, FileEntry] = {}

        for file_path, (_, sha) in self._files.items():
            if not file_path.startswith(prefix):
                continue
            rest = file_path[len(prefix):]
            if "/" in rest:
                dirname = rest.split("/", 1)[0]
                entries.setdefault(
                    dirname,
                    FileEntry(name=dirname, path=prefix + dirname, sha="", type="dir"),
                )
            else:
                entries[rest] = FileEntry(name=rest, path=file_path, sha=sha, type="file")

        return sorted(entries.values(), key=lambda e: e.name)

    async def list_commits(self, path: str) -> List[Commit]:
        return [commit for commit, _ in reversed(self._history.get(path, []))]

    async def write_file(
        self,
        path: str,
        content: str,
        message: str,
        sha: Optional[str] = None,
    ) -> str:
        existing = self._files.get(path)
        if existing is not None and sha != existing[1]:
            raise ProviderError(f"Conflict writing {path}: sha {sha!r} does not match {existing[1]}")

        new_sha = blob_sha(content)
        self._files[path] = (content, new_sha)
        self._commit(path, message, content)
        logger.info(f"Wrote {path} ({new_sha[:7]})")
        return new_sha

    async def delete_file(self, path: str, message: str, sha: Optional[str] = None) -> None:
        if path not in self._files:
            raise FileNotFoundInRepo(path)
        if sha is not None and sha != self._files[path][1]:
            raise ProviderError(f"Conflict deleting {path}: sha {sha!r} is stale")

        del self._files[path]
        self._commit(path, message, None)
        logger.info(f"Deleted {path}")
