"""
Abstract Git provider interface.

Task files live in a Git-hosted repository. Providers expose the handful of
content and history operations the persistence layer needs.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional

from taskfiles.models.history import Commit


class ProviderError(Exception):
    """A Git provider request failed."""


class FileNotFoundInRepo(ProviderError):
    """The requested path does not exist (at the requested ref)."""

    def __init__(self, path: str, ref: Optional[str] = None):
        self.path = path
        self.ref = ref
        where = f" at {ref}" if ref else ""
        super().__init__(f"File not found: {path}{where}")


class ProviderTimeoutError(ProviderError):
    """A provider request exceeded its timeout."""


@dataclass
class FileMetadata:
    """Result of probing a path."""

    path: str
    name: str
    sha: str


@dataclass
class FileContent:
    """Decoded file content with its content identity."""

    path: str
    content: str
    sha: str


@dataclass
class FileEntry:
    """One entry of a directory listing."""

    name: str
    path: str
    sha: str
    type: str = "file"  # "file" or "dir"


class GitProvider(ABC):
    """
    Abstract base class for Git providers.

    Implementations must:
    - Raise FileNotFoundInRepo for missing paths (probe_file, fetch_file)
    - Raise ProviderError subclasses for every other failure
    - Return an empty listing for a missing directory
    """

    @abstractmethod
    async def connect(self) -> None:
        """Initialize client/session."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close client/session."""
        pass

    @abstractmethod
    async def probe_file(self, path: str) -> FileMetadata:
        """
        Fetch metadata for a path.

        Raises:
            FileNotFoundInRepo: If the path does not exist
        """
        pass

    @abstractmethod
    async def fetch_file(self, path: str, ref: Optional[str] = None) -> FileContent:
        """
        Fetch decoded file content.

        Args:
            path: Repository path
            ref: Commit sha or branch; defaults to the configured branch

        Raises:
            FileNotFoundInRepo: If the path does not exist at ``ref``
        """
        pass

    @abstractmethod
    async def list_directory(self, path: str) -> List[FileEntry]:
        """List a directory; a missing directory yields []."""
        pass

    @abstractmethod
    async def list_commits(self, path: str) -> List[Commit]:
        """Commits that touched ``path``, newest first."""
        pass

    @abstractmethod
    async def write_file(
        self,
        path: str,
        content: str,
        message: str,
        sha: Optional[str] = None,
    ) -> str:
        """
        Create or update a file.

        Args:
            path: Repository path
            content: New file content
            message: Commit message
            sha: Current content identity when updating an existing file

        Returns:
            The new content identity
        """
        pass

    @abstractmethod
    async def delete_file(self, path: str, message: str, sha: Optional[str] = None) -> None:
        """Delete a file, probing for its sha if not given."""
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name for display (e.g. "github")."""
        pass
