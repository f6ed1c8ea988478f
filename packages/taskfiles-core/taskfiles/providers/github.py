"""
GitHub provider using the REST contents and commits APIs.

Authentication uses a token (normally from the GITHUB_TOKEN environment
variable). All requests share one httpx.AsyncClient with the configured
timeout; a timed-out request surfaces as ProviderTimeoutError.
"""

import base64
import logging
from typing import Any, List, Optional
from urllib.parse import quote

import httpx

from taskfiles.models.history import Commit
from taskfiles.providers.interface import (
    FileContent,
    FileEntry,
    FileMetadata,
    FileNotFoundInRepo,
    GitProvider,
    ProviderError,
    ProviderTimeoutError,
)

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"


class GitHubProvider(GitProvider):
    """
    Git provider for a single GitHub repository.

    Uses httpx for async HTTP. The client is created lazily on first use.
    """

    def __init__(
        self,
        owner: str,
        repo: str,
        token: Optional[str] = None,
        branch: str = "main",
        timeout: float = 30.0,
        base_url: str = GITHUB_API_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize GitHub provider.

        Args:
            owner: Repository owner (user or organization)
            repo: Repository name
            token: API token; anonymous access when None
            branch: Branch that reads and writes target
            timeout: Per-request timeout in seconds
            base_url: API root (GitHub Enterprise installs differ)
            transport: Optional httpx transport, mainly for tests
        """
        if not owner or not repo:
            raise ValueError(
                "GitHub owner and repo are required. "
                "Set provider.owner/provider.repo in config or TASKFILES_GITHUB_OWNER/TASKFILES_GITHUB_REPO."
            )

        self.owner = owner
        self.repo = repo
        self.token = token
        self.branch = branch
        self.timeout = timeout
        self.base_url = base_url
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def name(self) -> str:
        return "github"

    async def connect(self) -> None:
        """Create the HTTP client."""
        if self._client is not None:
            return

        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=self.timeout,
            transport=self._transport,
        )
        logger.info(f"GitHub provider ready: {self.owner}/{self.repo}@{self.branch}")

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            await self.connect()
        return self._client

    def _contents_url(self, path: str) -> str:
        return f"/repos/{self.owner}/{self.repo}/contents/{quote(path.strip('/'))}"

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        client = await self._get_client()
        try:
            return await client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            raise ProviderTimeoutError(f"GitHub {method} {url} timed out") from e
        except httpx.HTTPError as e:
            raise ProviderError(f"GitHub {method} {url} failed: {e}") from e

    @staticmethod
    def _check(response: httpx.Response, path: str, ref: Optional[str] = None) -> None:
        if response.status_code == 404:
            raise FileNotFoundInRepo(path, ref)
        if response.is_error:
            raise ProviderError(
                f"GitHub API error {response.status_code} for {path}: {response.text[:200]}"
            )

    @staticmethod
    def _json(response: httpx.Response, path: str) -> Any:
        """Decode a JSON body; anything else (a proxy error page, say) is a ProviderError."""
        try:
            return response.json()
        except ValueError as e:
            raise ProviderError(
                f"GitHub returned a non-JSON body for {path}: {response.text[:200]}"
            ) from e

    async def probe_file(self, path: str) -> FileMetadata:
        logger.debug(f"Probing {path}")
        response = await self._request("GET", self._contents_url(path), params={"ref": self.branch})
        self._check(response, path)

        data = self._json(response, path)
        if isinstance(data, list):
            # Path is a directory
            return FileMetadata(path=path, name=path.rsplit("/", 1)[-1], sha="")
        if not isinstance(data, dict):
            raise ProviderError(f"Unexpected metadata response for {path}")
        return FileMetadata(path=data.get("path", path), name=data.get("name", ""), sha=data.get("sha", ""))

    async def fetch_file(self, path: str, ref: Optional[str] = None) -> FileContent:
        response = await self._request(
            "GET", self._contents_url(path), params={"ref": ref or self.branch}
        )
        self._check(response, path, ref)

        data = self._json(response, path)
        if not isinstance(data, dict) or "content" not in data:
            raise ProviderError(f"{path} is not a file")

        try:
            content = base64.b64decode(data["content"]).decode("utf-8")
        except (ValueError, UnicodeDecodeError) as e:
            raise ProviderError(f"Could not decode {path}: {e}") from e

        return FileContent(path=data.get("path", path), content=content, sha=data.get("sha", ""))

    async def list_directory(self, path: str) -> List[FileEntry]:
        response = await self._request("GET", self._contents_url(path), params={"ref": self.branch})
        if response.status_code == 404:
            logger.info(f"Directory {path} not found, returning empty listing")
            return []
        self._check(response, path)

        data = self._json(response, path)
        if not isinstance(data, list):
            raise ProviderError(f"{path} is not a directory")

        return [
            FileEntry(
                name=item["name"],
                path=item["path"],
                sha=item.get("sha", ""),
                type=item.get("type", "file"),
            )
            for item in data
        ]

    async def list_commits(self, path: str) -> List[Commit]:
        response = await self._request(
            "GET",
            f"/repos/{self.owner}/{self.repo}/commits",
            params={"path": path, "sha": self.branch, "per_page": 100},
        )
        if response.is_error:
            raise ProviderError(
                f"Failed to fetch history for {path}: {response.status_code} {response.text[:200]}"
            )

        data = self._json(response, path)
        if not isinstance(data, list):
            raise ProviderError(f"Unexpected history response for {path}")

        commits = []
        for item in data:
            info = item.get("commit", {})
            author = info.get("author") or {}
            commits.append(
                Commit(
                    sha=item["sha"],
                    message=info.get("message", ""),
                    author=author.get("name", ""),
                    date=author.get("date"),
                )
            )
        return commits

    async def write_file(
        self,
        path: str,
        content: str,
        message: str,
        sha: Optional[str] = None,
    ) -> str:
        body = {
            "message": message,
            "content": base64.b64encode(content.encode("utf-8")).decode("ascii"),
            "branch": self.branch,
        }
        if sha:
            body["sha"] = sha

        response = await self._request("PUT", self._contents_url(path), json=body)
        if response.is_error:
            raise ProviderError(
                f"Failed to write {path}: {response.status_code} {response.text[:200]}"
            )

        data = self._json(response, path)
        try:
            new_sha = data["content"]["sha"]
        except (KeyError, TypeError) as e:
            raise ProviderError(f"Unexpected write response for {path}") from e
        logger.info(f"Wrote {path} ({new_sha[:7]})")
        return new_sha

    async def delete_file(self, path: str, message: str, sha: Optional[str] = None) -> None:
        if sha is None:
            sha = (await self.probe_file(path)).sha

        response = await self._request(
            "DELETE",
            self._contents_url(path),
            json={"message": message, "sha": sha, "branch": self.branch},
        )
        self._check(response, path)
        logger.info(f"Deleted {path}")
