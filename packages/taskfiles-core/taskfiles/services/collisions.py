"""
Filename collision resolution.

Two tasks created on the same day with similar titles encode to the same
filename. Before writing, the candidate path is probed and, while taken,
suffixed with an increasing counter:

    todos/P3--2025-07-24--Plan.md
    todos/P3--2025-07-24--Plan-1.md
    todos/P3--2025-07-24--Plan-2.md

Probes run one after another; each outcome decides the next candidate.
This only protects a single client issuing sequential requests. Two clients
racing on the same name can still collide.
"""

import asyncio
import logging
import posixpath
from typing import Awaitable, Callable, Optional, Tuple

from taskfiles.providers.interface import FileNotFoundInRepo, GitProvider

logger = logging.getLogger(__name__)

ExistsProbe = Callable[[str], Awaitable[bool]]

DEFAULT_MAX_PROBES = 500


class CollisionLimitError(RuntimeError):
    """Every candidate up to the probe limit was taken."""

    def __init__(self, path: str, attempts: int):
        self.path = path
        self.attempts = attempts
        super().__init__(f"No free filename for {path} after {attempts} probes")


def split_extension(path: str) -> Tuple[str, str]:
    """Split ``dir/name.md`` into ``("dir/name", ".md")``."""
    return posixpath.splitext(path)


def provider_exists(provider: GitProvider) -> ExistsProbe:
    """
    Build an existence probe from a provider.

    A successful metadata fetch means the path is taken, FileNotFoundInRepo
    means it is free, and any other error propagates: guessing "free" on a
    failed probe could overwrite an existing file.
    """

    async def exists(path: str) -> bool:
        try:
            await provider.probe_file(path)
        except FileNotFoundInRepo:
            return False
        return True

    return exists


async def resolve_unique_path(
    path: str,
    exists: ExistsProbe,
    max_probes: int = DEFAULT_MAX_PROBES,
    timeout: Optional[float] = None,
) -> str:
    """
    Return the first free path in ``path``, ``{base}-1{ext}``, ``{base}-2{ext}``, ...

    Args:
        path: Desired path
        exists: Async probe returning True when a path is taken
        max_probes: Give up after this many probes
        timeout: Per-probe timeout in seconds; None waits indefinitely

    Returns:
        The first candidate whose probe reported it free

    Raises:
        CollisionLimitError: If ``max_probes`` candidates were all taken
        asyncio.TimeoutError: If a probe timed out
        Exception: Whatever the probe raised
    """
    base, ext = split_extension(path)
    candidate = path
    counter = 0

    while counter < max_probes:
        if timeout is None:
            taken = await exists(candidate)
        else:
            taken = await asyncio.wait_for(exists(candidate), timeout)

        if not taken:
            if counter:
                logger.info(f"Resolved filename collision: {path} -> {candidate}")
            return candidate

        counter += 1
        logger.debug(f"{candidate} exists, trying suffix -{counter}")
        candidate = f"{base}-{counter}{ext}"

    raise CollisionLimitError(path, max_probes)


class CollisionResolver:
    """Collision resolution bound to a provider and configured limits."""

    def __init__(
        self,
        provider: GitProvider,
        max_probes: int = DEFAULT_MAX_PROBES,
        timeout: Optional[float] = None,
    ):
        self.provider = provider
        self.max_probes = max_probes
        self.timeout = timeout

    @classmethod
    def from_config(cls, provider: GitProvider, config) -> "CollisionResolver":
        return cls(
            provider,
            max_probes=config.collisions.max_probes,
            timeout=config.collisions.probe_timeout,
        )

    async def resolve(self, path: str) -> str:
        """First free path for ``path`` in this provider's repository."""
        return await resolve_unique_path(
            path,
            provider_exists(self.provider),
            max_probes=self.max_probes,
            timeout=self.timeout,
        )
