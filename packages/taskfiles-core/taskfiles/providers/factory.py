"""
Git provider factory.

Creates the appropriate provider based on configuration.
"""

import logging

from taskfiles.providers.interface import GitProvider

logger = logging.getLogger(__name__)

# Global provider instance (singleton pattern)
_provider: GitProvider | None = None


def get_provider(config=None) -> GitProvider:
    """
    Get or create the Git provider based on configuration.

    Uses singleton pattern - returns same provider instance on subsequent calls.

    Args:
        config: Optional TaskfilesConfig. If not provided, loads from default location.

    Returns:
        GitProvider instance (GitHubProvider or MemoryProvider)

    Raises:
        ValueError: If provider configuration is invalid
    """
    global _provider

    if _provider is not None:
        return _provider

    if config is None:
        from taskfiles.config import load_config
        config = load_config()

    provider_type = config.provider.type.lower()

    if provider_type == "github":
        from taskfiles.providers.github import GitHubProvider

        _provider = GitHubProvider(
            owner=config.provider.owner,
            repo=config.provider.repo,
            token=config.provider.token,
            branch=config.provider.branch,
            timeout=config.provider.timeout,
        )
        if not config.provider.token:
            logger.warning(f"{config.provider.token_env} not set, using anonymous GitHub access")
        logger.info(f"Using GitHub provider: {config.repository}")

    elif provider_type == "memory":
        from taskfiles.providers.memory import MemoryProvider

        _provider = MemoryProvider()
        logger.info("Using in-memory provider")

    else:
        raise ValueError(
            f"Unknown provider type: {provider_type}. "
            "Use 'github' or 'memory'."
        )

    return _provider


async def init_provider(config=None) -> GitProvider:
    """Get the provider and connect it."""
    provider = get_provider(config)
    await provider.connect()
    return provider


async def close_provider() -> None:
    """Close the global provider."""
    global _provider

    if _provider is not None:
        await _provider.close()
        _provider = None


def reset_provider() -> None:
    """
    Reset the global provider instance.

    Useful for testing or when configuration changes.
    """
    global _provider
    _provider = None
