"""
Taskfiles Configuration

Loads settings from ~/.taskfiles/config.yaml with environment variable overrides.
The provider token is only ever read from the environment.
"""

from __future__ import annotations
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Optional
import os
import logging

import yaml

logger = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".taskfiles"
CONFIG_FILE = CONFIG_DIR / "config.yaml"


@dataclass
class ProviderConfig:
    """Git provider settings."""

    type: str = "github"  # "github" or "memory"
    owner: Optional[str] = None
    repo: Optional[str] = None
    branch: str = "main"
    token_env: str = "GITHUB_TOKEN"
    timeout: float = 30.0

    @property
    def token(self) -> Optional[str]:
        return os.environ.get(self.token_env)


@dataclass
class TasksConfig:
    """Where task files live in the repository."""

    folder: str = "todos"

    @property
    def archive_folder(self) -> str:
        return f"{self.folder.rstrip('/')}/archive"


@dataclass
class StorageConfig:
    """Local key-value storage for drafts."""

    type: str = "sqlite"  # "sqlite" or "memory"
    sqlite_path: str = "~/.taskfiles/local.db"


@dataclass
class DraftConfig:
    expiry_hours: float = 24.0


@dataclass
class HistoryConfig:
    cache_size: int = 100
    preload: int = 5


@dataclass
class CollisionConfig:
    """Filename collision probing limits."""

    max_probes: int = 500
    probe_timeout: Optional[float] = 10.0


@dataclass
class TaskfilesConfig:
    """
    Complete Taskfiles configuration.

    Loaded from ~/.taskfiles/config.yaml with environment variable overrides.
    """

    provider: ProviderConfig = field(default_factory=ProviderConfig)
    tasks: TasksConfig = field(default_factory=TasksConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    drafts: DraftConfig = field(default_factory=DraftConfig)
    history: HistoryConfig = field(default_factory=HistoryConfig)
    collisions: CollisionConfig = field(default_factory=CollisionConfig)

    # Convenience accessors
    @property
    def folder(self) -> str:
        return self.tasks.folder

    @property
    def repository(self) -> Optional[str]:
        if self.provider.owner and self.provider.repo:
            return f"{self.provider.owner}/{self.provider.repo}"
        return None

    def to_dict(self) -> dict:
        """Convert to dictionary for display (masks secrets)."""
        result = asdict(self)

        token = self.provider.token
        result["provider"]["token"] = (token[:4] + "...") if token else None

        return result


def _section(data: dict, name: str) -> dict:
    value = data.get(name) or {}
    return value if isinstance(value, dict) else {}


def _parse_provider_config(data: dict) -> ProviderConfig:
    """Parse provider configuration from YAML data."""
    provider_data = _section(data, "provider")

    return ProviderConfig(
        type=provider_data.get("type", "github"),
        owner=provider_data.get("owner"),
        repo=provider_data.get("repo"),
        branch=provider_data.get("branch", "main"),
        token_env=provider_data.get("token_env", "GITHUB_TOKEN"),
        timeout=float(provider_data.get("timeout", 30.0)),
    )


def _parse_tasks_config(data: dict) -> TasksConfig:
    tasks_data = _section(data, "tasks")
    return TasksConfig(folder=tasks_data.get("folder", "todos"))


def _parse_storage_config(data: dict) -> StorageConfig:
    storage_data = _section(data, "storage")
    return StorageConfig(
        type=storage_data.get("type", "sqlite"),
        sqlite_path=storage_data.get("sqlite_path", "~/.taskfiles/local.db"),
    )


def _parse_limits(data: dict) -> tuple:
    """Parse drafts, history and collisions sections."""
    drafts_data = _section(data, "drafts")
    history_data = _section(data, "history")
    collisions_data = _section(data, "collisions")

    probe_timeout = collisions_data.get("probe_timeout", 10.0)

    return (
        DraftConfig(expiry_hours=float(drafts_data.get("expiry_hours", 24.0))),
        HistoryConfig(
            cache_size=int(history_data.get("cache_size", 100)),
            preload=int(history_data.get("preload", 5)),
        ),
        CollisionConfig(
            max_probes=int(collisions_data.get("max_probes", 500)),
            probe_timeout=float(probe_timeout) if probe_timeout is not None else None,
        ),
    )


def load_config(config_path: Optional[Path] = None) -> TaskfilesConfig:
    """
    Load configuration from file with environment variable overrides.

    Args:
        config_path: Optional path to config file. Defaults to ~/.taskfiles/config.yaml

    Returns:
        TaskfilesConfig instance
    """
    config_file = config_path or CONFIG_FILE
    config = TaskfilesConfig()

    if config_file.exists():
        try:
            with open(config_file, 'r') as f:
                data = yaml.safe_load(f) or {}

            config.provider = _parse_provider_config(data)
            config.tasks = _parse_tasks_config(data)
            config.storage = _parse_storage_config(data)
            config.drafts, config.history, config.collisions = _parse_limits(data)

        except yaml.YAMLError as e:
            logger.warning(f"Could not parse config file at {config_file}: {e}")
        except (OSError, ValueError, TypeError) as e:
            logger.warning(f"Unexpected error loading config from {config_file}: {e}")

    # Environment variable overrides
    if os.environ.get("TASKFILES_PROVIDER"):
        config.provider.type = os.environ["TASKFILES_PROVIDER"]

    if os.environ.get("TASKFILES_GITHUB_OWNER"):
        config.provider.owner = os.environ["TASKFILES_GITHUB_OWNER"]

    if os.environ.get("TASKFILES_GITHUB_REPO"):
        config.provider.repo = os.environ["TASKFILES_GITHUB_REPO"]

    if os.environ.get("TASKFILES_GITHUB_BRANCH"):
        config.provider.branch = os.environ["TASKFILES_GITHUB_BRANCH"]

    if os.environ.get("TASKFILES_FOLDER"):
        config.tasks.folder = os.environ["TASKFILES_FOLDER"]

    if os.environ.get("TASKFILES_STORAGE_PATH"):
        config.storage.type = "sqlite"
        config.storage.sqlite_path = os.environ["TASKFILES_STORAGE_PATH"]

    return config


def save_config(config: TaskfilesConfig, config_path: Optional[Path] = None) -> None:
    """
    Save configuration to file.

    The token itself is never written; only the name of the environment
    variable that holds it.

    Args:
        config: TaskfilesConfig instance to save
        config_path: Optional path to config file. Defaults to ~/.taskfiles/config.yaml
    """
    config_file = config_path or CONFIG_FILE

    # Ensure config directory exists
    config_file.parent.mkdir(parents=True, exist_ok=True)

    data = {
        "provider": {
            "type": config.provider.type,
            "branch": config.provider.branch,
            "token_env": config.provider.token_env,
            "timeout": config.provider.timeout,
        },
        "tasks": {"folder": config.tasks.folder},
        "storage": {"type": config.storage.type},
        "drafts": {"expiry_hours": config.drafts.expiry_hours},
        "history": {
            "cache_size": config.history.cache_size,
            "preload": config.history.preload,
        },
        "collisions": {
            "max_probes": config.collisions.max_probes,
            "probe_timeout": config.collisions.probe_timeout,
        },
    }

    if config.provider.owner:
        data["provider"]["owner"] = config.provider.owner
    if config.provider.repo:
        data["provider"]["repo"] = config.provider.repo
    if config.storage.type == "sqlite":
        data["storage"]["sqlite_path"] = config.storage.sqlite_path

    with open(config_file, 'w') as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False)

    # Secure permissions (readable only by owner)
    config_file.chmod(0o600)

    logger.info(f"Configuration saved to {config_file}")


def ensure_config_dir() -> Path:
    """Ensure config directory exists and return its path."""
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    return CONFIG_DIR


# Cached config instance
_config: Optional[TaskfilesConfig] = None


def get_config() -> TaskfilesConfig:
    """Get cached config instance, loading if needed."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config() -> TaskfilesConfig:
    """Force reload config from file."""
    global _config
    _config = load_config()
    return _config
