"""
Pytest configuration and fixtures for taskfiles tests.
"""

import pytest
import sys
from pathlib import Path

# Configure pytest-asyncio
pytest_plugins = ["pytest_asyncio"]

# Add packages to path for testing
packages_dir = Path(__file__).parent.parent / "packages"
sys.path.insert(0, str(packages_dir / "taskfiles-core"))
sys.path.insert(0, str(packages_dir / "taskfiles-mcp"))


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create a temporary config directory."""
    config_dir = tmp_path / ".taskfiles"
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def memory_provider():
    """Empty in-memory Git provider."""
    from taskfiles.providers.memory import MemoryProvider
    return MemoryProvider()


@pytest.fixture
def memory_store():
    """Empty in-memory key-value store."""
    from taskfiles.storage.memory import MemoryKeyValueStore
    return MemoryKeyValueStore()


@pytest.fixture
def memory_config():
    """Config wired to in-memory backends, without probe timeouts."""
    from taskfiles.config import TaskfilesConfig

    config = TaskfilesConfig()
    config.provider.type = "memory"
    config.storage.type = "memory"
    config.collisions.probe_timeout = None
    return config


@pytest.fixture
def sample_task_content():
    """Task file content with a metadata header."""
    return "---\ntags:\n  - work\n  - urgent\n---\n# Deploy\n\n- [ ] build\n- [x] test\n"
