"""Pytest configuration and fixtures."""

from pathlib import Path

import pytest

from enhanced_context.catalog import ConfigLoader
from enhanced_context.config import (
    BUNDLED_CONFIG,
    BUNDLED_CONTENT,
    CacheSettings,
    EnhancedContextSettings,
)
from enhanced_context.services import ServiceFactory
from enhanced_context.storage import HybridContentStore, LocalContentStore

# Enable pytest-asyncio for all tests
pytest_plugins = ("pytest_asyncio",)


@pytest.fixture
def config_loader() -> ConfigLoader:
    """Loader over the configuration documents shipped with the package."""
    return ConfigLoader(BUNDLED_CONFIG)


@pytest.fixture
def bundled_store() -> LocalContentStore:
    """Read-only view of the bundled content."""
    return LocalContentStore(BUNDLED_CONTENT)


@pytest.fixture
def home_dir(tmp_path: Path) -> Path:
    """Empty writable content directory."""
    home = tmp_path / "wama"
    home.mkdir()
    return home


@pytest.fixture
def hybrid_store(home_dir: Path) -> HybridContentStore:
    """Writable home layered over the bundled content."""
    return HybridContentStore(home_dir, BUNDLED_CONTENT)


@pytest.fixture
def settings(home_dir: Path) -> EnhancedContextSettings:
    """Settings pointing at a temporary home with read caching disabled."""
    return EnhancedContextSettings(
        home=home_dir,
        fallback_dir=BUNDLED_CONTENT,
        config_dir=BUNDLED_CONFIG,
        cache=CacheSettings(read_ttl=0),
    )


@pytest.fixture
def factory(settings: EnhancedContextSettings) -> ServiceFactory:
    """Service factory over the temporary home and bundled configuration."""
    return ServiceFactory(settings, config_loader=ConfigLoader(BUNDLED_CONFIG))
