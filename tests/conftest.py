"""
Pytest Configuration and Shared Test Fixtures

This module provides pytest configuration and reusable fixtures for all tests.
All fixtures defined here are automatically available to all test files.
"""

import pytest

from blobcache.core.config.cache_config import CacheConfig
from blobcache.core.config.settings import reload_settings
from blobcache.infrastructure.cache.cache_manager import CacheManager
from tests.test_fixtures.cache_factory import CacheTestFactory, FakeClock

# pytest-asyncio is loaded via pyproject.toml configuration


# ============================================================================
# Settings Isolation
# ============================================================================


@pytest.fixture
def isolated_settings(tmp_path, monkeypatch):
    """
    Settings singleton pointed at a temporary cache base directory.

    Environment variables set by a test through monkeypatch before calling
    reload_settings() again take effect.
    """
    monkeypatch.setenv("CACHE_BASE_DIR", str(tmp_path / "settings_base"))
    monkeypatch.setenv("LOG_FORMAT", "console")
    settings = reload_settings()
    yield settings
    monkeypatch.undo()
    reload_settings()


# ============================================================================
# Clock and Configuration Fixtures
# ============================================================================


@pytest.fixture
def fake_clock():
    """Controllable epoch-millisecond clock."""
    return FakeClock()


@pytest.fixture
def cache_config():
    """Small configuration: 1 s default TTL, memory layer of 3 entries."""
    return CacheTestFactory.config()


# ============================================================================
# Engine Fixtures
# ============================================================================


@pytest.fixture
def cache(tmp_path, cache_config, fake_clock) -> CacheManager:
    """CacheManager on a temporary directory driven by fake_clock."""
    return CacheManager(cache_config, base_dir=tmp_path, clock=fake_clock)


@pytest.fixture
def real_time_cache(tmp_path) -> CacheManager:
    """CacheManager using the wall clock, for sleep-based tests."""
    return CacheManager(CacheTestFactory.config(), base_dir=tmp_path)


@pytest.fixture
def no_memory_cache(tmp_path, fake_clock) -> CacheManager:
    config = CacheTestFactory.config(enable_memory_cache=False)
    return CacheManager(config, base_dir=tmp_path, clock=fake_clock)


@pytest.fixture
def mock_cache_engine():
    """AsyncMock cache engine for helper and API tests."""
    return CacheTestFactory.mock_cache_engine()


@pytest.fixture
def default_config():
    return CacheConfig.default()
