"""Tests for the dependency injection container."""

from __future__ import annotations

from discshelf.config import CacheSettings, Settings
from discshelf.containers import build_store, create_container
from discshelf.core.matching import ResolutionEngine
from discshelf.scanner import ScannerSession
from discshelf.services.cache import JSONFileStore, MemoryStore, TieredCache


class TestBuildStore:
    """Store selection."""

    def test_directory_gives_file_store(self, tmp_path):
        assert isinstance(build_store(CacheSettings(directory=str(tmp_path))), JSONFileStore)

    def test_default_is_memory_store(self):
        assert isinstance(build_store(CacheSettings()), MemoryStore)


class TestContainer:
    """Wiring."""

    def test_engine_shares_cache_and_coalescer(self):
        container = create_container(Settings())

        engine = container.resolution_engine()

        assert isinstance(engine, ResolutionEngine)
        assert container.resolution_engine() is engine
        assert isinstance(engine.cache, TieredCache)
        assert engine.cache is container.cache()
        assert engine.coalescer is container.coalescer()

    def test_settings_flow_into_components(self):
        settings = Settings(
            cache={"max_size_mb": 1.0, "prefix": "test_"},
            matching={"confidence_threshold": 50.0},
            api={"metadata": {"api_key": "key"}},
        )
        container = create_container(settings)

        engine = container.resolution_engine()

        assert engine.cache.max_size_bytes == 1024 * 1024
        assert engine.cache.prefix == "test_"
        assert engine.matching.confidence_threshold == 50.0
        assert engine.metadata_client.api_key == "key"

    def test_disabled_cache(self):
        container = create_container(Settings(cache={"enabled": False}))

        assert container.cache() is None
        assert container.resolution_engine().cache is None

    def test_scanner_session_uses_engine(self):
        container = create_container(Settings(scanner={"continuous": False}))

        session = container.scanner_session()

        assert isinstance(session, ScannerSession)
        assert session.handler == container.resolution_engine().resolve
        assert session.continuous is False
