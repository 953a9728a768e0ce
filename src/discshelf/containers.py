"""Dependency Injection container for DiscShelf.

This module composes the resolution engine from settings using
dependency-injector, so every caller shares one cache, one coalescer and
one HTTP session instead of module-level globals.

The container manages:
- Settings (Singleton)
- Cache store and TieredCache (Singleton)
- RequestCoalescer (Singleton)
- UPC and metadata clients
- Resolution engine and scanner sessions
"""

from __future__ import annotations

from dependency_injector import containers, providers

from discshelf.config.loader import load_settings
from discshelf.config.models import CacheSettings, Settings
from discshelf.core.matching.engine import ResolutionEngine
from discshelf.scanner.session import ScannerSession
from discshelf.services.cache import JSONFileStore, KeyValueStore, MemoryStore, TieredCache
from discshelf.services.coalescer import RequestCoalescer
from discshelf.services.http_session import build_session
from discshelf.services.metadata_client import MetadataClient
from discshelf.services.upc_client import UPCClient


def build_store(cache_settings: CacheSettings) -> KeyValueStore:
    """File-backed store when a directory is configured, in-memory otherwise."""
    if cache_settings.directory:
        return JSONFileStore(cache_settings.directory, quota_bytes=cache_settings.quota_bytes)
    return MemoryStore(quota_bytes=cache_settings.quota_bytes)


def build_cache(cache_settings: CacheSettings, store: KeyValueStore) -> TieredCache | None:
    if not cache_settings.enabled:
        return None
    return TieredCache(
        store,
        prefix=cache_settings.prefix,
        max_size_bytes=cache_settings.max_size_bytes,
        default_ttl=cache_settings.default_ttl,
    )


class Container(containers.DeclarativeContainer):
    """Dependency Injection container for DiscShelf services.

    Example:
        >>> container = Container()
        >>> engine = container.resolution_engine()
        >>> result = await engine.resolve("012345678905")
    """

    # Configuration
    config = providers.Singleton(load_settings)

    cache_settings = providers.Callable(lambda config: config.cache, config=config)

    # Cache services
    cache_store = providers.Singleton(build_store, cache_settings=cache_settings)

    cache = providers.Singleton(
        build_cache,
        cache_settings=cache_settings,
        store=cache_store,
    )

    coalescer = providers.Singleton(RequestCoalescer)

    # HTTP clients
    http_session = providers.Singleton(
        build_session,
        retry_attempts=providers.Callable(lambda config: config.api.retry_attempts, config=config),
        backoff_factor=providers.Callable(lambda config: config.api.retry_backoff_factor, config=config),
    )

    upc_client = providers.Factory(
        UPCClient,
        endpoint=providers.Callable(lambda config: config.api.upc.endpoint, config=config),
        session=http_session,
        timeout=providers.Callable(lambda config: config.api.timeout, config=config),
    )

    metadata_client = providers.Factory(
        MetadataClient,
        base_url=providers.Callable(lambda config: config.api.metadata.base_url, config=config),
        api_key=providers.Callable(lambda config: config.api.metadata.api_key, config=config),
        language=providers.Callable(lambda config: config.api.metadata.language, config=config),
        session=http_session,
        timeout=providers.Callable(lambda config: config.api.timeout, config=config),
    )

    # Resolution engine
    resolution_engine = providers.Singleton(
        ResolutionEngine,
        upc_client=upc_client,
        metadata_client=metadata_client,
        cache=cache,
        coalescer=coalescer,
        matching=providers.Callable(lambda config: config.matching, config=config),
        cache_settings=cache_settings,
    )

    # Scanner
    scanner_session = providers.Factory(
        ScannerSession,
        handler=providers.Callable(lambda engine: engine.resolve, engine=resolution_engine),
        settings=providers.Callable(lambda config: config.scanner, config=config),
    )


def create_container(settings: Settings | None = None) -> Container:
    """Build a container, optionally pinned to explicit settings."""
    container = Container()
    if settings is not None:
        container.config.override(providers.Object(settings))
    return container
