"""
Pytest configuration and shared fixtures for DiscShelf tests.

Everything time-dependent takes an injectable clock, so tests advance a
FakeClock instead of sleeping.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Generator
from typing import Any
from unittest.mock import AsyncMock, Mock

import pytest

from discshelf.core.matching.models import ProductRecord
from discshelf.services.api_models import SearchPage, SearchResult
from discshelf.services.cache import MemoryStore, TieredCache

MATRIX_TITLE = "The Matrix (1999) Widescreen Special Edition DVD"


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def reset_discshelf_logger() -> Generator[None, None, None]:
    """Undo handler changes made by setup_structured_logger."""
    logger = logging.getLogger("discshelf")
    handlers = list(logger.handlers)
    level = logger.level
    propagate = logger.propagate
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_cache(clock: FakeClock) -> Callable[..., TieredCache]:
    """Factory for a fresh in-memory TieredCache driven by the fake clock."""

    def factory(max_size_bytes: int = 1_000_000, store: Any = None, **kwargs: Any) -> TieredCache:
        return TieredCache(
            store if store is not None else MemoryStore(),
            max_size_bytes=max_size_bytes,
            clock=clock,
            **kwargs,
        )

    return factory


@pytest.fixture
def matrix_product() -> ProductRecord:
    return ProductRecord(
        barcode="012345678905",
        raw_title=MATRIX_TITLE,
        brand="Warner Home Video",
        category="Media > DVDs & Videos",
        description="Includes commentary and behind the scenes featurettes",
    )


def make_result(
    result_id: int = 603,
    title: str = "The Matrix",
    date: str | None = "1999-03-30",
    media_type: str = "movie",
    popularity: float = 80.0,
    vote_average: float = 8.2,
    **extra: Any,
) -> SearchResult:
    """Build a search result; TV results get ``name``/``first_air_date``."""
    if media_type == "tv":
        return SearchResult(
            id=result_id,
            media_type="tv",
            name=title,
            first_air_date=date,
            popularity=popularity,
            vote_average=vote_average,
            **extra,
        )
    return SearchResult(
        id=result_id,
        media_type=media_type,
        title=title,
        release_date=date,
        popularity=popularity,
        vote_average=vote_average,
        **extra,
    )


def make_page(*results: SearchResult) -> SearchPage:
    return SearchPage(results=list(results), page=1, total_pages=1, total_results=len(results))


@pytest.fixture
def upc_client(matrix_product: ProductRecord) -> Mock:
    client = Mock()
    client.lookup = AsyncMock(return_value=matrix_product)
    return client


@pytest.fixture
def metadata_client() -> Mock:
    client = Mock()
    client.search = AsyncMock(return_value=make_page(make_result()))
    client.get_details = AsyncMock(return_value={"id": 603, "title": "The Matrix", "runtime": 136})
    return client


@pytest.fixture
def search_result() -> Callable[..., SearchResult]:
    """Factory fixture for SearchResult objects."""
    return make_result


@pytest.fixture
def search_page() -> Callable[..., SearchPage]:
    """Factory fixture for single-page search responses."""
    return make_page
