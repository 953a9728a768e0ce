"""Tests for the barcode resolution engine."""

from __future__ import annotations

import asyncio

import pytest

from discshelf.config import CacheSettings, MatchingSettings
from discshelf.core.matching import CandidateMatch, PlaceholderMatch, ResolutionEngine
from discshelf.shared.errors import (
    BarcodeValidationError,
    DetailFetchFailedError,
    DomainError,
    ErrorCode,
    ProductNotFoundError,
    create_network_error,
)

BARCODE = "012345678905"


@pytest.fixture
def engine(upc_client, metadata_client, make_cache):
    return ResolutionEngine(upc_client, metadata_client, cache=make_cache())


class TestResolve:
    """End-to-end resolution."""

    @pytest.mark.asyncio
    async def test_matrix(self, engine, upc_client, metadata_client):
        result = await engine.resolve(BARCODE)

        assert result.clean_title == "The Matrix"
        assert result.extracted_year == 1999
        assert result.confidence == pytest.approx(92.1)
        assert result.needs_review is False
        assert not result.is_placeholder
        assert result.tmdb_data["runtime"] == 136
        assert result.tmdb_data["matchScore"] == pytest.approx(92.1)
        assert result.tmdb_data["media_type"] == "movie"
        assert result.physical_edition.edition == "Special Edition"
        upc_client.lookup.assert_awaited_once_with(BARCODE)
        metadata_client.get_details.assert_awaited_once_with("movie", 603)

    @pytest.mark.asyncio
    async def test_high_priority_strategy_short_circuits(self, engine, metadata_client):
        await engine.resolve(BARCODE)

        metadata_client.search.assert_awaited_once_with('"The Matrix" 1999', 1)

    @pytest.mark.asyncio
    async def test_repeat_resolve_uses_cache(self, engine, upc_client, metadata_client):
        first = await engine.resolve(BARCODE)
        second = await engine.resolve(BARCODE)

        assert second.confidence == first.confidence
        assert upc_client.lookup.await_count == 1
        assert metadata_client.search.await_count == 1
        assert metadata_client.get_details.await_count == 1

    @pytest.mark.asyncio
    async def test_concurrent_resolves_are_coalesced(self, engine, upc_client, metadata_client):
        results = await asyncio.gather(engine.resolve(BARCODE), engine.resolve(BARCODE))

        assert results[0].match == results[1].match
        assert upc_client.lookup.await_count == 1
        assert metadata_client.search.await_count == 1

    @pytest.mark.asyncio
    async def test_no_results_gives_placeholder(self, engine, metadata_client, search_page):
        metadata_client.search.return_value = search_page()

        result = await engine.resolve(BARCODE)

        assert isinstance(result.match, PlaceholderMatch)
        assert result.match.title == "The Matrix"
        assert result.confidence == 0.0
        assert result.needs_review is True
        assert result.tmdb_data is None
        assert metadata_client.search.await_count == 4
        metadata_client.get_details.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_placeholder_is_not_cached(self, engine, metadata_client, search_page):
        metadata_client.search.return_value = search_page()

        await engine.resolve(BARCODE)

        assert engine.cache.get("match", "the matrix|1999") is None

    @pytest.mark.asyncio
    async def test_invalid_barcode_rejected_before_io(self, engine, upc_client):
        with pytest.raises(BarcodeValidationError):
            await engine.resolve("12ab")

        upc_client.lookup.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_product_not_found_propagates(self, engine, upc_client, metadata_client):
        upc_client.lookup.side_effect = ProductNotFoundError(ErrorCode.PRODUCT_NOT_FOUND, "No product")

        with pytest.raises(ProductNotFoundError):
            await engine.resolve(BARCODE)

        metadata_client.search.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_detail_failure_raises(self, engine, metadata_client):
        metadata_client.get_details.side_effect = create_network_error("offline", "details")

        with pytest.raises(DetailFetchFailedError) as exc_info:
            await engine.resolve(BARCODE)

        assert exc_info.value.code == ErrorCode.DETAIL_FETCH_FAILED

    @pytest.mark.asyncio
    async def test_without_cache_still_resolves(self, upc_client, metadata_client):
        engine = ResolutionEngine(upc_client, metadata_client)

        await engine.resolve(BARCODE)
        await engine.resolve(BARCODE)

        assert upc_client.lookup.await_count == 2


class TestFindBestMatch:
    """Strategy iteration."""

    @pytest.mark.asyncio
    async def test_failed_strategy_is_skipped(self, engine, metadata_client, search_page, search_result):
        metadata_client.search.side_effect = [
            create_network_error("offline", "search"),
            search_page(search_result()),
        ]

        match = await engine.find_best_match("The Matrix", 1999)

        assert isinstance(match, CandidateMatch)
        assert match.external_id == 603
        assert metadata_client.search.await_count == 2

    @pytest.mark.asyncio
    async def test_weak_matches_try_every_strategy(self, engine, metadata_client, search_page, search_result):
        sequel = search_result(
            result_id=604, title="The Matrix Reloaded", date="2003-05-15", popularity=5.0, vote_average=0.0
        )
        metadata_client.search.return_value = search_page(sequel)

        match = await engine.find_best_match("The Matrix", 1999)

        # 35 containment + 0.5 popularity + 10 movie, four years off
        assert match.match_score == pytest.approx(45.5)
        assert match.needs_manual_review is True
        assert metadata_client.search.await_count == 4

    @pytest.mark.asyncio
    async def test_best_across_strategies_wins(self, engine, metadata_client, search_page, search_result):
        weak = search_result(result_id=1, title="Matrix Hunter", date="1990-01-01", popularity=0.0, vote_average=0.0)
        strong = search_result(result_id=603, popularity=10.0, vote_average=0.0)
        metadata_client.search.side_effect = [
            search_page(weak),
            search_page(weak),
            search_page(strong),
            search_page(weak),
        ]

        match = await engine.find_best_match("The Matrix", 1999)

        assert match.external_id == 603

    @pytest.mark.asyncio
    async def test_short_circuit_score_is_configurable(self, upc_client, metadata_client, make_cache):
        engine = ResolutionEngine(
            upc_client,
            metadata_client,
            cache=make_cache(),
            matching=MatchingSettings(short_circuit_score=99.0),
        )

        await engine.find_best_match("The Matrix", 1999)

        assert metadata_client.search.await_count == 4

    @pytest.mark.asyncio
    async def test_legacy_cached_match_gets_estimated_score(self, engine, metadata_client):
        engine.cache.set(
            "match",
            "the matrix|1999",
            {
                "external_id": 603,
                "title": "The Matrix",
                "media_type": "movie",
                "release_year": 1999,
                "popularity": 80.0,
            },
        )

        match = await engine.find_best_match("The Matrix", 1999)

        assert match.match_score == pytest.approx(78.0)
        assert match.needs_manual_review is False
        metadata_client.search.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unreadable_cached_match_is_discarded(self, engine, metadata_client):
        engine.cache.set("match", "the matrix|1999", {"title": "The Matrix"})

        match = await engine.find_best_match("The Matrix", 1999)

        assert match.external_id == 603
        metadata_client.search.assert_awaited()


class TestSearchTitles:
    """Cached search pages."""

    @pytest.mark.asyncio
    async def test_cached_per_query_and_page(self, engine, metadata_client):
        await engine.search_titles("Heat", 2)
        await engine.search_titles("HEAT", 2)

        assert metadata_client.search.await_count == 1
        assert engine.cache.get("search", "heat|2") is not None

    @pytest.mark.asyncio
    async def test_empty_query_rejected(self, engine, metadata_client):
        with pytest.raises(DomainError) as exc_info:
            await engine.search_titles("   ")

        assert exc_info.value.code == ErrorCode.VALIDATION_ERROR
        metadata_client.search.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_namespace_ttl_applies(self, upc_client, metadata_client, make_cache, clock):
        engine = ResolutionEngine(
            upc_client,
            metadata_client,
            cache=make_cache(),
            cache_settings=CacheSettings(namespace_ttls={"search": 60}),
        )

        await engine.search_titles("Heat")
        clock.advance(61)
        await engine.search_titles("Heat")

        assert metadata_client.search.await_count == 2
