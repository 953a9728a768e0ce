"""Barcode resolution engine.

Turns a scanned barcode into a scored metadata match:

1. UPC stage: cached, coalesced product lookup
2. Normalization stage: clean title and release year from the product title
3. Search stage: ordered query strategies against the metadata search
4. No-match stage: a placeholder routed to manual review
5. Detail stage: full metadata record for the winning candidate

Every network-backed lookup goes through the TieredCache and the
RequestCoalescer, so repeated and concurrent lookups share one call.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any, Awaitable, Callable, TypeVar

from pydantic import ValidationError

from discshelf.config.models import CacheSettings, MatchingSettings
from discshelf.core.matching.models import (
    CandidateMatch,
    MatchOutcome,
    PlaceholderMatch,
    ProductRecord,
    ResolutionResult,
)
from discshelf.core.matching.scoring import (
    estimate_confidence,
    needs_manual_review,
    select_best_candidate,
)
from discshelf.core.matching.strategies import build_search_strategies
from discshelf.core.normalization import clean_title, extract_physical_edition, extract_year
from discshelf.services.api_models import SearchPage
from discshelf.services.coalescer import RequestCoalescer
from discshelf.shared.constants import CacheNamespace, DetailFields
from discshelf.shared.errors import (
    DetailFetchFailedError,
    DiscShelfError,
    ErrorCode,
    ErrorContext,
    create_validation_error,
)
from discshelf.shared.logging import log_operation_error, log_operation_success
from discshelf.shared.validation import sanitize_input, validate_barcode

if TYPE_CHECKING:
    from discshelf.services.cache import TieredCache
    from discshelf.services.metadata_client import MetadataClient
    from discshelf.services.upc_client import UPCClient

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ResolutionEngine:
    """Resolve barcodes into metadata matches.

    Args:
        upc_client: UPC lookup client
        metadata_client: Metadata search and detail client
        cache: Shared lookup cache; lookups are only coalesced when None
        coalescer: Shared request coalescer, a private one when omitted
        matching: Scoring thresholds
        cache_settings: Per-namespace TTLs
    """

    def __init__(
        self,
        upc_client: UPCClient,
        metadata_client: MetadataClient,
        *,
        cache: TieredCache | None = None,
        coalescer: RequestCoalescer | None = None,
        matching: MatchingSettings | None = None,
        cache_settings: CacheSettings | None = None,
    ) -> None:
        self.upc_client = upc_client
        self.metadata_client = metadata_client
        self.cache = cache
        self.coalescer = coalescer or RequestCoalescer()
        self.matching = matching or MatchingSettings()
        self.cache_settings = cache_settings or CacheSettings()

    async def _cached(self, namespace: str, key: str, operation: Callable[[], Awaitable[T]]) -> T:
        if self.cache is None:
            return await self.coalescer.run(f"{namespace}:{key}", operation)
        return await self.coalescer.run_cached(
            self.cache,
            namespace,
            key,
            operation,
            ttl=self.cache_settings.ttl_for(namespace),
        )

    # UPC stage

    async def lookup_product(self, barcode: str) -> ProductRecord:
        """Fetch the product record for a barcode.

        Raises:
            BarcodeValidationError: Barcode is not 8-18 digits
            ProductNotFoundError: The UPC service knows no such product
            NetworkError: Transport failure
        """
        barcode = validate_barcode(barcode, operation="lookup_product")

        async def fetch() -> dict[str, Any]:
            product = await self.upc_client.lookup(barcode)
            return product.to_dict()

        data = await self._cached(CacheNamespace.UPC, barcode, fetch)
        return ProductRecord.from_dict(data)

    # Search stage

    async def search_titles(self, query: str, page: int = 1) -> SearchPage:
        """One page of metadata search results, cached per query and page."""
        query = sanitize_input(query)
        if not query:
            raise create_validation_error(
                "Search query must not be empty", field="query", operation="search_titles"
            )

        async def fetch() -> dict[str, Any]:
            result = await self.metadata_client.search(query, page)
            return result.model_dump()

        data = await self._cached(CacheNamespace.SEARCH, f"{query.lower()}|{page}", fetch)
        try:
            return SearchPage.model_validate(data)
        except ValidationError:
            logger.warning("Discarding unreadable cached search page for '%s'", query)
            if self.cache is not None:
                self.cache.remove(CacheNamespace.SEARCH, f"{query.lower()}|{page}")
            return await self.metadata_client.search(query, page)

    @staticmethod
    def _match_key(title: str, year: int | None) -> str:
        return f"{title.lower()}|{year if year is not None else ''}"

    def _needs_review(self, candidate: MatchOutcome, year: int | None) -> bool:
        return needs_manual_review(
            candidate,
            year,
            confidence_threshold=self.matching.confidence_threshold,
            year_tolerance=self.matching.year_tolerance,
            min_popularity=self.matching.min_popularity,
        )

    def _cached_match(self, title: str, year: int | None) -> CandidateMatch | None:
        if self.cache is None:
            return None
        data = self.cache.get(CacheNamespace.MATCH, self._match_key(title, year))
        if not isinstance(data, dict):
            return None

        try:
            score = data.get("match_score")
            if score is None:
                # Entries written before scores were stored
                score = estimate_confidence(
                    title,
                    data["title"],
                    year,
                    data.get("release_year"),
                    float(data.get("popularity") or 0.0),
                )
                logger.debug("Estimated confidence %.1f for legacy match '%s'", score, data["title"])
            candidate = CandidateMatch(
                external_id=int(data["external_id"]),
                title=data["title"],
                media_type=data["media_type"],
                release_year=data.get("release_year"),
                popularity=float(data.get("popularity") or 0.0),
                vote_count=int(data.get("vote_count") or 0),
                vote_average=float(data.get("vote_average") or 0.0),
                match_score=float(score),
            )
        except (KeyError, TypeError, ValueError):
            logger.warning("Discarding unreadable cached match for '%s'", title)
            self.cache.remove(CacheNamespace.MATCH, self._match_key(title, year))
            return None

        return candidate.with_review(self._needs_review(candidate, year))

    async def find_best_match(
        self,
        title: str,
        year: int | None,
        product: ProductRecord | None = None,
    ) -> MatchOutcome:
        """Run the search strategies in order and keep the best candidate.

        A strategy whose search fails or returns nothing usable is skipped.
        A high-priority strategy scoring above the short-circuit score ends
        the search early. When nothing matched, a PlaceholderMatch is
        returned instead of raising.
        """
        cached = self._cached_match(title, year)
        if cached is not None:
            logger.debug("Using cached match for '%s': '%s'", title, cached.title)
            return cached

        best: CandidateMatch | None = None
        for strategy in build_search_strategies(title, year, product):
            try:
                page = await self.search_titles(strategy.query)
            except DiscShelfError as error:
                log_operation_error(
                    logger,
                    error,
                    "search_strategy",
                    {"strategy": strategy.name, "query": strategy.query},
                    level=logging.WARNING,
                )
                continue

            selected = select_best_candidate(page.results, title, year)
            if selected is None:
                logger.debug("Strategy '%s' returned no usable results", strategy.name)
                continue

            result, score = selected
            if best is None or score > best.match_score:
                best = CandidateMatch.from_search_result(result, score)

            if strategy.high_priority and score > self.matching.short_circuit_score:
                logger.debug(
                    "Strategy '%s' scored %.1f, skipping remaining strategies",
                    strategy.name,
                    score,
                )
                break

        if best is None:
            logger.info("No metadata match for '%s', routing to manual review", title)
            return PlaceholderMatch(title=title)

        best = best.with_review(self._needs_review(best, year))
        if self.cache is not None:
            self.cache.set(
                CacheNamespace.MATCH,
                self._match_key(title, year),
                best.to_dict(),
                self.cache_settings.ttl_for(CacheNamespace.MATCH),
            )
        return best

    # Detail stage

    async def fetch_details(self, candidate: CandidateMatch) -> dict[str, Any]:
        """Full metadata record with the search-stage score and media type.

        Raises:
            DetailFetchFailedError: The detail lookup failed
        """

        async def fetch() -> dict[str, Any]:
            return await self.metadata_client.get_details(candidate.media_type, candidate.external_id)

        try:
            details = await self._cached(
                CacheNamespace.DETAILS,
                f"{candidate.media_type}_{candidate.external_id}",
                fetch,
            )
        except DiscShelfError as e:
            raise DetailFetchFailedError(
                ErrorCode.DETAIL_FETCH_FAILED,
                f"Could not load details for '{candidate.title}'",
                ErrorContext(
                    operation="fetch_details",
                    additional_data={
                        "media_type": candidate.media_type,
                        "external_id": candidate.external_id,
                    },
                ),
                original_error=e,
            ) from e

        record = dict(details)
        record[DetailFields.MATCH_SCORE] = candidate.match_score
        record[DetailFields.MEDIA_TYPE] = candidate.media_type
        return record

    async def resolve(self, barcode: str) -> ResolutionResult:
        """Resolve a barcode end to end.

        UPC and detail failures propagate; search failures only lower the
        outcome to a placeholder match.
        """
        start = time.perf_counter()

        # Step 1: Product lookup
        product = await self.lookup_product(barcode)

        # Step 2: Title normalization
        title = clean_title(product.raw_title)
        year = extract_year(product.raw_title)
        logger.debug("Cleaned '%s' to '%s' (year %s)", product.raw_title, title, year)

        # Step 3: Metadata search
        match = await self.find_best_match(title, year, product)

        # Step 4: Details for a real candidate
        details = await self.fetch_details(match) if isinstance(match, CandidateMatch) else None

        result = ResolutionResult(
            upc_data=product,
            tmdb_data=details,
            physical_edition=extract_physical_edition(product),
            clean_title=title,
            extracted_year=year,
            confidence=match.match_score,
            needs_review=match.needs_manual_review,
            match=match,
        )

        log_operation_success(
            logger,
            "resolve",
            (time.perf_counter() - start) * 1000,
            {
                "title": match.title,
                "confidence": result.confidence,
                "needs_review": result.needs_review,
            },
            ErrorContext(operation="resolve", barcode=product.barcode),
        )
        return result
