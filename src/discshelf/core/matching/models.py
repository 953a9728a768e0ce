"""Domain models for barcode resolution.

ProductRecord is what the UPC stage produces. A search produces either a
CandidateMatch or, when nothing matched, a PlaceholderMatch; the two are
distinct types so callers branch on the type rather than a sentinel flag.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from typing import TYPE_CHECKING, Any, Union

if TYPE_CHECKING:
    from discshelf.core.normalization.edition import PhysicalEditionInfo
    from discshelf.services.api_models import SearchResult


@dataclass(frozen=True)
class ProductRecord:
    """Retail product data for one barcode."""

    barcode: str
    raw_title: str
    brand: str = ""
    category: str = ""
    description: str = ""
    images: tuple[str, ...] = ()

    @property
    def free_text(self) -> str:
        """Title, description and category joined for keyword extraction."""
        return " ".join(part for part in (self.raw_title, self.description, self.category) if part)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["images"] = list(self.images)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProductRecord:
        return cls(
            barcode=str(data["barcode"]),
            raw_title=data.get("raw_title") or "",
            brand=data.get("brand") or "",
            category=data.get("category") or "",
            description=data.get("description") or "",
            images=tuple(data.get("images") or ()),
        )


@dataclass(frozen=True)
class CandidateMatch:
    """A scored metadata match.

    ``needs_manual_review`` is decided once by the resolution engine and
    attached with ``with_review``.
    """

    external_id: int
    title: str
    media_type: str
    release_year: int | None
    popularity: float
    vote_count: int
    vote_average: float
    match_score: float
    needs_manual_review: bool = False

    @classmethod
    def from_search_result(cls, result: SearchResult, score: float) -> CandidateMatch:
        return cls(
            external_id=result.id,
            title=result.display_title,
            media_type=result.media_type,
            release_year=result.release_year,
            popularity=result.popularity,
            vote_count=result.vote_count,
            vote_average=result.vote_average,
            match_score=score,
        )

    def with_review(self, needs_manual_review: bool) -> CandidateMatch:
        return replace(self, needs_manual_review=needs_manual_review)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class PlaceholderMatch:
    """Stand-in returned when no search strategy produced a candidate.

    Always routed to manual review with a score of zero.
    """

    title: str
    match_score: float = field(default=0.0, init=False)
    needs_manual_review: bool = field(default=True, init=False)

    def to_dict(self) -> dict[str, Any]:
        return {"title": self.title, "match_score": self.match_score, "placeholder": True}


MatchOutcome = Union[CandidateMatch, PlaceholderMatch]


@dataclass(frozen=True)
class SearchStrategy:
    """One query formulation tried against the metadata search."""

    name: str
    query: str
    high_priority: bool = False


@dataclass(frozen=True)
class ResolutionResult:
    """Final outcome of resolving a barcode.

    Attributes:
        upc_data: Product record from the UPC stage
        tmdb_data: Full metadata record with matchScore and media_type
            overlaid, or None for a placeholder match
        physical_edition: Edition details derived from the product text
        clean_title: Title used for searching
        extracted_year: Year found in the raw title, if any
        confidence: Score of the chosen match
        needs_review: Whether a person should confirm the match
        match: The chosen candidate or placeholder
    """

    upc_data: ProductRecord
    tmdb_data: dict[str, Any] | None
    physical_edition: PhysicalEditionInfo
    clean_title: str
    extracted_year: int | None
    confidence: float
    needs_review: bool
    match: MatchOutcome

    @property
    def is_placeholder(self) -> bool:
        return isinstance(self.match, PlaceholderMatch)

    def to_dict(self) -> dict[str, Any]:
        return {
            "upc_data": self.upc_data.to_dict(),
            "tmdb_data": self.tmdb_data,
            "physical_edition": self.physical_edition.to_dict(),
            "clean_title": self.clean_title,
            "extracted_year": self.extracted_year,
            "confidence": self.confidence,
            "needs_review": self.needs_review,
            "match": self.match.to_dict(),
        }
