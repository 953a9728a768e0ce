"""External API Response Models.

Pydantic models for the UPC lookup and metadata search responses, validating
data at the external API boundary. Unknown fields are ignored so new fields
added by either service do not break validation.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class APIModel(BaseModel):
    """Lenient base model for external API payloads."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class UPCItem(APIModel):
    """One product entry from the UPC lookup service."""

    title: str = Field("", description="Raw retail product title")
    brand: str = Field("", description="Brand or distributor")
    category: str = Field("", description="Retail category path")
    description: str = Field("", description="Free-text product description")
    images: list[str] = Field(default_factory=list, description="Product image URLs")

    @field_validator("title", "brand", "category", "description", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class UPCResponse(APIModel):
    """UPC lookup response.

    Example:
        >>> UPCResponse(code="OK", items=[UPCItem(title="The Matrix DVD")]).found
        True
    """

    code: str = Field("", description="Service status code, 'OK' on success")
    items: list[UPCItem] = Field(default_factory=list)

    @property
    def found(self) -> bool:
        return self.code == "OK" and bool(self.items)


class SearchResult(APIModel):
    """Single result from the metadata multi-search.

    Movie results carry ``title``/``release_date`` while TV results carry
    ``name``/``first_air_date``. People and other media types are filtered
    out before scoring.
    """

    id: int = Field(..., description="Metadata catalog ID")
    media_type: Literal["movie", "tv", "person", "collection"] = Field(..., description="Media type")

    title: str | None = Field(None, description="Movie title")
    name: str | None = Field(None, description="TV show name")

    release_date: str | None = Field(None, description="Movie release date (YYYY-MM-DD)")
    first_air_date: str | None = Field(None, description="TV first air date (YYYY-MM-DD)")

    popularity: float = Field(0.0, description="Popularity score")
    vote_average: float = Field(0.0, description="Average rating (0-10)")
    vote_count: int = Field(0, description="Number of votes")

    overview: str | None = Field(None, description="Plot synopsis")
    poster_path: str | None = Field(None, description="Poster image path")

    @field_validator("popularity", "vote_average", "vote_count", mode="before")
    @classmethod
    def _none_to_zero(cls, value: Any) -> Any:
        return 0 if value is None else value

    @property
    def display_title(self) -> str:
        """Movie title or TV name, empty if both are missing."""
        return self.title or self.name or ""

    @property
    def display_date(self) -> str | None:
        return self.release_date or self.first_air_date

    @property
    def release_year(self) -> int | None:
        """Year parsed from the release or first-air date."""
        date = self.display_date
        if date and len(date) >= 4 and date[:4].isdigit():
            return int(date[:4])
        return None


class SearchPage(APIModel):
    """One page of metadata search results."""

    results: list[SearchResult] = Field(default_factory=list)
    page: int = Field(1, ge=1)
    total_pages: int = Field(0, ge=0)
    total_results: int = Field(0, ge=0)

    @field_validator("results", mode="before")
    @classmethod
    def _drop_unknown_media(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return value
        return [
            item
            for item in value
            if not isinstance(item, dict) or item.get("media_type") in ("movie", "tv", "person", "collection")
        ]

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages
