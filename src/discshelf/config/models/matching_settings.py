"""Matching configuration model.

The manual-review threshold and short-circuit score are tunable rather than
fixed so collections with unusual catalogs can adjust them.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from discshelf.shared.constants import ReviewThresholds


class MatchingSettings(BaseModel):
    """Candidate scoring and manual-review thresholds."""

    confidence_threshold: float = Field(
        default=ReviewThresholds.CONFIDENCE,
        ge=0,
        le=100,
        description="Scores below this require manual review",
    )
    short_circuit_score: float = Field(
        default=ReviewThresholds.SHORT_CIRCUIT_SCORE,
        ge=0,
        le=100,
        description="A high-priority strategy scoring above this stops the search",
    )
    year_tolerance: int = Field(
        default=ReviewThresholds.YEAR_TOLERANCE,
        ge=0,
        description="Allowed difference between product year and release year",
    )
    min_popularity: float = Field(
        default=ReviewThresholds.MIN_POPULARITY,
        ge=0,
        description="Candidates below this popularity require manual review",
    )


__all__ = [
    "MatchingSettings",
]
