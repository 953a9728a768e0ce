"""Candidate scoring for metadata search results.

A candidate score (roughly 0-100) is the sum of:

- title similarity (0-40)
- year proximity (+30 exact, +20 off by one, +10 within three)
- popularity (popularity / 10, capped at 15)
- media type (+10 for movies, physical media being mostly films)
- vote average (vote_average / 2, capped at 5)

``needs_manual_review`` then decides whether a person should confirm the
match. Every function here is pure.
"""

from __future__ import annotations

import logging
from typing import Iterable

from rapidfuzz.distance import Levenshtein

from discshelf.core.matching.models import CandidateMatch, MatchOutcome
from discshelf.core.normalization.title_cleaner import normalize_for_comparison
from discshelf.services.api_models import SearchResult
from discshelf.shared.constants import (
    ConfidenceFallbackWeights,
    MediaType,
    ReviewThresholds,
    ScoringWeights,
)

logger = logging.getLogger(__name__)


def levenshtein(a: str, b: str) -> int:
    """Classic edit distance (insert, delete, substitute all cost 1)."""
    return Levenshtein.distance(a, b)


def _token_overlap(a: str, b: str) -> float:
    """Jaccard similarity of the word sets."""
    words_a = set(a.split())
    words_b = set(b.split())
    union = words_a | words_b
    if not union:
        return 0.0
    return len(words_a & words_b) / len(union)


def title_similarity(original: str, candidate: str) -> float:
    """Score how closely two titles match, from 0 to 40.

    Identical normalized titles score 40 and containment in either
    direction scores 35. Otherwise normalized edit similarity and word
    overlap are blended 0.6/0.4 and scaled to 40.
    """
    if original and original == candidate:
        return ScoringWeights.TITLE_MAX

    a = normalize_for_comparison(original)
    b = normalize_for_comparison(candidate)
    if not a or not b:
        return 0.0
    if a == b:
        return ScoringWeights.TITLE_MAX
    if a in b or b in a:
        return ScoringWeights.TITLE_CONTAINMENT

    edit_similarity = 1 - levenshtein(a, b) / max(len(a), len(b))
    blended = (
        ScoringWeights.EDIT_DISTANCE_WEIGHT * edit_similarity
        + ScoringWeights.TOKEN_OVERLAP_WEIGHT * _token_overlap(a, b)
    )
    return min(max(blended * ScoringWeights.TITLE_MAX, 0.0), ScoringWeights.TITLE_MAX)


def _year_proximity_bonus(candidate_year: int | None, target_year: int | None) -> float:
    if target_year is None or candidate_year is None:
        return 0.0
    difference = abs(candidate_year - target_year)
    if difference == 0:
        return ScoringWeights.YEAR_EXACT
    if difference == 1:
        return ScoringWeights.YEAR_OFF_BY_ONE
    if difference <= ScoringWeights.YEAR_CLOSE_RANGE:
        return ScoringWeights.YEAR_CLOSE
    return 0.0


def _popularity_bonus(popularity: float) -> float:
    return min(max(popularity, 0.0) / ScoringWeights.POPULARITY_DIVISOR, ScoringWeights.POPULARITY_MAX)


def _media_type_bonus(media_type: str) -> float:
    return ScoringWeights.MOVIE_BONUS if media_type == MediaType.MOVIE else 0.0


def _vote_average_bonus(vote_average: float) -> float:
    return min(
        max(vote_average, 0.0) / ScoringWeights.VOTE_AVERAGE_DIVISOR,
        ScoringWeights.VOTE_AVERAGE_MAX,
    )


def candidate_score(candidate: SearchResult, original_title: str, target_year: int | None) -> float:
    """Total score for one search result against the cleaned product title."""
    title_score = title_similarity(original_title, candidate.display_title)
    year_score = _year_proximity_bonus(candidate.release_year, target_year)
    popularity_score = _popularity_bonus(candidate.popularity)
    media_score = _media_type_bonus(candidate.media_type)
    vote_score = _vote_average_bonus(candidate.vote_average)

    total = title_score + year_score + popularity_score + media_score + vote_score

    logger.debug(
        "Score for '%s' (%s, %s): title=%.1f year=%.1f popularity=%.1f media=%.1f votes=%.1f total=%.1f",
        candidate.display_title,
        candidate.media_type,
        candidate.release_year,
        title_score,
        year_score,
        popularity_score,
        media_score,
        vote_score,
        total,
    )
    return total


def select_best_candidate(
    results: Iterable[SearchResult],
    original_title: str,
    target_year: int | None,
) -> tuple[SearchResult, float] | None:
    """Highest-scoring movie or TV result; ties go to the first seen.

    Returns:
        ``(result, score)`` or None when no movie/TV result is present
    """
    best: tuple[SearchResult, float] | None = None
    for result in results:
        if result.media_type not in MediaType.ACCEPTED:
            continue
        score = candidate_score(result, original_title, target_year)
        if best is None or score > best[1]:
            best = (result, score)
    return best


def estimate_confidence(
    original_title: str,
    candidate_title: str,
    target_year: int | None,
    candidate_year: int | None,
    popularity: float,
) -> float:
    """Best-effort score for a cached match that was stored without one.

    Title similarity plus a flat bonus for an exact year match plus the
    popularity bonus.
    """
    score = title_similarity(original_title, candidate_title)
    if target_year is not None and candidate_year == target_year:
        score += ConfidenceFallbackWeights.YEAR_MATCH
    score += min(
        max(popularity, 0.0) / ConfidenceFallbackWeights.POPULARITY_DIVISOR,
        ConfidenceFallbackWeights.POPULARITY_MAX,
    )
    return score


def needs_manual_review(
    candidate: MatchOutcome | None,
    target_year: int | None,
    *,
    confidence_threshold: float = ReviewThresholds.CONFIDENCE,
    year_tolerance: int = ReviewThresholds.YEAR_TOLERANCE,
    min_popularity: float = ReviewThresholds.MIN_POPULARITY,
) -> bool:
    """Decide whether a match must be confirmed by a person.

    True when there is no candidate, when it is a placeholder, when its
    score is below ``confidence_threshold``, when its year differs from
    ``target_year`` by more than ``year_tolerance``, or when its popularity
    is below ``min_popularity``.
    """
    if not isinstance(candidate, CandidateMatch):
        return True
    if candidate.match_score < confidence_threshold:
        return True
    if (
        target_year is not None
        and candidate.release_year is not None
        and abs(candidate.release_year - target_year) > year_tolerance
    ):
        return True
    return candidate.popularity < min_popularity
