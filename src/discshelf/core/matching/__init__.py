"""Candidate scoring, search strategies and the resolution engine."""

from __future__ import annotations

from .models import (
    CandidateMatch,
    MatchOutcome,
    PlaceholderMatch,
    ProductRecord,
    ResolutionResult,
    SearchStrategy,
)
from .scoring import (
    candidate_score,
    estimate_confidence,
    levenshtein,
    needs_manual_review,
    select_best_candidate,
    title_similarity,
)
from .strategies import build_search_strategies, extract_person_names
from .engine import ResolutionEngine

__all__ = [
    "CandidateMatch",
    "MatchOutcome",
    "PlaceholderMatch",
    "ProductRecord",
    "ResolutionEngine",
    "ResolutionResult",
    "SearchStrategy",
    "build_search_strategies",
    "candidate_score",
    "estimate_confidence",
    "extract_person_names",
    "levenshtein",
    "needs_manual_review",
    "select_best_candidate",
    "title_similarity",
]
