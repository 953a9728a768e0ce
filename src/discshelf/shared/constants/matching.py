"""
Matching and scoring constants.

Point values for candidate scoring and the thresholds used by the
manual-review decision.
"""


class ScoringWeights:
    """Point contributions that add up to a candidate score (max ~100)."""

    TITLE_MAX = 40.0
    TITLE_CONTAINMENT = 35.0
    EDIT_DISTANCE_WEIGHT = 0.6
    TOKEN_OVERLAP_WEIGHT = 0.4

    YEAR_EXACT = 30.0
    YEAR_OFF_BY_ONE = 20.0
    YEAR_CLOSE = 10.0
    YEAR_CLOSE_RANGE = 3

    POPULARITY_DIVISOR = 10.0
    POPULARITY_MAX = 15.0

    MOVIE_BONUS = 10.0

    VOTE_AVERAGE_DIVISOR = 2.0
    VOTE_AVERAGE_MAX = 5.0


class ConfidenceFallbackWeights:
    """Weights for re-scoring a cached match that was stored without a score."""

    YEAR_MATCH = 30.0
    POPULARITY_DIVISOR = 10.0
    POPULARITY_MAX = 15.0


class ReviewThresholds:
    """Manual-review decision defaults."""

    CONFIDENCE = 35.0
    YEAR_TOLERANCE = 2
    MIN_POPULARITY = 0.5
    SHORT_CIRCUIT_SCORE = 90.0


class MediaType:
    """Metadata media types accepted as candidates."""

    MOVIE = "movie"
    TV = "tv"
    ACCEPTED = (MOVIE, TV)


# Leading articles dropped before comparing titles
LEADING_ARTICLES = ("the", "a", "an")

# Earliest plausible release year; the latest is current year + YEAR_LOOKAHEAD
MIN_RELEASE_YEAR = 1900
YEAR_LOOKAHEAD = 2
