"""Product title normalization.

Retail product titles carry a lot of noise around the actual film name:
studios, disc formats, edition names, marketing copy and condition notes.
``clean_title`` strips that noise with an ordered list of named rules, each
a pure ``str -> str`` function, so every step can be tested on its own.

Example:
    >>> clean_title("The Matrix (1999) Widescreen Special Edition DVD")
    'The Matrix'
    >>> extract_year("The Matrix (1999) Widescreen Special Edition DVD")
    1999
"""

from __future__ import annotations

import re
import string
import unicodedata
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable

from discshelf.shared.constants import LEADING_ARTICLES, MIN_RELEASE_YEAR, YEAR_LOOKAHEAD
from discshelf.shared.constants.vocabulary import (
    CONDITION_GRADE_PATTERNS,
    CONDITION_PATTERNS,
    DISC_REGION_PATTERNS,
    EDGE_CONDITION_PATTERNS,
    EDITION_PATTERNS,
    FORMAT_PATTERNS,
    GENRE_PATTERNS,
    MARKETING_PATTERNS,
    MINOR_WORDS,
    STUDIO_PATTERNS,
)

MIN_CLEAN_LENGTH = 2

SEQUEL_NUMERALS = frozenset({"ii", "iii", "iv", "vi", "vii", "viii", "ix", "xi", "xii", "xiii"})


@dataclass(frozen=True)
class CleaningRule:
    """A named text transformation applied by ``clean_title``."""

    name: str
    apply: Callable[[str], str]

    def __call__(self, text: str) -> str:
        return self.apply(text)


def _phrases(patterns: Iterable[str]) -> re.Pattern[str]:
    """Compile whole-word alternatives, case-insensitive."""
    return re.compile(r"(?<![\w'])(?:" + "|".join(patterns) + r")(?![\w'])", re.IGNORECASE)


def _remover(pattern: re.Pattern[str]) -> Callable[[str], str]:
    return lambda text: pattern.sub(" ", text)


_QUOTE_TRANSLATION = str.maketrans({"‘": "'", "’": "'", "“": '"', "”": '"'})
_TRADEMARKS = re.compile("[™®©]")

_BRACKETED_YEAR = re.compile(r"[\(\[\{]\s*(?:19|20)\d{2}\s*[\)\]\}]")
_BRACKETED_TEXT = re.compile(r"[\(\[\{][^\(\)\[\]\{\}]*[\)\]\}]")
_BARE_YEAR = re.compile(r"(?<=\S)(\s+)((?:19|20)\d{2})(?![\w'])")
_YEAR = re.compile(r"\b(?:19|20)\d{2}\b")

_LEADING_CONDITION = re.compile(
    r"^\s*(?:" + "|".join(EDGE_CONDITION_PATTERNS) + r")\s*[-:,|/]+\s*"
    r"(?:(?:" + "|".join(CONDITION_GRADE_PATTERNS) + r")\s*[-:,|/]+\s*)?",
    re.IGNORECASE,
)
_TRAILING_CONDITION = re.compile(
    r"(?<![\w'])(?:" + "|".join(EDGE_CONDITION_PATTERNS) + r")[\s\-:,|/]*$", re.IGNORECASE
)

_GENRE = r"(?:" + "|".join(GENRE_PATTERNS) + r")(?![\w'])"
_GENRE_SEGMENT = re.compile(
    rf"\s*[-|/,:]\s*{_GENRE}(?:\s*[-|/,&]?\s*{_GENRE})*[\s\-|/,:]*$", re.IGNORECASE
)
_GENRE_RUN = re.compile(rf"(?<=\S)\s+{_GENRE}(?:\s*[-|/,&]?\s*{_GENRE})+[\s\-|/,:]*$", re.IGNORECASE)
_ORPHAN_EDITION = re.compile(r"\s+editions?[\s\-:,]*$", re.IGNORECASE)

_SPLIT_POSSESSIVE = re.compile(r"([A-Za-z]{2,}) (s)(?![\w'])", re.IGNORECASE)
_SPLIT_NEGATION = re.compile(r"([A-Za-z]*n) (t)(?![\w'])", re.IGNORECASE)
_CONTRACTION_SUFFIX = re.compile(r"'[a-z]{1,2}$", re.IGNORECASE)

_DISALLOWED_PUNCTUATION = re.compile(r"[^\w\s'&:\-!?.,]|_")
_LONE_PUNCTUATION = re.compile(r"(?<!\S)(?!-+(?!\S))[-:,.']+(?!\S)")
_LONE_DASHES = re.compile(r"(?<!\S)-+(?:\s+-+)*(?!\S)")
_SPACE_BEFORE_PUNCTUATION = re.compile(r"\s+([:,!?])")
_REPEATED_PUNCTUATION = re.compile(r"([-:,.!?])\1+")
_EDGE_PUNCTUATION = " -:,;&'"
_WHITESPACE = re.compile(r"\s+")


def _max_release_year(current_year: int | None = None) -> int:
    return (current_year or datetime.now().year) + YEAR_LOOKAHEAD


def normalize_unicode(text: str) -> str:
    text = _TRADEMARKS.sub("", text)
    return unicodedata.normalize("NFKC", text).translate(_QUOTE_TRANSLATION)


def strip_bare_years(text: str) -> str:
    """Remove plausible release years that are not the first word."""
    max_year = _max_release_year()

    def replace(match: re.Match[str]) -> str:
        year = int(match.group(2))
        return " " if MIN_RELEASE_YEAR <= year <= max_year else match.group(0)

    return _BARE_YEAR.sub(replace, text)


def strip_edge_conditions(text: str) -> str:
    """Remove "new"/"used" only where they cannot be part of the title."""
    text = _LEADING_CONDITION.sub("", text)
    return _TRAILING_CONDITION.sub("", text)


def strip_genre_words(text: str) -> str:
    """Remove a trailing genre segment after a separator, or a trailing genre run."""
    text = _GENRE_SEGMENT.sub("", text)
    return _GENRE_RUN.sub("", text)


def _join_contraction(match: re.Match[str]) -> str:
    return f"{match.group(1)}'{match.group(2).lower()}"


def repair_contractions(text: str) -> str:
    """Rejoin a stray "s" as a possessive and "n t" as a negation."""
    text = _SPLIT_POSSESSIVE.sub(_join_contraction, text)
    return _SPLIT_NEGATION.sub(_join_contraction, text)


def canonicalize_punctuation(text: str) -> str:
    text = _DISALLOWED_PUNCTUATION.sub(" ", text)
    text = _LONE_PUNCTUATION.sub(" ", text)
    text = _LONE_DASHES.sub("-", text)
    text = _SPACE_BEFORE_PUNCTUATION.sub(r"\1", text)
    text = _REPEATED_PUNCTUATION.sub(r"\1", text)
    return text.strip(_EDGE_PUNCTUATION)


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


def _capitalize(word: str) -> str:
    for index, char in enumerate(word):
        if char.isalpha():
            return word[:index] + char.upper() + word[index + 1 :]
    return word


def _case_word(word: str, starts_phrase: bool) -> str:
    core = word.strip(string.punctuation).lower()
    if core in SEQUEL_NUMERALS:
        return word.upper()
    if any(char.isdigit() for char in word):
        return word
    base = _CONTRACTION_SUFFIX.sub("", word)
    if any(char.isupper() for char in base[1:]) and any(char.islower() for char in base):
        # Inner capitals such as "McQueen" are kept as written
        return _capitalize(word)
    if not starts_phrase and core in MINOR_WORDS:
        return word.lower()
    return "-".join(_capitalize(part) for part in word.lower().split("-"))


def title_case(text: str) -> str:
    """Title-case words, keeping minor words lowercase inside a phrase.

    A phrase starts the title, or follows a colon or a " - " separator.
    """
    words = text.split(" ")
    cased = []
    starts_phrase = True
    for word in words:
        cased.append(_case_word(word, starts_phrase))
        starts_phrase = word.endswith(":") or word == "-"
    return " ".join(cased)


CLEANING_RULES: tuple[CleaningRule, ...] = (
    CleaningRule("normalize_unicode", normalize_unicode),
    CleaningRule("strip_bracketed_years", _remover(_BRACKETED_YEAR)),
    CleaningRule("strip_bracketed_text", _remover(_BRACKETED_TEXT)),
    CleaningRule("strip_editions", _remover(_phrases(EDITION_PATTERNS))),
    CleaningRule("strip_marketing", _remover(_phrases(MARKETING_PATTERNS))),
    CleaningRule("strip_formats", _remover(_phrases(FORMAT_PATTERNS))),
    CleaningRule("strip_disc_and_region", _remover(_phrases(DISC_REGION_PATTERNS))),
    CleaningRule("strip_studios", _remover(_phrases(STUDIO_PATTERNS))),
    CleaningRule("strip_conditions", _remover(_phrases(CONDITION_PATTERNS))),
    CleaningRule("collapse_whitespace", collapse_whitespace),
    CleaningRule("strip_edge_conditions", strip_edge_conditions),
    CleaningRule("strip_genre_words", strip_genre_words),
    CleaningRule("strip_orphan_edition", _remover(_ORPHAN_EDITION)),
    CleaningRule("strip_bare_years", strip_bare_years),
    CleaningRule("canonicalize_punctuation", canonicalize_punctuation),
    CleaningRule("collapse_whitespace", collapse_whitespace),
    CleaningRule("repair_contractions", repair_contractions),
    CleaningRule("title_case", title_case),
)


def apply_rules(text: str, rules: Iterable[CleaningRule] = CLEANING_RULES) -> str:
    """Apply ``rules`` left to right, each producing a new string."""
    for rule in rules:
        text = rule(text)
    return text


def clean_title(raw: str | None) -> str:
    """Reduce a retail product title to the film's name.

    If cleaning leaves fewer than two characters the trimmed input is
    returned unchanged.
    """
    if not raw:
        return ""
    cleaned = apply_rules(raw)
    if len(cleaned) < MIN_CLEAN_LENGTH:
        return raw.strip()
    return cleaned


def extract_year(raw: str | None, current_year: int | None = None) -> int | None:
    """Return the first 19xx/20xx token if it is a plausible release year.

    Args:
        raw: Product title
        current_year: Override for the current year (defaults to today)

    Returns:
        The year, or None if absent or outside 1900..current year + 2
    """
    if not raw:
        return None
    match = _YEAR.search(raw)
    if match is None:
        return None
    year = int(match.group())
    if MIN_RELEASE_YEAR <= year <= _max_release_year(current_year):
        return year
    return None


_LEADING_ARTICLE = re.compile(r"^(?:" + "|".join(LEADING_ARTICLES) + r")\s+")
_APOSTROPHES = re.compile(r"['’]")
_NON_WORD = re.compile(r"[^\w\s]|_")


def normalize_for_comparison(title: str | None) -> str:
    """Lowercase, drop accents and punctuation, remove a leading article.

    Only used for similarity scoring, never for display.
    """
    if not title:
        return ""
    text = unicodedata.normalize("NFKD", title)
    text = "".join(char for char in text if not unicodedata.combining(char))
    text = text.lower().replace("&", " and ")
    text = _APOSTROPHES.sub("", text)
    text = _NON_WORD.sub(" ", text)
    text = collapse_whitespace(text)
    return _LEADING_ARTICLE.sub("", text)
