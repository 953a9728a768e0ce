"""Search query strategies, most precise first."""

from __future__ import annotations

import re

from discshelf.core.matching.models import ProductRecord, SearchStrategy

# "Starring Keanu Reeves", "directed by Lana Wachowski", "with Carrie-Anne Moss"
_NAME = r"[A-Z][a-zA-Z'\-]+(?:\s+[A-Z][a-zA-Z'\-]+){1,2}"
_PERSON_CREDIT = re.compile(
    rf"\b(?:starring|featuring|with|directed\s+by|director)\s*:?\s+({_NAME}(?:\s*(?:,|and|&)\s*{_NAME})*)",
    re.IGNORECASE,
)
_NAME_SPLIT = re.compile(r"\s*(?:,|\band\b|&)\s*")
_NAME_SHAPE = re.compile(rf"^{_NAME}$")

MAX_PERSON_STRATEGIES = 2


def extract_person_names(*texts: str) -> list[str]:
    """Pull cast or director names that follow a credit keyword."""
    names: list[str] = []
    for text in texts:
        if not text:
            continue
        for match in _PERSON_CREDIT.finditer(text):
            for name in _NAME_SPLIT.split(match.group(1)):
                name = name.strip()
                # The IGNORECASE credit match lets lowercase words through
                if _NAME_SHAPE.match(name) and name not in names:
                    names.append(name)
    return names


def build_search_strategies(
    clean_title: str,
    year: int | None,
    product: ProductRecord | None = None,
) -> list[SearchStrategy]:
    """Ordered query strategies for one cleaned title.

    Quoted title with year, unquoted title with year and the quoted title
    are high priority and may short-circuit the search. The bare title is the
    fallback, followed by title-plus-person queries when the product text
    names cast or crew. Duplicate queries are dropped, keeping the first.
    """
    strategies: list[SearchStrategy] = []
    if not clean_title:
        return strategies

    if year is not None:
        strategies.append(SearchStrategy("quoted_title_year", f'"{clean_title}" {year}', high_priority=True))
        strategies.append(SearchStrategy("title_year", f"{clean_title} {year}", high_priority=True))
    strategies.append(SearchStrategy("quoted_title", f'"{clean_title}"', high_priority=True))
    strategies.append(SearchStrategy("title", clean_title))

    if product is not None:
        names = extract_person_names(product.raw_title, product.description)
        for name in names[:MAX_PERSON_STRATEGIES]:
            strategies.append(SearchStrategy("title_person", f"{clean_title} {name}"))

    seen: set[str] = set()
    unique: list[SearchStrategy] = []
    for strategy in strategies:
        if strategy.query in seen:
            continue
        seen.add(strategy.query)
        unique.append(strategy)
    return unique
