"""Title cleaning and physical edition extraction."""

from __future__ import annotations

from .edition import PhysicalEditionInfo, extract_physical_edition, generate_unique_identifier
from .title_cleaner import (
    CLEANING_RULES,
    CleaningRule,
    apply_rules,
    clean_title,
    extract_year,
    normalize_for_comparison,
)

__all__ = [
    "CLEANING_RULES",
    "CleaningRule",
    "PhysicalEditionInfo",
    "apply_rules",
    "clean_title",
    "extract_physical_edition",
    "extract_year",
    "generate_unique_identifier",
    "normalize_for_comparison",
]
