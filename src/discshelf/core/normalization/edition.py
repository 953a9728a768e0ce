"""Physical edition extraction.

Derives format, edition, region, feature tags and release type from a
product's free text using the fixed keyword tables in
``discshelf.shared.constants.vocabulary``. Extraction is deterministic:
the same product always yields the same PhysicalEditionInfo.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from discshelf.shared.constants.vocabulary import (
    DEFAULT_EDITION,
    DEFAULT_FORMAT,
    DEFAULT_REGION,
    DEFAULT_RELEASE_TYPE,
    EDITION_KEYWORDS,
    FEATURE_KEYWORDS,
    FORMAT_HD_FALLBACK,
    FORMAT_KEYWORDS,
    REGION_KEYWORDS,
    RELEASE_TYPE_KEYWORDS,
)

if TYPE_CHECKING:
    from discshelf.core.matching.models import ProductRecord

_FORMAT_PATTERNS = tuple(
    (re.compile(rf"(?<![a-z0-9])(?:{pattern})(?![a-z0-9])"), label) for pattern, label in FORMAT_KEYWORDS
)
_HD = re.compile(r"(?<![a-z0-9])hd(?![a-z0-9])")
_NON_ALPHANUMERIC = re.compile(r"[^a-z0-9]")
_APOSTROPHES = re.compile(r"['’]")


def _fold(text: str) -> str:
    return _APOSTROPHES.sub("", text.lower())


def _join(*parts: str | None) -> str:
    return " ".join(part for part in parts if part)


@dataclass(frozen=True)
class PhysicalEditionInfo:
    """Edition details printed on a disc's packaging."""

    format: str
    edition: str
    region: str
    distributor: str
    features: tuple[str, ...]
    release_type: str
    barcode: str

    @property
    def unique_identifier(self) -> str:
        """Identifier distinguishing copies of the same film on different media."""
        return generate_unique_identifier(self.barcode, self.format, self.edition, self.region)

    def to_dict(self) -> dict[str, Any]:
        return {
            "format": self.format,
            "edition": self.edition,
            "region": self.region,
            "distributor": self.distributor,
            "features": list(self.features),
            "release_type": self.release_type,
            "barcode": self.barcode,
            "unique_identifier": self.unique_identifier,
        }


def extract_format(title: str, category: str = "") -> str:
    """Detect the disc format, preferring 4K over Blu-ray over DVD."""
    text = _join(title, category).lower()
    for pattern, label in _FORMAT_PATTERNS:
        if pattern.search(text):
            return label
    return FORMAT_HD_FALLBACK if _HD.search(text) else DEFAULT_FORMAT


def extract_edition(title: str) -> str:
    folded = _fold(title)
    for edition in EDITION_KEYWORDS:
        if _fold(edition) in folded:
            return edition
    return DEFAULT_EDITION


def extract_region(title: str, description: str = "") -> str:
    text = _join(title, description).lower()
    for region in REGION_KEYWORDS:
        if region.lower() in text:
            return region
    return DEFAULT_REGION


def extract_features(title: str, description: str = "") -> tuple[str, ...]:
    """Bonus-feature tags in table order, without duplicates."""
    text = _join(title, description).lower()
    features: list[str] = []
    for keyword, feature in FEATURE_KEYWORDS:
        if keyword in text and feature not in features:
            features.append(feature)
    return tuple(features)


def extract_release_type(title: str, description: str = "") -> str:
    text = _join(title, description).lower()
    for keywords, release_type in RELEASE_TYPE_KEYWORDS:
        if any(keyword in text for keyword in keywords):
            return release_type
    return DEFAULT_RELEASE_TYPE


def generate_unique_identifier(
    barcode: str,
    media_format: str | None = None,
    edition: str | None = None,
    region: str | None = None,
) -> str:
    """Build ``<barcode>_<format>_<edition>_<region>`` with slugged parts.

    Example:
        >>> generate_unique_identifier("012345678905", "Blu-ray", "Director's Cut", "Region A")
        '012345678905_bluray_directorscut_regiona'
    """

    def slug(value: str) -> str:
        return _NON_ALPHANUMERIC.sub("", value.lower())

    return "_".join(
        (
            barcode,
            slug(media_format or "Unknown"),
            slug(edition or DEFAULT_EDITION),
            slug(region or "Region1"),
        )
    )


def extract_physical_edition(product: ProductRecord) -> PhysicalEditionInfo:
    """Derive edition details from a product record's free text."""
    return PhysicalEditionInfo(
        format=extract_format(product.raw_title, product.category),
        edition=extract_edition(product.raw_title),
        region=extract_region(product.raw_title, product.description),
        distributor=product.brand,
        features=extract_features(product.raw_title, product.description),
        release_type=extract_release_type(product.raw_title, product.description),
        barcode=product.barcode,
    )
