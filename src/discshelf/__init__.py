"""DiscShelf: barcode identification and caching for physical media collections."""

from __future__ import annotations

__version__ = "0.1.0"
