"""
Cache Configuration Constants

Defaults for the tiered lookup cache. Each namespace carries its own TTL so
stable data (UPC products) lives longer than search results.
"""

# Base time units for TTL calculations
BASE_SECOND = 1
BASE_MINUTE = 60 * BASE_SECOND
BASE_HOUR = 60 * BASE_MINUTE
BASE_DAY = 24 * BASE_HOUR

BYTES_PER_MB = 1024 * 1024


class CacheNamespace:
    """Namespaces used by the resolution engine."""

    UPC = "upc"
    SEARCH = "search"
    DETAILS = "details"
    MATCH = "match"


class CacheDefaults:
    """Default cache settings."""

    PREFIX = "discshelf_"
    INDEX_MARKER = "_index_"
    MAX_SIZE_MB = 5.0
    DEFAULT_TTL = BASE_DAY

    UPC_TTL = 7 * BASE_DAY
    SEARCH_TTL = BASE_DAY
    DETAILS_TTL = BASE_DAY
    MATCH_TTL = BASE_DAY

    DIRECTORY = ".discshelf/cache"
    FILE_SUFFIX = ".json"


class CacheEntryFields:
    """Serialised field names of a persisted cache item and index record."""

    PAYLOAD = "payload"
    EXPIRES_AT = "expiresAt"
    SIZE_BYTES = "sizeBytes"
    LAST_USED_AT = "lastUsedAt"
