"""
External API constants for the UPC and metadata services.
"""


class APIDefaults:
    """Endpoints and HTTP behaviour defaults."""

    UPC_ENDPOINT = "https://api.upcitemdb.com/prod/trial/lookup"
    METADATA_BASE_URL = "https://api.themoviedb.org/3"
    LANGUAGE = "en-US"
    TIMEOUT_S = 10.0
    RETRY_ATTEMPTS = 3
    RETRY_BACKOFF_FACTOR = 0.5
    RETRY_STATUS_CODES = (429, 500, 502, 503, 504)
    USER_AGENT = "discshelf/0.1"


class UPCFields:
    """UPC lookup response fields."""

    CODE = "code"
    OK = "OK"
    ITEMS = "items"


class MetadataEndpoints:
    """Metadata service paths."""

    SEARCH_MULTI = "/search/multi"
    DETAILS = "/{media_type}/{media_id}"
    APPEND_CREDITS = "credits"


class DetailFields:
    """Fields the engine overlays onto a detail record."""

    MATCH_SCORE = "matchScore"
    MEDIA_TYPE = "media_type"
