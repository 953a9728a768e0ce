"""API configuration models for the UPC and metadata services."""

from __future__ import annotations

from pydantic import BaseModel, Field

from discshelf.shared.constants import APIDefaults


class UPCSettings(BaseModel):
    """UPC lookup service configuration."""

    endpoint: str = Field(
        default=APIDefaults.UPC_ENDPOINT,
        description="Lookup endpoint, queried as <endpoint>?upc=<digits>",
    )


class MetadataSettings(BaseModel):
    """Metadata search service configuration.

    Security: api_key is masked in __repr__ so it never reaches logs.
    """

    base_url: str = Field(
        default=APIDefaults.METADATA_BASE_URL,
        description="Base URL for search and detail endpoints",
    )
    api_key: str = Field(
        default="",
        repr=False,
        description="Metadata API key, sent as the api_key query parameter",
    )
    language: str = Field(default=APIDefaults.LANGUAGE, description="Response language")

    def __repr__(self) -> str:
        masked_key = "****" if self.api_key else "[empty]"
        return f"MetadataSettings(base_url={self.base_url!r}, api_key={masked_key}, language={self.language!r})"


class APISettings(BaseModel):
    """API configuration container with shared HTTP behaviour."""

    upc: UPCSettings = Field(default_factory=UPCSettings)
    metadata: MetadataSettings = Field(default_factory=MetadataSettings)

    timeout: float = Field(
        default=APIDefaults.TIMEOUT_S,
        gt=0,
        description="Request timeout in seconds",
    )
    retry_attempts: int = Field(
        default=APIDefaults.RETRY_ATTEMPTS,
        ge=0,
        description="Retries for 429 and 5xx responses",
    )
    retry_backoff_factor: float = Field(
        default=APIDefaults.RETRY_BACKOFF_FACTOR,
        ge=0,
        description="urllib3 backoff factor between retries",
    )


__all__ = [
    "APISettings",
    "MetadataSettings",
    "UPCSettings",
]
