"""Metadata search and detail client.

Talks to a TMDB-style catalog:
    GET <base_url>/search/multi?query=<text>&page=<n>
    GET <base_url>/<media_type>/<id>?append_to_response=credits
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import requests
from pydantic import ValidationError

from discshelf.services.api_models import SearchPage
from discshelf.services.http_session import build_session, get_response, parse_json
from discshelf.shared.constants import APIDefaults, MetadataEndpoints
from discshelf.shared.errors import (
    ErrorCode,
    ErrorContext,
    InfrastructureError,
    create_api_error,
)

logger = logging.getLogger(__name__)

HTTP_UNAUTHORIZED = 401
HTTP_NOT_FOUND = 404


class MetadataClient:
    """Blocking metadata client with async wrappers.

    Args:
        base_url: Service base URL
        api_key: Key sent as the ``api_key`` query parameter, if any
        language: Response language
        session: Optional preconfigured requests session
        timeout: Request timeout in seconds
    """

    def __init__(
        self,
        base_url: str = APIDefaults.METADATA_BASE_URL,
        api_key: str = "",
        *,
        language: str = APIDefaults.LANGUAGE,
        session: requests.Session | None = None,
        timeout: float = APIDefaults.TIMEOUT_S,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.language = language
        self.session = session or build_session()
        self.timeout = timeout

    def _params(self, **params: Any) -> dict[str, Any]:
        base: dict[str, Any] = {"language": self.language}
        if self.api_key:
            base["api_key"] = self.api_key
        base.update(params)
        return base

    def _get(self, path: str, operation: str, **params: Any) -> Any:
        url = f"{self.base_url}{path}"
        response = get_response(
            self.session,
            url,
            self._params(**params),
            timeout=self.timeout,
            operation=operation,
        )

        if response.status_code == HTTP_UNAUTHORIZED:
            raise InfrastructureError(
                ErrorCode.API_AUTHENTICATION_FAILED,
                "Metadata service rejected the API key",
                ErrorContext(operation=operation, additional_data={"status_code": response.status_code}),
            )
        if response.status_code == HTTP_NOT_FOUND:
            raise InfrastructureError(
                ErrorCode.METADATA_NOT_FOUND,
                f"No metadata at {path}",
                ErrorContext(operation=operation, additional_data={"status_code": response.status_code}),
            )
        if not response.ok:
            raise create_api_error(
                f"Metadata request failed with status {response.status_code}",
                operation,
                status_code=response.status_code,
            )
        return parse_json(response, operation=operation)

    def search_sync(self, query: str, page: int = 1) -> SearchPage:
        """Run a multi-search and return one page of results."""
        data = self._get(MetadataEndpoints.SEARCH_MULTI, "metadata_search", query=query, page=page)
        try:
            result = SearchPage.model_validate(data)
        except ValidationError as e:
            raise InfrastructureError(
                ErrorCode.API_INVALID_RESPONSE,
                "Metadata search returned an unexpected payload",
                ErrorContext(operation="metadata_search", additional_data={"query": query, "page": page}),
                original_error=e,
            ) from e

        logger.debug(
            "Search '%s' page %d: %d results (%d total)",
            query,
            result.page,
            len(result.results),
            result.total_results,
        )
        return result

    def details_sync(self, media_type: str, media_id: int) -> dict[str, Any]:
        """Fetch the full record for a movie or TV show, credits included."""
        path = MetadataEndpoints.DETAILS.format(media_type=media_type, media_id=media_id)
        data = self._get(
            path,
            "metadata_details",
            append_to_response=MetadataEndpoints.APPEND_CREDITS,
        )
        if not isinstance(data, dict):
            raise InfrastructureError(
                ErrorCode.API_INVALID_RESPONSE,
                "Metadata details returned an unexpected payload",
                ErrorContext(operation="metadata_details", additional_data={"media_id": media_id}),
            )
        return data

    async def search(self, query: str, page: int = 1) -> SearchPage:
        return await asyncio.to_thread(self.search_sync, query, page)

    async def get_details(self, media_type: str, media_id: int) -> dict[str, Any]:
        return await asyncio.to_thread(self.details_sync, media_type, media_id)
