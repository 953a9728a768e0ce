"""Shared HTTP plumbing for the external API clients."""

from __future__ import annotations

import logging
import time
from typing import Any

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from discshelf.shared.constants import APIDefaults
from discshelf.shared.errors import (
    ErrorCode,
    ErrorContext,
    InfrastructureError,
    create_api_error,
    create_network_error,
)

logger = logging.getLogger(__name__)

NETWORK_ERROR_MESSAGE = "Network error - check your internet connection"


def build_session(
    retry_attempts: int = APIDefaults.RETRY_ATTEMPTS,
    backoff_factor: float = APIDefaults.RETRY_BACKOFF_FACTOR,
) -> requests.Session:
    """Create a requests session that retries 429 and 5xx responses.

    When retries run out the final response is returned so callers can
    map its status.

    Args:
        retry_attempts: Total retries per request
        backoff_factor: urllib3 backoff factor (0.5 sleeps 0.5s, 1s, 2s...)

    Returns:
        Configured session
    """
    session = requests.Session()

    retry_strategy = Retry(
        total=retry_attempts,
        status_forcelist=list(APIDefaults.RETRY_STATUS_CODES),
        backoff_factor=backoff_factor,
        allowed_methods=["HEAD", "GET", "OPTIONS"],
        respect_retry_after_header=True,
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry_strategy)

    session.headers["User-Agent"] = APIDefaults.USER_AGENT
    session.headers["Accept"] = "application/json"

    session.mount("https://", adapter)
    session.mount("http://", adapter)

    return session


def get_response(
    session: requests.Session,
    url: str,
    params: dict[str, Any],
    *,
    timeout: float,
    operation: str,
) -> requests.Response:
    """Issue a GET, translating transport failures into DiscShelf errors.

    Raises:
        NetworkError: Connection failure or timeout
        InfrastructureError: Any other request failure
    """
    started = time.perf_counter()
    try:
        response = session.get(url, params=params, timeout=timeout)
    except (requests.ConnectionError, requests.Timeout) as e:
        raise create_network_error(NETWORK_ERROR_MESSAGE, operation, e) from e
    except requests.RequestException as e:
        raise create_api_error(f"Request to {url} failed: {e}", operation, original_error=e) from e

    logger.debug(
        "GET %s -> %s in %.1fms",
        url,
        response.status_code,
        (time.perf_counter() - started) * 1000,
        extra={"operation": operation},
    )
    return response


def parse_json(response: requests.Response, *, operation: str) -> Any:
    """Decode a JSON body or raise API_INVALID_RESPONSE."""
    try:
        return response.json()
    except ValueError as e:
        raise InfrastructureError(
            ErrorCode.API_INVALID_RESPONSE,
            "Response body is not valid JSON",
            ErrorContext(
                operation=operation,
                additional_data={"status_code": response.status_code},
            ),
            original_error=e,
        ) from e
