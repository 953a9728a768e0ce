"""Tests for the UPC and metadata HTTP clients."""

from __future__ import annotations

from unittest.mock import Mock

import pytest
import requests

from discshelf.services.api_models import SearchPage, SearchResult, UPCResponse
from discshelf.services.http_session import build_session
from discshelf.services.metadata_client import MetadataClient
from discshelf.services.upc_client import UPCClient
from discshelf.shared.errors import (
    BarcodeValidationError,
    ErrorCode,
    InfrastructureError,
    NetworkError,
    ProductNotFoundError,
)


def make_response(status_code: int = 200, payload=None, json_error: bool = False) -> Mock:
    response = Mock(spec=requests.Response)
    response.status_code = status_code
    response.ok = status_code < 400
    if json_error:
        response.json.side_effect = ValueError("no json")
    else:
        response.json.return_value = payload
    return response


@pytest.fixture
def session() -> Mock:
    return Mock(spec=requests.Session)


UPC_OK = {
    "code": "OK",
    "items": [
        {
            "title": "The Matrix (1999) Widescreen Special Edition DVD",
            "brand": "Warner",
            "category": None,
            "description": "Sci-fi classic",
            "images": ["https://img/1.jpg"],
        }
    ],
}


class TestUPCClient:
    """UPC lookups."""

    def test_lookup_returns_product_record(self, session):
        session.get.return_value = make_response(payload=UPC_OK)
        client = UPCClient("https://upc.example/lookup", session=session, timeout=3)

        product = client.lookup_sync("012345678905")

        assert product.barcode == "012345678905"
        assert product.raw_title == "The Matrix (1999) Widescreen Special Edition DVD"
        assert product.category == ""
        assert product.images == ("https://img/1.jpg",)
        session.get.assert_called_once_with(
            "https://upc.example/lookup", params={"upc": "012345678905"}, timeout=3
        )

    def test_invalid_barcode_rejected_before_io(self, session):
        client = UPCClient(session=session)

        with pytest.raises(BarcodeValidationError):
            client.lookup_sync("12ab")

        session.get.assert_not_called()

    @pytest.mark.parametrize(
        "payload",
        [
            {"code": "INVALID_UPC", "items": []},
            {"code": "OK", "items": []},
        ],
    )
    def test_not_ok_or_empty_is_not_found(self, session, payload):
        session.get.return_value = make_response(payload=payload)
        client = UPCClient(session=session)

        with pytest.raises(ProductNotFoundError) as exc_info:
            client.lookup_sync("012345678905")

        assert exc_info.value.code == ErrorCode.PRODUCT_NOT_FOUND

    def test_http_error_is_not_found(self, session):
        session.get.return_value = make_response(status_code=404, payload={})
        client = UPCClient(session=session)

        with pytest.raises(ProductNotFoundError):
            client.lookup_sync("012345678905")

    def test_server_error_after_retries_is_not_found(self, session):
        session.get.return_value = make_response(status_code=503, payload={})
        client = UPCClient(session=session)

        with pytest.raises(ProductNotFoundError) as exc_info:
            client.lookup_sync("012345678905")

        assert exc_info.value.context.additional_data["status_code"] == 503

    def test_connection_error_is_network_error(self, session):
        session.get.side_effect = requests.ConnectionError("refused")
        client = UPCClient(session=session)

        with pytest.raises(NetworkError) as exc_info:
            client.lookup_sync("012345678905")

        assert exc_info.value.code == ErrorCode.NETWORK_ERROR
        assert isinstance(exc_info.value.original_error, requests.ConnectionError)

    def test_non_json_body_is_invalid_response(self, session):
        session.get.return_value = make_response(json_error=True)
        client = UPCClient(session=session)

        with pytest.raises(InfrastructureError) as exc_info:
            client.lookup_sync("012345678905")

        assert exc_info.value.code == ErrorCode.API_INVALID_RESPONSE

    @pytest.mark.asyncio
    async def test_async_lookup(self, session):
        session.get.return_value = make_response(payload=UPC_OK)
        client = UPCClient(session=session)

        product = await client.lookup("012345678905")

        assert product.brand == "Warner"


SEARCH_OK = {
    "page": 1,
    "total_pages": 3,
    "total_results": 45,
    "results": [
        {"id": 603, "media_type": "movie", "title": "The Matrix", "release_date": "1999-03-30", "popularity": 80.5},
        {"id": 1, "media_type": "person", "name": "Keanu Reeves"},
        {"id": 2, "media_type": "podcast", "name": "Unknown type"},
        {"id": 9, "media_type": "tv", "name": "Matrix", "first_air_date": "1993-03-01", "vote_count": None},
    ],
}


class TestMetadataClient:
    """Metadata search and details."""

    def test_search_parses_page(self, session):
        session.get.return_value = make_response(payload=SEARCH_OK)
        client = MetadataClient("https://meta.example/3/", "secret", session=session)

        page = client.search_sync("The Matrix", page=1)

        assert isinstance(page, SearchPage)
        assert [result.id for result in page.results] == [603, 1, 9]
        assert page.has_next
        url = session.get.call_args.args[0]
        params = session.get.call_args.kwargs["params"]
        assert url == "https://meta.example/3/search/multi"
        assert params["query"] == "The Matrix"
        assert params["api_key"] == "secret"
        assert params["language"] == "en-US"

    def test_api_key_omitted_when_empty(self, session):
        session.get.return_value = make_response(payload=SEARCH_OK)
        client = MetadataClient(session=session)

        client.search_sync("Heat")

        assert "api_key" not in session.get.call_args.kwargs["params"]

    def test_details_appends_credits(self, session):
        session.get.return_value = make_response(payload={"id": 603, "runtime": 136})
        client = MetadataClient("https://meta.example/3", session=session)

        details = client.details_sync("movie", 603)

        assert details["runtime"] == 136
        assert session.get.call_args.args[0] == "https://meta.example/3/movie/603"
        assert session.get.call_args.kwargs["params"]["append_to_response"] == "credits"

    @pytest.mark.parametrize(
        ("status", "code"),
        [
            (401, ErrorCode.API_AUTHENTICATION_FAILED),
            (404, ErrorCode.METADATA_NOT_FOUND),
            (500, ErrorCode.API_REQUEST_FAILED),
        ],
    )
    def test_error_statuses(self, session, status, code):
        session.get.return_value = make_response(status_code=status, payload={})
        client = MetadataClient(session=session)

        with pytest.raises(InfrastructureError) as exc_info:
            client.search_sync("Heat")

        assert exc_info.value.code == code

    def test_timeout_is_network_error(self, session):
        session.get.side_effect = requests.Timeout("slow")
        client = MetadataClient(session=session)

        with pytest.raises(NetworkError):
            client.details_sync("movie", 1)


class TestApiModels:
    """Response model behaviour."""

    def test_search_result_display_fields(self):
        tv = SearchResult(id=1, media_type="tv", name="Firefly", first_air_date="2002-09-20")

        assert tv.display_title == "Firefly"
        assert tv.release_year == 2002

    def test_missing_date_has_no_year(self):
        movie = SearchResult(id=1, media_type="movie", title="Untitled", release_date="")

        assert movie.release_year is None

    def test_upc_response_found(self):
        assert UPCResponse.model_validate(UPC_OK).found
        assert not UPCResponse(code="OK").found


class TestBuildSession:
    """Retrying HTTP session."""

    def test_mounts_retry_adapter(self):
        session = build_session(retry_attempts=4, backoff_factor=1.0)

        adapter = session.get_adapter("https://api.example.com")

        assert adapter.max_retries.total == 4
        assert 429 in adapter.max_retries.status_forcelist
        assert session.headers["Accept"] == "application/json"

    def test_exhausted_retries_return_final_response(self):
        session = build_session()

        retry = session.get_adapter("https://api.example.com").max_retries

        assert retry.raise_on_status is False
