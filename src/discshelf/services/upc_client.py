"""UPC lookup client.

Resolves a barcode into a ProductRecord through the external UPC lookup
service (``GET <endpoint>?upc=<digits>``).
"""

from __future__ import annotations

import asyncio
import logging

import requests
from pydantic import ValidationError

from discshelf.core.matching.models import ProductRecord
from discshelf.services.api_models import UPCResponse
from discshelf.services.http_session import build_session, get_response, parse_json
from discshelf.shared.constants import APIDefaults
from discshelf.shared.errors import (
    ErrorCode,
    ErrorContext,
    InfrastructureError,
    ProductNotFoundError,
)
from discshelf.shared.validation import validate_barcode

logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "No product found for this barcode"


class UPCClient:
    """Blocking UPC lookup with an async wrapper.

    Args:
        endpoint: Lookup URL, queried with the ``upc`` parameter
        session: Optional preconfigured requests session
        timeout: Request timeout in seconds
    """

    def __init__(
        self,
        endpoint: str = APIDefaults.UPC_ENDPOINT,
        *,
        session: requests.Session | None = None,
        timeout: float = APIDefaults.TIMEOUT_S,
    ) -> None:
        self.endpoint = endpoint
        self.session = session or build_session()
        self.timeout = timeout

    def lookup_sync(self, barcode: str) -> ProductRecord:
        """Look up a barcode.

        Raises:
            BarcodeValidationError: Barcode is not 8-18 digits
            ProductNotFoundError: Non-OK response or no items
            NetworkError: Transport failure
            InfrastructureError: Malformed response body
        """
        barcode = validate_barcode(barcode, operation="upc_lookup")
        context = ErrorContext(operation="upc_lookup", barcode=barcode)

        response = get_response(
            self.session,
            self.endpoint,
            {"upc": barcode},
            timeout=self.timeout,
            operation="upc_lookup",
        )
        if not response.ok:
            raise ProductNotFoundError(
                ErrorCode.PRODUCT_NOT_FOUND,
                NOT_FOUND_MESSAGE,
                ErrorContext(
                    operation="upc_lookup",
                    barcode=barcode,
                    additional_data={"status_code": response.status_code},
                ),
            )

        try:
            payload = UPCResponse.model_validate(parse_json(response, operation="upc_lookup"))
        except ValidationError as e:
            raise InfrastructureError(
                ErrorCode.API_INVALID_RESPONSE,
                "UPC service returned an unexpected payload",
                context,
                original_error=e,
            ) from e

        if not payload.found:
            raise ProductNotFoundError(ErrorCode.PRODUCT_NOT_FOUND, NOT_FOUND_MESSAGE, context)

        item = payload.items[0]
        logger.debug("UPC %s resolved to '%s'", barcode, item.title)
        return ProductRecord(
            barcode=barcode,
            raw_title=item.title,
            brand=item.brand,
            category=item.category,
            description=item.description,
            images=tuple(item.images),
        )

    async def lookup(self, barcode: str) -> ProductRecord:
        """Async wrapper running the lookup in a worker thread."""
        return await asyncio.to_thread(self.lookup_sync, barcode)
