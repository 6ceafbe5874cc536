"""Magento REST client for reading orders."""

from typing import Any

import httpx
import structlog

from order_sync_service.config import get_settings
from order_sync_service.domain import OrderRecord
from order_sync_service.exceptions import AuthError, TransportError
from order_sync_service.infrastructure.magento.parser import (
    AUTH_ERROR_CODES,
    parse_error,
    parse_object_list,
)
from shared.constants import MAGENTO_ORDERS_PATH

logger = structlog.get_logger()


class MagentoRestClient:
    """Reads order pages from the Magento REST API."""

    def __init__(
        self,
        base_url: str,
        access_token: str,
        timeout: float = 30,
        verify: bool = True,
        transport: httpx.BaseTransport | None = None,
    ):
        headers = {"Accept": "application/json"}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        self._client = httpx.Client(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            verify=verify,
            transport=transport,
        )

    @classmethod
    def from_configuration(cls, configuration: Any) -> "MagentoRestClient":
        """Create a client for a stored shop configuration."""
        settings = get_settings()
        return cls(
            base_url=configuration.base_url,
            access_token=configuration.access_token,
            timeout=settings.magento_api_timeout,
            verify=settings.magento_verify_ssl,
        )

    def fetch_page(self, shop_id: str, status: str, page: int, limit: int) -> list[OrderRecord]:
        """
        Fetch one page of orders with the given status.

        Raises:
            AuthError: Magento rejected the access token
            TransportError: the request failed or the response is not an order list
        """
        params = {
            "filter[1][attribute]": "status",
            "filter[1][in]": status,
            "page": page,
            "limit": limit,
        }
        try:
            response = self._client.get(MAGENTO_ORDERS_PATH, params=params)
        except httpx.HTTPError as e:
            raise TransportError(f"magento request failed: {e}") from e

        if response.is_error:
            raise self._error_for(response)

        records = parse_object_list(response.content)
        logger.debug("Order page read", shop=shop_id, status=status, page=page, orders=len(records))
        return [OrderRecord.from_wire(record) for record in records]

    @staticmethod
    def _error_for(response: httpx.Response) -> TransportError:
        error = parse_error(response.content)
        if error is not None:
            if error.code is None:
                error.code = response.status_code
            return error
        message = f"magento returned HTTP {response.status_code}"
        if response.status_code in AUTH_ERROR_CODES:
            return AuthError(message, code=response.status_code)
        return TransportError(message, code=response.status_code)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "MagentoRestClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
