"""Unit tests for the Magento REST client."""

import httpx
import pytest

from order_sync_service.exceptions import AuthError, TransportError
from order_sync_service.infrastructure.magento import MagentoRestClient
from shared.constants import MAGENTO_ORDERS_PATH


def client_for(handler) -> MagentoRestClient:
    return MagentoRestClient(
        base_url="https://shop1.example.com/",
        access_token="secret-token",
        transport=httpx.MockTransport(handler),
    )


class TestFetchPage:
    def test_request_and_records(self) -> None:
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(
                200,
                json={
                    "5": {"entity_id": "5", "increment_id": "100000005", "status": "pending"},
                    "6": {"entity_id": "6", "status": "pending"},
                },
            )

        with client_for(handler) as client:
            orders = client.fetch_page("shop1", "pending", 2, 100)

        assert [o.entity_id for o in orders] == ["5", "6"]
        assert orders[0].order_key("shop1") == "magento:order:shop1:100000005"

        request = requests[0]
        assert request.url.path == MAGENTO_ORDERS_PATH
        assert request.url.params["filter[1][attribute]"] == "status"
        assert request.url.params["filter[1][in]"] == "pending"
        assert request.url.params["page"] == "2"
        assert request.url.params["limit"] == "100"
        assert request.headers["Authorization"] == "Bearer secret-token"
        assert request.headers["Accept"] == "application/json"

    def test_empty_page(self) -> None:
        with client_for(lambda request: httpx.Response(200, json=[])) as client:
            assert client.fetch_page("shop1", "pending", 1, 100) == []

    @pytest.mark.parametrize("status_code", [401, 403])
    def test_rejected_credentials(self, status_code: int) -> None:
        with client_for(lambda request: httpx.Response(status_code, text="denied")) as client:
            with pytest.raises(AuthError) as exc_info:
                client.fetch_page("shop1", "pending", 1, 100)

        assert exc_info.value.code == status_code

    def test_structured_error_keeps_magento_code(self) -> None:
        body = {"messages": {"error": [{"code": 404, "message": "Request does not match any route."}]}}

        with client_for(lambda request: httpx.Response(404, json=body)) as client:
            with pytest.raises(TransportError) as exc_info:
                client.fetch_page("shop1", "pending", 1, 100)

        assert not isinstance(exc_info.value, AuthError)
        assert exc_info.value.code == 404

    def test_server_error_without_body(self) -> None:
        with client_for(lambda request: httpx.Response(502)) as client:
            with pytest.raises(TransportError, match="HTTP 502"):
                client.fetch_page("shop1", "pending", 1, 100)

    def test_connection_failure(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with client_for(handler) as client:
            with pytest.raises(TransportError, match="magento request failed"):
                client.fetch_page("shop1", "pending", 1, 100)
