"""Unit tests for Magento response parsing."""

import pytest

from order_sync_service.exceptions import AuthError, TransportError
from order_sync_service.infrastructure.magento import parse_error, parse_object_list


class TestParseObjectList:
    def test_object_keyed_by_id(self) -> None:
        payload = b'{"12": {"entity_id": "12", "status": "pending"}, "13": {"entity_id": "13", "status": "pending"}}'

        records = parse_object_list(payload)

        assert [r["entity_id"] for r in records] == ["12", "13"]

    def test_plain_array(self) -> None:
        assert parse_object_list('[{"entity_id": 1}]') == [{"entity_id": 1}]

    @pytest.mark.parametrize("payload", [b"", b"  ", b"[]", b"{}"])
    def test_empty_payloads(self, payload: bytes) -> None:
        assert parse_object_list(payload) == []

    def test_error_payload_raises(self) -> None:
        payload = b'{"messages": {"error": [{"code": 500, "message": "Resource internal error."}]}}'

        with pytest.raises(TransportError) as exc_info:
            parse_object_list(payload)

        assert exc_info.value.code == 500
        assert str(exc_info.value) == "[500] Resource internal error."

    def test_auth_error_payload_raises_auth_error(self) -> None:
        payload = b'{"messages": {"error": [{"code": 401, "message": "Access denied"}]}}'

        with pytest.raises(AuthError):
            parse_object_list(payload)

    @pytest.mark.parametrize("payload", [b"not json", b'"text"', b"[1, 2]", b'{"1": "x"}'])
    def test_malformed_payloads(self, payload: bytes) -> None:
        with pytest.raises(TransportError):
            parse_object_list(payload)


class TestParseError:
    def test_not_an_error(self) -> None:
        assert parse_error(b'[{"entity_id": 1}]') is None
        assert parse_error(b"<html>") is None
        assert parse_error(b'{"messages": {"error": []}}') is None

    def test_error_without_code(self) -> None:
        error = parse_error(b'{"messages": {"error": [{"message": "Request does not match any route."}]}}')

        assert type(error) is TransportError
        assert error.code is None
        assert error.message == "Request does not match any route."

    @pytest.mark.parametrize("code", [401, 403])
    def test_auth_codes(self, code: int) -> None:
        error = parse_error(f'{{"messages": {{"error": [{{"code": {code}, "message": "denied"}}]}}}}')

        assert isinstance(error, AuthError)
        assert error.code == code
