"""Parsing of Magento REST responses."""

from typing import Any

import orjson

from order_sync_service.exceptions import AuthError, TransportError

AUTH_ERROR_CODES = {401, 403}


def _decode(payload: bytes | str) -> Any:
    if isinstance(payload, str):
        payload = payload.encode("utf-8")
    if not payload.strip():
        return None
    return orjson.loads(payload)


def parse_error(payload: bytes | str) -> TransportError | None:
    """
    Read Magento's structured error response.

    Magento reports failures as
    ``{"messages": {"error": [{"code": 401, "message": "..."}]}}``.

    Returns:
        AuthError for rejected credentials, TransportError for any other
        error, None if the payload is not an error response
    """
    try:
        data = _decode(payload)
    except orjson.JSONDecodeError:
        return None
    if not isinstance(data, dict):
        return None

    messages = data.get("messages")
    if not isinstance(messages, dict):
        return None
    errors = messages.get("error")
    if not isinstance(errors, list) or not errors or not isinstance(errors[0], dict):
        return None

    first = errors[0]
    try:
        code = int(first.get("code"))
    except (TypeError, ValueError):
        code = None
    message = str(first.get("message") or "unknown magento error")

    if code in AUTH_ERROR_CODES:
        return AuthError(message, code=code)
    return TransportError(message, code=code)


def parse_object_list(payload: bytes | str) -> list[dict[str, Any]]:
    """
    Parse a Magento entity list.

    Magento returns entity lists either as an object keyed by entity id or as
    a plain array. Both are returned as a list in response order.

    Raises:
        TransportError: the payload is an error response or not a list of objects
    """
    error = parse_error(payload)
    if error is not None:
        raise error

    try:
        data = _decode(payload)
    except orjson.JSONDecodeError as e:
        raise TransportError(f"invalid JSON in magento response: {e}") from e

    if data is None:
        return []
    if isinstance(data, dict):
        records = list(data.values())
    elif isinstance(data, list):
        records = data
    else:
        raise TransportError("unexpected magento response, expected a list of objects")

    if not all(isinstance(record, dict) for record in records):
        raise TransportError("unexpected magento response, expected a list of objects")
    return records
