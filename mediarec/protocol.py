"""Request parsing and response building for the recorder service."""

from __future__ import annotations

import json
from typing import Any, Mapping

from .errors import ErrorCode, RecorderError, get_error

RECORDER_ID_KEY = "recorderId"
RETURN_VALUE_KEY = "returnValue"


def parse_payload(payload: str) -> dict[str, Any]:
    """Parse a request payload into a dict of parameters.

    Raises RecorderError with JSON_PARSING for malformed text and
    JSON_TYPE when the payload is not a JSON object.
    """
    try:
        params = json.loads(payload)
    except (json.JSONDecodeError, TypeError) as exc:
        raise RecorderError(ErrorCode.JSON_PARSING) from exc
    if not isinstance(params, dict):
        raise RecorderError(ErrorCode.JSON_TYPE)
    return params


def require_recorder_id(params: Mapping[str, Any]) -> int:
    """Return the integer ``recorderId`` of a request.

    Raises RecorderError with RECORDER_ID_NOT_SPECIFIED when it is absent
    and JSON_TYPE when it is not an integer.
    """
    value = params.get(RECORDER_ID_KEY)
    if value is None:
        raise RecorderError(ErrorCode.RECORDER_ID_NOT_SPECIFIED)
    if isinstance(value, bool) or not isinstance(value, int):
        raise RecorderError(ErrorCode.JSON_TYPE)
    return value


def error_code_for_exception(exc: BaseException) -> ErrorCode:
    """Map an exception raised while serving a request to its error code."""
    if isinstance(exc, RecorderError):
        return exc.code
    if isinstance(exc, json.JSONDecodeError):
        return ErrorCode.JSON_PARSING
    if isinstance(exc, TypeError):
        return ErrorCode.JSON_TYPE
    return ErrorCode.LIST_END


def build_response(error_code: int, extra: Mapping[str, Any] | None = None) -> str:
    """Serialise the reply to a request.

    On success the reply carries ``returnValue`` true plus ``extra``; on
    failure it carries the error code and its message instead.
    """
    if error_code == ErrorCode.NONE:
        response: dict[str, Any] = {RETURN_VALUE_KEY: True, **(extra or {})}
    else:
        error = get_error(error_code)
        response = {
            RETURN_VALUE_KEY: False,
            "errorCode": error.code,
            "errorText": error.message,
        }
    return json.dumps(response, sort_keys=True, separators=(",", ":"))