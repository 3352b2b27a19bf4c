"""
JSON response envelope.

Every JSON body Declaro produces has the same shape:

    success: {"data": <any>, "meta": {"version": "v1", ...}}
    error:   {"data": {"error": <formatted>}, "meta": {"version": "v1", ...}}

Default action responses put the service result (minus the keys that
steer HTML and Turbo responses), or the ``{success: false, error,
errors?}`` failure body, under ``data``.
"""
from __future__ import annotations

import traceback
from collections.abc import Mapping
from typing import Any

from fastapi.encoders import jsonable_encoder
from starlette.responses import JSONResponse

from declaro.config import get_settings
from declaro.errors import FieldErrors

DEFAULT_ERROR_MESSAGE = "An error occurred"

# Result keys consumed by the controller, never echoed in JSON bodies
INTERNAL_RESULT_KEYS = ("page_config", "turbo_streams", "redirect_to")

_CUSTOM_ENCODERS = {FieldErrors: lambda errors: errors.to_dict()}


def encode(value: Any) -> Any:
    """Convert ``value`` into JSON-compatible data."""
    if isinstance(value, Mapping) and not isinstance(value, dict):
        value = dict(value)
    return jsonable_encoder(value, custom_encoder=_CUSTOM_ENCODERS)


def build_response(data: Any = None, meta: Mapping[str, Any] | None = None) -> dict[str, Any]:
    """Wrap ``data`` in the envelope; ``meta`` is merged over the API version."""
    return {
        "data": data,
        "meta": {"version": get_settings().api_version, **dict(meta or {})},
    }


def format_error(error: Any) -> Any:
    """
    Format an error for the envelope.

    - Exceptions: ``{type, message}``
    - Strings: ``{message}``
    - Mappings: verbatim
    - Field error collections (``full_messages`` + ``to_dict()``):
      ``{messages, details}``
    """
    if isinstance(error, BaseException):
        return {"type": type(error).__name__, "message": str(error)}
    if isinstance(error, Mapping):
        return dict(error)
    if isinstance(error, str):
        return {"message": error}
    if error is None:
        return {"message": DEFAULT_ERROR_MESSAGE}

    full_messages = getattr(error, "full_messages", None)
    if full_messages is not None:
        messages = full_messages() if callable(full_messages) else full_messages
        to_dict = getattr(error, "to_dict", None)
        details = to_dict() if callable(to_dict) else {}
        return {"messages": list(messages), "details": details}

    to_dict = getattr(error, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    return {"message": str(error)}


def build_json_response(result: Mapping[str, Any] | None) -> dict[str, Any]:
    """The service result as returned, minus the keys that only steer HTML and Turbo responses."""
    if not result:
        return {}
    return {k: v for k, v in result.items() if k not in INTERNAL_RESULT_KEYS}


def _exception_errors(error: BaseException | None) -> Any:
    errors = getattr(error, "errors", None)
    return None if callable(errors) else errors


def build_json_error_response(
    result: Mapping[str, Any] | None,
    error: BaseException | None = None,
) -> dict[str, Any]:
    """
    Failure body: ``{success: false, error, errors?}``.

    The message comes from the exception, then the result's ``error``,
    then a generic default.
    """
    result = result or {}
    message = str(error) if error is not None else None
    response: dict[str, Any] = {
        "success": False,
        "error": message or result.get("error") or DEFAULT_ERROR_MESSAGE,
    }

    errors = result.get("errors") or _exception_errors(error)
    if errors:
        response["errors"] = errors

    if error is not None and get_settings().error_handling.detailed_errors:
        response["exception"] = {
            "type": type(error).__name__,
            "backtrace": traceback.format_exception(type(error), error, error.__traceback__),
        }
    return response


def json_response(content: Any, status_code: int = 200) -> JSONResponse:
    return JSONResponse(encode(content), status_code=status_code)


def success_response(
    data: Any = None,
    status_code: int = 200,
    meta: Mapping[str, Any] | None = None,
) -> JSONResponse:
    """Enveloped success response."""
    return json_response(build_response(data, meta), status_code)


def error_response(
    error: Any = None,
    status_code: int = 422,
    meta: Mapping[str, Any] | None = None,
) -> JSONResponse:
    """Enveloped error response."""
    return json_response(build_response({"error": format_error(error)}, meta), status_code)
