"""
Response helpers — turn non-2xx responses into CartSyncError instances.
"""

from __future__ import annotations

from typing import Any

import httpx

from cartsync._errors import (
    ApiError,
    CartSyncError,
    ExpiredAccessToken,
    InvalidCredentials,
    error_for_code,
)


def json_body(response: httpx.Response) -> Any:
    """Decoded JSON body, None for empty or non-JSON bodies."""
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return None


def error_from_response(response: httpx.Response, *, authenticated: bool) -> CartSyncError:
    """
    Map a failed response to the error taxonomy.

    The body's `code` wins; otherwise a 401 means an expired access token on
    authenticated calls and rejected credentials on anonymous ones.
    """
    body = json_body(response)
    if not isinstance(body, dict):
        body = {}

    code = body.get("code")
    message = body.get("error") or body.get("detail") or response.reason_phrase
    if not isinstance(message, str):
        message = str(message)

    cls = error_for_code(code if isinstance(code, str) else None)
    if cls is not None:
        return cls(message)

    if response.status_code == 401:
        return ExpiredAccessToken(message) if authenticated else InvalidCredentials(message)

    return ApiError(message, status=response.status_code, code=code if isinstance(code, str) else None)


__all__ = ("json_body", "error_from_response")
