"""
Token refresh — the one backend call that must not go through the pipeline.
"""

from __future__ import annotations

from typing import Protocol

import httpx

from cartsync._codec import decode_tokens
from cartsync._errors import InvalidRefreshToken, TransportError
from cartsync._types import TokenPair
from cartsync.http._responses import error_from_response, json_body


class TokenRefresher(Protocol):
    async def refresh(self, refresh_token: str) -> TokenPair:
        """
        Exchange a refresh token for a new pair.

        Raises InvalidRefreshToken when rejected, TransportError on network failure.
        """
        ...


class HttpTokenRefresher:
    """
    POST /auth/refresh on the raw client.

    Note: both tokens rotate, the old refresh token is dead afterwards.
    """

    def __init__(self, client: httpx.AsyncClient, path: str = "/auth/refresh") -> None:
        self._client = client
        self._path = path

    async def refresh(self, refresh_token: str) -> TokenPair:
        try:
            response = await self._client.post(self._path, json={"refreshToken": refresh_token})
        except httpx.TransportError as e:
            raise TransportError(f"Refresh failed: {e}") from e

        if not response.is_success:
            cause = error_from_response(response, authenticated=False)
            raise InvalidRefreshToken(cause.message) from cause

        try:
            return decode_tokens(json_body(response) or {})
        except (KeyError, TypeError) as e:
            raise InvalidRefreshToken("Malformed refresh response") from e


__all__ = ("TokenRefresher", "HttpTokenRefresher")
