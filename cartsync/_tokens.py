"""
Token store — the session's persistence boundary.

Lifecycle:
    empty (app start) → populated (login/register) → updated (refresh)
                      → cleared (logout / refresh failure)

Note: no validation of token contents, they are opaque here.
"""

from __future__ import annotations

import json
import logging

from cartsync._types import Session, TokenPair
from cartsync._codec import decode_user, encode_user
from cartsync.storage import KeyValueStore

logger = logging.getLogger(__name__)

ACCESS_TOKEN_KEY = "accessToken"
REFRESH_TOKEN_KEY = "refreshToken"
USER_KEY = "user"


class TokenStore:
    def __init__(self, storage: KeyValueStore) -> None:
        self._storage = storage

    async def load(self) -> Session | None:
        """Current session, or None unless tokens and profile are all present."""
        access = await self._storage.get(ACCESS_TOKEN_KEY)
        refresh = await self._storage.get(REFRESH_TOKEN_KEY)
        raw_user = await self._storage.get(USER_KEY)
        if not access or not refresh or not raw_user:
            return None
        try:
            user = decode_user(json.loads(raw_user))
        except (ValueError, KeyError, TypeError):
            logger.warning("Cached user profile is unreadable, treating as signed out")
            return None
        return Session(access_token=access, refresh_token=refresh, user=user)

    async def save(self, session: Session) -> None:
        await self._storage.set(ACCESS_TOKEN_KEY, session.access_token)
        await self._storage.set(REFRESH_TOKEN_KEY, session.refresh_token)
        await self._storage.set(USER_KEY, json.dumps(encode_user(session.user)))

    async def update_tokens(self, pair: TokenPair) -> None:
        """Store a rotated pair; the cached profile stays."""
        await self._storage.set(ACCESS_TOKEN_KEY, pair.access_token)
        await self._storage.set(REFRESH_TOKEN_KEY, pair.refresh_token)

    async def access_token(self) -> str | None:
        return await self._storage.get(ACCESS_TOKEN_KEY)

    async def refresh_token(self) -> str | None:
        return await self._storage.get(REFRESH_TOKEN_KEY)

    async def clear(self) -> None:
        for key in (ACCESS_TOKEN_KEY, REFRESH_TOKEN_KEY, USER_KEY):
            await self._storage.delete(key)


__all__ = (
    "ACCESS_TOKEN_KEY",
    "REFRESH_TOKEN_KEY",
    "USER_KEY",
    "TokenStore",
)
