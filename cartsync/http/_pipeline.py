"""
Request pipeline — every backend call goes through here.

Per call:

    INITIAL → SENT ─┬─ 2xx ──────────────────────────────► SUCCESS
                    ├─ other failure ────────────────────► FAILURE (raised)
                    └─ 401 → AUTH_FAILURE → REFRESH_ATTEMPTED
                                 │
                 ┌───────────────┼─────────────────────┐
                 ▼               ▼                     ▼
          RETRIED_SUCCESS  RETRIED_FAILURE      REFRESH_FAILED
                           (replay's error)     (session torn down,
                                                 login required)

The retry guard is an immutable Attempt threaded through send(), scoped to
one logical call. Concurrent calls each carry their own. Both tokens rotate on
refresh, so concurrent 401s share one exchange per refresh token instead of
spending it twice.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Literal

import httpx

from cartsync._errors import CartSyncError, InvalidRefreshToken, TransportError
from cartsync._tokens import TokenStore
from cartsync.http._refresh import HttpTokenRefresher, TokenRefresher
from cartsync.http._responses import error_from_response, json_body

logger = logging.getLogger(__name__)

Method = Literal["GET", "POST", "PATCH", "PUT", "DELETE"]
LoginRequired = Callable[[], Awaitable[None]]

# ═══════════════════════════════════════════════════════════════════════════════
# Call / Attempt
# ═══════════════════════════════════════════════════════════════════════════════


class RequestState(Enum):
    INITIAL = auto()
    SENT = auto()
    SUCCESS = auto()
    FAILURE = auto()
    AUTH_FAILURE = auto()
    REFRESH_ATTEMPTED = auto()
    RETRIED_SUCCESS = auto()
    RETRIED_FAILURE = auto()
    REFRESH_FAILED = auto()


@dataclass(frozen=True, slots=True)
class Call:
    method: Method
    path: str
    json: Any = None
    authenticated: bool = True


@dataclass(frozen=True, slots=True)
class Attempt:
    """
    Position of a call in its retry budget.

    Note: immutable, next() returns a new value.
    """

    number: int = 0
    limit: int = 1

    @property
    def is_retry(self) -> bool:
        return self.number > 0

    @property
    def can_retry(self) -> bool:
        return self.number < self.limit

    def next(self) -> Attempt:
        return Attempt(number=self.number + 1, limit=self.limit)


FIRST_ATTEMPT = Attempt()

# ═══════════════════════════════════════════════════════════════════════════════
# Pipeline
# ═══════════════════════════════════════════════════════════════════════════════


class RequestPipeline:
    """
    Bearer attachment plus one transparent refresh-and-retry on 401.

    Example:
        async with httpx.AsyncClient(base_url=settings.api_url) as client:
            pipeline = RequestPipeline(client, TokenStore(store))
            pipeline.on_login_required(show_login_page)
            cart = await pipeline.get("/cart")
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        tokens: TokenStore,
        refresher: TokenRefresher | None = None,
    ) -> None:
        self._client = client
        self._tokens = tokens
        self._refresher: TokenRefresher = refresher if refresher is not None else HttpTokenRefresher(client)
        self._login_required: list[LoginRequired] = []
        # refresh token -> outcome of the exchange currently spending it
        self._exchanges: dict[str, asyncio.Future[bool]] = {}

    def on_login_required(self, listener: LoginRequired) -> None:
        """Called after an unrecoverable refresh failure tore the session down."""
        self._login_required.append(listener)

    async def get(self, path: str) -> Any:
        return await self.request(Call("GET", path))

    async def post(self, path: str, json: Any = None, *, authenticated: bool = True) -> Any:
        return await self.request(Call("POST", path, json, authenticated))

    async def patch(self, path: str, json: Any = None) -> Any:
        return await self.request(Call("PATCH", path, json))

    async def delete(self, path: str) -> Any:
        return await self.request(Call("DELETE", path))

    async def request(self, call: Call) -> Any:
        """Send and decode the JSON body."""
        self._log(call, RequestState.INITIAL)
        return json_body(await self.send(call))

    async def send(self, call: Call, attempt: Attempt = FIRST_ATTEMPT) -> httpx.Response:
        token = await self._tokens.access_token() if call.authenticated else None
        response = await self._issue(call, token)

        if response.is_success:
            self._log(call, RequestState.RETRIED_SUCCESS if attempt.is_retry else RequestState.SUCCESS)
            return response

        if response.status_code == 401 and call.authenticated and attempt.can_retry:
            self._log(call, RequestState.AUTH_FAILURE)
            await self._refresh(call, token)
            self._log(call, RequestState.REFRESH_ATTEMPTED)
            return await self.send(call, attempt.next())

        self._log(call, RequestState.RETRIED_FAILURE if attempt.is_retry else RequestState.FAILURE)
        raise error_from_response(response, authenticated=call.authenticated)

    async def _issue(self, call: Call, token: str | None) -> httpx.Response:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._log(call, RequestState.SENT)
        try:
            return await self._client.request(
                call.method,
                call.path,
                json=call.json,
                headers=headers,
            )
        except httpx.TransportError as e:
            self._log(call, RequestState.FAILURE)
            raise TransportError(f"{call.method} {call.path}: {e}") from e

    async def _refresh(self, call: Call, used_token: str | None) -> None:
        """Rotate the pair or tear the session down. Raises on teardown."""
        current = await self._tokens.access_token()
        if used_token and current and current != used_token:
            # rotated by a concurrent call while this one was in flight
            return

        refresh_token = await self._tokens.refresh_token()
        if not refresh_token:
            await self._teardown(call)
            raise InvalidRefreshToken("No refresh token")

        pending = self._exchanges.get(refresh_token)
        if pending is not None:
            # a concurrent call is already exchanging this token, share its result
            if not await asyncio.shield(pending):
                raise InvalidRefreshToken("Session ended by a concurrent refresh")
            return

        pending = asyncio.get_running_loop().create_future()
        self._exchanges[refresh_token] = pending
        try:
            await self._exchange(call, refresh_token)
        except BaseException:
            pending.set_result(False)
            raise
        else:
            pending.set_result(True)
        finally:
            del self._exchanges[refresh_token]

    async def _exchange(self, call: Call, refresh_token: str) -> None:
        try:
            pair = await self._refresher.refresh(refresh_token)
        except CartSyncError:
            # both tokens rotate: another pipeline over the same storage may have spent it first
            rotated = await self._tokens.refresh_token()
            if rotated and rotated != refresh_token:
                logger.debug("%s %s: refresh raced a concurrent rotation, replaying", call.method, call.path)
                return
            await self._teardown(call)
            raise

        await self._tokens.update_tokens(pair)

    async def _teardown(self, call: Call) -> None:
        self._log(call, RequestState.REFRESH_FAILED, level=logging.WARNING)
        await self._tokens.clear()
        for listener in list(self._login_required):
            await listener()

    @staticmethod
    def _log(call: Call, state: RequestState, level: int = logging.DEBUG) -> None:
        logger.log(level, "%s %s -> %s", call.method, call.path, state.name)


__all__ = (
    "Method",
    "LoginRequired",
    "RequestState",
    "Call",
    "Attempt",
    "FIRST_ATTEMPT",
    "RequestPipeline",
)
