"""
Auth gateway — login, registration and logout.

Login and register are the only triggers of cart reconciliation: listeners
registered via on_authenticated() run after the session is persisted and
before the cart's transition gate opens again.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from cartsync._codec import decode_session
from cartsync._errors import ApiError, CartSyncError
from cartsync._tokens import TokenStore
from cartsync._types import Session, UserProfile
from cartsync.cart import CartStore
from cartsync.http import RequestPipeline

logger = logging.getLogger(__name__)

Authenticated = Callable[[Session], Awaitable[None]]


@dataclass(frozen=True, slots=True)
class RegistrationForm:
    email: str
    password: str
    full_name: str
    phone: str = ""
    address: str = ""

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "email": self.email,
            "password": self.password,
            "fullName": self.full_name,
        }
        if self.phone:
            payload["phone"] = self.phone
        if self.address:
            payload["address"] = self.address
        return payload


class AuthGateway:
    def __init__(self, pipeline: RequestPipeline, tokens: TokenStore, cart: CartStore) -> None:
        self._pipeline = pipeline
        self._tokens = tokens
        self._cart = cart
        self._authenticated: list[Authenticated] = []

    def on_authenticated(self, listener: Authenticated) -> None:
        self._authenticated.append(listener)

    async def login(self, email: str, password: str) -> UserProfile:
        """Raises InvalidCredentials on rejection."""
        return await self._establish("/auth/login", {"email": email, "password": password})

    async def register(self, form: RegistrationForm) -> UserProfile:
        """Raises DuplicateAccount when the email is taken."""
        return await self._establish("/auth/register", form.to_payload())

    async def logout(self) -> None:
        """
        Best-effort server revoke, then local teardown no matter what.

        Never raises for a failed revoke.
        """
        async with self._cart.transition():
            try:
                await self._pipeline.post("/auth/logout")
            except CartSyncError as e:
                logger.warning("Logout revoke failed (%s), clearing session anyway", e.code)
            finally:
                await self._tokens.clear()
                await self._cart.reset()
        logger.info("Signed out")

    async def current_user(self) -> UserProfile | None:
        session = await self._tokens.load()
        return session.user if session else None

    async def is_authenticated(self) -> bool:
        return await self._tokens.load() is not None

    async def _establish(self, path: str, payload: dict[str, Any]) -> UserProfile:
        async with self._cart.transition():
            body = await self._pipeline.post(path, payload, authenticated=False)
            try:
                session = decode_session(body or {})
            except (KeyError, ValueError, TypeError) as e:
                raise ApiError(f"Malformed auth response: {e}", status=200) from e

            await self._tokens.save(session)
            logger.info("Signed in as %s", session.user.email)

            for listener in list(self._authenticated):
                await listener(session)

        return session.user


__all__ = ("Authenticated", "RegistrationForm", "AuthGateway")
