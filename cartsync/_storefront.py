"""
Storefront — composition root.

Wires every component over one key-value store and one HTTP client, and
owns the ordering of session transitions:

    start()   session? ── yes ─► reconcile (retries a merge a previous load left behind)
                        └─ no ──► show the anonymous cart
    login()   ─► persist session ─► reconcile           (inside the cart gate)
    logout()  ─► revoke (best effort) ─► clear tokens + cart
    refresh failure ─► tokens cleared ─► cart back to local ─► login-required listeners

Example:
    async with open_storefront(load_settings()) as shop:
        shop.on_login_required(redirect_to_login)
        await shop.start()
        await shop.cart.add_item(product)
        await shop.auth.login("ann@example.com", "secret")
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx

from cartsync._tokens import TokenStore
from cartsync._types import Cart, Session
from cartsync.auth import AuthGateway
from cartsync.cart import CartReconciler, CartStore, LocalCartRepository, RemoteCart
from cartsync.config import Settings
from cartsync.http import LoginRequired, RequestPipeline, TokenRefresher
from cartsync.storage import KeyValueStore, create_store

logger = logging.getLogger(__name__)


class Storefront:
    def __init__(
        self,
        client: httpx.AsyncClient,
        storage: KeyValueStore,
        refresher: TokenRefresher | None = None,
    ) -> None:
        self.storage = storage
        self.tokens = TokenStore(storage)
        self.pipeline = RequestPipeline(client, self.tokens, refresher)

        self.local = LocalCartRepository(storage)
        self.remote = RemoteCart(self.pipeline)
        self.cart = CartStore(self.local, self.remote)
        self.reconciler = CartReconciler(self.cart, self.local, self.remote, self.tokens)
        self.auth = AuthGateway(self.pipeline, self.tokens, self.cart)

        self._login_required: list[LoginRequired] = []

        self.auth.on_authenticated(self._reconcile)
        self.pipeline.on_login_required(self.cart.to_local)
        self.pipeline.on_login_required(self._notify_login_required)

    def on_login_required(self, listener: LoginRequired) -> None:
        """Called once the session was lost to a failed refresh."""
        self._login_required.append(listener)

    async def start(self) -> Cart:
        async with self.cart.transition():
            session = await self.tokens.load()
            if session is None:
                return await self.cart.load()
            logger.info("Resuming session of %s", session.user.email)
            return await self.reconciler.reconcile()

    def close(self) -> None:
        self.cart.close()

    async def _reconcile(self, session: Session) -> None:
        await self.reconciler.reconcile()

    async def _notify_login_required(self) -> None:
        for listener in list(self._login_required):
            await listener()


@asynccontextmanager
async def open_storefront(
    settings: Settings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> AsyncIterator[Storefront]:
    """Storefront over settings.api_url and a SQLAlchemy store at settings.storage_url."""
    storage, engine = await create_store(settings.storage_url)
    try:
        async with httpx.AsyncClient(base_url=settings.api_url, transport=transport) as client:
            storefront = Storefront(client, storage)
            try:
                yield storefront
            finally:
                storefront.close()
    finally:
        await engine.dispose()


__all__ = ("Storefront", "open_storefront")
