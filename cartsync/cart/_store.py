"""
Cart store — single source of truth for the cart on screen.

LOCAL mode (no session): mutate the anonymous cart, persist it, clamp to stock.
REMOTE mode (session): one pipeline round trip per operation; the server's
cart replaces the cache as-is.

Every public operation first waits for any pending transition (login merge,
logout) to finish.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from cartsync._types import Cart, CartMode, CartOutcome, Product
from cartsync.cart._local import (
    LocalCartRepository,
    add_line,
    remove_line,
    update_line,
)
from cartsync.cart._remote import RemoteCart

logger = logging.getLogger(__name__)


class CartStore:
    def __init__(self, local: LocalCartRepository, remote: RemoteCart) -> None:
        self._local = local
        self._remote = remote
        self._cart = Cart.empty()
        self._mode = CartMode.LOCAL
        self._settled = asyncio.Event()
        self._settled.set()
        self._transitions = asyncio.Lock()
        self._unsubscribe = local.subscribe(self._on_other_tab)

    @property
    def mode(self) -> CartMode:
        return self._mode

    def snapshot(self) -> Cart:
        return self._cart

    def contains(self, product_id: str) -> bool:
        return self._cart.contains(product_id)

    def quantity_of(self, product_id: str) -> int:
        return self._cart.quantity_of(product_id)

    async def add_item(self, product: Product, quantity: int = 1) -> CartOutcome:
        await self._settled.wait()

        if self._mode is CartMode.LOCAL:
            cart, outcome = add_line(self._cart, product, quantity)
            await self._commit_local(cart)
            return outcome

        before = self._cart.quantity_of(product.id)
        existed = self._cart.contains(product.id)
        self._cart = await self._remote.add(product.id, quantity)
        # report only: the server decides, nothing is clamped here
        if self._cart.quantity_of(product.id) < before + quantity:
            return CartOutcome.CLAMPED
        return CartOutcome.UPDATED if existed else CartOutcome.ADDED

    async def update_quantity(self, product_id: str, quantity: int) -> CartOutcome:
        if quantity < 1:
            return CartOutcome.UNCHANGED
        await self._settled.wait()

        if self._mode is CartMode.LOCAL:
            cart, outcome = update_line(self._cart, product_id, quantity)
            if outcome is not CartOutcome.UNCHANGED:
                await self._commit_local(cart)
            return outcome

        self._cart = await self._remote.update(product_id, quantity)
        if self._cart.quantity_of(product_id) < quantity:
            return CartOutcome.CLAMPED
        return CartOutcome.UPDATED

    async def remove_item(self, product_id: str) -> None:
        await self._settled.wait()

        if self._mode is CartMode.LOCAL:
            await self._commit_local(remove_line(self._cart, product_id))
            return

        self._cart = await self._remote.remove(product_id)

    async def clear(self) -> None:
        await self._settled.wait()

        if self._mode is CartMode.LOCAL:
            await self._commit_local(Cart.empty())
            return

        self._cart = await self._remote.clear()

    async def load(self) -> Cart:
        """Anonymous start: show whatever the local snapshot holds."""
        self._mode = CartMode.LOCAL
        self._cart = await self._local.load()
        return self._cart

    @asynccontextmanager
    async def transition(self) -> AsyncIterator[None]:
        """
        Hold cart operations until the block exits.

        Transitions themselves run one at a time.
        """
        async with self._transitions:
            self._settled.clear()
            try:
                yield
            finally:
                self._settled.set()

    def adopt(self, cart: Cart, mode: CartMode) -> None:
        self._cart = cart
        self._mode = mode

    async def to_local(self) -> None:
        """Session lost: fall back to the anonymous cart."""
        logger.info("Session ended, cart back in local mode")
        await self.load()

    async def reset(self) -> None:
        """Logout: empty cart, anonymous copy removed."""
        self._cart = Cart.empty()
        self._mode = CartMode.LOCAL
        await self._local.discard()

    def close(self) -> None:
        self._unsubscribe()

    async def _commit_local(self, cart: Cart) -> None:
        self._cart = cart
        await self._local.save(cart)

    def _on_other_tab(self, cart: Cart) -> None:
        # mid-transition the local copy belongs to the merge
        if self._mode is CartMode.LOCAL and self._settled.is_set():
            self._cart = cart


__all__ = ("CartStore",)
