"""
Local cart — anonymous-mode mutations and the persisted snapshot.

Mutations are pure functions Cart -> (Cart, CartOutcome); stock is enforced
by clamping, never by rejecting, except for stock 0 which is OutOfStock.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable

from cartsync._codec import decode_cart, encode_lines
from cartsync._errors import OutOfStock
from cartsync._types import Cart, CartLine, CartOutcome, Product
from cartsync.storage import KeyValueStore, StorageChange, Unsubscribe

logger = logging.getLogger(__name__)

CART_KEY = "cart"

# ═══════════════════════════════════════════════════════════════════════════════
# Pure mutations
# ═══════════════════════════════════════════════════════════════════════════════


def _replace_line(cart: Cart, line: CartLine) -> Cart:
    return Cart(tuple(line if old.product_id == line.product_id else old for old in cart.lines))


def add_line(cart: Cart, product: Product, quantity: int = 1) -> tuple[Cart, CartOutcome]:
    """
    Add `quantity` of `product`, clamped to its stock.

    Existing line: min(existing + quantity, stock), CLAMPED iff the sum
    exceeded stock. New line: min(quantity, stock), CLAMPED iff quantity
    exceeded stock.
    """
    if quantity < 1:
        raise ValueError("quantity must be >= 1")
    if product.stock <= 0:
        raise OutOfStock(f"{product.name or product.id} is out of stock", product_id=product.id)

    existing = cart.line(product.id)
    if existing is not None:
        wanted = existing.quantity + quantity
        granted = min(wanted, product.stock)
        updated = _replace_line(cart, CartLine(existing.product, granted))
        return updated, CartOutcome.CLAMPED if granted < wanted else CartOutcome.UPDATED

    granted = min(quantity, product.stock)
    added = Cart((*cart.lines, CartLine(product, granted)))
    return added, CartOutcome.CLAMPED if granted < quantity else CartOutcome.ADDED


def update_line(cart: Cart, product_id: str, quantity: int) -> tuple[Cart, CartOutcome]:
    """
    Set a line's quantity, clamped to the line's stock snapshot.

    Below 1 is a no-op: removal goes through remove_line().
    """
    if quantity < 1:
        return cart, CartOutcome.UNCHANGED

    existing = cart.line(product_id)
    if existing is None:
        return cart, CartOutcome.UNCHANGED

    granted = min(quantity, existing.product.stock)
    if granted < 1:
        return cart, CartOutcome.UNCHANGED

    updated = _replace_line(cart, CartLine(existing.product, granted))
    return updated, CartOutcome.CLAMPED if granted < quantity else CartOutcome.UPDATED


def remove_line(cart: Cart, product_id: str) -> Cart:
    return Cart(tuple(line for line in cart.lines if line.product_id != product_id))


# ═══════════════════════════════════════════════════════════════════════════════
# Persisted snapshot
# ═══════════════════════════════════════════════════════════════════════════════


def parse_cart(raw: str | None) -> Cart | None:
    """Stored JSON -> Cart. None when missing or unreadable."""
    if raw is None:
        return None
    try:
        data = json.loads(raw)
        if not isinstance(data, list):
            return None
        return decode_cart(data)
    except (ValueError, KeyError, TypeError):
        return None


class LocalCartRepository:
    """The anonymous cart as stored under CART_KEY."""

    def __init__(self, storage: KeyValueStore) -> None:
        self._storage = storage

    async def load(self) -> Cart:
        raw = await self._storage.get(CART_KEY)
        cart = parse_cart(raw)
        if cart is None:
            if raw is not None:
                logger.warning("Invalid cart data in storage, discarding it")
                await self._storage.delete(CART_KEY)
            return Cart.empty()
        return cart

    async def save(self, cart: Cart) -> None:
        await self._storage.set(CART_KEY, json.dumps(encode_lines(cart)))

    async def discard(self) -> None:
        await self._storage.delete(CART_KEY)

    def subscribe(self, listener: Callable[[Cart], None]) -> Unsubscribe:
        """
        Anonymous-cart changes made by other tabs.

        A removed key arrives as an empty cart; unreadable values are dropped.
        """

        def on_change(change: StorageChange) -> None:
            if change.key != CART_KEY:
                return
            if change.value is None:
                listener(Cart.empty())
                return
            cart = parse_cart(change.value)
            if cart is None:
                logger.warning("Ignoring unreadable cart from another tab")
                return
            listener(cart)

        return self._storage.subscribe(on_change)


__all__ = (
    "CART_KEY",
    "add_line",
    "update_line",
    "remove_line",
    "parse_cart",
    "LocalCartRepository",
)
