"""Shared infrastructure for examples."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Coroutine

import httpx

from cartsync import Cart, Product
from cartsync.backend import Backend, Catalog, create_app

# Catalog
MUG = Product("p-mug", "Mug", price=1000, discount=10, stock=5)
LAMP = Product("p-lamp", "Lamp", price=2500, discount=0, stock=2)
POSTER = Product("p-poster", "Poster", price=700, discount=0, stock=0)

ACCOUNT = ("alice@example.com", "wonderland")


# Backend
def backend_transport() -> tuple[httpx.ASGITransport, Backend]:
    """In-process reference backend with one registered account."""
    app = create_app(Catalog.of([MUG, LAMP, POSTER]))
    app.state.backend.accounts.register(ACCOUNT[0], ACCOUNT[1], "Alice")
    return httpx.ASGITransport(app=app), app.state.backend


# Helpers
def banner(title: str) -> None:
    print(f"\n{'─' * 50}\n{title}\n{'─' * 50}")


def show(cart: Cart) -> None:
    for line in cart.lines:
        print(f"   {line.product.name:<8} x{line.quantity}  = {line.total / 100:.2f}")
    print(f"   {cart.total_items} item(s), total {cart.total_price / 100:.2f}")


def run(main: Callable[[], Coroutine[object, object, None]]) -> None:
    asyncio.run(main())
