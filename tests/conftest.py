"""
Shared fixtures.

The storefront talks to the in-memory reference backend over
httpx.ASGITransport, so every integration test runs the real wire contract
without a network.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

import httpx
import pytest

from cartsync import Product, Storefront
from cartsync.auth import RegistrationForm
from cartsync.backend import Backend, Catalog, create_app
from cartsync.storage import MemoryStore

MUG = Product(id="p-mug", name="Mug", price=1000, discount=0, stock=5)
LAMP = Product(id="p-lamp", name="Lamp", price=2500, discount=20, stock=3)
SOLD_OUT = Product(id="p-sold-out", name="Poster", price=700, discount=0, stock=0)

PASSWORD = "s3cret-pass"


class RecordingTransport(httpx.AsyncBaseTransport):
    """Wraps a transport and records (method, path) of every request."""

    def __init__(self, inner: httpx.AsyncBaseTransport) -> None:
        self.inner = inner
        self.calls: list[tuple[str, str]] = []

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        self.calls.append((request.method, request.url.path))
        return await self.inner.handle_async_request(request)

    def count(self, method: str, path: str) -> int:
        return self.calls.count((method, path))


@pytest.fixture
def catalog() -> Catalog:
    return Catalog.of([MUG, LAMP, SOLD_OUT])


@pytest.fixture
def app(catalog: Catalog):
    return create_app(catalog)


@pytest.fixture
def backend(app) -> Backend:
    return app.state.backend


@pytest.fixture
def transport(app) -> RecordingTransport:
    return RecordingTransport(httpx.ASGITransport(app=app))


@pytest.fixture
async def client(transport: RecordingTransport) -> AsyncIterator[httpx.AsyncClient]:
    async with httpx.AsyncClient(transport=transport, base_url="http://test/api") as c:
        yield c


@pytest.fixture
def storage() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
async def storefront(client: httpx.AsyncClient, storage: MemoryStore) -> AsyncIterator[Storefront]:
    shop = Storefront(client, storage)
    await shop.start()
    yield shop
    shop.close()


@pytest.fixture
def account(backend: Backend) -> str:
    """Registers a user directly on the backend, returns the email."""
    email = "ann@example.com"
    backend.accounts.register(email, PASSWORD, "Ann Example")
    return email


@pytest.fixture
def registration() -> RegistrationForm:
    return RegistrationForm(
        email="bob@example.com",
        password=PASSWORD,
        full_name="Bob Example",
        phone="+380000000000",
    )
