"""
Backend — in-memory reference server for the auth and cart endpoints.

    from cartsync.backend import create_app, Catalog

    app = create_app(Catalog.of(products))
    transport = httpx.ASGITransport(app=app)
"""

from cartsync.backend._accounts import (
    hash_password,
    verify_password,
    Account,
    Accounts,
)
from cartsync.backend._carts import (
    product_not_found,
    Catalog,
    CartBook,
)
from cartsync.backend._app import (
    Backend,
    cart_out,
    session_out,
    create_app,
)

__all__ = (
    "hash_password",
    "verify_password",
    "Account",
    "Accounts",
    "product_not_found",
    "Catalog",
    "CartBook",
    "Backend",
    "cart_out",
    "session_out",
    "create_app",
)
