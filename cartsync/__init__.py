"""
cartsync — session lifecycle and cart reconciliation for a storefront client.

    from cartsync import http as H      # Request pipeline, token refresh
    from cartsync import auth as A      # Login / register / logout
    from cartsync import cart as CT     # Local + remote cart, merge on login
    from cartsync import storage as ST  # Key-value stores (memory, SQLAlchemy)

    async with open_storefront(load_settings()) as shop:
        await shop.start()
"""

from cartsync import storage
from cartsync import http
from cartsync import cart
from cartsync import auth
from cartsync._types import (
    UserProfile,
    TokenPair,
    Session,
    Product,
    unit_price,
    CartLine,
    Cart,
    CartOutcome,
    CartMode,
)
from cartsync._errors import (
    CartSyncError,
    AuthError,
    InvalidCredentials,
    DuplicateAccount,
    InvalidRefreshToken,
    ExpiredAccessToken,
    CartError,
    OutOfStock,
    CartNotFound,
    InvalidMergePayload,
    TransportError,
    ApiError,
    StorageError,
)
from cartsync._tokens import TokenStore
from cartsync._storefront import Storefront, open_storefront
from cartsync.config import Settings, load_settings
from cartsync.logs import setup_logging

__version__ = "0.1.0"

__all__ = (
    "storage",
    "http",
    "cart",
    "auth",
    "UserProfile",
    "TokenPair",
    "Session",
    "Product",
    "unit_price",
    "CartLine",
    "Cart",
    "CartOutcome",
    "CartMode",
    "CartSyncError",
    "AuthError",
    "InvalidCredentials",
    "DuplicateAccount",
    "InvalidRefreshToken",
    "ExpiredAccessToken",
    "CartError",
    "OutOfStock",
    "CartNotFound",
    "InvalidMergePayload",
    "TransportError",
    "ApiError",
    "StorageError",
    "TokenStore",
    "Storefront",
    "open_storefront",
    "Settings",
    "load_settings",
    "setup_logging",
)
