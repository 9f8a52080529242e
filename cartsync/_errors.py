"""
Error taxonomy.

Every failure that leaves cartsync is a CartSyncError carrying a stable
machine code (the same codes the backend puts in its error bodies).
"""

from __future__ import annotations


class CartSyncError(Exception):
    code = "ERROR"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.code)
        self.message = message or self.code


# ═══════════════════════════════════════════════════════════════════════════════
# Auth
# ═══════════════════════════════════════════════════════════════════════════════


class AuthError(CartSyncError):
    code = "AUTH_ERROR"


class InvalidCredentials(AuthError):
    code = "INVALID_CREDENTIALS"


class DuplicateAccount(AuthError):
    code = "DUPLICATE_ACCOUNT"


class InvalidRefreshToken(AuthError):
    """Refresh rejected. Fatal: the session is gone."""

    code = "INVALID_REFRESH_TOKEN"


class ExpiredAccessToken(AuthError):
    """Access token rejected. Recovered by the pipeline via refresh."""

    code = "EXPIRED_ACCESS_TOKEN"


# ═══════════════════════════════════════════════════════════════════════════════
# Cart
# ═══════════════════════════════════════════════════════════════════════════════


class CartError(CartSyncError):
    code = "CART_ERROR"


class OutOfStock(CartError):
    code = "OUT_OF_STOCK"

    def __init__(self, message: str = "", product_id: str | None = None) -> None:
        super().__init__(message)
        self.product_id = product_id


class CartNotFound(CartError):
    code = "CART_NOT_FOUND"


class InvalidMergePayload(CartError):
    code = "INVALID_MERGE_PAYLOAD"


# ═══════════════════════════════════════════════════════════════════════════════
# Transport / API
# ═══════════════════════════════════════════════════════════════════════════════


class TransportError(CartSyncError):
    """Network or timeout failure below HTTP."""

    code = "TRANSPORT_ERROR"


class ApiError(CartSyncError):
    """Non-2xx response without a more specific meaning."""

    code = "API_ERROR"

    def __init__(self, message: str = "", status: int = 0, code: str | None = None) -> None:
        super().__init__(message)
        self.status = status
        if code:
            self.code = code


class StorageError(CartSyncError):
    code = "STORAGE_ERROR"


_BY_CODE: dict[str, type[CartSyncError]] = {
    cls.code: cls
    for cls in (
        InvalidCredentials,
        DuplicateAccount,
        InvalidRefreshToken,
        ExpiredAccessToken,
        OutOfStock,
        CartNotFound,
        InvalidMergePayload,
    )
}


def error_for_code(code: str | None) -> type[CartSyncError] | None:
    """Exception class registered for a wire error code, if any."""
    if code is None:
        return None
    return _BY_CODE.get(code)


__all__ = (
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
    "error_for_code",
)
