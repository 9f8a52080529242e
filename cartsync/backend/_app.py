"""
Reference backend — the wire contract the client talks to, served by FastAPI.

    app = create_app(catalog=Catalog.of([Product("p1", "Mug", 1000, stock=5)]))
    app.state.backend.accounts.expire_access_tokens()   # force a refresh in tests

Errors always leave as {"error": <message>, "code": <CODE>}.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Annotated, Any

import fastapi
from fastapi import APIRouter, Depends, FastAPI, Header, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from cartsync._codec import encode_lines, encode_user
from cartsync._errors import (
    ApiError,
    CartNotFound,
    CartSyncError,
    DuplicateAccount,
    InvalidCredentials,
    InvalidMergePayload,
    InvalidRefreshToken,
    ExpiredAccessToken,
    OutOfStock,
)
from cartsync._types import Cart, Session, UserProfile
from cartsync.backend._accounts import Accounts
from cartsync.backend._carts import CartBook, Catalog
from cartsync.config import Settings

logger = logging.getLogger(__name__)

_STATUS: dict[type[CartSyncError], int] = {
    InvalidCredentials: 401,
    ExpiredAccessToken: 401,
    InvalidRefreshToken: 401,
    DuplicateAccount: 409,
    OutOfStock: 400,
    InvalidMergePayload: 400,
    CartNotFound: 404,
}

# ═══════════════════════════════════════════════════════════════════════════════
# Request / Response models
# ═══════════════════════════════════════════════════════════════════════════════


class LoginIn(BaseModel):
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)


class RegisterIn(BaseModel):
    email: str = Field(min_length=3)
    password: str = Field(min_length=1)
    fullName: str = Field(min_length=1)
    phone: str = ""
    address: str = ""


class RefreshIn(BaseModel):
    refreshToken: str = Field(min_length=1)


class AddItemIn(BaseModel):
    productId: str
    quantity: int = Field(default=1, ge=1)


class UpdateItemIn(BaseModel):
    quantity: int = Field(ge=1)


class SyncIn(BaseModel):
    # validated by CartBook so a bad shape maps to INVALID_MERGE_PAYLOAD
    items: Any = None


def cart_out(cart: Cart) -> dict[str, Any]:
    return {
        "items": encode_lines(cart),
        "totalItems": cart.total_items,
        "totalPrice": cart.total_price,
    }


def session_out(session: Session) -> dict[str, Any]:
    return {
        "user": encode_user(session.user),
        "accessToken": session.access_token,
        "refreshToken": session.refresh_token,
    }


# ═══════════════════════════════════════════════════════════════════════════════
# State
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass
class Backend:
    accounts: Accounts = field(default_factory=Accounts)
    catalog: Catalog = field(default_factory=Catalog)
    carts: CartBook = field(init=False)

    def __post_init__(self) -> None:
        self.carts = CartBook(self.catalog)


def _backend(request: Request) -> Backend:
    return request.app.state.backend


def _current_user(
    request: Request,
    authorization: Annotated[str | None, Header()] = None,
) -> UserProfile:
    token = None
    if authorization and authorization.startswith("Bearer "):
        token = authorization[len("Bearer "):].strip()
    return _backend(request).accounts.authenticate(token)


BackendDep = Annotated[Backend, Depends(_backend)]
UserDep = Annotated[UserProfile, Depends(_current_user)]

# ═══════════════════════════════════════════════════════════════════════════════
# Routes
# ═══════════════════════════════════════════════════════════════════════════════

auth_router = APIRouter(prefix="/auth", tags=["auth"])
cart_router = APIRouter(prefix="/cart", tags=["cart"])


@auth_router.post("/register", status_code=201)
async def register(payload: RegisterIn, backend: BackendDep) -> dict[str, Any]:
    session = backend.accounts.register(
        email=payload.email,
        password=payload.password,
        full_name=payload.fullName,
        phone=payload.phone,
        address=payload.address,
    )
    logger.info("Registered %s", session.user.email)
    return session_out(session)


@auth_router.post("/login")
async def login(payload: LoginIn, backend: BackendDep) -> dict[str, Any]:
    return session_out(backend.accounts.login(payload.email, payload.password))


@auth_router.post("/refresh")
async def refresh(payload: RefreshIn, backend: BackendDep) -> dict[str, Any]:
    pair = backend.accounts.refresh(payload.refreshToken)
    return {"accessToken": pair.access_token, "refreshToken": pair.refresh_token}


@auth_router.post("/logout")
async def logout(user: UserDep, backend: BackendDep) -> dict[str, Any]:
    backend.accounts.logout(user.id)
    return {"message": "Logged out"}


@auth_router.get("/me")
async def me(user: UserDep) -> dict[str, Any]:
    return encode_user(user)


@cart_router.get("")
async def get_cart(user: UserDep, backend: BackendDep) -> dict[str, Any]:
    return cart_out(backend.carts.get(user.id))


@cart_router.post("/items")
async def add_item(payload: AddItemIn, user: UserDep, backend: BackendDep) -> dict[str, Any]:
    return cart_out(backend.carts.add(user.id, payload.productId, payload.quantity))


@cart_router.patch("/items/{product_id}")
async def update_item(
    product_id: str,
    payload: UpdateItemIn,
    user: UserDep,
    backend: BackendDep,
) -> dict[str, Any]:
    return cart_out(backend.carts.update(user.id, product_id, payload.quantity))


@cart_router.delete("/items/{product_id}")
async def remove_item(product_id: str, user: UserDep, backend: BackendDep) -> dict[str, Any]:
    return cart_out(backend.carts.remove(user.id, product_id))


@cart_router.delete("")
async def clear_cart(user: UserDep, backend: BackendDep) -> dict[str, Any]:
    return cart_out(backend.carts.clear(user.id))


@cart_router.post("/sync")
async def sync_cart(payload: SyncIn, user: UserDep, backend: BackendDep) -> dict[str, Any]:
    return cart_out(backend.carts.sync(user.id, payload.items))


# ═══════════════════════════════════════════════════════════════════════════════
# Errors
# ═══════════════════════════════════════════════════════════════════════════════


def _status_of(error: CartSyncError) -> int:
    if isinstance(error, ApiError):
        return error.status or 500
    for cls in type(error).__mro__:
        if cls in _STATUS:
            return _STATUS[cls]
    return 500


async def _on_domain_error(request: Request, exc: CartSyncError) -> JSONResponse:
    return JSONResponse(
        status_code=_status_of(exc),
        content={"error": exc.message, "code": exc.code},
    )


async def _on_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    first = exc.errors()[0] if exc.errors() else {}
    where = ".".join(str(part) for part in first.get("loc", ()))
    return JSONResponse(
        status_code=400,
        content={"error": f"{where}: {first.get('msg', 'invalid request')}", "code": "VALIDATION_ERROR"},
    )


# ═══════════════════════════════════════════════════════════════════════════════
# App
# ═══════════════════════════════════════════════════════════════════════════════


def create_app(
    catalog: Catalog | None = None,
    settings: Settings | None = None,
) -> fastapi.FastAPI:
    settings = settings or Settings()
    backend = Backend(
        accounts=Accounts(
            access_ttl=timedelta(seconds=settings.access_ttl_seconds),
            refresh_ttl=timedelta(seconds=settings.refresh_ttl_seconds),
        ),
        catalog=catalog or Catalog(),
    )

    app = FastAPI(title="cartsync reference backend")
    app.state.backend = backend
    app.include_router(auth_router, prefix="/api")
    app.include_router(cart_router, prefix="/api")
    app.add_exception_handler(CartSyncError, _on_domain_error)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _on_validation_error)  # type: ignore[arg-type]
    return app


__all__ = ("Backend", "cart_out", "session_out", "create_app")
