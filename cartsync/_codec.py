"""
Wire codec — JSON payloads <-> domain types.

The backend speaks camelCase and may send Mongo-style `_id`; both spellings
of the id are accepted on decode, `id` is always written.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from cartsync._types import (
    Cart,
    CartLine,
    Product,
    Session,
    TokenPair,
    UserProfile,
)


def _id_of(data: Mapping[str, Any]) -> str:
    value = data.get("id", data.get("_id"))
    if value is None:
        raise ValueError("payload has no id")
    return str(value)


# ═══════════════════════════════════════════════════════════════════════════════
# Auth
# ═══════════════════════════════════════════════════════════════════════════════


def decode_user(data: Mapping[str, Any]) -> UserProfile:
    return UserProfile(
        id=_id_of(data),
        email=str(data["email"]),
        full_name=str(data.get("fullName", "")),
        role=str(data.get("role", "customer")),
        phone=str(data.get("phone") or ""),
        address=str(data.get("address") or ""),
    )


def encode_user(user: UserProfile) -> dict[str, Any]:
    return {
        "id": user.id,
        "email": user.email,
        "fullName": user.full_name,
        "role": user.role,
        "phone": user.phone,
        "address": user.address,
    }


def decode_tokens(data: Mapping[str, Any]) -> TokenPair:
    return TokenPair(
        access_token=str(data["accessToken"]),
        refresh_token=str(data["refreshToken"]),
    )


def decode_session(data: Mapping[str, Any]) -> Session:
    """Decode a login/register response body."""
    pair = decode_tokens(data)
    return Session(
        access_token=pair.access_token,
        refresh_token=pair.refresh_token,
        user=decode_user(data["user"]),
    )


# ═══════════════════════════════════════════════════════════════════════════════
# Cart
# ═══════════════════════════════════════════════════════════════════════════════


def decode_product(data: Mapping[str, Any]) -> Product:
    return Product(
        id=_id_of(data),
        name=str(data.get("name", "")),
        price=int(data.get("price", 0)),
        discount=int(data.get("discount", 0) or 0),
        stock=int(data.get("stock", 0) or 0),
    )


def encode_product(product: Product) -> dict[str, Any]:
    return {
        "id": product.id,
        "name": product.name,
        "price": product.price,
        "discount": product.discount,
        "stock": product.stock,
    }


def decode_lines(items: Sequence[Mapping[str, Any]]) -> tuple[CartLine, ...]:
    return tuple(
        CartLine(product=decode_product(item["product"]), quantity=int(item["quantity"]))
        for item in items
    )


def decode_cart(data: Mapping[str, Any] | Sequence[Any]) -> Cart:
    """
    Decode a cart.

    Accepts a backend cart document ({"items": [...]}) or a bare list of
    lines (the locally persisted form).
    """
    if isinstance(data, Mapping):
        items = data.get("items") or []
    else:
        items = data
    if not isinstance(items, Sequence) or isinstance(items, (str, bytes)):
        raise ValueError("cart items must be a list")
    return Cart(decode_lines(items))


def encode_lines(cart: Cart) -> list[dict[str, Any]]:
    return [
        {"product": encode_product(line.product), "quantity": line.quantity}
        for line in cart.lines
    ]


def encode_sync_items(cart: Cart) -> list[dict[str, Any]]:
    """Merge payload lines: product reference plus quantity."""
    return [
        {"product": line.product_id, "quantity": line.quantity}
        for line in cart.lines
    ]


__all__ = (
    "decode_user",
    "encode_user",
    "decode_tokens",
    "decode_session",
    "decode_product",
    "encode_product",
    "decode_lines",
    "decode_cart",
    "encode_lines",
    "encode_sync_items",
)
