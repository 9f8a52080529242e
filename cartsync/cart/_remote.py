"""
Remote cart — the server-owned cart, one round trip per operation.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

from cartsync._codec import decode_cart, encode_sync_items
from cartsync._errors import ApiError
from cartsync._types import Cart
from cartsync.http import RequestPipeline


def _item_path(product_id: str) -> str:
    return f"/cart/items/{quote(product_id, safe='')}"


class RemoteCart:
    def __init__(self, pipeline: RequestPipeline) -> None:
        self._pipeline = pipeline

    async def fetch(self) -> Cart:
        return self._decode(await self._pipeline.get("/cart"))

    async def add(self, product_id: str, quantity: int = 1) -> Cart:
        return self._decode(
            await self._pipeline.post("/cart/items", {"productId": product_id, "quantity": quantity})
        )

    async def update(self, product_id: str, quantity: int) -> Cart:
        return self._decode(await self._pipeline.patch(_item_path(product_id), {"quantity": quantity}))

    async def remove(self, product_id: str) -> Cart:
        return self._decode(await self._pipeline.delete(_item_path(product_id)))

    async def clear(self) -> Cart:
        return self._decode(await self._pipeline.delete("/cart"))

    async def sync(self, cart: Cart) -> Cart:
        """Merge `cart` into the server cart (POST /cart/sync)."""
        return self._decode(await self._pipeline.post("/cart/sync", {"items": encode_sync_items(cart)}))

    @staticmethod
    def _decode(body: Any) -> Cart:
        if body is None:
            return Cart.empty()
        try:
            return decode_cart(body)
        except (ValueError, KeyError, TypeError) as e:
            raise ApiError(f"Malformed cart response: {e}", status=200) from e


__all__ = ("RemoteCart",)
