"""
Catalog and per-user carts.

add/update clamp to stock; sync sums quantities without clamping so that a
merge never loses what the visitor picked.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from cartsync._errors import ApiError, CartNotFound, InvalidMergePayload, OutOfStock
from cartsync._types import Cart, CartLine, Product


def product_not_found(product_id: str) -> ApiError:
    return ApiError(f"Product {product_id} not found", status=404, code="PRODUCT_NOT_FOUND")


@dataclass
class Catalog:
    products: dict[str, Product] = field(default_factory=dict)

    @classmethod
    def of(cls, products: Iterable[Product]) -> Catalog:
        return cls({p.id: p for p in products})

    def get(self, product_id: str) -> Product:
        product = self.products.get(product_id)
        if product is None:
            raise product_not_found(product_id)
        return product

    def find(self, product_id: str) -> Product | None:
        return self.products.get(product_id)

    def put(self, product: Product) -> None:
        """Insert or replace, e.g. to change stock between requests."""
        self.products[product.id] = product


@dataclass
class CartBook:
    """
    Carts keyed by user id, as {product_id: quantity}.

    Lines are rendered against the current catalog, so a response always
    carries fresh stock and price.
    """

    catalog: Catalog
    _carts: dict[str, dict[str, int]] = field(default_factory=dict)

    def get(self, user_id: str) -> Cart:
        return self._render(self._ensure(user_id))

    def add(self, user_id: str, product_id: str, quantity: int) -> Cart:
        product = self.catalog.get(product_id)
        if product.stock <= 0:
            raise OutOfStock(f"{product.name} is out of stock", product_id=product.id)

        items = self._ensure(user_id)
        items[product.id] = min(items.get(product.id, 0) + quantity, product.stock)
        return self._render(items)

    def update(self, user_id: str, product_id: str, quantity: int) -> Cart:
        items = self._existing(user_id)
        if product_id not in items:
            raise product_not_found(product_id)
        product = self.catalog.get(product_id)
        if product.stock <= 0:
            raise OutOfStock(f"{product.name} is out of stock", product_id=product.id)
        items[product_id] = max(1, min(quantity, product.stock))
        return self._render(items)

    def remove(self, user_id: str, product_id: str) -> Cart:
        items = self._existing(user_id)
        items.pop(product_id, None)
        return self._render(items)

    def clear(self, user_id: str) -> Cart:
        items = self._existing(user_id)
        items.clear()
        return self._render(items)

    def sync(self, user_id: str, lines: Any) -> Cart:
        """
        Merge visitor lines into the user's cart.

        Each line is {"product": id | {"id"|"_id": id}, "quantity": n}.
        Unknown products are skipped, quantities are summed unclamped.
        """
        parsed = _parse_merge(lines)
        items = self._ensure(user_id)
        for product_id, quantity in parsed:
            if self.catalog.find(product_id) is None:
                continue
            items[product_id] = items.get(product_id, 0) + quantity
        return self._render(items)

    def _ensure(self, user_id: str) -> dict[str, int]:
        return self._carts.setdefault(user_id, {})

    def _existing(self, user_id: str) -> dict[str, int]:
        items = self._carts.get(user_id)
        if items is None:
            raise CartNotFound("Cart not found")
        return items

    def _render(self, items: Mapping[str, int]) -> Cart:
        return Cart(tuple(
            CartLine(product, quantity)
            for product_id, quantity in items.items()
            if (product := self.catalog.find(product_id)) is not None
        ))


def _parse_merge(lines: Any) -> list[tuple[str, int]]:
    if not isinstance(lines, list):
        raise InvalidMergePayload("Merge payload must be a list of items")

    parsed: list[tuple[str, int]] = []
    for line in lines:
        if not isinstance(line, Mapping):
            raise InvalidMergePayload("Merge item must be an object")
        ref = line.get("product")
        if isinstance(ref, Mapping):
            ref = ref.get("id", ref.get("_id"))
        quantity = line.get("quantity")
        if not isinstance(ref, (str, int)) or isinstance(ref, bool):
            raise InvalidMergePayload("Merge item has no product reference")
        if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 1:
            raise InvalidMergePayload("Merge item quantity must be a positive integer")
        parsed.append((str(ref), quantity))
    return parsed


__all__ = ("product_not_found", "Catalog", "CartBook")
