"""
Core types for cartsync.

Value objects shared by every layer: the session held by the token store,
the product snapshot carried by cart lines, the cart itself and its
derived totals.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum, auto

# ═══════════════════════════════════════════════════════════════════════════════
# Session
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class UserProfile:
    """Cached user profile, exactly as the backend serializes it."""

    id: str
    email: str
    full_name: str
    role: str = "customer"
    phone: str = ""
    address: str = ""


@dataclass(frozen=True, slots=True)
class TokenPair:
    access_token: str
    refresh_token: str


@dataclass(frozen=True, slots=True)
class Session:
    """
    Access/refresh pair plus the profile snapshot taken at login.

    Note: tokens are opaque bearer strings, nothing here inspects them.
    """

    access_token: str
    refresh_token: str
    user: UserProfile

    @property
    def tokens(self) -> TokenPair:
        return TokenPair(self.access_token, self.refresh_token)


# ═══════════════════════════════════════════════════════════════════════════════
# Catalog snapshot
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Product:
    id: str
    name: str
    price: int  # minor units
    discount: int = 0  # percent
    stock: int = 0


def unit_price(product: Product) -> int:
    """
    Price of one unit after the product discount.

    Half-up rounding of price * (1 - discount/100). Every line total in the
    system goes through here: cart summary, checkout preview and backend.
    """
    if product.discount <= 0:
        return product.price
    discounted = Decimal(product.price) * (Decimal(100) - Decimal(product.discount)) / Decimal(100)
    return int(discounted.quantize(Decimal(1), rounding=ROUND_HALF_UP))


# ═══════════════════════════════════════════════════════════════════════════════
# Cart
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class CartLine:
    product: Product
    quantity: int

    @property
    def product_id(self) -> str:
        return self.product.id

    @property
    def total(self) -> int:
        return unit_price(self.product) * self.quantity


@dataclass(frozen=True, slots=True)
class Cart:
    """
    Immutable cart snapshot, at most one line per product.

    Note: line order is kept for display only, lookups go by product id.
    """

    lines: tuple[CartLine, ...] = field(default_factory=tuple)

    @classmethod
    def empty(cls) -> Cart:
        return cls(())

    @property
    def is_empty(self) -> bool:
        return not self.lines

    @property
    def total_items(self) -> int:
        return sum(line.quantity for line in self.lines)

    @property
    def total_price(self) -> int:
        return sum(line.total for line in self.lines)

    def line(self, product_id: str) -> CartLine | None:
        for line in self.lines:
            if line.product_id == product_id:
                return line
        return None

    def quantity_of(self, product_id: str) -> int:
        found = self.line(product_id)
        return found.quantity if found else 0

    def contains(self, product_id: str) -> bool:
        return self.line(product_id) is not None


class CartOutcome(Enum):
    """
    What a cart mutation did.

    CLAMPED is reported instead of ADDED/UPDATED when the requested
    quantity exceeded available stock and was reduced.
    """

    UNCHANGED = auto()
    ADDED = auto()
    UPDATED = auto()
    CLAMPED = auto()


class CartMode(Enum):
    LOCAL = auto()
    REMOTE = auto()


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "UserProfile",
    "TokenPair",
    "Session",
    "Product",
    "unit_price",
    "CartLine",
    "Cart",
    "CartOutcome",
    "CartMode",
)
