"""
Cart totals and the discount rounding rule.
"""

from cartsync import Cart, CartLine, Product, unit_price
from cartsync.backend import cart_out


def _line(price: int, discount: int, quantity: int, pid: str) -> CartLine:
    return CartLine(Product(id=pid, name=pid, price=price, discount=discount, stock=99), quantity)


class TestUnitPrice:
    """unit_price() is the single place a discounted price is computed."""

    def test_no_discount_keeps_price(self):
        assert unit_price(Product("a", "A", 500)) == 500

    def test_discount_applied(self):
        assert unit_price(Product("a", "A", 1000, discount=10)) == 900

    def test_half_rounds_up(self):
        """1005 * 0.5 = 502.5 -> 503 (half-up, not banker's rounding)."""
        assert unit_price(Product("a", "A", 1005, discount=50)) == 503

    def test_below_half_rounds_down(self):
        # 999 * 0.67 = 669.33
        assert unit_price(Product("a", "A", 999, discount=33)) == 669

    def test_full_discount_is_free(self):
        assert unit_price(Product("a", "A", 1234, discount=100)) == 0


class TestCartTotals:
    def test_total_price_example(self):
        """
        [(1000, 10%, x2), (500, 0%, x1)] -> 2*900 + 500 = 2300
        """
        # Arrange
        cart = Cart((_line(1000, 10, 2, "a"), _line(500, 0, 1, "b")))

        # Act / Assert
        assert cart.total_price == 2300
        assert cart.total_items == 3

    def test_empty_cart(self):
        cart = Cart.empty()

        assert cart.is_empty
        assert cart.total_price == 0
        assert cart.total_items == 0

    def test_lookup_by_product(self):
        cart = Cart((_line(1000, 0, 2, "a"),))

        assert cart.contains("a")
        assert not cart.contains("b")
        assert cart.quantity_of("a") == 2
        assert cart.quantity_of("b") == 0

    def test_backend_uses_same_rule(self):
        """The server summary is computed with the same unit price."""
        cart = Cart((_line(1000, 10, 2, "a"), _line(500, 0, 1, "b")))

        body = cart_out(cart)

        assert body["totalPrice"] == 2300
        assert body["totalItems"] == 3
