"""
Cart — local mutations, the remote cart and the store that switches between them.

    from cartsync import cart

    store = cart.CartStore(cart.LocalCartRepository(storage), cart.RemoteCart(pipeline))
    await store.load()
    outcome = await store.add_item(product, 2)   # CartOutcome.CLAMPED if stock < 2

    # on login, inside store.transition():
    await cart.CartReconciler(store, local, remote, tokens).reconcile()
"""

from cartsync.cart._local import (
    CART_KEY,
    add_line,
    update_line,
    remove_line,
    parse_cart,
    LocalCartRepository,
)
from cartsync.cart._remote import RemoteCart
from cartsync.cart._store import CartStore
from cartsync.cart._reconcile import CartReconciler

__all__ = (
    "CART_KEY",
    "add_line",
    "update_line",
    "remove_line",
    "parse_cart",
    "LocalCartRepository",
    "RemoteCart",
    "CartStore",
    "CartReconciler",
)
