"""
Cart reconciliation — the one-time merge of the anonymous cart on login.

    local cart ──┬─ empty ─────► GET /cart ─────────┐
                 └─ non-empty ─► POST /cart/sync ───┴─► adopt (REMOTE) ─► discard local

On failure nothing is discarded: the store shows the local cart and the
merge runs again on the next load.
"""

from __future__ import annotations

import logging

from cartsync._errors import CartSyncError
from cartsync._tokens import TokenStore
from cartsync._types import Cart, CartMode
from cartsync.cart._local import LocalCartRepository
from cartsync.cart._remote import RemoteCart
from cartsync.cart._store import CartStore

logger = logging.getLogger(__name__)


class CartReconciler:
    """
    Runs inside the cart's transition gate, so it talks to CartStore via
    adopt() and never through the gated operations.
    """

    def __init__(
        self,
        cart: CartStore,
        local: LocalCartRepository,
        remote: RemoteCart,
        tokens: TokenStore,
    ) -> None:
        self._cart = cart
        self._local = local
        self._remote = remote
        self._tokens = tokens

    async def reconcile(self) -> Cart:
        local = await self._local.load()

        try:
            if local.is_empty:
                merged = await self._remote.fetch()
            else:
                merged = await self._remote.sync(local)
        except CartSyncError as e:
            # session may have been torn down by a failed refresh meanwhile
            mode = CartMode.REMOTE if await self._tokens.load() else CartMode.LOCAL
            logger.warning(
                "Cart merge failed (%s), keeping %d local item(s) for the next load",
                e.code,
                local.total_items,
            )
            self._cart.adopt(local, mode)
            return local

        self._cart.adopt(merged, CartMode.REMOTE)
        await self._local.discard()
        if not local.is_empty:
            logger.info(
                "Merged %d local line(s) into the account cart (%d items)",
                len(local.lines),
                merged.total_items,
            )
        return merged


__all__ = ("CartReconciler",)
