"""
Login merge: anonymous cart -> account cart, exactly once per transition.
"""

import asyncio
import json

import httpx
import pytest

from cartsync import Cart, CartMode, CartOutcome, InvalidRefreshToken, Storefront
from cartsync._codec import encode_lines
from cartsync.cart import CART_KEY, LocalCartRepository, add_line

from tests.conftest import LAMP, MUG, PASSWORD


class TestMergeOnLogin:
    async def test_non_empty_local_cart_is_merged(self, storefront, account, backend, storage, transport):
        """
        Server cart [(MUG, 3)], local cart [(MUG, 2), (LAMP, 1)] -> [(MUG, 5), (LAMP, 1)].

        The merge sums without clamping: MUG stock is 5 here, so 5 is fine;
        the anonymous copy is gone afterwards.
        """
        # Arrange
        user_id = backend.accounts.login(account, PASSWORD).user.id
        backend.carts.add(user_id, MUG.id, 3)
        await storefront.cart.add_item(MUG, 2)
        await storefront.cart.add_item(LAMP, 1)

        # Act
        await storefront.auth.login(account, PASSWORD)

        # Assert
        assert storefront.cart.mode is CartMode.REMOTE
        assert storefront.cart.quantity_of(MUG.id) == 5
        assert storefront.cart.quantity_of(LAMP.id) == 1
        assert CART_KEY not in storage.snapshot()
        assert transport.count("POST", "/api/cart/sync") == 1
        assert backend.carts.get(user_id).quantity_of(MUG.id) == 5

    async def test_empty_local_cart_fetches_without_merge(self, storefront, account, backend, transport):
        user_id = backend.accounts.login(account, PASSWORD).user.id
        backend.carts.add(user_id, LAMP.id, 2)

        await storefront.auth.login(account, PASSWORD)

        assert storefront.cart.quantity_of(LAMP.id) == 2
        assert transport.count("POST", "/api/cart/sync") == 0
        assert transport.count("GET", "/api/cart") == 1

    async def test_emptied_local_cart_is_cleared_on_login(self, storefront, account, storage, transport):
        """An anonymous cart emptied before login leaves no stored copy next to the session."""
        # Arrange
        await storefront.cart.add_item(MUG, 1)
        await storefront.cart.remove_item(MUG.id)
        assert CART_KEY in storage.snapshot()

        # Act
        await storefront.auth.login(account, PASSWORD)

        # Assert
        assert CART_KEY not in storage.snapshot()
        assert transport.count("POST", "/api/cart/sync") == 0


    async def test_merge_failure_keeps_local_cart(self, storefront, account, storage, transport):
        """Sync rejected: the anonymous cart stays on screen and in storage."""
        # Arrange
        await storefront.cart.add_item(MUG, 2)
        inner = transport.inner

        class SyncDown:
            async def handle_async_request(self, request):
                if request.url.path.endswith("/cart/sync"):
                    return httpx.Response(503, json={"error": "maintenance", "code": "UNAVAILABLE"})
                return await inner.handle_async_request(request)

        transport.inner = SyncDown()

        # Act
        await storefront.auth.login(account, PASSWORD)

        # Assert
        assert await storefront.auth.is_authenticated()
        assert storefront.cart.quantity_of(MUG.id) == 2
        assert (await LocalCartRepository(storage).load()).quantity_of(MUG.id) == 2

    async def test_next_load_retries_the_merge(self, storefront, account, storage, transport, client, backend):
        """A merge left behind by a failed login runs on the next start()."""
        # Arrange: failed merge
        await storefront.cart.add_item(MUG, 2)
        inner = transport.inner

        class SyncDown:
            async def handle_async_request(self, request):
                if request.url.path.endswith("/cart/sync"):
                    return httpx.Response(503, json={"error": "maintenance"})
                return await inner.handle_async_request(request)

        transport.inner = SyncDown()
        user = await storefront.auth.login(account, PASSWORD)
        transport.inner = inner

        # Act: app restarts over the same storage
        restarted = Storefront(client, storage)
        await restarted.start()

        # Assert
        assert restarted.cart.mode is CartMode.REMOTE
        assert restarted.cart.quantity_of(MUG.id) == 2
        assert CART_KEY not in storage.snapshot()
        assert backend.carts.get(user.id).quantity_of(MUG.id) == 2
        restarted.close()

    async def test_merge_sums_past_stock(self, storefront, account, backend):
        """Merge never clamps: 4 + 4 of a 5-stock product stays 8."""
        user_id = backend.accounts.login(account, PASSWORD).user.id
        backend.carts.add(user_id, MUG.id, 4)
        await storefront.cart.add_item(MUG, 4)

        await storefront.auth.login(account, PASSWORD)

        assert storefront.cart.quantity_of(MUG.id) == 8


class TestTransitionGate:
    async def test_cart_operation_waits_for_login_merge(self, storefront, account, storage):
        """An add issued mid-login lands on the merged remote cart, not the local one."""
        # Arrange
        await storefront.cart.add_item(MUG, 1)

        # Act
        login = asyncio.create_task(storefront.auth.login(account, PASSWORD))
        await asyncio.sleep(0)
        add = asyncio.create_task(storefront.cart.add_item(LAMP, 1))
        await asyncio.gather(login, add)

        # Assert
        assert add.result() is CartOutcome.ADDED
        assert storefront.cart.mode is CartMode.REMOTE
        assert storefront.cart.quantity_of(MUG.id) == 1
        assert storefront.cart.quantity_of(LAMP.id) == 1
        assert CART_KEY not in storage.snapshot()

    async def test_other_tab_writes_are_ignored_mid_transition(self, storefront, storage):
        other_tab = storage.tab()
        cart, _ = add_line(Cart.empty(), LAMP, 2)

        async with storefront.cart.transition():
            await other_tab.set(CART_KEY, json.dumps(encode_lines(cart)))

        assert storefront.cart.quantity_of(LAMP.id) == 0


class TestRemoteMode:

    async def test_remote_add_reports_server_clamp(self, storefront, account, transport):
        await storefront.auth.login(account, PASSWORD)

        first = await storefront.cart.add_item(LAMP, 2)
        second = await storefront.cart.add_item(LAMP, 2)

        assert first is CartOutcome.ADDED
        assert second is CartOutcome.CLAMPED
        assert storefront.cart.quantity_of(LAMP.id) == LAMP.stock
        assert transport.count("POST", "/api/cart/items") == 2

    async def test_remote_update_remove_clear(self, storefront, account):
        await storefront.auth.login(account, PASSWORD)
        await storefront.cart.add_item(MUG, 1)
        await storefront.cart.add_item(LAMP, 1)

        assert await storefront.cart.update_quantity(MUG.id, 9) is CartOutcome.CLAMPED
        assert storefront.cart.quantity_of(MUG.id) == MUG.stock

        await storefront.cart.remove_item(MUG.id)
        assert not storefront.cart.contains(MUG.id)

        await storefront.cart.clear()
        assert storefront.cart.snapshot().is_empty

    async def test_expired_access_is_refreshed_transparently(self, storefront, account, backend, transport):
        await storefront.auth.login(account, PASSWORD)
        backend.accounts.expire_access_tokens()

        outcome = await storefront.cart.add_item(MUG, 1)

        assert outcome is CartOutcome.ADDED
        assert transport.count("POST", "/api/cart/items") == 2
        assert transport.count("POST", "/api/auth/refresh") == 1

    async def test_concurrent_expired_calls_keep_the_session(self, storefront, account, backend, transport):
        """Two 401s at once against rotating refresh tokens: one exchange, both calls succeed."""
        # Arrange
        await storefront.auth.login(account, PASSWORD)
        backend.accounts.expire_access_tokens()
        inner = transport.inner

        class SlowRefresh:
            async def handle_async_request(self, request):
                if request.url.path.endswith("/auth/refresh"):
                    await asyncio.sleep(0.05)
                return await inner.handle_async_request(request)

        transport.inner = SlowRefresh()

        # Act
        outcomes = await asyncio.gather(
            storefront.cart.add_item(MUG, 1),
            storefront.cart.add_item(LAMP, 1),
        )

        # Assert
        assert outcomes == [CartOutcome.ADDED, CartOutcome.ADDED]
        assert transport.count("POST", "/api/auth/refresh") == 1
        assert await storefront.auth.is_authenticated()
        assert storefront.cart.mode is CartMode.REMOTE


    async def test_lost_session_drops_back_to_local(self, storefront, account, backend, storage):
        """Refresh rejected mid-operation: tokens cleared, cart local, UI told."""
        # Arrange
        prompts: list[str] = []

        async def login_required() -> None:
            prompts.append("login")

        storefront.on_login_required(login_required)
        user = await storefront.auth.login(account, PASSWORD)
        backend.accounts.expire_access_tokens()
        backend.accounts.logout(user.id)

        # Act
        with pytest.raises(InvalidRefreshToken):
            await storefront.cart.add_item(MUG, 1)

        # Assert
        assert prompts == ["login"]
        assert storefront.cart.mode is CartMode.LOCAL
        assert not await storefront.auth.is_authenticated()
