"""
AuthGateway against the reference backend.
"""

import httpx
import pytest

from cartsync import (
    CartMode,
    DuplicateAccount,
    InvalidCredentials,
)
from cartsync._tokens import ACCESS_TOKEN_KEY, REFRESH_TOKEN_KEY, USER_KEY
from cartsync.cart import CART_KEY

from tests.conftest import MUG, PASSWORD


class TestLogin:
    async def test_login_persists_session(self, storefront, account, storage):
        # Act
        user = await storefront.auth.login(account, PASSWORD)

        # Assert
        assert user.email == account
        assert user.full_name == "Ann Example"
        assert user.role == "customer"
        assert await storefront.auth.is_authenticated()
        assert await storefront.auth.current_user() == user
        assert {ACCESS_TOKEN_KEY, REFRESH_TOKEN_KEY, USER_KEY} <= storage.snapshot().keys()
        assert storefront.cart.mode is CartMode.REMOTE

    async def test_invalid_credentials(self, storefront, account, storage, transport):
        with pytest.raises(InvalidCredentials):
            await storefront.auth.login(account, "wrong password")

        assert not await storefront.auth.is_authenticated()
        assert storage.snapshot() == {}
        assert transport.count("POST", "/api/auth/refresh") == 0

    async def test_unknown_email(self, storefront):
        with pytest.raises(InvalidCredentials):
            await storefront.auth.login("ghost@example.com", PASSWORD)


class TestRegister:
    async def test_register_signs_in(self, storefront, registration):
        user = await storefront.auth.register(registration)

        assert user.email == registration.email
        assert user.phone == registration.phone
        assert await storefront.auth.current_user() == user

    async def test_duplicate_account(self, storefront, registration):
        await storefront.auth.register(registration)
        await storefront.auth.logout()

        with pytest.raises(DuplicateAccount) as exc_info:
            await storefront.auth.register(registration)

        assert exc_info.value.code == "DUPLICATE_ACCOUNT"
        assert not await storefront.auth.is_authenticated()


class TestLogout:
    async def test_logout_clears_session_and_cart(self, storefront, account, storage, backend):
        # Arrange
        await storefront.auth.login(account, PASSWORD)
        await storefront.cart.add_item(MUG, 2)

        # Act
        await storefront.auth.logout()

        # Assert
        assert not await storefront.auth.is_authenticated()
        assert storage.snapshot() == {}
        assert storefront.cart.snapshot().is_empty
        assert storefront.cart.mode is CartMode.LOCAL

    async def test_logout_revokes_refresh_token(self, storefront, account, storage, client):
        await storefront.auth.login(account, PASSWORD)
        refresh_token = storage.snapshot()[REFRESH_TOKEN_KEY]

        await storefront.auth.logout()
        response = await client.post("/auth/refresh", json={"refreshToken": refresh_token})

        assert response.status_code == 401
        assert response.json()["code"] == "INVALID_REFRESH_TOKEN"

    async def test_logout_survives_failed_revoke(self, storefront, account, storage, transport):
        """Revoke blows up on the wire: still signed out locally."""
        # Arrange
        await storefront.auth.login(account, PASSWORD)
        await storefront.cart.add_item(MUG, 1)
        await storage.set(CART_KEY, "[]")  # stale anonymous copy
        inner = transport.inner

        class Broken:
            async def handle_async_request(self, request):
                if request.url.path.endswith("/auth/logout"):
                    raise httpx.ConnectError("revoke failed", request=request)
                return await inner.handle_async_request(request)

        transport.inner = Broken()

        # Act
        await storefront.auth.logout()

        # Assert
        assert storage.snapshot() == {}
        assert storefront.cart.snapshot().is_empty
        assert not await storefront.auth.is_authenticated()

    async def test_logout_with_dead_session(self, storefront, account, backend, storage):
        """Expired access and revoked refresh: logout still completes."""
        await storefront.auth.login(account, PASSWORD)
        backend.accounts.expire_access_tokens()
        user_id = (await storefront.auth.current_user()).id
        backend.accounts.logout(user_id)

        await storefront.auth.logout()

        assert storage.snapshot() == {}
        assert storefront.cart.mode is CartMode.LOCAL
