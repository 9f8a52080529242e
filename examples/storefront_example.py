"""
Storefront — anonymous cart, merge on login, silent refresh, logout.

Run: python -m examples.storefront_example
"""

import httpx

from cartsync import CartSyncError, Storefront, setup_logging
from cartsync.storage import MemoryStore
from examples._infra import ACCOUNT, LAMP, MUG, POSTER, backend_transport, banner, run, show


async def main() -> None:
    setup_logging("INFO")
    banner("Storefront")

    transport, backend = backend_transport()
    async with httpx.AsyncClient(transport=transport, base_url="http://shop/api") as client:
        shop = Storefront(client, MemoryStore())

        async def login_required() -> None:
            print("   → login page")

        shop.on_login_required(login_required)
        await shop.start()

        # 1. Anonymous
        print("1. Anonymous cart:")
        print(f"   add 2 mugs: {(await shop.cart.add_item(MUG, 2)).name}")
        print(f"   add 5 lamps: {(await shop.cart.add_item(LAMP, 5)).name} (stock {LAMP.stock})")
        try:
            await shop.cart.add_item(POSTER)
        except CartSyncError as e:
            print(f"   add poster: {e.code}")
        show(shop.cart.snapshot())

        # 2. Login merges
        print("\n2. Login (merge):")
        user = await shop.auth.login(*ACCOUNT)
        print(f"   signed in as {user.full_name}, cart is {shop.cart.mode.name}")
        show(shop.cart.snapshot())

        # 3. Access token expires
        print("\n3. Access token expired, next call refreshes:")
        backend.accounts.expire_access_tokens()
        print(f"   add 1 mug: {(await shop.cart.add_item(MUG)).name}")
        show(shop.cart.snapshot())

        # 4. Logout
        print("\n4. Logout:")
        await shop.auth.logout()
        print(f"   signed in: {await shop.auth.is_authenticated()}, cart is {shop.cart.mode.name}")
        show(shop.cart.snapshot())

        shop.close()


if __name__ == "__main__":
    run(main)
