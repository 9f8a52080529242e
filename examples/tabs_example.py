"""
Two tabs over one durable store.

Anonymous tabs follow each other's cart; once one tab signs in its cart
lives on the server and anonymous writes elsewhere no longer reach it.

Run: CARTSYNC_STORAGE_URL=sqlite+aiosqlite:///tabs.db python -m examples.tabs_example
"""

import httpx

from cartsync import Storefront, load_settings, open_storefront, setup_logging
from examples._infra import ACCOUNT, LAMP, MUG, backend_transport, banner, run, show


async def main() -> None:
    settings = load_settings()
    setup_logging(settings.log_level)
    banner("Two tabs")

    transport, _ = backend_transport()
    async with open_storefront(settings, transport=transport) as first:
        async with httpx.AsyncClient(transport=transport, base_url=settings.api_url) as client:
            second = Storefront(client, first.storage.tab())
            await first.start()
            await second.start()

            print("1. First tab adds a mug, second tab sees it:")
            await first.cart.add_item(MUG)
            show(second.cart.snapshot())

            print("\n2. Second tab signs in (merge), first tab adds a lamp:")
            await second.auth.login(*ACCOUNT)
            await first.cart.add_item(LAMP)
            print("   first tab:")
            show(first.cart.snapshot())
            print("   second tab (server cart):")
            show(second.cart.snapshot())

            second.close()


if __name__ == "__main__":
    run(main)
