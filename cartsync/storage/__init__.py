"""
Storage — the key-value surface tokens and the anonymous cart live on.

    from cartsync import storage

    store = storage.MemoryStore()          # tests
    other_tab = store.tab()                # shares data, own origin
    other_tab.subscribe(print)             # sees writes made via `store`

    durable, engine = await storage.create_store("sqlite+aiosqlite:///app.db")
"""

from cartsync.storage._store import (
    StorageChange,
    Listener,
    Unsubscribe,
    ChangeFeed,
    KeyValueStore,
    MemoryStore,
)
from cartsync.storage._sqlalchemy import (
    StorageBase,
    StorageEntry,
    SQLAlchemyStore,
    create_store,
)

__all__ = (
    "StorageChange",
    "Listener",
    "Unsubscribe",
    "ChangeFeed",
    "KeyValueStore",
    "MemoryStore",
    "StorageBase",
    "StorageEntry",
    "SQLAlchemyStore",
    "create_store",
)
