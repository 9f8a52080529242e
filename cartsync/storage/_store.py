"""
Key-value storage — the persistence surface behind tokens and the local cart.

KeyValueStore — async string store, one instance per "tab".
Tabs created via .tab() share data and a ChangeFeed: a write made through
one tab is announced to the listeners of every *other* tab, never to the
writer itself.
"""

from __future__ import annotations

import itertools
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

# ═══════════════════════════════════════════════════════════════════════════════
# Change notifications
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class StorageChange:
    """A key written by another tab. value is None when the key was removed."""

    key: str
    value: str | None


Listener = Callable[[StorageChange], None]
Unsubscribe = Callable[[], None]

_origins = itertools.count(1)


def next_origin() -> int:
    return next(_origins)


class ChangeFeed:
    """Fan-out of storage changes between tabs sharing one backing store."""

    def __init__(self) -> None:
        self._listeners: list[tuple[int, Listener]] = []

    def subscribe(self, origin: int, listener: Listener) -> Unsubscribe:
        entry = (origin, listener)
        self._listeners.append(entry)

        def unsubscribe() -> None:
            if entry in self._listeners:
                self._listeners.remove(entry)

        return unsubscribe

    def publish(self, origin: int, change: StorageChange) -> None:
        for listener_origin, listener in list(self._listeners):
            if listener_origin != origin:
                listener(change)


# ═══════════════════════════════════════════════════════════════════════════════
# Store Protocol
# ═══════════════════════════════════════════════════════════════════════════════


class KeyValueStore(Protocol):
    """
    Async key-value store protocol.

    Example — Redis implementation:

        class RedisStore:
            def __init__(self, client: Redis, feed: ChangeFeed) -> None:
                self.client = client
                self.feed = feed
                self.origin = next_origin()

            async def get(self, key: str) -> str | None:
                raw = await self.client.get(key)
                return raw.decode() if raw else None

            async def set(self, key: str, value: str) -> None:
                await self.client.set(key, value)
                self.feed.publish(self.origin, StorageChange(key, value))

            # ... delete, subscribe, tab
    """

    async def get(self, key: str) -> str | None:
        """Value or None when missing."""
        ...

    async def set(self, key: str, value: str) -> None:
        ...

    async def delete(self, key: str) -> bool:
        """Remove key. Returns True if it existed."""
        ...

    def subscribe(self, listener: Listener) -> Unsubscribe:
        """Listen to changes made through other tabs."""
        ...

    def tab(self) -> KeyValueStore:
        """Sibling store over the same data with its own origin."""
        ...


# ═══════════════════════════════════════════════════════════════════════════════
# Memory Store
# ═══════════════════════════════════════════════════════════════════════════════


class MemoryStore:
    """
    In-memory store.

    Note: single process only, nothing survives a restart.
    """

    def __init__(
        self,
        data: dict[str, str] | None = None,
        feed: ChangeFeed | None = None,
    ) -> None:
        self._data: dict[str, str] = data if data is not None else {}
        self._feed = feed if feed is not None else ChangeFeed()
        self._origin = next_origin()

    async def get(self, key: str) -> str | None:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value
        self._feed.publish(self._origin, StorageChange(key, value))

    async def delete(self, key: str) -> bool:
        if key not in self._data:
            return False
        del self._data[key]
        self._feed.publish(self._origin, StorageChange(key, None))
        return True

    def subscribe(self, listener: Listener) -> Unsubscribe:
        return self._feed.subscribe(self._origin, listener)

    def tab(self) -> MemoryStore:
        return MemoryStore(self._data, self._feed)

    def snapshot(self) -> dict[str, str]:
        """Copy of the raw contents, for assertions."""
        return dict(self._data)


__all__ = (
    "StorageChange",
    "Listener",
    "Unsubscribe",
    "ChangeFeed",
    "next_origin",
    "KeyValueStore",
    "MemoryStore",
)
