"""
SQLAlchemy integration — durable key-value store.

Usage:

    store, engine = await create_store("sqlite+aiosqlite:///cartsync.db")
    await store.set("cart", "[]")
    ...
    await engine.dispose()
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, String, Text, delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from cartsync._errors import StorageError
from cartsync.storage._store import (
    ChangeFeed,
    Listener,
    StorageChange,
    Unsubscribe,
    next_origin,
)

# ═══════════════════════════════════════════════════════════════════════════════
# Table
# ═══════════════════════════════════════════════════════════════════════════════


class StorageBase(DeclarativeBase):
    pass


class StorageEntry(StorageBase):
    __tablename__ = "storage_entries"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)


# ═══════════════════════════════════════════════════════════════════════════════
# Store
# ═══════════════════════════════════════════════════════════════════════════════


class SQLAlchemyStore:
    """
    KeyValueStore over one `storage_entries` table.

    Note: every call is its own transaction; failures surface as StorageError.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        feed: ChangeFeed | None = None,
    ) -> None:
        self._session = session_factory
        self._feed = feed if feed is not None else ChangeFeed()
        self._origin = next_origin()

    async def get(self, key: str) -> str | None:
        try:
            async with self._session() as session:
                row = await session.get(StorageEntry, key)
                return row.value if row else None
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to read {key!r}") from e

    async def set(self, key: str, value: str) -> None:
        try:
            async with self._session() as session, session.begin():
                await session.merge(
                    StorageEntry(key=key, value=value, updated_at=datetime.now())
                )
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to write {key!r}") from e
        self._feed.publish(self._origin, StorageChange(key, value))

    async def delete(self, key: str) -> bool:
        try:
            async with self._session() as session, session.begin():
                existing = await session.execute(
                    select(StorageEntry.key).where(StorageEntry.key == key)
                )
                if existing.scalar_one_or_none() is None:
                    return False
                await session.execute(delete(StorageEntry).where(StorageEntry.key == key))
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to delete {key!r}") from e
        self._feed.publish(self._origin, StorageChange(key, None))
        return True

    def subscribe(self, listener: Listener) -> Unsubscribe:
        return self._feed.subscribe(self._origin, listener)

    def tab(self) -> SQLAlchemyStore:
        return SQLAlchemyStore(self._session, self._feed)


# ═══════════════════════════════════════════════════════════════════════════════
# Setup
# ═══════════════════════════════════════════════════════════════════════════════


async def create_store(
    url: str = "sqlite+aiosqlite:///:memory:",
) -> tuple[SQLAlchemyStore, AsyncEngine]:
    """Create schema and return (store, engine)."""
    engine = create_async_engine(url, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(StorageBase.metadata.create_all)

    return SQLAlchemyStore(async_sessionmaker(engine, expire_on_commit=False)), engine


__all__ = (
    "StorageBase",
    "StorageEntry",
    "SQLAlchemyStore",
    "create_store",
)
