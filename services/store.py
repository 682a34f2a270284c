"""
Key-value persistence for every manager.

Each collection (users, applications, timeline, ...) is a flat JSON list stored
under one key. Managers read and write through `collections()`, which serializes
writers per key and commits every touched key in one batch.
"""
from __future__ import annotations

import asyncio
import json
from abc import ABC, abstractmethod
from collections import defaultdict
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Any, AsyncIterator

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from models import KeyValueEntry

KEY_PREFIX = "loan_app_"


class StorageKeys:
    SESSION = "loan_app_session"
    USERS = "loan_app_users"
    KYC_PROFILES = "loan_app_kyc"
    LOAN_APPLICATIONS = "loan_app_loans"
    DOCUMENTS = "loan_app_documents"
    TIMELINE = "loan_app_timeline"
    NOTIFICATIONS = "loan_app_notifications"

    @staticmethod
    def consent(user_id: str) -> str:
        return f"{StorageKeys.SESSION}_consent_{user_id}"


class KeyValueStore(ABC):
    """Async get/set/remove over JSON-serializable values."""

    def __init__(self) -> None:
        self._locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    @abstractmethod
    async def get(self, key: str, default: Any = None) -> Any:
        ...

    @abstractmethod
    async def set(self, key: str, value: Any) -> None:
        ...

    @abstractmethod
    async def remove(self, key: str) -> None:
        ...

    @abstractmethod
    async def set_many(self, items: dict[str, Any]) -> None:
        """Write several keys as one unit."""

    @abstractmethod
    async def keys(self) -> list[str]:
        ...

    async def get_list(self, key: str) -> list[dict[str, Any]]:
        return await self.get(key) or []

    @asynccontextmanager
    async def collections(self, *keys: str) -> AsyncIterator[dict[str, list[dict[str, Any]]]]:
        """
        Lock the given list keys, yield their current contents, and persist them
        when the block exits without raising. On error nothing is written.
        """
        ordered = sorted(set(keys))
        async with AsyncExitStack() as stack:
            for key in ordered:
                await stack.enter_async_context(self._locks[key])
            data = {key: await self.get_list(key) for key in ordered}
            yield data
            await self.set_many({key: data[key] for key in ordered})


class InMemoryKeyValueStore(KeyValueStore):
    """Process-local store; values kept JSON-encoded so callers never share references."""

    def __init__(self) -> None:
        super().__init__()
        self._data: dict[str, str] = {}

    async def get(self, key: str, default: Any = None) -> Any:
        raw = self._data.get(key)
        return json.loads(raw) if raw is not None else default

    async def set(self, key: str, value: Any) -> None:
        self._data[key] = json.dumps(value)

    async def remove(self, key: str) -> None:
        self._data.pop(key, None)

    async def set_many(self, items: dict[str, Any]) -> None:
        encoded = {key: json.dumps(value) for key, value in items.items()}
        self._data.update(encoded)

    async def keys(self) -> list[str]:
        return list(self._data)


class SqlKeyValueStore(KeyValueStore):
    """Durable store backed by the `kv_entries` table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        super().__init__()
        self._session_factory = session_factory

    async def get(self, key: str, default: Any = None) -> Any:
        async with self._session_factory() as session:
            result = await session.execute(select(KeyValueEntry.value).where(KeyValueEntry.key == key))
            row = result.first()
        if row is None or row[0] is None:
            return default
        return row[0]

    async def set(self, key: str, value: Any) -> None:
        await self.set_many({key: value})

    async def remove(self, key: str) -> None:
        async with self._session_factory() as session:
            async with session.begin():
                await session.execute(delete(KeyValueEntry).where(KeyValueEntry.key == key))

    async def set_many(self, items: dict[str, Any]) -> None:
        async with self._session_factory() as session:
            async with session.begin():
                for key, value in items.items():
                    # Round-trip through json so non-serializable values fail before commit
                    await session.merge(KeyValueEntry(key=key, value=json.loads(json.dumps(value))))

    async def keys(self) -> list[str]:
        async with self._session_factory() as session:
            result = await session.execute(select(KeyValueEntry.key))
            return list(result.scalars().all())
