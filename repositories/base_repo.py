# repositories/base_repo.py
from __future__ import annotations

from typing import Any, Awaitable, Callable, Mapping, Sequence, TypeVar

import aiomysql

from db.errors import guarded
from db.pool import DbPool
from db.tx import get_cursor, transaction

T = TypeVar("T")

ER_DUP_ENTRY = 1062


def is_duplicate_key(e: aiomysql.IntegrityError) -> bool:
    return bool(e.args) and e.args[0] == ER_DUP_ENTRY


def in_clause(values: Sequence[Any]) -> str:
    """Placeholder list for `IN (...)`; callers pass the values as params."""
    if not values:
        raise ValueError("IN clause needs at least one value")
    return ", ".join(["%s"] * len(values))


class BaseRepo:
    """
    Base repository with small helpers to keep concrete repos readable.
    Repos hold no bracket rules or Discord logic.

    Every call runs under the pool's query timeout; driver and timeout failures
    surface as StorageUnavailableError.
    """

    def __init__(self, db: DbPool) -> None:
        self._db = db

    @property
    def pool(self) -> aiomysql.Pool:
        return self._db.pool

    async def _guard(self, operation: str, aw: Awaitable[T]) -> T:
        return await guarded(operation, aw, timeout=self._db.query_timeout)

    async def fetch_one(self, sql: str, params: Sequence[Any] | None = None) -> Mapping[str, Any] | None:
        async def _run() -> Mapping[str, Any] | None:
            async with get_cursor(self.pool, dict_rows=True) as cur:
                await cur.execute(sql, params or ())
                return await cur.fetchone()

        return await self._guard("fetch_one", _run())

    async def fetch_all(self, sql: str, params: Sequence[Any] | None = None) -> list[Mapping[str, Any]]:
        async def _run() -> list[Mapping[str, Any]]:
            async with get_cursor(self.pool, dict_rows=True) as cur:
                await cur.execute(sql, params or ())
                rows = await cur.fetchall()
                return list(rows or [])

        return await self._guard("fetch_all", _run())

    async def execute(self, sql: str, params: Sequence[Any] | None = None) -> int:
        async def _run() -> int:
            async with transaction(self.pool, dict_rows=False) as (_conn, cur):
                await cur.execute(sql, params or ())
                return cur.rowcount

        return await self._guard("execute", _run())

    async def insert_returning_id(self, sql: str, params: Sequence[Any] | None = None) -> int:
        async def _run() -> int:
            async with transaction(self.pool, dict_rows=False) as (_conn, cur):
                await cur.execute(sql, params or ())
                return int(cur.lastrowid)

        return await self._guard("insert", _run())

    async def in_tx(self, operation: str, fn: Callable[[Any, Any], Awaitable[T]]) -> T:
        """
        Run a function inside one transaction (commit on success, rollback on error).
        The function receives (conn, cur) with a DictCursor.
        """

        async def _run() -> T:
            async with transaction(self.pool, dict_rows=True) as (conn, cur):
                return await fn(conn, cur)

        return await self._guard(operation, _run())
