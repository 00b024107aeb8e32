# db/tx.py
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Tuple

import aiomysql

from db.errors import TRANSIENT_DB_ERRORS

logger = logging.getLogger(__name__)


def _cursor_cls(dict_rows: bool) -> type:
    return aiomysql.DictCursor if dict_rows else aiomysql.Cursor


@asynccontextmanager
async def get_cursor(
    pool: aiomysql.Pool, *, dict_rows: bool = True
) -> AsyncIterator[aiomysql.Cursor]:
    """
    Single statement on a pooled connection (pool runs with autocommit=True).
    DictCursor by default so repositories read rows by column name.
    """
    async with pool.acquire() as conn:
        async with conn.cursor(_cursor_cls(dict_rows)) as cur:
            yield cur


@asynccontextmanager
async def transaction(
    pool: aiomysql.Pool, *, dict_rows: bool = True
) -> AsyncIterator[Tuple[aiomysql.Connection, aiomysql.Cursor]]:
    """
    Several statements that must land together (a whole stage, all three standings).
    Commits on success, rolls back on any exception and re-raises it.

        async with transaction(pool) as (conn, cur):
            await cur.execute(...)
    """
    async with pool.acquire() as conn:
        await conn.begin()
        try:
            async with conn.cursor(_cursor_cls(dict_rows)) as cur:
                yield conn, cur
            await conn.commit()
        except BaseException as e:
            try:
                await conn.rollback()
            except TRANSIENT_DB_ERRORS as rb:
                # server side already discarded the transaction; keep the original error
                logger.warning("Rollback failed after %s: %s", type(e).__name__, rb)
            raise
