# db/errors.py
from __future__ import annotations

import asyncio
from typing import Awaitable, TypeVar

import aiomysql

T = TypeVar("T")


class StorageUnavailableError(Exception):
    """
    Transient storage failure (connection lost, server gone, timeout).
    Surfaced to the operator for a manual retry; nothing retries automatically.
    """

    def __init__(self, operation: str, reason: str) -> None:
        super().__init__(f"Storage unavailable during {operation}: {reason}. Please retry.")
        self.operation = operation
        self.reason = reason


TRANSIENT_DB_ERRORS = (aiomysql.OperationalError, aiomysql.InterfaceError, ConnectionError)


async def guarded(operation: str, aw: Awaitable[T], *, timeout: float) -> T:
    """
    Await a storage call with a timeout, translating driver/timeout failures into StorageUnavailableError.
    """
    try:
        return await asyncio.wait_for(aw, timeout=timeout)
    except asyncio.TimeoutError as e:
        raise StorageUnavailableError(operation, f"timed out after {timeout:g}s") from e
    except TRANSIENT_DB_ERRORS as e:
        raise StorageUnavailableError(operation, str(e) or type(e).__name__) from e
