# app/services/store_errors.py
from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

from sqlalchemy.exc import SQLAlchemyError

T = TypeVar("T")


class StoreError(RuntimeError):
    """
    Raised when a store call fails in a way that may succeed on a later
    attempt (timeout, lost connection, database error).
    """


class DuplicateOccurrenceError(StoreError):
    """
    Raised when a meeting for the same (template, occurrence date) already
    exists, i.e. a concurrent pass won the race between check and insert.
    """


async def guarded_store_call(
    awaitable: Awaitable[T],
    *,
    timeout_seconds: float,
    operation: str,
) -> T:
    """
    Await a store operation with an upper time bound.

    Timeouts and SQLAlchemy errors are re-raised as StoreError so callers
    only have to handle a single retryable error type.
    """
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout_seconds)
    except asyncio.TimeoutError as exc:
        raise StoreError(f"{operation} timed out after {timeout_seconds}s") from exc
    except SQLAlchemyError as exc:
        raise StoreError(f"{operation} failed: {exc}") from exc
