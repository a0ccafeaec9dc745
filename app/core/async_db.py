"""Async helpers for calling the sync store from the event loop."""
from __future__ import annotations

import functools
from typing import Any, Callable, TypeVar

import anyio

from app.core.exceptions import DatabaseException, LogiflowException

T = TypeVar("T")


async def run_db(func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """Run a sync store call in a worker thread.

    Storage errors surface as ``DatabaseException``; domain errors raised by
    the store pass through unchanged.
    """
    try:
        return await anyio.to_thread.run_sync(functools.partial(func, *args, **kwargs))
    except LogiflowException:
        raise
    except Exception as e:
        name = getattr(func, "__name__", "store call")
        raise DatabaseException(f"{name} failed: {type(e).__name__}") from e
