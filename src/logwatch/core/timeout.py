"""Deadline guard for transport calls that may hang (connect, subscribe, query)."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

from logwatch.core.errors import DeadlineExceeded

T = TypeVar("T")


async def with_timeout(timeout_s: float, operation: Awaitable[T], *, name: str = "operation") -> T:
    """Run `operation` under a deadline of `timeout_s` seconds.

    On success the deadline is cancelled before returning, so it never fires
    into unrelated later work. Errors raised by the operation propagate
    unchanged; expiry of this deadline raises `DeadlineExceeded`. There is
    no retry here.
    """
    deadline = asyncio.timeout(timeout_s)
    try:
        async with deadline:
            return await operation
    except TimeoutError as e:
        if deadline.expired():
            raise DeadlineExceeded(name, timeout_s) from e
        raise
