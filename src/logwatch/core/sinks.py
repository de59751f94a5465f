"""Default consumers for observed logs, plus the helper that invokes them.

A sink may be a plain function or a coroutine function.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any, Union

from logwatch.core.models import BlockWindow, EventLog

logger = logging.getLogger(__name__)

EventSink = Callable[[EventLog], Union[None, Awaitable[None]]]
BatchSink = Callable[[BlockWindow, list[EventLog]], Union[None, Awaitable[None]]]


def log_event(event: EventLog) -> None:
    logger.info("Msg received: %s", event)


def log_batch(window: BlockWindow, logs: list[EventLog]) -> None:
    logger.info("Logs received (%d) for %s: %s", len(logs), window, logs)


async def deliver(sink: Callable[..., Any], *args: Any) -> None:
    """Call `sink`, awaiting the result when it is awaitable."""
    result = sink(*args)
    if inspect.isawaitable(result):
        await result
