"""Pull consumer: page through block windows with bounded historical queries."""

from __future__ import annotations

import asyncio
import logging

from logwatch.core.config import WatchConfig
from logwatch.core.errors import QueryError
from logwatch.core.interfaces import ILogTransport
from logwatch.core.models import BlockWindow, EventLog, FilterSpec
from logwatch.core.sinks import BatchSink, deliver, log_batch
from logwatch.core.timeout import with_timeout

logger = logging.getLogger(__name__)


async def query_window(transport: ILogTransport, config: WatchConfig, window: BlockWindow) -> list[EventLog]:
    """Query one window under the deadline; any failure becomes a `QueryError`."""
    spec = FilterSpec.for_window(config.address, window)
    logger.info("Query: %s", spec)
    try:
        return await with_timeout(config.timeout_s, transport.get_logs(spec), name=f"get_logs {window}")
    except Exception as e:
        raise QueryError(window, e) from e


async def poll_logs(
    transport: ILogTransport,
    config: WatchConfig,
    *,
    on_batch: BatchSink = log_batch,
    max_iterations: int | None = None,
) -> int:
    """Run the pull consumer.

    Each iteration queries [offset, offset + page_size]. A failed query is
    logged and the same window is retried; the offset only advances, by
    exactly `page_size`, after a successful query has been delivered.

    Runs forever unless `max_iterations` (failed attempts included) is set,
    in which case the next offset is returned.
    """
    window = BlockWindow(config.start_block, config.page_size)
    iterations = 0

    while max_iterations is None or iterations < max_iterations:
        iterations += 1
        try:
            logs = await query_window(transport, config, window)
        except QueryError as e:
            logger.error("ERROR: %s", e)
            if config.retry_delay_s:
                await asyncio.sleep(config.retry_delay_s)
            continue

        await deliver(on_batch, window, logs)
        window = window.advance()

    return window.offset
