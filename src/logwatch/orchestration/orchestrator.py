"""Entry point tying a transport to one of the two consumers.

`watch` takes an already validated `WatchConfig`, connects under the setup
deadline, runs the configured mode and closes the transport on the way out.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from logwatch.clients import connect_transport
from logwatch.core.config import Mode, WatchConfig
from logwatch.core.errors import SetupError, WatchError
from logwatch.core.interfaces import ILogTransport
from logwatch.core.sinks import BatchSink, EventSink, log_batch, log_event
from logwatch.core.timeout import with_timeout
from logwatch.core.use_cases.poll_logs import poll_logs
from logwatch.core.use_cases.subscribe_logs import subscribe_logs

logger = logging.getLogger(__name__)

Connector = Callable[..., Awaitable[ILogTransport]]


@dataclass(kw_only=True)
class WatchOutput:
    """What a bounded run did (unbounded runs only end by raising)."""

    mode: Mode | None
    events: int = 0  # push mode: events delivered
    next_offset: int | None = None  # pull mode: first block of the next window


async def connect(config: WatchConfig, connector: Connector = connect_transport) -> ILogTransport:
    """Connect to `config.endpoint` under the setup deadline. Failures are fatal."""
    try:
        transport = await with_timeout(
            config.timeout_s,
            connector(config.endpoint, timeout_s=config.timeout_s),
            name="connect",
        )
    except WatchError:
        raise
    except Exception as e:
        raise SetupError(f"connect {config.endpoint}: {type(e).__name__}: {e}") from e
    logger.info("Connected to %s", config.endpoint)
    return transport


async def watch(
    config: WatchConfig,
    *,
    connector: Connector = connect_transport,
    on_event: EventSink = log_event,
    on_batch: BatchSink = log_batch,
    max_events: int | None = None,
    max_iterations: int | None = None,
) -> WatchOutput:
    """Run the configured mode against `config.endpoint`.

    Parameters
    ----------
    config : WatchConfig
        Resolved, immutable configuration.
    connector :
        Coroutine function ``(endpoint, *, timeout_s) -> ILogTransport``.
    on_event, on_batch :
        Sinks for push events and pull batches (default: log them).
    max_events, max_iterations :
        Optional bounds; without them the run only ends with a fatal error
        or external cancellation.
    """
    if config.mode is None:
        logger.info("nothing to do")
        return WatchOutput(mode=None)

    transport = await connect(config, connector)
    try:
        if config.mode is Mode.SUBSCRIBE:
            events = await subscribe_logs(transport, config, on_event=on_event, max_events=max_events)
            return WatchOutput(mode=config.mode, events=events)
        next_offset = await poll_logs(transport, config, on_batch=on_batch, max_iterations=max_iterations)
        return WatchOutput(mode=config.mode, next_offset=next_offset)
    finally:
        await transport.aclose()
