"""Push consumer: one live subscription, then an endless receive loop.

States: connecting -> subscribing -> streaming -> terminated (fatal).

The streaming loop waits on two queues at once (log events and subscription
errors) with no priority between them. When both are ready in the same
wakeup, or when the error fires while events are still queued, every queued
event is delivered first and only then does the error terminate the loop, so
no produced event is dropped silently.
"""

from __future__ import annotations

import asyncio
import logging

from logwatch.core.config import WatchConfig
from logwatch.core.errors import SetupError, StreamError, WatchError
from logwatch.core.interfaces import ILogTransport, ISubscription
from logwatch.core.models import FilterSpec
from logwatch.core.sinks import EventSink, deliver, log_event
from logwatch.core.timeout import with_timeout

logger = logging.getLogger(__name__)


async def open_subscription(transport: ILogTransport, config: WatchConfig) -> ISubscription:
    """Subscribe to live logs for the configured address under the setup deadline.

    Any failure is fatal: there is no retry of subscription setup.
    """
    spec = FilterSpec.live(config.address)
    try:
        subscription = await with_timeout(config.timeout_s, transport.subscribe(spec), name="subscribe")
    except WatchError:
        raise
    except Exception as e:
        raise SetupError(f"subscribe {spec}: {type(e).__name__}: {e}") from e

    logger.info("Subscription successful, waiting for logs (id=%s)", subscription.id)
    return subscription


async def stream_events(
    subscription: ISubscription,
    *,
    on_event: EventSink = log_event,
    max_events: int | None = None,
) -> int:
    """Deliver events from `subscription` until its error stream fires.

    Returns the number of delivered events when `max_events` is reached;
    otherwise only exits by raising `StreamError` (or by cancellation).
    """
    delivered = 0
    event_task: asyncio.Task | None = None
    error_task: asyncio.Task | None = None

    try:
        while max_events is None or delivered < max_events:
            if event_task is None:
                event_task = asyncio.ensure_future(subscription.events.get())
            if error_task is None:
                error_task = asyncio.ensure_future(subscription.errors.get())

            done, _ = await asyncio.wait({event_task, error_task}, return_when=asyncio.FIRST_COMPLETED)

            if event_task in done:
                event = event_task.result()
                event_task = None
                await deliver(on_event, event)
                delivered += 1

            if error_task in done:
                err = error_task.result()
                error_task = None
                # Everything queued before the error is still delivered, in order.
                if event_task is not None:
                    event_task.cancel()
                    await asyncio.wait({event_task})
                    if not event_task.cancelled():
                        await deliver(on_event, event_task.result())
                        delivered += 1
                    event_task = None
                while not subscription.events.empty():
                    await deliver(on_event, subscription.events.get_nowait())
                    delivered += 1
                if isinstance(err, StreamError):
                    raise err
                raise StreamError(f"subscription {subscription.id}: {type(err).__name__}: {err}") from err

        return delivered
    finally:
        # A finished-but-unconsumed get() still holds an item: hand it back.
        pending = []
        for task, queue in ((event_task, subscription.events), (error_task, subscription.errors)):
            if task is None:
                continue
            if task.done() and not task.cancelled():
                queue.put_nowait(task.result())
            else:
                task.cancel()
                pending.append(task)
        if pending:
            await asyncio.wait(pending)


async def subscribe_logs(
    transport: ILogTransport,
    config: WatchConfig,
    *,
    on_event: EventSink = log_event,
    max_events: int | None = None,
) -> int:
    """Run the push consumer: subscribe, then stream until a fatal error.

    The subscription is released exactly once on every exit path.
    """
    subscription = await open_subscription(transport, config)
    async with subscription:
        return await stream_events(subscription, on_event=on_event, max_events=max_events)
