"""Consumption strategies: live push subscription and paged pull queries."""

from logwatch.core.use_cases.poll_logs import poll_logs, query_window
from logwatch.core.use_cases.subscribe_logs import open_subscription, stream_events, subscribe_logs

__all__ = [
    "open_subscription",
    "poll_logs",
    "query_window",
    "stream_events",
    "subscribe_logs",
]
