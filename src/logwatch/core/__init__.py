"""Core data models, configuration, errors and the timeout guard.

This package provides:
- Data models (EventLog, FilterSpec, BlockWindow)
- Configuration (WatchConfig, Mode)
- The error taxonomy (WatchError and its fatal/retryable subclasses)
- Transport interfaces (ILogTransport, ISubscription)
"""

from logwatch.core.config import Mode, WatchConfig, parse_duration
from logwatch.core.errors import (
    ConfigError,
    DeadlineExceeded,
    QueryError,
    RpcError,
    SetupError,
    StreamError,
    WatchError,
)
from logwatch.core.interfaces import ILogTransport, ISubscription
from logwatch.core.models import BlockWindow, EventLog, FilterSpec
from logwatch.core.timeout import with_timeout

__all__ = [
    "BlockWindow",
    "ConfigError",
    "DeadlineExceeded",
    "EventLog",
    "FilterSpec",
    "ILogTransport",
    "ISubscription",
    "Mode",
    "QueryError",
    "RpcError",
    "SetupError",
    "StreamError",
    "WatchConfig",
    "WatchError",
    "parse_duration",
    "with_timeout",
]
