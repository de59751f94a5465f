from __future__ import annotations

from .core.config import Mode, WatchConfig
from .core.errors import ConfigError, DeadlineExceeded, QueryError, SetupError, StreamError, WatchError
from .core.models import BlockWindow, EventLog, FilterSpec
from .orchestration.orchestrator import WatchOutput, watch

__all__ = [
    "watch",
    "WatchConfig",
    "WatchOutput",
    "Mode",
    "EventLog",
    "FilterSpec",
    "BlockWindow",
    "WatchError",
    "ConfigError",
    "SetupError",
    "StreamError",
    "QueryError",
    "DeadlineExceeded",
]
