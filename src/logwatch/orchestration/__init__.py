"""Orchestration: connect to the node and run the selected consumer.

This package provides:
- `watch`: main entry point for a resolved `WatchConfig`
- `connect`: the deadline-bounded connection step on its own
"""

from logwatch.orchestration.orchestrator import WatchOutput, connect, watch

__all__ = [
    "WatchOutput",
    "connect",
    "watch",
]
