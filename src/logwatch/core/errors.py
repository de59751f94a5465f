"""Error taxonomy for the watcher.

Every error raised by the core derives from `WatchError` and carries a
`fatal` flag. The caller (CLI) decides what to do with it:

- fatal errors terminate the run (`ConfigError`, `SetupError`,
  `StreamError`, `DeadlineExceeded`)
- retryable errors are logged and the same work is attempted again
  (`QueryError`)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from logwatch.core.models import BlockWindow


class WatchError(Exception):
    """Base class for all watcher errors."""

    fatal: bool = True


class ConfigError(WatchError, ValueError):
    """Invalid configuration, detected before any network activity."""


class SetupError(WatchError):
    """Connecting to the node or establishing a subscription failed."""


class StreamError(WatchError):
    """The subscription error stream fired (e.g. the remote closed the socket)."""


class DeadlineExceeded(WatchError, TimeoutError):
    """A guarded operation did not complete within its deadline."""

    def __init__(self, operation: str, timeout_s: float) -> None:
        super().__init__(f"{operation}: deadline exceeded after {timeout_s:g}s")
        self.operation = operation
        self.timeout_s = timeout_s


class RpcError(WatchError):
    """JSON-RPC error object returned by the node."""

    def __init__(self, code: int | None, message: str | None) -> None:
        super().__init__(f"RPC error: {code} {message}")
        self.code = code
        self.message = message


class QueryError(WatchError):
    """A historical log query failed; the window is retried."""

    fatal = False

    def __init__(self, window: BlockWindow, cause: BaseException) -> None:
        super().__init__(f"query {window} failed: {type(cause).__name__}: {cause}")
        self.window = window
