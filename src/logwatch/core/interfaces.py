from __future__ import annotations

import asyncio
from typing import List, Protocol, runtime_checkable

from logwatch.core.models import EventLog, FilterSpec


# ---------------------------------------------------------------------------
# ISubscription
# ---------------------------------------------------------------------------

@runtime_checkable
class ISubscription(Protocol):
    """
    Handle for a live log subscription.

    Domain expectations:
    - `events` receives matching logs in the order the node emitted them.
    - `errors` receives at most one error, when the subscription dies
      (for example the remote side closed the connection).
    - The handle is exclusively owned by the consumer that created it and
      must be released with `unsubscribe()` on every exit path.
    """

    id: str
    events: asyncio.Queue[EventLog]
    errors: asyncio.Queue[BaseException]

    async def unsubscribe(self) -> None:
        """
        Release the subscription.

        Idempotent: calling it more than once has no further effect and
        never raises.
        """
        ...

    async def __aenter__(self) -> ISubscription:
        ...

    async def __aexit__(self, *exc: object) -> None:
        ...


# ---------------------------------------------------------------------------
# ILogTransport
# ---------------------------------------------------------------------------

@runtime_checkable
class ILogTransport(Protocol):
    """
    Connected handle to a remote node.

    Domain expectations:
    - It hides the underlying protocol (WebSocket, HTTP, in-memory fake).
    - Calls may block; the core bounds them with the timeout guard.
    """

    async def subscribe(self, spec: FilterSpec) -> ISubscription:
        """
        Open a push subscription for logs matching `spec` (no block bounds).

        Implementations:
        - WebSocket `eth_subscribe("logs", ...)`
        - In-memory fake for testing
        """
        ...

    async def get_logs(self, spec: FilterSpec) -> List[EventLog]:
        """
        Return all logs matching `spec` over its inclusive block range.

        Implementations:
        - `eth_getLogs` over HTTP or WebSocket
        - In-memory fake for testing
        """
        ...

    async def aclose(self) -> None:
        """Close the underlying connection."""
        ...
