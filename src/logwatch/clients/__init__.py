"""Node transports.

`connect_transport` picks the implementation from the endpoint scheme:
- ws:// and wss:// -> `WsTransport` (subscribe and query)
- http:// and https:// -> `HttpTransport` (query only)
"""

from __future__ import annotations

from urllib.parse import urlparse

from logwatch.clients.rpc import HttpTransport
from logwatch.clients.ws import WsSubscription, WsTransport
from logwatch.core.errors import ConfigError
from logwatch.core.interfaces import ILogTransport


def transport_class(endpoint: str) -> type[WsTransport] | type[HttpTransport]:
    scheme = urlparse(endpoint).scheme.lower()
    if scheme in ("ws", "wss"):
        return WsTransport
    if scheme in ("http", "https"):
        return HttpTransport
    raise ConfigError(f"unsupported endpoint scheme {scheme!r} in {endpoint!r}")


async def connect_transport(endpoint: str, *, timeout_s: float = 20) -> ILogTransport:
    """Open a transport to `endpoint`. Bound this call with `with_timeout`."""
    cls = transport_class(endpoint)
    if cls is HttpTransport:
        return await HttpTransport.connect(endpoint, timeout_s=timeout_s)
    return await WsTransport.connect(endpoint)


__all__ = [
    "HttpTransport",
    "WsSubscription",
    "WsTransport",
    "connect_transport",
    "transport_class",
]
