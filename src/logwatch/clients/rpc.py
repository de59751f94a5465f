"""Lightweight JSON-RPC client for Ethereum-compatible nodes over HTTP.

This module provides:
- `HttpTransport`: an async pull-only transport with sane timeouts/connection limits
- `check_response`: shared JSON-RPC envelope handling

It returns `EventLog` records; live subscriptions need a persistent
connection and are only offered by the WebSocket transport.
"""

from __future__ import annotations

import itertools
from typing import Any

import httpx

from logwatch.core.errors import RpcError, SetupError
from logwatch.core.interfaces import ISubscription
from logwatch.core.models import EventLog, FilterSpec


def check_response(data: dict[str, Any]) -> Any:
    """Return the `result` of a JSON-RPC response or raise `RpcError`."""
    if data.get("error") is not None:
        e = data["error"]
        if isinstance(e, dict):
            raise RpcError(e.get("code"), e.get("message"))
        raise RpcError(None, str(e))
    return data.get("result")


class HttpTransport:
    """Minimal async HTTP transport.

    Parameters
    ----------
    url : str
        RPC endpoint URL.
    timeout_s : float
        Per-operation timeout in seconds (connect/read/write).
    max_connections : int
        Maximum concurrent connections to keep in the pool.
    """

    def __init__(self, url: str, *, timeout_s: float = 20, max_connections: int = 8) -> None:
        self.url = url
        self._ids = itertools.count(1)
        self.client = httpx.AsyncClient(
            timeout=httpx.Timeout(
                connect=timeout_s,
                read=timeout_s,
                write=timeout_s,
                pool=max(30, timeout_s * 3),
            ),
            limits=httpx.Limits(
                max_connections=max_connections,
                max_keepalive_connections=max(1, max_connections // 2),
            ),
            http2=True,
        )

    @classmethod
    async def connect(cls, url: str, **kwargs: Any) -> HttpTransport:
        """Create the transport and check the node answers (`eth_chainId`)."""
        transport = cls(url, **kwargs)
        try:
            await transport.chain_id()
        except BaseException:
            await transport.aclose()
            raise
        return transport

    async def request(self, method: str, params: list[Any]) -> Any:
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
        r = await self.client.post(self.url, json=payload)
        r.raise_for_status()
        return check_response(r.json())

    async def chain_id(self) -> int:
        """Return the chain id as an int."""
        return int(await self.request("eth_chainId", []), 16)

    async def get_logs(self, spec: FilterSpec) -> list[EventLog]:
        """Fetch logs matching `spec` over its inclusive block range."""
        result = await self.request("eth_getLogs", [spec.to_params()])
        return [EventLog.from_rpc(rl) for rl in result or []]

    async def subscribe(self, spec: FilterSpec) -> ISubscription:
        raise SetupError(f"cannot subscribe over HTTP ({self.url}); use a ws:// or wss:// endpoint")

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self.client.aclose()
