"""JSON-RPC over a persistent WebSocket connection.

This module provides:
- `WsTransport`: push subscriptions (`eth_subscribe("logs", ...)`) and
  historical queries (`eth_getLogs`) over one socket
- `WsSubscription`: the subscription handle handed to the push consumer

A single reader task owns the socket's receive side. It matches responses
to pending requests by id and routes `eth_subscription` notifications to the
subscription's event queue. When the socket closes, every pending request
fails and every live subscription receives one `StreamError`.
"""

from __future__ import annotations

import asyncio
import itertools
import json
import logging
from typing import Any

import websockets
from websockets.exceptions import ConnectionClosed

from logwatch.clients.rpc import check_response
from logwatch.core.errors import StreamError
from logwatch.core.models import EventLog, FilterSpec

logger = logging.getLogger(__name__)


class WsSubscription:
    """Live log subscription bound to a `WsTransport`."""

    def __init__(self, transport: WsTransport, sub_id: str) -> None:
        self.id = sub_id
        self.events: asyncio.Queue[EventLog] = asyncio.Queue()
        self.errors: asyncio.Queue[BaseException] = asyncio.Queue()
        self._transport = transport
        self._released = False
        self._failed = False

    @property
    def released(self) -> bool:
        return self._released

    def _fail(self, err: BaseException) -> None:
        if self._released or self._failed:
            return
        self._failed = True
        self.errors.put_nowait(err)

    async def unsubscribe(self) -> None:
        """Send `eth_unsubscribe` once; later calls are no-ops."""
        if self._released:
            return
        self._released = True
        self._transport._subs.pop(self.id, None)
        if self._transport.closed:
            return
        try:
            async with asyncio.timeout(self._transport.unsubscribe_timeout_s):
                await self._transport.request("eth_unsubscribe", [self.id])
        except Exception as e:
            logger.warning("eth_unsubscribe %s failed: %s", self.id, e)

    async def __aenter__(self) -> WsSubscription:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.unsubscribe()


class WsTransport:
    """Async WebSocket transport.

    Parameters
    ----------
    ws :
        An open websockets client connection.
    url : str
        Endpoint the connection was opened against (for messages only).
    unsubscribe_timeout_s : float
        Upper bound for the `eth_unsubscribe` round trip on release.
    """

    def __init__(self, ws: Any, url: str = "", *, unsubscribe_timeout_s: float = 5.0) -> None:
        self.url = url
        self.unsubscribe_timeout_s = unsubscribe_timeout_s
        self._ws = ws
        self._ids = itertools.count(1)
        self._pending: dict[int, asyncio.Future[dict[str, Any]]] = {}
        self._subscribe_ids: set[int] = set()
        self._subs: dict[str, WsSubscription] = {}
        self._closed_error: StreamError | None = None
        self._releasing: set[asyncio.Task[None]] = set()
        self._reader = asyncio.create_task(self._read_loop())

    @classmethod
    async def connect(cls, url: str, **kwargs: Any) -> WsTransport:
        """Open the socket. The caller bounds this with its own deadline."""
        ws = await websockets.connect(url, open_timeout=None, max_size=10 * 1024 * 1024)
        return cls(ws, url, **kwargs)

    @property
    def closed(self) -> bool:
        return self._closed_error is not None

    # --- requests -----------------------------------------------------------

    async def _call(self, method: str, params: list[Any], *, subscribe: bool = False) -> Any:
        if self._closed_error is not None:
            raise self._closed_error
        req_id = next(self._ids)
        fut: asyncio.Future[dict[str, Any]] = asyncio.get_running_loop().create_future()
        self._pending[req_id] = fut
        if subscribe:
            self._subscribe_ids.add(req_id)
        try:
            await self._ws.send(json.dumps({"jsonrpc": "2.0", "id": req_id, "method": method, "params": params}))
            return check_response(await fut)
        except BaseException:
            if subscribe and fut.done() and not fut.cancelled() and fut.exception() is None:
                # The node confirmed, but the caller is gone (e.g. its deadline fired).
                self._release_orphan(fut.result().get("result"))
            raise
        finally:
            self._pending.pop(req_id, None)
            self._subscribe_ids.discard(req_id)

    def _release_orphan(self, sub_id: Any) -> None:
        sub = self._subs.pop(sub_id, None) if isinstance(sub_id, str) else None
        if sub is None:
            return
        task = asyncio.create_task(sub.unsubscribe())
        self._releasing.add(task)
        task.add_done_callback(self._releasing.discard)

    async def request(self, method: str, params: list[Any]) -> Any:
        return await self._call(method, params)

    async def subscribe(self, spec: FilterSpec) -> WsSubscription:
        """Open a live log subscription for `spec`."""
        sub_id = await self._call("eth_subscribe", ["logs", spec.to_params()], subscribe=True)
        return self._subs[sub_id]

    async def get_logs(self, spec: FilterSpec) -> list[EventLog]:
        """Fetch logs matching `spec` over its inclusive block range."""
        result = await self.request("eth_getLogs", [spec.to_params()])
        return [EventLog.from_rpc(rl) for rl in result or []]

    # --- receive side -------------------------------------------------------

    def _dispatch(self, msg: dict[str, Any]) -> None:
        if msg.get("method") == "eth_subscription":
            params = msg.get("params")
            sub_id = params.get("subscription") if isinstance(params, dict) else None
            sub = self._subs.get(sub_id) if isinstance(sub_id, str) else None
            if sub is None:
                logger.debug("notification for unknown subscription %r", sub_id)
                return
            try:
                event = EventLog.from_rpc(params["result"])
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                logger.warning("malformed log notification on %s: %s", sub.id, e)
                return
            sub.events.put_nowait(event)
            return

        req_id = msg.get("id")
        if not isinstance(req_id, int):
            logger.debug("response with unexpected id %r", req_id)
            return
        fut = self._pending.get(req_id)
        if fut is None or fut.done():
            return
        # Register before resolving so no notification arrives for an unknown id.
        if req_id in self._subscribe_ids and msg.get("error") is None and isinstance(msg.get("result"), str):
            self._subs[msg["result"]] = WsSubscription(self, msg["result"])
        fut.set_result(msg)

    async def _read_loop(self) -> None:
        err: StreamError
        try:
            async for raw in self._ws:
                try:
                    msg = json.loads(raw)
                except json.JSONDecodeError as e:
                    logger.warning("invalid JSON message: %s", e)
                    continue
                if isinstance(msg, dict):
                    self._dispatch(msg)
            err = StreamError("connection closed by remote")
        except ConnectionClosed as e:
            err = StreamError(f"connection closed: {e}")
        except asyncio.CancelledError:
            self._shutdown(StreamError("transport closed"))
            raise
        except Exception as e:
            logger.exception("websocket reader failed")
            err = StreamError(f"reader failed: {type(e).__name__}: {e}")
        self._shutdown(err)

    def _shutdown(self, err: StreamError) -> None:
        if self._closed_error is not None:
            return
        self._closed_error = err
        for fut in self._pending.values():
            if not fut.done():
                fut.set_exception(err)
        for sub in list(self._subs.values()):
            sub._fail(err)

    async def aclose(self) -> None:
        """Finish pending releases, stop the reader and close the socket."""
        if self._releasing:
            await asyncio.wait(set(self._releasing))
        if not self._reader.done():
            self._reader.cancel()
            try:
                await self._reader
            except asyncio.CancelledError:
                pass
        self._shutdown(StreamError("transport closed"))
        await self._ws.close()
