import asyncio
import inspect
from typing import Any, Callable
from unittest.mock import AsyncMock

import pytest

from logwatch.core.config import Mode, WatchConfig
from logwatch.core.models import EventLog, FilterSpec

ADDRESS = "0xbb4cdb9cbd36b01bd1cbaebf2de08d9173bc095c"


def rpc_log(block_number: int, log_index: int = 0, address: str = ADDRESS) -> dict[str, Any]:
    """A log object as the node returns it (hex quantities)."""
    return {
        "address": address,
        "topics": ["0xDDF252AD1BE2C89B69C2B068FC378DAA952BA7F163C4A11628F55A4DF523B3EF"],
        "data": "0x" + "00" * 31 + "64",
        "blockNumber": hex(block_number),
        "transactionHash": "0x" + f"{block_number:064x}",
        "logIndex": hex(log_index),
        "blockHash": "0x" + "ab" * 32,
        "removed": False,
    }


class FakeSubscription:
    def __init__(self, sub_id: str = "0xsub") -> None:
        self.id = sub_id
        self.events: asyncio.Queue[EventLog] = asyncio.Queue()
        self.errors: asyncio.Queue[BaseException] = asyncio.Queue()
        self.unsubscribe_calls = 0

    async def unsubscribe(self) -> None:
        self.unsubscribe_calls += 1

    async def __aenter__(self) -> "FakeSubscription":
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.unsubscribe()


class FakeTransport:
    """In-memory transport.

    `responses` is consumed one item per `get_logs` call: a list of logs,
    an exception to raise, or a callable ``(spec) -> logs`` (may be async).
    Once exhausted, every call returns an empty batch.
    """

    def __init__(
        self,
        *,
        subscription: FakeSubscription | None = None,
        subscribe_error: BaseException | None = None,
        subscribe_delay: float = 0.0,
        responses: list[Any] | None = None,
    ) -> None:
        self.subscription = subscription or FakeSubscription()
        self.subscribe_error = subscribe_error
        self.subscribe_delay = subscribe_delay
        self.subscribe_specs: list[FilterSpec] = []
        self.queries: list[FilterSpec] = []
        self._responses = list(responses or [])
        self.aclose = AsyncMock()

    async def subscribe(self, spec: FilterSpec) -> FakeSubscription:
        self.subscribe_specs.append(spec)
        if self.subscribe_delay:
            await asyncio.sleep(self.subscribe_delay)
        if self.subscribe_error is not None:
            raise self.subscribe_error
        return self.subscription

    async def get_logs(self, spec: FilterSpec) -> list[EventLog]:
        self.queries.append(spec)
        r = self._responses.pop(0) if self._responses else []
        if isinstance(r, BaseException):
            raise r
        if callable(r):
            r = r(spec)
            if inspect.isawaitable(r):
                r = await r
        return r


@pytest.fixture
def make_config() -> Callable[..., WatchConfig]:
    def _make(**overrides: Any) -> WatchConfig:
        fields: dict[str, Any] = {
            "endpoint": "ws://localhost:8546",
            "address": ADDRESS,
            "timeout_s": 1.0,
            "mode": Mode.POLL,
            "page_size": 2_000,
        }
        fields.update(overrides)
        return WatchConfig(**fields)

    return _make


@pytest.fixture
def fake_transport() -> Callable[..., FakeTransport]:
    return FakeTransport


@pytest.fixture
def fake_subscription() -> Callable[..., FakeSubscription]:
    return FakeSubscription


@pytest.fixture
def make_log() -> Callable[..., EventLog]:
    def _make(block_number: int, log_index: int = 0) -> EventLog:
        return EventLog.from_rpc(rpc_log(block_number, log_index))

    return _make


@pytest.fixture(name="rpc_log")
def rpc_log_fixture() -> Callable[..., dict[str, Any]]:
    return rpc_log
