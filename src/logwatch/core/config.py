from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from urllib.parse import urlparse

from eth_utils import is_hex_address

from logwatch.core.errors import ConfigError

# WBNB ERC-20 token
DEFAULT_ADDRESS = "0xbb4cdb9cbd36b01bd1cbaebf2de08d9173bc095c"
DEFAULT_TIMEOUT_S = 60.0
DEFAULT_PAGE_SIZE = 2_000
ENDPOINT_SCHEMES = ("ws", "wss", "http", "https")
PUSH_SCHEMES = ("ws", "wss")

_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")


class Mode(enum.Enum):
    """Consumption strategy: live push subscription or paged pull queries."""

    SUBSCRIBE = "subscribe"
    POLL = "poll"

    @classmethod
    def from_flags(cls, subscribe: bool, get_logs: bool) -> Mode | None:
        """Resolve the mutually exclusive mode flags (neither set means no mode)."""
        if subscribe and get_logs:
            raise ConfigError("only supports running a single mode: pass either subscribe or get-logs")
        if subscribe:
            return cls.SUBSCRIBE
        if get_logs:
            return cls.POLL
        return None


def parse_duration(value: str | int | float) -> float:
    """Parse a duration into seconds.

    Accepts plain numbers (seconds) and Go-style strings such as
    ``"60s"``, ``"1m30s"``, ``"500ms"`` or ``"2h"``.
    """
    if isinstance(value, bool):
        raise ConfigError(f"invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        return float(value)

    text = value.strip()
    try:
        return float(text)
    except ValueError:
        pass

    pos = 0
    total = 0.0
    for m in _DURATION_PART.finditer(text):
        if m.start() != pos:
            break
        total += float(m.group(1)) * _DURATION_UNITS[m.group(2)]
        pos = m.end()
    if pos == 0 or pos != len(text):
        raise ConfigError(f"invalid duration: {value!r}")
    return total


def normalize_address(address: str) -> str:
    """Validate a 20-byte hex address and return it lowercased and 0x-prefixed."""
    addr = (address or "").strip()
    if not addr.lower().startswith("0x"):
        addr = "0x" + addr
    if not is_hex_address(addr):
        raise ConfigError(f"invalid address: {address!r}")
    return addr.lower()


@dataclass(frozen=True)
class WatchConfig:
    """Resolved configuration, constructed once and passed to every entry point."""

    endpoint: str
    address: str = DEFAULT_ADDRESS
    timeout_s: float = DEFAULT_TIMEOUT_S
    mode: Mode | None = None
    page_size: int = DEFAULT_PAGE_SIZE
    start_block: int = 0  # initial pull offset
    retry_delay_s: float = 0.0  # pause between retries of a failed window

    def __post_init__(self) -> None:
        if not self.endpoint:
            raise ConfigError("endpoint is required")
        scheme = urlparse(self.endpoint).scheme.lower()
        if scheme not in ENDPOINT_SCHEMES:
            raise ConfigError(f"unsupported endpoint scheme in {self.endpoint!r} (expected ws, wss, http or https)")
        if self.mode is Mode.SUBSCRIBE and scheme not in PUSH_SCHEMES:
            raise ConfigError(
                f"subscribe needs a persistent connection: use a ws:// or wss:// endpoint, got {self.endpoint!r}"
            )
        # frozen: normalized values go through object.__setattr__
        object.__setattr__(self, "address", normalize_address(self.address))
        if self.timeout_s <= 0:
            raise ConfigError(f"timeout must be positive, got {self.timeout_s}")
        if isinstance(self.page_size, bool) or not isinstance(self.page_size, int):
            raise ConfigError(f"page size must be an integer, got {self.page_size!r}")
        if self.page_size <= 0:
            raise ConfigError(f"page size must be positive, got {self.page_size}")
        if self.start_block < 0:
            raise ConfigError(f"start block must be non-negative, got {self.start_block}")
        if self.retry_delay_s < 0:
            raise ConfigError(f"retry delay must be non-negative, got {self.retry_delay_s}")
