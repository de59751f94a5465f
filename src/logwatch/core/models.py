"""Core data models.

This module defines:
- `EventLog`: raw log record as delivered by the node, minimally normalized.
- `FilterSpec`: address set plus optional inclusive block bounds.
- `BlockWindow`: the paging window used by the pull consumer.

Design notes
------------
- A `FilterSpec` without bounds means "live" (push subscription); with both
  bounds it selects the closed range [from_block, to_block].
- `BlockWindow.range` is inclusive on both ends, like every interval in this
  package.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


def _hex_int(value: Any) -> int:
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.startswith("0x"):
        return int(value, 16)
    return int(value)


# === RPC record ===


@dataclass(slots=True, frozen=True)
class EventLog:
    """Raw log as delivered by the node (not decoded)."""

    address: str  # lowercased 0x...
    topics: tuple[str, ...]  # lowercased 0x...
    data_hex: str  # "0x..."
    block_number: int
    tx_hash: str  # lowercased 0x...
    log_index: int
    block_hash: str = ""
    removed: bool = False  # True when dropped by a chain reorg

    @classmethod
    def from_rpc(cls, rl: dict[str, Any]) -> EventLog:
        """Build from a JSON-RPC log object (eth_getLogs result or subscription payload)."""
        topics = tuple((t if isinstance(t, str) else t.decode()).lower() for t in rl.get("topics", []))
        return cls(
            address=str(rl["address"]).lower(),
            topics=topics,
            data_hex=str(rl.get("data") or "0x"),
            block_number=_hex_int(rl["blockNumber"]),
            tx_hash=(rl.get("transactionHash") or rl.get("transaction_hash") or "").lower(),
            log_index=_hex_int(rl["logIndex"]),
            block_hash=(rl.get("blockHash") or "").lower(),
            removed=bool(rl.get("removed", False)),
        )


# === Query shapes ===


@dataclass(frozen=True)
class BlockWindow:
    """Pull-mode paging window: [offset, offset + size], both ends inclusive."""

    offset: int
    size: int

    def __post_init__(self) -> None:
        if self.offset < 0:
            raise ValueError(f"window offset must be >= 0, got {self.offset}")
        if self.size <= 0:
            raise ValueError(f"window size must be > 0, got {self.size}")

    @property
    def from_block(self) -> int:
        return self.offset

    @property
    def to_block(self) -> int:
        return self.offset + self.size

    @property
    def range(self) -> tuple[int, int]:
        return (self.from_block, self.to_block)

    def advance(self) -> BlockWindow:
        """Return the next window, `size` blocks further."""
        return BlockWindow(self.offset + self.size, self.size)

    def __contains__(self, block_number: object) -> bool:
        return isinstance(block_number, int) and self.from_block <= block_number <= self.to_block

    def __str__(self) -> str:
        return f"[{self.from_block}, {self.to_block}]"


@dataclass(frozen=True)
class FilterSpec:
    """Log filter: a set of emitter addresses and optional inclusive block bounds."""

    addresses: frozenset[str]
    from_block: int | None = None
    to_block: int | None = None

    @classmethod
    def live(cls, address: str) -> FilterSpec:
        """Filter for a push subscription (no block bounds)."""
        return cls(addresses=frozenset({address.lower()}))

    @classmethod
    def for_window(cls, address: str, window: BlockWindow) -> FilterSpec:
        """Filter for a bounded historical query over `window`."""
        return cls(
            addresses=frozenset({address.lower()}),
            from_block=window.from_block,
            to_block=window.to_block,
        )

    @property
    def is_live(self) -> bool:
        return self.from_block is None and self.to_block is None

    def to_params(self) -> dict[str, Any]:
        """Serialize into the JSON-RPC filter object."""
        params: dict[str, Any] = {"address": sorted(self.addresses)}
        if self.from_block is not None:
            params["fromBlock"] = hex(self.from_block)
        if self.to_block is not None:
            params["toBlock"] = hex(self.to_block)
        return params

    def __str__(self) -> str:
        addrs = ",".join(sorted(self.addresses))
        if self.is_live:
            return f"FilterSpec(addresses={addrs}, live)"
        return f"FilterSpec(addresses={addrs}, from={self.from_block}, to={self.to_block})"
