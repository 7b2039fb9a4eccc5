from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import Any

from ..domain.value_types import ProtocolVersion

V2_METHOD = "arb_getUniswapV2Pair"
V3_METHOD = "arb_getUniswapV3Pool"

DEFAULT_RPC_URL = "http://127.0.0.1:8545"
DEFAULT_V2_ADDRESSES = "./panv2_pool_addresses.txt"
DEFAULT_V3_ADDRESSES = "./panv3_pool_addresses.txt"
DEFAULT_OUT_DIR = "./snapshots"

@dataclass(slots=True, frozen=True)
class StorageLayout:
    """Where the node-side V3 reader finds pool fields in contract storage."""
    slot0_slot: int
    liquidity_slot: int
    ticks_slot: int
    tick_bitmap_slot: int
    token0_offset: int
    token1_offset: int
    fee_offset: int
    tick_spacing_offset: int

    def to_options(self) -> dict[str, int]:
        return {
            "slot0Slot": self.slot0_slot,
            "liquiditySlot": self.liquidity_slot,
            "ticksSlot": self.ticks_slot,
            "tickBitmapSlot": self.tick_bitmap_slot,
            "token0Offset": self.token0_offset,
            "token1Offset": self.token1_offset,
            "feeOffset": self.fee_offset,
            "tickSpacingOffset": self.tick_spacing_offset,
        }

    def with_overrides(self, **overrides: int | None) -> "StorageLayout":
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

LAYOUTS: dict[str, StorageLayout] = {
    "pancake": StorageLayout(
        slot0_slot=0, liquidity_slot=5, ticks_slot=6, tick_bitmap_slot=7,
        token0_offset=2323, token1_offset=11276, fee_offset=11312, tick_spacing_offset=11240,
    ),
    "uniswap": StorageLayout(
        slot0_slot=0, liquidity_slot=4, ticks_slot=5, tick_bitmap_slot=6,
        token0_offset=2257, token1_offset=10528, fee_offset=10564, tick_spacing_offset=10492,
    ),
}

def get_layout(name: str) -> StorageLayout:
    try:
        return LAYOUTS[name.lower()]
    except KeyError:
        raise ValueError(f"Unknown storage layout {name!r}; expected one of {sorted(LAYOUTS)}") from None

@dataclass(slots=True, frozen=True)
class ProtocolCall:
    version: ProtocolVersion
    method: str
    options: dict[str, Any] = field(default_factory=dict)

def v2_call() -> ProtocolCall:
    return ProtocolCall(version="v2", method=V2_METHOD, options={})

def v3_call(layout: StorageLayout) -> ProtocolCall:
    return ProtocolCall(version="v3", method=V3_METHOD, options=layout.to_options())

@dataclass(slots=True, frozen=True)
class RunSettings:
    rpc_url: str = DEFAULT_RPC_URL
    v2_addresses: str = DEFAULT_V2_ADDRESSES
    v3_addresses: str = DEFAULT_V3_ADDRESSES
    out_dir: str = DEFAULT_OUT_DIR
    layout: StorageLayout = field(default_factory=lambda: LAYOUTS["pancake"])
    concurrency: int = 1
    timeout_s: float = 20
