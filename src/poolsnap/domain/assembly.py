from __future__ import annotations

from typing import Any

from .decoding import decode_slot0, get_or, normalize_ticks
from .models import PLACEHOLDER_HEX, PoolSnapshot, PoolStore, V2Store, V3Store
from .value_types import ProtocolVersion


def _v2_store(raw: Any) -> V2Store:
    return V2Store(
        reserve0=get_or(raw, "reserve0", PLACEHOLDER_HEX),
        reserve1=get_or(raw, "reserve1", PLACEHOLDER_HEX),
    )

def _v3_store(raw: Any) -> V3Store:
    return V3Store(
        fee=get_or(raw, "fee", PLACEHOLDER_HEX),
        tick_spacing=get_or(raw, "tickSpacing", PLACEHOLDER_HEX),
        liquidity=get_or(raw, "liquidity", PLACEHOLDER_HEX),
        tick_bitmap=get_or(raw, "tickBitmap", {}),
        ticks=normalize_ticks(get_or(raw, "ticks", {})),
        slot0=decode_slot0(get_or(raw, "slot0", "")),
    )

_STORE_BUILDERS = {"v2": _v2_store, "v3": _v3_store}

def assemble(version: ProtocolVersion, raw_result: Any, state_block: int) -> PoolSnapshot:
    """Build the canonical snapshot for one pool from the RPC `result` mapping."""
    try:
        build = _STORE_BUILDERS[version]
    except KeyError:
        raise ValueError(f"Unknown protocol version: {version!r}") from None
    store: PoolStore = build(raw_result)
    return PoolSnapshot(
        state_block=state_block,
        store=store,
        address=get_or(raw_result, "address", ""),
        token0=get_or(raw_result, "token0", ""),
        token1=get_or(raw_result, "token1", ""),
    )
