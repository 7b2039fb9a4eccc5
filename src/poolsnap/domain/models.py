from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Literal, Union
from .value_types import DEX_NAME

# Inert values: these fields exist in the snapshot schema but are not computed yet.
PLACEHOLDER_HEX = "0x0"
FEE_PROTOCOL_PLACEHOLDER = PLACEHOLDER_HEX
FEE_GROWTH_PLACEHOLDER = PLACEHOLDER_HEX
PROTOCOL_FEES_PLACEHOLDER: dict[str, str] = {"token0": PLACEHOLDER_HEX, "token1": PLACEHOLDER_HEX}

V2_FEE = 2500

@dataclass(slots=True, frozen=True)
class DecodedSlot0:
    sqrt_price_x96: int          # uint160
    tick: int                    # int24
    fee_protocol: str = FEE_PROTOCOL_PLACEHOLDER

    def to_document(self) -> dict[str, str]:
        # big ints as decimal strings
        return {
            "fee_protocol": self.fee_protocol,
            "tick": str(self.tick),
            "sqrt_price_x96": str(self.sqrt_price_x96),
        }

@dataclass(slots=True, frozen=True)
class TickEntry:
    liquidity_gross: Any = PLACEHOLDER_HEX
    liquidity_net: Any = PLACEHOLDER_HEX
    fee_growth_outside_0x128: str = FEE_GROWTH_PLACEHOLDER
    fee_growth_outside_1x128: str = FEE_GROWTH_PLACEHOLDER

    def to_document(self) -> dict[str, Any]:
        return {
            "liquidity_gross": self.liquidity_gross,
            "liquidity_net": self.liquidity_net,
            "fee_growth_outside_0x128": self.fee_growth_outside_0x128,
            "fee_growth_outside_1x128": self.fee_growth_outside_1x128,
        }

@dataclass(slots=True, frozen=True)
class V2Store:
    reserve0: Any = PLACEHOLDER_HEX
    reserve1: Any = PLACEHOLDER_HEX
    fee: int = V2_FEE
    version: Literal["v2"] = "v2"
    protocol: Literal["V2Pair"] = "V2Pair"

    def to_document(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "protocol": self.protocol,
            "reserve0": self.reserve0,
            "reserve1": self.reserve1,
            "fee": self.fee,
        }

@dataclass(slots=True, frozen=True)
class V3Store:
    fee: Any = PLACEHOLDER_HEX
    tick_spacing: Any = PLACEHOLDER_HEX
    liquidity: Any = PLACEHOLDER_HEX
    tick_bitmap: Any = field(default_factory=dict)
    ticks: dict[str, TickEntry] = field(default_factory=dict)
    slot0: DecodedSlot0 | None = None   # None -> emitted as {}
    version: Literal["v3"] = "v3"
    protocol: Literal["V3Pool"] = "V3Pool"

    def to_document(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "protocol": self.protocol,
            "fee": self.fee,
            "tick_spacing": self.tick_spacing,
            "liquidity": self.liquidity,
            "tick_bitmap": self.tick_bitmap,
            "ticks": {k: t.to_document() for k, t in self.ticks.items()},
            "slot0": self.slot0.to_document() if self.slot0 is not None else {},
            "protocol_fees": dict(PROTOCOL_FEES_PLACEHOLDER),
            "fee_growth_global_0x128": FEE_GROWTH_PLACEHOLDER,
            "fee_growth_global_1x128": FEE_GROWTH_PLACEHOLDER,
        }

PoolStore = Union[V2Store, V3Store]

@dataclass(slots=True, frozen=True)
class PoolSnapshot:
    state_block: int             # uint64
    store: PoolStore
    address: Any = ""
    token0: Any = ""
    token1: Any = ""
    dex: str = DEX_NAME

    @property
    def protocol(self) -> Literal["V2", "V3"]:
        return "V2" if isinstance(self.store, V2Store) else "V3"

    @property
    def prefix(self) -> str:
        return self.store.version

    def to_document(self) -> dict[str, Any]:
        return {
            "state_block": self.state_block,
            "pool": {
                "store": self.store.to_document(),
                "address": self.address,
                "token0": self.token0,
                "token1": self.token1,
                "dex": self.dex,
                "protocol": self.protocol,
            },
        }
