from __future__ import annotations

import re
from typing import Any, Mapping

from eth_utils import decode_hex

from .models import PLACEHOLDER_HEX, DecodedSlot0, TickEntry

SLOT0_WORD_SIZE = 32
MAX_U64 = (1 << 64) - 1
_HEX_DIGITS = re.compile(r"[0-9a-fA-F]+")

# ---------- field access ------------------------------------------------------

def get_or(mapping: Any, key: str, default: Any) -> Any:
    """The one place where an optional RPC field falls back to its default.

    A missing key, an explicit null, or a container that is not a mapping at
    all all yield `default`.
    """
    if not isinstance(mapping, Mapping):
        return default
    value = mapping.get(key)
    return default if value is None else value

# --------- 32B word slicing ---------------------------------------------------

def _int24(b: bytes) -> int:
    """Signed int24 from a 3-byte big-endian slice."""
    v = int.from_bytes(b, "big")
    return v - (1 << 24) if (v & (1 << 23)) else v

def _uint160(b: bytes) -> int:
    return int.from_bytes(b, "big")

def decode_slot0(word_hex: Any) -> DecodedSlot0 | None:
    """
    Decode the packed slot0 storage word.

    Layout (big-endian, 32 bytes): bytes [9,12) hold the tick as int24 and
    bytes [12,32) hold sqrtPriceX96 as uint160. The leading bytes (observation
    indices and feeProtocol) are not decoded; fee_protocol stays "0x0".
    Returns None for non-hex input or fewer than 32 bytes.
    """
    try:
        b = decode_hex(word_hex)
    except (TypeError, ValueError):
        return None
    if len(b) < SLOT0_WORD_SIZE:
        return None
    return DecodedSlot0(
        sqrt_price_x96=_uint160(b[12:32]),
        tick=_int24(b[9:12]),
    )

# ---------- ticks -------------------------------------------------------------

def normalize_ticks(raw_ticks: Any) -> dict[str, TickEntry]:
    """Map tick index -> camelCase RPC tick data onto canonical TickEntry values.

    Canonical snake_case keys are honoured when the camelCase key is absent, so
    feeding back an already normalized table leaves it unchanged. Fee growth
    outside is never read from the input.
    """
    if not isinstance(raw_ticks, Mapping):
        return {}
    out: dict[str, TickEntry] = {}
    for tick, data in raw_ticks.items():
        # snake_case only exists in our own output; read it back for idempotence
        gross = get_or(data, "liquidityGross", get_or(data, "liquidity_gross", PLACEHOLDER_HEX))
        net = get_or(data, "liquidityNet", get_or(data, "liquidity_net", PLACEHOLDER_HEX))
        out[str(tick)] = TickEntry(liquidity_gross=gross, liquidity_net=net)
    return out

# ---------- block number ------------------------------------------------------

def parse_block_number(raw_result: Any) -> int:
    """`blockNumber` hex -> u64; anything unparsable or out of range -> 0."""
    v = get_or(raw_result, "blockNumber", PLACEHOLDER_HEX)
    if not isinstance(v, str):
        return 0
    h = v[2:] if v[:2].lower() == "0x" else v
    if not _HEX_DIGITS.fullmatch(h):
        return 0
    n = int(h, 16)
    return n if 0 <= n <= MAX_U64 else 0
