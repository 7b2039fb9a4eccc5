# poolsnap/ports/rpc.py
from __future__ import annotations

from typing import Any, Mapping, Protocol
from ..domain.value_types import Address


class PoolStateRPC(Protocol):
    """Port for the node-side pool state readers (arb_getUniswapV2Pair / arb_getUniswapV3Pool)."""

    async def get_pool_state(
        self,
        method: str,
        address: Address,
        options: Mapping[str, Any],
    ) -> Mapping[str, Any]:
        """Return the raw `result` mapping for `address` at the latest block."""

    async def aclose(self) -> None:
        """Release the underlying connection pool."""
