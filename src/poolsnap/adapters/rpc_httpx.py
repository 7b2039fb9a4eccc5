from __future__ import annotations
import logging
from typing import Any, Mapping

import httpx

from ..domain.errors import MalformedResponse, NonSuccessResponse, TransportFailure
from ..domain.value_types import Address
from ..ports.rpc import PoolStateRPC

log = logging.getLogger(__name__)

BLOCK_TAG = "latest"

def build_payload(method: str, address: Address, options: Mapping[str, Any]) -> dict[str, Any]:
    return {"jsonrpc": "2.0", "id": 1, "method": method,
            "params": [str(address), BLOCK_TAG, dict(options)]}

class HttpxPoolRPC(PoolStateRPC):
    def __init__(
        self,
        rpc_url: str,
        timeout_s: float = 20,
        max_conn: int = 64,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.rpc_url = rpc_url
        self.client = httpx.AsyncClient(
            http2=True,
            timeout=httpx.Timeout(timeout_s),
            limits=httpx.Limits(max_connections=max_conn, max_keepalive_connections=max(1, max_conn//2)),
            transport=transport,
        )

    async def __aenter__(self) -> "HttpxPoolRPC":
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    async def get_pool_state(self, method: str, address: Address, options: Mapping[str, Any]) -> Mapping[str, Any]:
        payload = build_payload(method, address, options)
        log.debug("POST %s %s params=%s", self.rpc_url, method, payload["params"])
        try:
            r = await self.client.post(self.rpc_url, json=payload)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise TransportFailure(f"{method} request failed", address=address, original_error=e) from e

        if not r.is_success:
            raise NonSuccessResponse(f"{method} returned HTTP {r.status_code}",
                                     status_code=r.status_code, body=r.text, address=address)
        try:
            data = r.json()
        except ValueError as e:
            raise MalformedResponse(f"{method} response is not JSON", address=address, original_error=e) from e
        if not isinstance(data, dict):
            raise MalformedResponse(f"{method} response is not a JSON object", address=address)

        err = data.get("error")
        if err is not None:
            code = err.get("code") if isinstance(err, dict) else None
            msg = err.get("message") if isinstance(err, dict) else str(err)
            log.warning("%s returned RPC error code=%s message=%s [address=%s]; using defaults",
                        method, code, msg, address)
            return {}

        # a missing or odd `result` degrades to field defaults downstream, like an error member
        res = data.get("result")
        return res if isinstance(res, Mapping) else {}
