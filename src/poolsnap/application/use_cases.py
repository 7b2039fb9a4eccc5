from __future__ import annotations
import asyncio
import logging
from typing import Callable, Sequence

from poolsnap.adapters.address_file import TextFileAddressSource
from ..domain.assembly import assemble
from ..domain.decoding import parse_block_number
from ..domain.errors import (
    MalformedResponse, NonSuccessResponse, SinkFailure, SourceUnavailable, TransportFailure,
)
from ..domain.value_types import Address, Status
from ..ports.rpc import PoolStateRPC
from ..ports.storage import AddressSource, SnapshotSink
from .config import ProtocolCall, RunSettings, v2_call, v3_call

log = logging.getLogger(__name__)

ItemCallback = Callable[[Address, Status], None]


def load_addresses(source: AddressSource) -> list[Address]:
    """Missing/unreadable source -> warning and an empty list."""
    try:
        return source.addresses()
    except SourceUnavailable as e:
        log.warning("%s; continuing with no addresses", e)
        return []


async def snapshot_pool(
    *,
    rpc: PoolStateRPC,
    sink: SnapshotSink,
    protocol: ProtocolCall,
    address: Address,
) -> str:
    """Fetch, assemble and persist one pool. Errors propagate to the caller."""
    raw = await rpc.get_pool_state(protocol.method, address, protocol.options)
    snapshot = assemble(protocol.version, raw, parse_block_number(raw))
    return await sink.write(snapshot, address)


async def snapshot_pools(
    *,
    rpc: PoolStateRPC,
    sink: SnapshotSink,
    protocol: ProtocolCall,
    addresses: Sequence[Address],
    concurrency: int = 1,
    on_item: ItemCallback | None = None,
) -> dict[str, int]:
    processed_ok = processed_failed = 0
    sem = asyncio.Semaphore(max(1, concurrency))

    async def worker(address: Address) -> None:
        nonlocal processed_ok, processed_failed
        status: Status = "failed"
        async with sem:
            try:
                path = await snapshot_pool(rpc=rpc, sink=sink, protocol=protocol, address=address)
            except TransportFailure as e:
                log.warning("Request failed: %s", e)
            except NonSuccessResponse as e:
                log.error("Error: %s - %s [address=%s]", e.status_code, e.body, address)
            except MalformedResponse as e:
                log.error("Failed to parse JSON response: %s", e)
            except SinkFailure as e:
                log.error("%s", e)
            else:
                log.info("Response saved to %s", path)
                status = "done"
        if status == "done":
            processed_ok += 1
        else:
            processed_failed += 1
        if on_item is not None:
            on_item(address, status)

    await asyncio.gather(*(worker(a) for a in addresses))

    return {
        "processed_ok": processed_ok,
        "processed_failed": processed_failed,
        "total": len(addresses),
    }


async def run_snapshot(
    *,
    settings: RunSettings,
    rpc: PoolStateRPC,
    sink: SnapshotSink,
    on_start: Callable[[ProtocolCall, int], None] | None = None,
    on_item: ItemCallback | None = None,
) -> dict[str, dict[str, int]]:
    """V2 list first, then V3; each protocol runs to completion before the next."""
    plan = [
        (v2_call(), TextFileAddressSource(settings.v2_addresses)),
        (v3_call(settings.layout), TextFileAddressSource(settings.v3_addresses)),
    ]
    results: dict[str, dict[str, int]] = {}
    for protocol, source in plan:
        addresses = load_addresses(source)
        if on_start is not None:
            on_start(protocol, len(addresses))
        results[protocol.version] = await snapshot_pools(
            rpc=rpc, sink=sink, protocol=protocol, addresses=addresses,
            concurrency=settings.concurrency, on_item=on_item,
        )
    return results
