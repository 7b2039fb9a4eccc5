"""Pipeline behaviour: ordering, per-address isolation of failures, run plan."""

import json
import logging
import os

import httpx

from poolsnap.adapters.json_sink import JsonFileSnapshotSink
from poolsnap.adapters.rpc_httpx import HttpxPoolRPC
from poolsnap.application.config import LAYOUTS, RunSettings, v2_call, v3_call
from poolsnap.application.use_cases import load_addresses, run_snapshot, snapshot_pools
from poolsnap.adapters.address_file import TextFileAddressSource
from poolsnap.domain.errors import (
    MalformedResponse, NonSuccessResponse, SinkFailure, TransportFailure,
)
from poolsnap.domain.value_types import Address


class FakeRPC:
    """Returns canned results (or raises canned errors) keyed by address."""

    def __init__(self, responses: dict):
        self.responses = responses
        self.calls: list[tuple[str, str, dict]] = []

    async def get_pool_state(self, method, address, options):
        self.calls.append((method, address, dict(options)))
        res = self.responses.get(address, {})
        if isinstance(res, Exception):
            raise res
        return res

    async def aclose(self):
        pass


class FailingSink:
    def __init__(self, inner, fail_for: set[str]):
        self.inner = inner
        self.fail_for = fail_for

    async def write(self, snapshot, address):
        if address in self.fail_for:
            raise SinkFailure("disk full", address=address)
        return await self.inner.write(snapshot, address)


def _read(path):
    with open(path) as f:
        return json.load(f)


class TestSnapshotPools:

    async def test_v2_batch_writes_documents(self, tmp_path):
        rpc = FakeRPC({
            "0xA": {"blockNumber": "0x64", "reserve0": "0x5", "reserve1": "0xa", "address": "0xA"},
            "0xB": {"blockNumber": "0x65"},
        })
        sink = JsonFileSnapshotSink(str(tmp_path))
        res = await snapshot_pools(rpc=rpc, sink=sink, protocol=v2_call(),
                                   addresses=[Address("0xA"), Address("0xB")])
        assert res == {"processed_ok": 2, "processed_failed": 0, "total": 2}
        assert [c[1] for c in rpc.calls] == ["0xA", "0xB"]
        assert all(c[0] == "arb_getUniswapV2Pair" and c[2] == {} for c in rpc.calls)

        doc = _read(tmp_path / "v2.0xA.json")
        assert doc["state_block"] == 100
        assert doc["pool"]["store"]["reserve1"] == "0xa"
        assert _read(tmp_path / "v2.0xB.json")["pool"]["address"] == ""

    async def test_v3_request_carries_layout(self, tmp_path):
        rpc = FakeRPC({})
        layout = LAYOUTS["pancake"]
        await snapshot_pools(rpc=rpc, sink=JsonFileSnapshotSink(str(tmp_path)),
                             protocol=v3_call(layout), addresses=[Address("0xC")])
        method, _, options = rpc.calls[0]
        assert method == "arb_getUniswapV3Pool"
        assert options == {
            "slot0Slot": 0, "liquiditySlot": 5, "ticksSlot": 6, "tickBitmapSlot": 7,
            "token0Offset": 2323, "token1Offset": 11276, "feeOffset": 11312, "tickSpacingOffset": 11240,
        }
        assert _read(tmp_path / "v3.0xC.json")["pool"]["store"]["slot0"] == {}

    async def test_failures_are_isolated(self, tmp_path, caplog):
        caplog.set_level(logging.INFO)
        rpc = FakeRPC({
            "0x1": TransportFailure("request failed", address="0x1"),
            "0x2": NonSuccessResponse("HTTP 500", status_code=500, body="boom", address="0x2"),
            "0x3": MalformedResponse("not JSON", address="0x3"),
            "0x4": {"reserve0": "0x4"},
            "0x5": {"reserve0": "0x5"},
        })
        sink = FailingSink(JsonFileSnapshotSink(str(tmp_path)), fail_for={"0x4"})
        seen = []
        res = await snapshot_pools(
            rpc=rpc, sink=sink, protocol=v2_call(),
            addresses=[Address(a) for a in ("0x1", "0x2", "0x3", "0x4", "0x5")],
            on_item=lambda a, s: seen.append((a, s)),
        )
        assert res == {"processed_ok": 1, "processed_failed": 4, "total": 5}
        assert seen == [("0x1", "failed"), ("0x2", "failed"), ("0x3", "failed"),
                        ("0x4", "failed"), ("0x5", "done")]
        assert sorted(os.listdir(tmp_path)) == ["v2.0x5.json"]

        levels = {r.levelno for r in caplog.records}
        assert logging.WARNING in levels and logging.ERROR in levels
        assert any("500" in r.getMessage() and "boom" in r.getMessage() for r in caplog.records)
        assert any("Response saved to" in r.getMessage() for r in caplog.records)

    async def test_concurrency_gives_same_documents(self, tmp_path):
        responses = {f"0x{i}": {"blockNumber": hex(i), "reserve0": hex(i * 10)} for i in range(1, 9)}
        seq_dir, par_dir = tmp_path / "seq", tmp_path / "par"
        for out, conc in ((seq_dir, 1), (par_dir, 4)):
            await snapshot_pools(rpc=FakeRPC(responses), sink=JsonFileSnapshotSink(str(out)),
                                 protocol=v2_call(), addresses=list(responses), concurrency=conc)
        for name in os.listdir(seq_dir):
            assert _read(seq_dir / name) == _read(par_dir / name)
        assert len(os.listdir(par_dir)) == 8

    async def test_empty_address_list(self, tmp_path):
        res = await snapshot_pools(rpc=FakeRPC({}), sink=JsonFileSnapshotSink(str(tmp_path)),
                                   protocol=v2_call(), addresses=[])
        assert res == {"processed_ok": 0, "processed_failed": 0, "total": 0}


class TestRunSnapshot:

    def test_missing_source_logs_warning(self, tmp_path, caplog):
        caplog.set_level(logging.WARNING)
        assert load_addresses(TextFileAddressSource(str(tmp_path / "missing.txt"))) == []
        assert any("missing.txt" in r.getMessage() for r in caplog.records)

    async def test_v2_then_v3(self, tmp_path):
        v2 = tmp_path / "v2.txt"
        v3 = tmp_path / "v3.txt"
        v2.write_text("0xPair1\n0xPair2\n")
        v3.write_text("0xPool1\n")
        settings = RunSettings(v2_addresses=str(v2), v3_addresses=str(v3),
                               out_dir=str(tmp_path / "out"), layout=LAYOUTS["uniswap"])
        rpc = FakeRPC({})
        started = []
        res = await run_snapshot(settings=settings, rpc=rpc, sink=JsonFileSnapshotSink(settings.out_dir),
                                 on_start=lambda p, n: started.append((p.version, n)))
        assert started == [("v2", 2), ("v3", 1)]
        assert [c[1] for c in rpc.calls] == ["0xPair1", "0xPair2", "0xPool1"]
        assert rpc.calls[2][2]["liquiditySlot"] == 4
        assert res["v2"]["processed_ok"] == 2
        assert res["v3"]["processed_ok"] == 1
        assert sorted(os.listdir(tmp_path / "out")) == ["v2.0xPair1.json", "v2.0xPair2.json", "v3.0xPool1.json"]

    async def test_missing_v2_file_still_runs_v3(self, tmp_path):
        v3 = tmp_path / "v3.txt"
        v3.write_text("0xPool1\n")
        settings = RunSettings(v2_addresses=str(tmp_path / "absent.txt"), v3_addresses=str(v3),
                               out_dir=str(tmp_path / "out"))
        res = await run_snapshot(settings=settings, rpc=FakeRPC({}), sink=JsonFileSnapshotSink(settings.out_dir))
        assert res["v2"] == {"processed_ok": 0, "processed_failed": 0, "total": 0}
        assert res["v3"]["processed_ok"] == 1


class TestSnapshotPoolsOverHttp:
    """Same pipeline, real httpx adapter on a mock transport."""

    async def test_rpc_error_member_writes_default_document(self, tmp_path):
        body = {"jsonrpc": "2.0", "id": 1, "error": {"code": -32000, "message": "pool not found"}}
        rpc = HttpxPoolRPC("http://node.test", transport=httpx.MockTransport(lambda r: httpx.Response(200, json=body)))
        async with rpc:
            res = await snapshot_pools(rpc=rpc, sink=JsonFileSnapshotSink(str(tmp_path)),
                                       protocol=v2_call(), addresses=[Address("0xP")])
        assert res["processed_ok"] == 1
        assert os.listdir(tmp_path) == ["v2.0xP.json"]
        doc = _read(tmp_path / "v2.0xP.json")
        assert doc["state_block"] == 0
        assert doc["pool"]["store"]["reserve0"] == "0x0"
        assert doc["pool"]["address"] == ""

    async def test_invalid_url_does_not_stop_the_batch(self, tmp_path):
        def handler(request: httpx.Request) -> httpx.Response:
            if json.loads(request.content)["params"][0] == "0xBad":
                raise httpx.InvalidURL("Invalid port")
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": {"reserve0": "0x1"}})

        rpc = HttpxPoolRPC("http://node.test", transport=httpx.MockTransport(handler))
        async with rpc:
            res = await snapshot_pools(rpc=rpc, sink=JsonFileSnapshotSink(str(tmp_path)),
                                       protocol=v2_call(), addresses=[Address("0xBad"), Address("0xOk")])
        assert res == {"processed_ok": 1, "processed_failed": 1, "total": 2}
        assert os.listdir(tmp_path) == ["v2.0xOk.json"]
