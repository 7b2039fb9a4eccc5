import asyncio
from typing import Optional

import typer
from rich.console import Console
from rich.progress import (
    Progress, BarColumn, TextColumn, TimeElapsedColumn, MofNCompleteColumn, SpinnerColumn
)

from ..adapters.json_sink import JsonFileSnapshotSink
from ..adapters.rpc_httpx import HttpxPoolRPC
from ..application.config import (
    DEFAULT_OUT_DIR, DEFAULT_RPC_URL, DEFAULT_V2_ADDRESSES, DEFAULT_V3_ADDRESSES,
    LAYOUTS, ProtocolCall, RunSettings, get_layout,
)
from ..application.use_cases import run_snapshot
from ..domain.value_types import Address, Status
from .log_setup import setup_logging

app = typer.Typer(help="poolsnap — normalized AMM pool snapshots from a custom JSON-RPC reader.")
console = Console()


@app.callback()
def main() -> None:
    """poolsnap — normalized AMM pool snapshots from a custom JSON-RPC reader."""


@app.command()
def snapshot(
    rpc_url: str = typer.Option(DEFAULT_RPC_URL, "--rpc", envvar="POOLSNAP_RPC_URL", help="RPC endpoint URL"),
    v2_addresses: str = typer.Option(DEFAULT_V2_ADDRESSES, "--v2-addresses", envvar="POOLSNAP_V2_ADDRESSES",
                                     help="V2 pair address list, one per line"),
    v3_addresses: str = typer.Option(DEFAULT_V3_ADDRESSES, "--v3-addresses", envvar="POOLSNAP_V3_ADDRESSES",
                                     help="V3 pool address list, one per line"),
    out_dir: str = typer.Option(DEFAULT_OUT_DIR, "--out-dir", envvar="POOLSNAP_OUT_DIR", help="Snapshot directory"),
    layout: str = typer.Option("pancake", "--layout", envvar="POOLSNAP_LAYOUT",
                               help=f"V3 storage layout preset: {', '.join(sorted(LAYOUTS))}"),
    slot0_slot: Optional[int] = typer.Option(None, "--slot0-slot"),
    liquidity_slot: Optional[int] = typer.Option(None, "--liquidity-slot"),
    ticks_slot: Optional[int] = typer.Option(None, "--ticks-slot"),
    tick_bitmap_slot: Optional[int] = typer.Option(None, "--tick-bitmap-slot"),
    token0_offset: Optional[int] = typer.Option(None, "--token0-offset"),
    token1_offset: Optional[int] = typer.Option(None, "--token1-offset"),
    fee_offset: Optional[int] = typer.Option(None, "--fee-offset"),
    tick_spacing_offset: Optional[int] = typer.Option(None, "--tick-spacing-offset"),
    concurrency: int = typer.Option(1, "--concurrency", min=1, help="Max pools in flight (1 = sequential)"),
    timeout: float = typer.Option(20.0, "--timeout", help="HTTP timeout in seconds"),
    log_level: str = typer.Option("INFO", "--log-level", envvar="POOLSNAP_LOG_LEVEL"),
):
    """Snapshot every V2 pair, then every V3 pool, into one JSON document per address."""
    setup_logging(log_level)
    try:
        base = get_layout(layout)
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--layout") from e
    settings = RunSettings(
        rpc_url=rpc_url,
        v2_addresses=v2_addresses,
        v3_addresses=v3_addresses,
        out_dir=out_dir,
        layout=base.with_overrides(
            slot0_slot=slot0_slot, liquidity_slot=liquidity_slot, ticks_slot=ticks_slot,
            tick_bitmap_slot=tick_bitmap_slot, token0_offset=token0_offset, token1_offset=token1_offset,
            fee_offset=fee_offset, tick_spacing_offset=tick_spacing_offset,
        ),
        concurrency=concurrency,
        timeout_s=timeout,
    )

    async def run():
        progress = Progress(SpinnerColumn(),
                            TextColumn("[bold]{task.description}[/]"),
                            BarColumn(),
                            MofNCompleteColumn(),
                            TextColumn("•"),
                            TimeElapsedColumn(),
                            console=console,
                            transient=False,
                            expand=True,
                            )
        task_ids: dict[str, int] = {}
        current: list[str] = []

        def on_start(protocol: ProtocolCall, total: int) -> None:
            task_ids[protocol.version] = progress.add_task(f"{protocol.version} pools", total=total)
            current[:] = [protocol.version]

        def on_item(address: Address, status: Status) -> None:
            progress.advance(task_ids[current[0]], 1)

        sink = JsonFileSnapshotSink(settings.out_dir)
        with progress:
            async with HttpxPoolRPC(settings.rpc_url, timeout_s=settings.timeout_s) as rpc:
                return await run_snapshot(settings=settings, rpc=rpc, sink=sink,
                                          on_start=on_start, on_item=on_item)

    results = asyncio.run(run())
    for version, res in results.items():
        console.print(
            f"[bold]{version}[/]: "
            f"[green]processed_ok[/]={res['processed_ok']}  "
            f"[red]processed_failed[/]={res['processed_failed']}  "
            f"(total={res['total']})"
        )


if __name__ == "__main__":
    app()
