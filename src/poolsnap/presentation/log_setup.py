from __future__ import annotations
import logging

from rich.console import Console
from rich.logging import RichHandler

def setup_logging(level: str = "INFO", console: Console | None = None) -> None:
    """Route stdlib logging through rich; stderr so stdout stays for summaries."""
    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
        markup=False,
    )
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[handler],
        force=True,
    )
    # one line per request is enough
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
