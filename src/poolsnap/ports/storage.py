# poolsnap/ports/storage.py
from __future__ import annotations

from typing import Protocol
from ..domain.models import PoolSnapshot
from ..domain.value_types import Address


class AddressSource(Protocol):
    """Port yielding the ordered pool addresses to snapshot."""

    def addresses(self) -> list[Address]:
        """Return addresses in source order. Raises SourceUnavailable."""


class SnapshotSink(Protocol):
    """Port for persisting one snapshot document (e.g., a JSON file)."""

    async def write(self, snapshot: PoolSnapshot, address: Address) -> str:
        """Persist the snapshot keyed by protocol prefix and address; return its location."""
