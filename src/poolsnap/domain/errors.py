"""
Snapshot pipeline exceptions.

Every error is scoped to a single pool address: the use case catches them,
logs them and moves on to the next address.
"""
from __future__ import annotations


class SnapshotError(Exception):
    """Base exception for all snapshot pipeline errors."""

    def __init__(
        self,
        message: str,
        address: str | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.address = address
        self.original_error = original_error

    def __str__(self) -> str:
        parts = [self.message]
        if self.address:
            parts.append(f"[address={self.address}]")
        if self.original_error:
            parts.append(f"(caused by: {self.original_error})")
        return " ".join(parts)


class SourceUnavailable(SnapshotError):
    """Address list file missing or unreadable."""

    def __init__(self, message: str, path: str, original_error: Exception | None = None) -> None:
        super().__init__(message, original_error=original_error)
        self.path = path


class TransportFailure(SnapshotError):
    """Network-level failure while calling the RPC endpoint."""


class NonSuccessResponse(SnapshotError):
    """RPC endpoint answered with a non-2xx HTTP status."""

    def __init__(
        self,
        message: str,
        status_code: int,
        body: str,
        address: str | None = None,
    ) -> None:
        super().__init__(message, address=address)
        self.status_code = status_code
        self.body = body


class MalformedResponse(SnapshotError):
    """Response body is not a JSON object."""


class SinkFailure(SnapshotError):
    """Writing the snapshot document failed."""
