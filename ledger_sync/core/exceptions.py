"""
Exception hierarchy for the ledger sync service.

Fatal errors (codec, RPC, remote) propagate out of the poller and end the
process. Storage-side errors are handled locally by the persistence writer.
"""

from typing import Optional


class LedgerSyncError(Exception):
    """Base class for all ledger sync errors."""


class CodecError(LedgerSyncError):
    """Malformed hex text or binary payload."""


class RpcError(LedgerSyncError):
    """The RPC call failed or returned something other than a hex string."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class RemoteError(LedgerSyncError):
    """The remote source answered with an application-level ``Err``."""

    def __init__(self, method: str, message: str):
        self.method = method
        self.message = message
        super().__init__(f"{method} returned error: {message}")


class UnsupportedOperationError(LedgerSyncError):
    """No storage mapping exists for an (entity type, operation) pair."""
