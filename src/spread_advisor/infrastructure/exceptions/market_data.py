from typing import Optional


class BookSyncError(Exception):
    """Base exception for local order book synchronization failures."""

    def __init__(self, message: str, market: Optional[str] = None, nonce: Optional[int] = None):
        self.market = market
        self.nonce = nonce
        super().__init__(message)


class MalformedSnapshotError(BookSyncError):
    """Snapshot without a usable nonce or with an empty book side."""
    pass
