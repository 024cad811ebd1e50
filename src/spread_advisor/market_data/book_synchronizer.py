"""
Local order book kept in sync from a REST snapshot plus sequenced diffs.

Sequence numbers (nonces) fence every mutation: once synced, only the
direct successor of the last applied nonce is applied. Anything older is a
duplicate and is dropped; anything newer means messages were lost, so the
book is discarded and the owner must fetch a fresh snapshot. Diffs that
arrive while no snapshot is loaded are queued and replayed after it.

Levels are keyed by normalized Decimal prices so "0.50" and "0.5" address
the same level. Sorted, depth-capped float views are rebuilt after every
mutation batch.
"""

import time
from collections import deque
from decimal import Decimal
from enum import Enum
from typing import Callable, Deque, Iterable, Optional, Tuple

from sortedcontainers import SortedDict

from spread_advisor.exchanges.structs import BookSnapshot, BookTick, BookUpdate, FeedSource, PriceLevel
from spread_advisor.exchanges.utils import is_valid_level
from spread_advisor.infrastructure.exceptions.market_data import MalformedSnapshotError
from spread_advisor.infrastructure.logging import HFTLoggerInterface, get_logger
from spread_advisor.utils.math_utils import parse_number, to_price_key


class SyncState(Enum):
    UNSYNCED = "unsynced"
    SYNCED = "synced"


class SyncStatus(Enum):
    """Outcome of feeding one snapshot or diff."""
    APPLIED = "applied"
    QUEUED = "queued"
    DUPLICATE = "duplicate"
    GAP = "gap"
    REJECTED = "rejected"


TickHandler = Callable[[BookTick], None]


def _level_updates(rows: Iterable) -> Iterable[Tuple[Decimal, float]]:
    """(price key, size) pairs; rows with unusable price or size are skipped."""
    if not isinstance(rows, (list, tuple)):
        return
    for row in rows:
        if not isinstance(row, (list, tuple)) or len(row) < 2:
            continue
        key = to_price_key(row[0])
        size = parse_number(row[1])
        if key is None or size != size:  # NaN size
            continue
        yield key, size


class BookSynchronizer:
    """
    Owner of the canonical local book for one market.

    Single-writer: call only from the event loop thread. ``on_update``
    receives a fresh ``ws`` tick after every successful snapshot and diff.
    """

    __slots__ = ('market', 'depth', 'max_pending', 'logger', '_on_update', '_clock',
                 '_bids', '_asks', '_bid_view', '_ask_view', '_state', '_last_sequence',
                 '_pending', '_last_update_ms')

    def __init__(self, market: str, depth: int = 25, max_pending: int = 1000,
                 on_update: Optional[TickHandler] = None,
                 clock: Callable[[], float] = time.time,
                 logger: Optional[HFTLoggerInterface] = None):
        self.market = market
        self.depth = depth
        self.max_pending = max_pending
        self.logger = logger or get_logger(f"market_data.{self.__class__.__name__}")
        self._on_update = on_update
        self._clock = clock

        # Descending keys for bids (highest price first), ascending for asks
        self._bids: SortedDict = SortedDict(lambda price: -price)
        self._asks: SortedDict = SortedDict()
        self._bid_view: Tuple[PriceLevel, ...] = ()
        self._ask_view: Tuple[PriceLevel, ...] = ()

        self._state = SyncState.UNSYNCED
        self._last_sequence = 0
        self._pending: Deque[BookUpdate] = deque(maxlen=max_pending)
        self._last_update_ms = 0

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state == SyncState.SYNCED

    @property
    def last_applied_sequence(self) -> int:
        return self._last_sequence

    @property
    def bids(self) -> Tuple[PriceLevel, ...]:
        return self._bid_view

    @property
    def asks(self) -> Tuple[PriceLevel, ...]:
        return self._ask_view

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def apply_snapshot(self, snapshot: BookSnapshot) -> SyncStatus:
        """
        Replace the book with ``snapshot`` and replay queued diffs.

        Raises:
            MalformedSnapshotError: non-positive nonce or an empty side; the
                current state is left untouched.

        Returns:
            APPLIED, or GAP when the queued diffs do not continue from the
            snapshot (the book is then UNSYNCED again and needs a new one).
        """
        nonce = snapshot.nonce
        if not isinstance(nonce, int) or isinstance(nonce, bool) or nonce <= 0:
            raise MalformedSnapshotError(f"Snapshot without a valid nonce: {nonce!r}", self.market, None)

        bids = {key: size for key, size in _level_updates(snapshot.bids) if is_valid_level(float(key), size)}
        asks = {key: size for key, size in _level_updates(snapshot.asks) if is_valid_level(float(key), size)}
        if not bids or not asks:
            raise MalformedSnapshotError(
                f"Snapshot {nonce} has an empty side (bids={len(bids)}, asks={len(asks)})",
                self.market, nonce)

        self._bids.clear()
        self._bids.update(bids)
        self._asks.clear()
        self._asks.update(asks)
        self._last_sequence = nonce
        self._state = SyncState.SYNCED
        self._last_update_ms = snapshot.timestamp or self._now_ms()

        self.logger.info("Snapshot applied", market=self.market, nonce=nonce,
                         bids=len(bids), asks=len(asks), pending=len(self._pending))
        self.logger.counter("book_snapshot")

        status = self._replay_pending()
        if status == SyncStatus.GAP:
            return status

        self._rebuild_views()
        self._emit()
        return SyncStatus.APPLIED

    def _replay_pending(self) -> SyncStatus:
        pending = sorted(self._pending, key=lambda update: update.nonce)
        self._pending.clear()

        replayed = 0
        for update in pending:
            if update.nonce <= self._last_sequence:
                continue
            if update.nonce != self._last_sequence + 1:
                self.logger.warning("Gap while replaying queued diffs",
                                    market=self.market,
                                    expected=self._last_sequence + 1,
                                    received=update.nonce)
                self.reset("replay gap")
                self.logger.counter("book_gap")
                return SyncStatus.GAP
            self._apply_levels(update)
            replayed += 1

        if replayed:
            self.logger.debug("Replayed queued diffs", market=self.market, count=replayed,
                              nonce=self._last_sequence)
        return SyncStatus.APPLIED

    def apply_diff(self, update: BookUpdate) -> SyncStatus:
        """
        Apply one sequenced diff.

        Returns:
            APPLIED (tick emitted), QUEUED (no snapshot yet), DUPLICATE
            (stale, ignored), GAP (book reset, resync required) or REJECTED
            (non-positive nonce).
        """
        nonce = update.nonce
        if not isinstance(nonce, int) or isinstance(nonce, bool) or nonce <= 0:
            self.logger.warning("Diff without a valid nonce rejected", market=self.market, nonce=nonce)
            return SyncStatus.REJECTED

        if self._state != SyncState.SYNCED:
            if len(self._pending) == self.max_pending:
                self.logger.warning("Pending diff queue full, dropping oldest", market=self.market,
                                    max_pending=self.max_pending)
            self._pending.append(update)
            return SyncStatus.QUEUED

        if nonce <= self._last_sequence:
            self.logger.debug("Duplicate diff ignored", market=self.market, nonce=nonce,
                              last=self._last_sequence)
            self.logger.counter("book_duplicate")
            return SyncStatus.DUPLICATE

        if nonce != self._last_sequence + 1:
            self.logger.warning("Sequence gap detected, resync required",
                                market=self.market,
                                expected=self._last_sequence + 1,
                                received=nonce)
            self.logger.counter("book_gap")
            self.reset("sequence gap")
            self._pending.append(update)
            return SyncStatus.GAP

        self._apply_levels(update)
        self._rebuild_views()
        self._emit()
        self.logger.counter("book_diff")
        return SyncStatus.APPLIED

    def _apply_levels(self, update: BookUpdate) -> None:
        for side, rows in ((self._bids, update.bids), (self._asks, update.asks)):
            for key, size in _level_updates(rows):
                if size <= 0:
                    side.pop(key, None)
                else:
                    side[key] = size
        self._last_sequence = update.nonce
        self._last_update_ms = update.timestamp or self._now_ms()

    def _rebuild_views(self) -> None:
        self._bid_view = tuple(PriceLevel(price=float(price), size=size)
                               for price, size in self._bids.items()[:self.depth])
        self._ask_view = tuple(PriceLevel(price=float(price), size=size)
                               for price, size in self._asks.items()[:self.depth])

    def reset(self, reason: str = "reset") -> None:
        """Drop all book state; the next usable input is a snapshot."""
        if self._state == SyncState.SYNCED or self._bids or self._asks:
            self.logger.info("Order book reset", market=self.market, reason=reason,
                             last_nonce=self._last_sequence)
        self._bids.clear()
        self._asks.clear()
        self._bid_view = ()
        self._ask_view = ()
        self._pending.clear()
        self._last_sequence = 0
        self._state = SyncState.UNSYNCED

    def build_tick(self, source: FeedSource = FeedSource.WS) -> Optional[BookTick]:
        """Top-of-book tick from the current views, or None when a side is empty."""
        return BookTick.from_levels(self._bid_view, self._ask_view, self._last_update_ms, source)

    def _emit(self) -> None:
        if self._on_update is None:
            return
        tick = self.build_tick(FeedSource.WS)
        if tick is not None:
            self._on_update(tick)
