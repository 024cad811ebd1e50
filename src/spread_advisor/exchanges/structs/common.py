"""
Common market-data structures shared by exchange clients, the book
synchronizer and advice consumers. All structures use msgspec.Struct.
"""

from typing import List, Optional, Tuple, Union

from msgspec import Struct

from .enums import FeedSource, MarketStatus

# Raw level as received from a venue: [price, size], numbers or numeric strings
RawLevel = Union[List[Union[str, float]], Tuple[Union[str, float], Union[str, float]]]


class PriceLevel(Struct, frozen=True):
    """Individual order book level."""
    price: float
    size: float

    @property
    def notional(self) -> float:
        return self.price * self.size


class BookSnapshot(Struct):
    """Full order book as returned by a snapshot endpoint."""
    market: str
    nonce: int
    bids: List[RawLevel]
    asks: List[RawLevel]
    timestamp: int = 0


class BookUpdate(Struct):
    """Incremental book diff; a level with size 0 removes that price."""
    market: str
    nonce: int
    bids: List[RawLevel]
    asks: List[RawLevel]
    timestamp: int = 0


class DepthSummary(Struct, frozen=True):
    """Summed notional and volume over the visible levels of each side."""
    bid_notional: float = 0.0
    bid_volume: float = 0.0
    ask_notional: float = 0.0
    ask_volume: float = 0.0

    @classmethod
    def from_levels(cls, bids: Tuple[PriceLevel, ...], asks: Tuple[PriceLevel, ...]) -> "DepthSummary":
        return cls(
            bid_notional=sum(level.notional for level in bids),
            bid_volume=sum(level.size for level in bids),
            ask_notional=sum(level.notional for level in asks),
            ask_volume=sum(level.size for level in asks),
        )


class BookTick(Struct, frozen=True):
    """
    Top-of-book tick delivered to feed consumers.

    ``spread_pct`` is the spread as a percentage of mid; ``timestamp`` is in
    milliseconds.
    """
    bid: float
    ask: float
    spread_abs: float
    spread_pct: float
    mid: float
    depth: DepthSummary
    bids: Tuple[PriceLevel, ...]
    asks: Tuple[PriceLevel, ...]
    timestamp: int
    source: FeedSource

    @classmethod
    def from_levels(cls, bids: Tuple[PriceLevel, ...], asks: Tuple[PriceLevel, ...],
                    timestamp: int, source: FeedSource) -> Optional["BookTick"]:
        """Build a tick from sorted levels; None when either side is empty."""
        if not bids or not asks:
            return None
        bid = bids[0].price
        ask = asks[0].price
        mid = (bid + ask) / 2
        spread_abs = ask - bid
        return cls(
            bid=bid,
            ask=ask,
            spread_abs=spread_abs,
            spread_pct=spread_abs / mid * 100 if mid > 0 else float("nan"),
            mid=mid,
            depth=DepthSummary.from_levels(bids, asks),
            bids=bids,
            asks=asks,
            timestamp=timestamp,
            source=source,
        )


class MarketSpecification(Struct, frozen=True):
    """Trading rules for one market."""
    market: str
    base: str
    quote: str
    status: MarketStatus
    tick_size: Optional[float] = None
    price_precision: Optional[int] = None
    min_order_quote: Optional[float] = None


class Ticker24h(Struct, frozen=True):
    """Rolling 24h statistics."""
    market: str
    last: float
    high: float
    low: float
    volume: float
    volume_quote: float
    bid: float
    ask: float
    timestamp: int = 0


class TickerBook(Struct, frozen=True):
    """Best bid/ask only."""
    market: str
    bid: float
    bid_size: float
    ask: float
    ask_size: float
