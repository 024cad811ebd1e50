from .common import (
    RawLevel, PriceLevel, BookSnapshot, BookUpdate, DepthSummary, BookTick,
    MarketSpecification, Ticker24h, TickerBook
)
from .enums import FeedSource, BookSideType, MarketStatus

__all__ = [
    "RawLevel",
    "PriceLevel",
    "BookSnapshot",
    "BookUpdate",
    "DepthSummary",
    "BookTick",
    "MarketSpecification",
    "Ticker24h",
    "TickerBook",
    "FeedSource",
    "BookSideType",
    "MarketStatus",
]
