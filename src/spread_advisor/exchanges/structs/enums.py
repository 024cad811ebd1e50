from enum import Enum


class FeedSource(str, Enum):
    """Provenance of a tick: authoritative push data or degraded polled data."""
    WS = "ws"
    POLL = "poll"


class BookSideType(str, Enum):
    BID = "bid"
    ASK = "ask"


class MarketStatus(str, Enum):
    TRADING = "trading"
    HALTED = "halted"
    AUCTION = "auction"
    UNKNOWN = "unknown"
