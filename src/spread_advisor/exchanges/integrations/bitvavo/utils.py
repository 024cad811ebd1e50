"""
Bitvavo payload normalization.

Direct functions turning Bitvavo JSON into unified structs. Numeric fields
arrive as strings; missing or invalid numbers become NaN.
"""

import math
from typing import Any, Dict, Optional

import msgspec

from spread_advisor.exchanges.structs import (
    BookSnapshot, BookUpdate, MarketSpecification, MarketStatus, Ticker24h, TickerBook
)
from spread_advisor.exchanges.utils import split_market_id
from spread_advisor.utils.math_utils import parse_number, count_decimal_places
from .structs.exchange import BitvavoOrderBookResponse, BitvavoBookEvent

_STATUS_MAP = {
    'trading': MarketStatus.TRADING,
    'halted': MarketStatus.HALTED,
    'auction': MarketStatus.AUCTION,
    'auctionmatching': MarketStatus.AUCTION,
}


def _first(payload: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if payload.get(key) is not None:
            return payload[key]
    return None


def _positive_or_nan(value: Any) -> float:
    number = parse_number(value)
    return number if number > 0 else math.nan


def _non_negative_or_nan(value: Any) -> float:
    number = parse_number(value)
    return number if number >= 0 else math.nan


def to_book_snapshot(data: Any, market: str, timestamp: int = 0) -> BookSnapshot:
    """
    Convert a REST book payload. A missing nonce becomes 0 so the
    synchronizer rejects the snapshot as malformed.
    """
    response = msgspec.convert(data, BitvavoOrderBookResponse)
    return BookSnapshot(
        market=response.market or market,
        nonce=response.nonce or 0,
        bids=response.bids,
        asks=response.asks,
        timestamp=timestamp,
    )


def to_book_update(event: BitvavoBookEvent, timestamp: int = 0) -> BookUpdate:
    return BookUpdate(
        market=event.market,
        nonce=event.nonce,
        bids=event.bids,
        asks=event.asks,
        timestamp=timestamp,
    )


def to_market_specification(payload: Dict[str, Any]) -> Optional[MarketSpecification]:
    market = str(_first(payload, 'market', 'Market') or '').upper()
    if '-' not in market:
        return None
    base, quote = split_market_id(market)
    status = str(_first(payload, 'status', 'state') or '').lower()

    tick = _positive_or_nan(_first(payload, 'tickSize', 'priceTickSize', 'stepSize'))
    min_quote = _non_negative_or_nan(_first(payload, 'minOrderInQuoteAsset', 'minQuoteAmount', 'minOrderInQuote'))
    decimals = _non_negative_or_nan(_first(payload, 'priceDecimals', 'decimalsPrice'))

    return MarketSpecification(
        market=market,
        base=base,
        quote=quote,
        status=_STATUS_MAP.get(status, MarketStatus.UNKNOWN),
        tick_size=tick if math.isfinite(tick) else None,
        price_precision=int(decimals) if math.isfinite(decimals) else (
            count_decimal_places(tick) if math.isfinite(tick) else None),
        min_order_quote=min_quote if math.isfinite(min_quote) else None,
    )


def to_ticker_24h(payload: Dict[str, Any], market: str, now_ms: int) -> Ticker24h:
    timestamp = parse_number(_first(payload, 'timestamp', 'time'))
    return Ticker24h(
        market=str(payload.get('market') or market).upper(),
        last=_positive_or_nan(_first(payload, 'last', 'price', 'lastPrice')),
        high=_positive_or_nan(payload.get('high')),
        low=_positive_or_nan(payload.get('low')),
        volume=_non_negative_or_nan(_first(payload, 'volume', 'amount', 'baseVolume')),
        volume_quote=_non_negative_or_nan(_first(payload, 'volumeQuote', 'quoteVolume')),
        bid=_positive_or_nan(_first(payload, 'bid', 'bestBid')),
        ask=_positive_or_nan(_first(payload, 'ask', 'bestAsk')),
        timestamp=int(timestamp) if timestamp > 0 else now_ms,
    )


def to_ticker_book(payload: Dict[str, Any], market: str) -> TickerBook:
    return TickerBook(
        market=str(payload.get('market') or market).upper(),
        bid=_positive_or_nan(payload.get('bid')),
        bid_size=_non_negative_or_nan(_first(payload, 'bidSize', 'sizeBid')),
        ask=_positive_or_nan(payload.get('ask')),
        ask_size=_non_negative_or_nan(_first(payload, 'askSize', 'sizeAsk')),
    )
