"""
Bitvavo public REST client.

Market data only: order book snapshots, market specification (tick size),
24h ticker statistics and best bid/ask.
"""

import time
from typing import Any, Callable, Optional

import aiohttp
import msgspec

from spread_advisor.config.structs import RestConfig, DEFAULT_DEPTH
from spread_advisor.exchanges.structs import BookSnapshot, MarketSpecification, Ticker24h, TickerBook
from spread_advisor.exchanges.utils import normalize_market_id, sanitize_depth
from spread_advisor.infrastructure.exceptions.exchange import (
    ExchangeRestError, InvalidSymbolError, TooManyRequestsError
)
from spread_advisor.infrastructure.logging import HFTLoggerInterface
from spread_advisor.infrastructure.networking.http.rest_client import BaseRestClient
from spread_advisor.infrastructure.networking.http.structs import HTTPMethod
from ..structs.exchange import BitvavoErrorResponse
from ..utils import to_book_snapshot, to_market_specification, to_ticker_24h, to_ticker_book

# errorCode values meaning "unknown market"
_INVALID_MARKET_CODES = {205, 240}
_RATE_LIMIT_CODES = {105, 112}


class BitvavoPublicRest(BaseRestClient):
    """Unauthenticated Bitvavo REST client."""

    def __init__(self, config: Optional[RestConfig] = None, logger: Optional[HFTLoggerInterface] = None,
                 session: Optional[aiohttp.ClientSession] = None, clock: Callable[[], float] = time.time):
        super().__init__(config or RestConfig(), logger=logger, session=session)
        self._clock = clock

    @property
    def exchange_name(self) -> str:
        return "Bitvavo"

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def _handle_error(self, status: int, response_text: str) -> Exception:
        try:
            error = msgspec.json.decode(response_text, type=BitvavoErrorResponse)
        except (msgspec.DecodeError, msgspec.ValidationError):
            return super()._handle_error(status, response_text)

        message = error.error or response_text[:200]
        if status == 429 or error.errorCode in _RATE_LIMIT_CODES:
            return TooManyRequestsError(status, message, error.errorCode)
        if error.errorCode in _INVALID_MARKET_CODES:
            return InvalidSymbolError(status, message, error.errorCode)
        base_error = super()._handle_error(status, message)
        if isinstance(base_error, ExchangeRestError):
            base_error.api_code = error.errorCode
        return base_error

    async def get_orderbook(self, market: str, depth: int = DEFAULT_DEPTH) -> BookSnapshot:
        """
        Fetch a full book snapshot.

        Raises ExchangeRestError subclasses on transport/HTTP failure or an
        unparseable payload. The nonce and sides are validated by the book
        synchronizer, not here.
        """
        market_id = normalize_market_id(market)
        data = await self.request(HTTPMethod.GET, f"/{market_id}/book",
                                  params={'depth': sanitize_depth(depth)})
        try:
            return to_book_snapshot(data, market_id, timestamp=self._now_ms())
        except msgspec.ValidationError as e:
            raise ExchangeRestError(400, f"Unexpected orderbook payload for {market_id}: {e}") from e

    async def get_market_specification(self, market: str) -> Optional[MarketSpecification]:
        market_id = normalize_market_id(market)
        data = await self.request(HTTPMethod.GET, "/markets", params={'market': market_id})
        payload = _pick_market(data, market_id)
        return to_market_specification(payload) if payload else None

    async def get_ticker_24h(self, market: str) -> Ticker24h:
        market_id = normalize_market_id(market)
        data = await self.request(HTTPMethod.GET, "/ticker/24h", params={'market': market_id})
        payload = _pick_market(data, market_id)
        if payload is None:
            raise ExchangeRestError(400, f"Unexpected 24h ticker payload for {market_id}")
        return to_ticker_24h(payload, market_id, self._now_ms())

    async def get_ticker_book(self, market: str) -> TickerBook:
        market_id = normalize_market_id(market)
        data = await self.request(HTTPMethod.GET, "/ticker/book", params={'market': market_id})
        payload = _pick_market(data, market_id)
        if payload is None:
            raise ExchangeRestError(400, f"Unexpected ticker book payload for {market_id}")
        return to_ticker_book(payload, market_id)


def _pick_market(data: Any, market_id: str) -> Optional[dict]:
    """Bitvavo answers with an object or a list depending on the filter."""
    if isinstance(data, dict):
        market = str(data.get('market') or market_id).upper()
        return data if market == market_id else None
    if isinstance(data, list):
        for item in data:
            if isinstance(item, dict) and str(item.get('market', '')).upper() == market_id:
                return item
    return None
