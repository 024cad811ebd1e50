"""
Binance public REST client used as the fallback venue.

Only two endpoints are needed: spot depth and the latest price of a
cross-rate symbol (EURUSDT) to convert USDT quotes into the primary market's
quote currency.
"""

from typing import Optional

import aiohttp
import msgspec

from spread_advisor.config.structs import RestConfig, BINANCE_REST_URL, DEFAULT_DEPTH
from spread_advisor.infrastructure.exceptions.exchange import (
    ExchangeRestError, InvalidSymbolError, TooManyRequestsError
)
from spread_advisor.infrastructure.logging import HFTLoggerInterface
from spread_advisor.infrastructure.networking.http.rest_client import BaseRestClient
from spread_advisor.infrastructure.networking.http.structs import HTTPMethod
from spread_advisor.utils.math_utils import parse_number

# /api/v3/depth accepts only these limits
DEPTH_LIMITS = (5, 10, 20, 50, 100, 500, 1000, 5000)

# Binance "code" values
_INVALID_SYMBOL_CODE = -1121
_TOO_MANY_REQUESTS_CODE = -1003


class BinanceOrderBookResponse(msgspec.Struct):
    """Binance GET /api/v3/depth response."""
    lastUpdateId: int
    bids: list[list[str]]  # [price, quantity]
    asks: list[list[str]]


class BinancePriceResponse(msgspec.Struct):
    symbol: str
    price: str


class BinanceErrorResponse(msgspec.Struct):
    code: int = 0
    msg: str = ""


def snap_depth_limit(depth: int) -> int:
    """Smallest allowed limit that covers ``depth``."""
    for limit in DEPTH_LIMITS:
        if depth <= limit:
            return limit
    return DEPTH_LIMITS[-1]


class BinancePublicRest(BaseRestClient):
    """Unauthenticated Binance spot REST client."""

    def __init__(self, config: Optional[RestConfig] = None, logger: Optional[HFTLoggerInterface] = None,
                 session: Optional[aiohttp.ClientSession] = None):
        super().__init__(config or RestConfig(base_url=BINANCE_REST_URL), logger=logger, session=session)

    @property
    def exchange_name(self) -> str:
        return "Binance"

    def _handle_error(self, status: int, response_text: str) -> Exception:
        try:
            error = msgspec.json.decode(response_text, type=BinanceErrorResponse)
        except (msgspec.DecodeError, msgspec.ValidationError):
            return super()._handle_error(status, response_text)

        if error.code == _INVALID_SYMBOL_CODE:
            return InvalidSymbolError(status, error.msg, error.code)
        if status in (418, 429) or error.code == _TOO_MANY_REQUESTS_CODE:
            return TooManyRequestsError(status, error.msg, error.code)
        return super()._handle_error(status, error.msg or response_text)

    async def get_depth(self, symbol: str, limit: int = DEFAULT_DEPTH) -> BinanceOrderBookResponse:
        data = await self.request(HTTPMethod.GET, "/api/v3/depth",
                                  params={'symbol': symbol.upper(), 'limit': snap_depth_limit(limit)})
        try:
            return msgspec.convert(data, BinanceOrderBookResponse)
        except msgspec.ValidationError as e:
            raise ExchangeRestError(400, f"Unexpected depth payload for {symbol}: {e}") from e

    async def get_price(self, symbol: str) -> float:
        """Latest price; raises ExchangeRestError when it is not a positive number."""
        data = await self.request(HTTPMethod.GET, "/api/v3/ticker/price", params={'symbol': symbol.upper()})
        try:
            response = msgspec.convert(data, BinancePriceResponse)
        except msgspec.ValidationError as e:
            raise ExchangeRestError(400, f"Unexpected price payload for {symbol}: {e}") from e

        price = parse_number(response.price)
        if not price > 0:
            raise ExchangeRestError(400, f"Invalid price for {symbol}: {response.price!r}")
        return price
