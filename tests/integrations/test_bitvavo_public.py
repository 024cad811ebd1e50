"""
Bitvavo public API tests: WebSocket frame parsing and REST payload mapping.

REST calls are exercised by patching ``request`` on the client so no network
access is needed.
"""

import math
from unittest.mock import AsyncMock, patch

import pytest

from spread_advisor.exchanges.integrations.bitvavo.rest.bitvavo_rest_public import BitvavoPublicRest
from spread_advisor.exchanges.integrations.bitvavo.ws.bitvavo_ws_public import BitvavoPublicWebsocket, parse_message
from spread_advisor.exchanges.structs import BookSnapshot, BookUpdate, MarketStatus
from spread_advisor.config.structs import WebSocketConfig
from spread_advisor.infrastructure.exceptions.exchange import (
    ExchangeRestError, ExchangeServerError, InvalidParameterError, InvalidSymbolError, TooManyRequestsError
)
from spread_advisor.infrastructure.networking.http.structs import HTTPMethod
from spread_advisor.infrastructure.networking.websocket.structs import MessageType


class TestParseMessage:
    """WebSocket frame classification"""

    def test_book_frame(self):
        raw = '{"event":"book","market":"ARK-EUR","nonce":42,"bids":[["0.5","10"]],"asks":[["0.51","0"]]}'
        message = parse_message(raw, timestamp=123)

        assert message.message_type == MessageType.ORDERBOOK
        assert message.market == "ARK-EUR"
        assert message.channel == "book"
        assert isinstance(message.data, BookUpdate)
        assert message.data.nonce == 42
        assert message.data.bids == [["0.5", "10"]]
        assert message.data.timestamp == 123

    def test_book_frame_as_bytes(self):
        raw = b'{"event":"book","market":"ARK-EUR","nonce":1,"bids":[],"asks":[]}'
        assert parse_message(raw).message_type == MessageType.ORDERBOOK

    def test_book_frame_without_nonce_is_error(self):
        message = parse_message('{"event":"book","market":"ARK-EUR","bids":[],"asks":[]}')
        assert message.message_type == MessageType.ERROR

    @pytest.mark.parametrize("raw", [
        '{"event":"subscribed","subscriptions":{"book":["ARK-EUR"]}}',
        '{"event":"subscribed","channel":"book"}',
    ])
    def test_subscription_ack(self, raw):
        message = parse_message(raw)
        assert message.message_type == MessageType.SUBSCRIPTION_CONFIRM
        assert message.channel == "book"

    def test_subscription_ack_for_other_channel(self):
        message = parse_message('{"event":"subscribed","subscriptions":{"ticker":["ARK-EUR"]}}')
        assert message.message_type == MessageType.SUBSCRIPTION_CONFIRM
        assert message.channel == "ticker"

    def test_error_frame(self):
        message = parse_message('{"action":"subscribe","errorCode":205,"error":"Market not found"}')
        assert message.message_type == MessageType.ERROR
        assert "205" in message.data

    def test_invalid_json(self):
        message = parse_message("not json")
        assert message.message_type == MessageType.ERROR

    @pytest.mark.parametrize("raw", ['[1, 2]', '{"event":"trade"}'])
    def test_unknown(self, raw):
        assert parse_message(raw).message_type == MessageType.UNKNOWN


class FakeSocket:
    def __init__(self, frames):
        self.frames = list(frames)
        self.sent = []

    async def send(self, message):
        self.sent.append(message)

    async def recv(self):
        if not self.frames:
            raise ConnectionResetError("closed")
        return self.frames.pop(0)

    async def close(self):
        pass


class TestBitvavoPublicWebsocket:
    """Session wrapper on top of the generic client"""

    @pytest.mark.asyncio
    async def test_subscribe_and_read(self, logger):
        socket = FakeSocket(['{"event":"subscribed","channel":"book"}'])

        async def connect(url):
            return socket

        ws = BitvavoPublicWebsocket(WebSocketConfig(), "ARK-EUR", connect_method=connect, logger=logger)
        await ws.connect()
        await ws.subscribe()

        assert ws.is_connected
        assert socket.sent == ['{"action":"subscribe","markets":["ARK-EUR"],"channels":["book"]}']

        messages = []
        with pytest.raises(Exception):
            async for message in ws.messages():
                messages.append(message)
        assert messages[0].message_type == MessageType.SUBSCRIPTION_CONFIRM

        await ws.close()
        assert not ws.is_connected


@pytest.fixture
def rest(logger):
    return BitvavoPublicRest(logger=logger, clock=lambda: 1700000000.0)


class TestBitvavoPublicRest:
    """REST payload mapping"""

    @pytest.mark.asyncio
    async def test_get_orderbook(self, rest):
        payload = {"market": "ARK-EUR", "nonce": 555, "bids": [["0.5", "10"]], "asks": [["0.51", "3"]]}
        with patch.object(rest, "request", new=AsyncMock(return_value=payload)) as request:
            snapshot = await rest.get_orderbook("ark-eur", depth=1000)

        request.assert_awaited_once_with(HTTPMethod.GET, "/ARK-EUR/book", params={"depth": 500})
        assert isinstance(snapshot, BookSnapshot)
        assert snapshot.nonce == 555
        assert snapshot.market == "ARK-EUR"
        assert snapshot.timestamp == 1700000000000

    @pytest.mark.asyncio
    async def test_get_orderbook_without_nonce(self, rest):
        with patch.object(rest, "request", new=AsyncMock(return_value={"bids": [], "asks": []})):
            snapshot = await rest.get_orderbook("ARK-EUR")
        assert snapshot.nonce == 0

    @pytest.mark.asyncio
    async def test_get_orderbook_unexpected_payload(self, rest):
        with patch.object(rest, "request", new=AsyncMock(return_value={"nonce": "abc"})):
            with pytest.raises(ExchangeRestError):
                await rest.get_orderbook("ARK-EUR")

    @pytest.mark.asyncio
    async def test_get_market_specification(self, rest):
        payload = {"market": "ARK-EUR", "status": "trading", "tickSize": "0.0001",
                   "minOrderInQuoteAsset": "5"}
        with patch.object(rest, "request", new=AsyncMock(return_value=payload)):
            spec = await rest.get_market_specification("ARK-EUR")

        assert spec.market == "ARK-EUR"
        assert spec.base == "ARK"
        assert spec.quote == "EUR"
        assert spec.status == MarketStatus.TRADING
        assert spec.tick_size == 0.0001
        assert spec.price_precision == 4
        assert spec.min_order_quote == 5.0

    @pytest.mark.asyncio
    async def test_get_market_specification_from_list(self, rest):
        payload = [{"market": "BTC-EUR", "status": "trading"},
                   {"market": "ARK-EUR", "status": "halted", "priceDecimals": 5}]
        with patch.object(rest, "request", new=AsyncMock(return_value=payload)):
            spec = await rest.get_market_specification("ARK-EUR")

        assert spec.status == MarketStatus.HALTED
        assert spec.tick_size is None
        assert spec.price_precision == 5

    @pytest.mark.asyncio
    async def test_get_market_specification_unknown_market(self, rest):
        with patch.object(rest, "request", new=AsyncMock(return_value=[])):
            assert await rest.get_market_specification("ARK-EUR") is None

    @pytest.mark.asyncio
    async def test_get_ticker_24h(self, rest):
        payload = {"market": "ARK-EUR", "last": "0.52", "high": "0.55", "low": "0.50", "volume": "1000",
                   "volumeQuote": "520", "bid": "0.519", "ask": "0.521", "timestamp": 1700000001000}
        with patch.object(rest, "request", new=AsyncMock(return_value=payload)):
            ticker = await rest.get_ticker_24h("ARK-EUR")

        assert ticker.last == 0.52
        assert ticker.volume_quote == 520.0
        assert ticker.timestamp == 1700000001000

    @pytest.mark.asyncio
    async def test_get_ticker_24h_missing_fields(self, rest):
        with patch.object(rest, "request", new=AsyncMock(return_value={"market": "ARK-EUR"})):
            ticker = await rest.get_ticker_24h("ARK-EUR")

        assert math.isnan(ticker.last)
        assert ticker.timestamp == 1700000000000

    @pytest.mark.asyncio
    async def test_get_ticker_book(self, rest):
        payload = {"market": "ARK-EUR", "bid": "0.519", "bidSize": "10", "ask": "0.521", "askSize": "20"}
        with patch.object(rest, "request", new=AsyncMock(return_value=payload)):
            book = await rest.get_ticker_book("ARK-EUR")

        assert book.bid == 0.519
        assert book.ask_size == 20.0

    @pytest.mark.asyncio
    async def test_get_ticker_book_wrong_market(self, rest):
        with patch.object(rest, "request", new=AsyncMock(return_value={"market": "BTC-EUR"})):
            with pytest.raises(ExchangeRestError):
                await rest.get_ticker_book("ARK-EUR")


class TestBitvavoErrorMapping:
    """errorCode envelope to exception"""

    def test_rate_limit(self, rest):
        error = rest._handle_error(429, '{"errorCode": 105, "error": "Limit exceeded"}')
        assert isinstance(error, TooManyRequestsError)
        assert error.api_code == 105

    def test_unknown_market(self, rest):
        error = rest._handle_error(404, '{"errorCode": 205, "error": "Market not found"}')
        assert isinstance(error, InvalidSymbolError)

    def test_server_error_keeps_api_code(self, rest):
        error = rest._handle_error(503, '{"errorCode": 101, "error": "Unknown error"}')
        assert isinstance(error, ExchangeServerError)
        assert error.api_code == 101

    def test_plain_text_body(self, rest):
        error = rest._handle_error(400, "bad request")
        assert isinstance(error, InvalidParameterError)
        assert str(error) == "HTTP 400: bad request"
