"""
Bitvavo public WebSocket: ``book`` channel subscription and frame parsing.

Frames handled:
    {"event": "subscribed", "subscriptions": {"book": ["ARK-EUR"]}}
    {"event": "subscribed", "channel": "book"}
    {"event": "book", "market": "ARK-EUR", "nonce": 1234, "bids": [...], "asks": [...]}
    {"action": "subscribe", "errorCode": 205, "error": "..."}
"""

import time
from typing import AsyncIterator, Callable, Optional, Union

import msgspec

from spread_advisor.config.structs import WebSocketConfig
from spread_advisor.infrastructure.logging import HFTLoggerInterface, get_exchange_logger
from spread_advisor.infrastructure.networking.websocket.structs import MessageType, ParsedMessage
from spread_advisor.infrastructure.networking.websocket.ws_client import WebsocketClient, ConnectMethod
from ..structs.exchange import BitvavoBookEvent, BitvavoSubscribeRequest
from ..utils import to_book_update

BOOK_CHANNEL = "book"


def parse_message(raw_message: Union[str, bytes], timestamp: int = 0) -> ParsedMessage:
    """
    Classify and decode one frame. Never raises: undecodable frames come back
    as MessageType.ERROR with the reason in ``data``.
    """
    try:
        payload = msgspec.json.decode(raw_message)
    except msgspec.DecodeError as e:
        return ParsedMessage(MessageType.ERROR, data=f"Invalid JSON frame: {e}")

    if not isinstance(payload, dict):
        return ParsedMessage(MessageType.UNKNOWN, raw_data=payload)

    if 'errorCode' in payload or 'error' in payload:
        return ParsedMessage(
            MessageType.ERROR,
            data=f"{payload.get('errorCode')}: {payload.get('error')}",
            raw_data=payload,
        )

    event = payload.get('event')
    if event == BOOK_CHANNEL:
        try:
            book_event = msgspec.convert(payload, BitvavoBookEvent)
        except msgspec.ValidationError as e:
            return ParsedMessage(MessageType.ERROR, data=f"Malformed book frame: {e}", raw_data=payload)
        return ParsedMessage(
            MessageType.ORDERBOOK,
            market=book_event.market,
            channel=BOOK_CHANNEL,
            data=to_book_update(book_event, timestamp),
        )

    if event == 'subscribed':
        subscriptions = payload.get('subscriptions')
        if isinstance(subscriptions, dict):
            channels = list(subscriptions)
            markets = subscriptions.get(BOOK_CHANNEL)
        else:
            channels = [payload.get('channel')]
            markets = None
        channel = BOOK_CHANNEL if BOOK_CHANNEL in channels else (channels[0] if channels else None)
        return ParsedMessage(MessageType.SUBSCRIPTION_CONFIRM, channel=channel, data=markets, raw_data=payload)

    return ParsedMessage(MessageType.UNKNOWN, raw_data=payload)


class BitvavoPublicWebsocket:
    """Book-channel session for one market on top of WebsocketClient."""

    def __init__(self, config: WebSocketConfig, market: str,
                 connect_method: Optional[ConnectMethod] = None,
                 logger: Optional[HFTLoggerInterface] = None,
                 clock: Callable[[], float] = time.time):
        self.market = market
        self.logger = logger or get_exchange_logger('bitvavo', 'ws.public')
        self._client = WebsocketClient(config, connect_method=connect_method, logger=self.logger)
        self._clock = clock

    @property
    def is_connected(self) -> bool:
        return self._client.is_connected

    async def connect(self) -> None:
        await self._client.connect()

    async def subscribe(self) -> None:
        request = BitvavoSubscribeRequest(action="subscribe", markets=[self.market], channels=[BOOK_CHANNEL])
        await self._client.send_message(request)
        self.logger.debug("Subscription sent", market=self.market, channel=BOOK_CHANNEL)

    async def messages(self) -> AsyncIterator[ParsedMessage]:
        """Parsed frames until the socket fails (ExchangeWebsocketError)."""
        async for raw_message in self._client.messages():
            yield parse_message(raw_message, int(self._clock() * 1000))

    async def close(self) -> None:
        await self._client.close()
