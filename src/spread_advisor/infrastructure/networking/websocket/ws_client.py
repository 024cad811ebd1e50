from typing import Any, AsyncIterator, Awaitable, Callable, Dict, Optional, Union
import asyncio

import msgspec
from websockets import connect

from spread_advisor.config.structs import WebSocketConfig
from spread_advisor.infrastructure.exceptions.exchange import ExchangeWebsocketError
from spread_advisor.infrastructure.logging import HFTLoggerInterface, get_logger
from spread_advisor.infrastructure.networking.websocket.structs import ConnectionState

ConnectMethod = Callable[[str], Awaitable[Any]]


class WebsocketClient:
    """
    Single WebSocket session: connect, send, read until the socket dies, close.

    The client is data-format agnostic and does not reconnect by itself; the
    owner decides when and how often to open a new session. ``connect_method``
    replaces ``websockets.connect`` (tests pass an in-memory fake exposing
    ``send``, ``recv`` and ``close``).
    """

    __slots__ = ('config', 'logger', 'url_name', '_connect_method', '_state', '_ws')

    def __init__(
        self,
        config: WebSocketConfig,
        connect_method: Optional[ConnectMethod] = None,
        logger: Optional[HFTLoggerInterface] = None,
    ):
        self.config = config
        self._connect_method = connect_method or self._default_connect
        self._state = ConnectionState.DISCONNECTED
        self._ws = None

        self.url_name = self.config.url.split('/')[2] if '//' in self.config.url else "ws"
        self.logger = logger or get_logger(f"ws.{self.url_name}")

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state == ConnectionState.CONNECTED and self._ws is not None

    async def _default_connect(self, url: str) -> Any:
        return await connect(
            url,
            open_timeout=self.config.connect_timeout,
            ping_interval=self.config.ping_interval,
            ping_timeout=self.config.ping_timeout,
            close_timeout=self.config.close_timeout,
            max_queue=self.config.max_queue_size,
            max_size=self.config.max_message_size,
            compression=None,
        )

    async def connect(self) -> None:
        """Open the socket. Raises ExchangeWebsocketError on failure."""
        if self._ws is not None:
            await self.close()

        self._state = ConnectionState.CONNECTING
        self.logger.info("Connecting to WebSocket", url=self.config.url)
        try:
            self._ws = await self._connect_method(self.config.url)
        except asyncio.CancelledError:
            self._state = ConnectionState.DISCONNECTED
            raise
        except Exception as e:
            self._state = ConnectionState.ERROR
            raise ExchangeWebsocketError(503, f"WebSocket connection failed: {e}") from e

        self._state = ConnectionState.CONNECTED
        self.logger.info("WebSocket connected", url=self.config.url)

    async def send_message(self, message: Union[Dict[str, Any], msgspec.Struct]) -> None:
        if not self.is_connected:
            raise ExchangeWebsocketError(503, "WebSocket not connected")
        try:
            await self._ws.send(msgspec.json.encode(message).decode("utf-8"))
        except Exception as e:
            self._state = ConnectionState.ERROR
            raise ExchangeWebsocketError(503, f"Failed to send message: {e}") from e

    async def messages(self) -> AsyncIterator[Union[str, bytes]]:
        """
        Yield raw frames until the connection ends.

        Always ends by raising ExchangeWebsocketError (remote close or read
        failure) unless the caller stops iterating or is cancelled.
        """
        while True:
            if not self.is_connected:
                raise ExchangeWebsocketError(503, "WebSocket not connected")
            try:
                raw_message = await self._ws.recv()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self._state = ConnectionState.ERROR
                raise ExchangeWebsocketError(1006, f"WebSocket read failed: {e}") from e
            yield raw_message

    async def close(self) -> None:
        """Close the socket; never raises."""
        ws, self._ws = self._ws, None
        if ws is None:
            self._state = ConnectionState.CLOSED
            return

        self._state = ConnectionState.CLOSING
        try:
            await asyncio.wait_for(ws.close(), timeout=self.config.close_timeout)
        except asyncio.TimeoutError:
            self.logger.warning("WebSocket close timeout", url=self.config.url)
        except Exception as e:
            self.logger.warning("Error closing WebSocket", url=self.config.url, error=str(e))
        self._state = ConnectionState.CLOSED

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
