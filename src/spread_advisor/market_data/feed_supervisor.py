"""
Live top-of-book feed for one market with REST-poll failover.

FeedSupervisor runs the Bitvavo book channel through a BookSynchronizer.
While the socket is down, or no usable snapshot can be fetched, a
FallbackPoller delivers converted Binance ticks instead. Consumers either
iterate ``events()`` or register callbacks through ``start_feed``.

    stop = start_feed(on_tick=print, on_source_change=print)
    ...
    stop()
"""

import asyncio
import time
from enum import Enum
from typing import AsyncIterator, Callable, Optional

import aiohttp
from msgspec import Struct

from spread_advisor.config.structs import FeedConfig
from spread_advisor.exchanges.integrations.binance.rest.binance_rest_public import BinancePublicRest
from spread_advisor.exchanges.integrations.bitvavo.rest.bitvavo_rest_public import BitvavoPublicRest
from spread_advisor.exchanges.integrations.bitvavo.ws.bitvavo_ws_public import BitvavoPublicWebsocket, BOOK_CHANNEL
from spread_advisor.exchanges.structs import BookTick, FeedSource
from spread_advisor.exchanges.utils import normalize_market_id, sanitize_depth
from spread_advisor.infrastructure.exceptions.exchange import BaseExchangeError
from spread_advisor.infrastructure.exceptions.market_data import BookSyncError
from spread_advisor.infrastructure.logging import HFTLoggerInterface, get_logger
from spread_advisor.infrastructure.networking.websocket.structs import MessageType, ParsedMessage
from spread_advisor.infrastructure.networking.websocket.ws_client import ConnectMethod
from .book_synchronizer import BookSynchronizer, SyncStatus
from .fallback_poller import FallbackPoller
from .retry_policy import FixedDelayRetryPolicy, RetryPolicy

TickCallback = Callable[[BookTick], None]
SourceCallback = Callable[[FeedSource], None]


class FeedEventType(Enum):
    TICK = "tick"
    SOURCE_CHANGE = "source_change"


class FeedEvent(Struct, frozen=True):
    """One item of the feed stream; ``tick`` is set for TICK events only."""
    event_type: FeedEventType
    source: FeedSource
    tick: Optional[BookTick] = None


class FeedSupervisor:
    """
    Connection, resync and failover state machine for one market.

    All work runs on the event loop that called ``start()``. ``stop()`` is
    synchronous and idempotent; ``aclose()`` additionally waits for the
    transport to close and releases the REST sessions it created. When
    ``stop()`` runs outside an event loop the sessions stay open until
    ``aclose()`` is awaited.

    With ``stream_events=False`` (callback-only consumers, see ``start_feed``)
    nothing is buffered for ``events()``.
    """

    def __init__(self, config: Optional[FeedConfig] = None,
                 rest_client: Optional[BitvavoPublicRest] = None,
                 fallback_poller: Optional[FallbackPoller] = None,
                 connect: Optional[ConnectMethod] = None,
                 retry_policy: Optional[RetryPolicy] = None,
                 clock: Callable[[], float] = time.time,
                 logger: Optional[HFTLoggerInterface] = None,
                 on_tick: Optional[TickCallback] = None,
                 on_source_change: Optional[SourceCallback] = None,
                 stream_events: bool = True):
        self.config = config or FeedConfig()
        self.market = normalize_market_id(self.config.market)
        self.depth = sanitize_depth(self.config.depth)
        self.retry_policy = retry_policy or FixedDelayRetryPolicy.from_config(self.config)
        self.logger = logger or get_logger(f"market_data.{self.__class__.__name__}")

        self._clock = clock
        self._connect = connect
        self._on_tick = on_tick
        self._on_source_change = on_source_change

        self._owned_clients = []
        if rest_client is None:
            rest_client = BitvavoPublicRest(self.config.rest, clock=clock)
            self._owned_clients.append(rest_client)
        self.rest = rest_client

        if fallback_poller is None:
            fallback_rest = BinancePublicRest(self.config.fallback.rest)
            self._owned_clients.append(fallback_rest)
            fallback_poller = FallbackPoller(
                fallback_rest,
                symbol=self.config.fallback.resolve_symbol(self.market),
                fx_symbol=self.config.fallback.fx_symbol,
                depth=self.depth,
                retry_policy=self.retry_policy,
                clock=clock,
            )
        self.fallback_poller = fallback_poller
        self.fallback_poller.set_tick_handler(self._on_poll_tick)

        self.synchronizer = BookSynchronizer(
            self.market,
            depth=self.depth,
            max_pending=self.config.max_pending_updates,
            on_update=self._on_book_tick,
            clock=clock,
        )

        self._active = False
        self._closed = False
        self._source: Optional[FeedSource] = None
        self._ws: Optional[BitvavoPublicWebsocket] = None
        self._connection_task: Optional[asyncio.Task] = None
        self._snapshot_task: Optional[asyncio.Task] = None
        self._teardown_task: Optional[asyncio.Task] = None
        self._pending_teardown: Optional[list] = None
        self._stream_events = stream_events
        self._events: asyncio.Queue = asyncio.Queue(maxsize=self.config.event_queue_size)

    @property
    def active(self) -> bool:
        return self._active

    @property
    def source(self) -> Optional[FeedSource]:
        return self._source

    @property
    def is_connected(self) -> bool:
        return self._ws is not None and self._ws.is_connected

    def start(self) -> None:
        """Start the feed on the running loop; no-op when already active."""
        if self._active:
            return
        loop = asyncio.get_running_loop()
        self._active = True
        self._closed = False
        while not self._events.empty():
            self._events.get_nowait()
        self._connection_task = loop.create_task(self._connection_loop())
        self.logger.info("Feed started", market=self.market, depth=self.depth)

    def stop(self) -> None:
        """Stop the feed: cancel timers and tasks, stop polling, end ``events()``."""
        if not self._active:
            return
        self._active = False
        self._closed = True
        self.fallback_poller.stop()

        tasks = [task for task in (self._connection_task, self._snapshot_task)
                 if task is not None and not task.done()]
        for task in tasks:
            task.cancel()
        self._connection_task = None
        self._snapshot_task = None

        self._put_event(None)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None
        if loop is not None:
            self._teardown_task = loop.create_task(self._teardown(tasks))
        else:
            # Sessions can only be closed on a loop; aclose() finishes the job
            self._pending_teardown = tasks
        self.logger.info("Feed stopped", market=self.market)

    async def aclose(self) -> None:
        self.stop()
        if self._teardown_task is not None:
            await self._teardown_task
            self._teardown_task = None
        elif self._pending_teardown is not None:
            tasks, self._pending_teardown = self._pending_teardown, None
            await self._teardown(tasks)

    async def _teardown(self, tasks) -> None:
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        for client in self._owned_clients:
            await client.close()

    async def events(self) -> AsyncIterator[FeedEvent]:
        """Ticks and source changes in arrival order; ends after ``stop()``."""
        if not self._stream_events:
            raise RuntimeError("Feed was created without an event stream (stream_events=False)")
        while True:
            if self._closed and self._events.empty():
                return
            event = await self._events.get()
            if event is None:
                return
            yield event

    def _put_event(self, event: Optional[FeedEvent]) -> None:
        if not self._stream_events:
            return
        if self._events.full():
            self._events.get_nowait()
            self.logger.counter("feed_event_dropped")
        self._events.put_nowait(event)

    def _set_source(self, source: FeedSource) -> None:
        if self._source == source:
            return
        previous, self._source = self._source, source
        self.logger.info("Feed source changed", market=self.market,
                         previous=previous.value if previous else None, source=source.value)
        self._put_event(FeedEvent(FeedEventType.SOURCE_CHANGE, source))
        if self._on_source_change is not None:
            try:
                self._on_source_change(source)
            except Exception as e:
                self.logger.error("Source change callback failed", error=str(e))

    def _deliver_tick(self, tick: BookTick) -> None:
        self._put_event(FeedEvent(FeedEventType.TICK, tick.source, tick))
        if self._on_tick is not None:
            try:
                self._on_tick(tick)
            except Exception as e:
                self.logger.error("Tick callback failed", error=str(e))

    def _on_book_tick(self, tick: BookTick) -> None:
        if not self._active:
            return
        self._promote_websocket()
        self._deliver_tick(tick)

    def _on_poll_tick(self, tick: BookTick) -> None:
        # A poll that was in flight when the book synced is stale
        if not self._active or self.synchronizer.is_ready:
            return
        self._deliver_tick(tick)

    def _promote_websocket(self) -> None:
        self.fallback_poller.stop()
        self._set_source(FeedSource.WS)

    def _start_fallback(self) -> None:
        if not self._active:
            return
        self.fallback_poller.start()
        self._set_source(FeedSource.POLL)

    async def _connection_loop(self) -> None:
        attempt = 0
        while self._active:
            ws = BitvavoPublicWebsocket(self.config.websocket, self.market,
                                        connect_method=self._connect, clock=self._clock)
            self._ws = ws
            error: Optional[Exception] = None
            try:
                await ws.connect()
                await ws.subscribe()
                attempt = 0
                async for message in ws.messages():
                    if not self._active:
                        break
                    self._handle_message(message)
            except BaseExchangeError as e:
                error = e
            finally:
                self._ws = None
                await ws.close()

            if not self._active:
                break
            attempt += 1
            self.logger.warning("WebSocket session ended, failing over to polling",
                                market=self.market, attempt=attempt,
                                error=str(error) if error else "closed")
            self.logger.counter("ws_reconnect")
            self._on_transport_lost()
            await asyncio.sleep(self.retry_policy.reconnect_delay(attempt))

    def _on_transport_lost(self) -> None:
        if self._snapshot_task is not None and not self._snapshot_task.done():
            self._snapshot_task.cancel()
        self._snapshot_task = None
        self.synchronizer.reset("transport lost")
        self._start_fallback()

    def _handle_message(self, message: ParsedMessage) -> None:
        if message.message_type == MessageType.ORDERBOOK:
            if message.market and message.market != self.market:
                self.logger.debug("Book frame for another market ignored", market=message.market)
                return
            status = self.synchronizer.apply_diff(message.data)
            if status == SyncStatus.GAP:
                self._request_snapshot()
        elif message.message_type == MessageType.SUBSCRIPTION_CONFIRM:
            self.logger.info("Subscription confirmed", market=self.market, channel=message.channel)
            if message.channel == BOOK_CHANNEL:
                self._request_snapshot()
        elif message.message_type == MessageType.ERROR:
            self.logger.error("WebSocket error frame", market=self.market, error=message.data)
        else:
            self.logger.debug("Unhandled WebSocket frame", raw=message.raw_data)

    def _request_snapshot(self) -> None:
        if not self._active:
            return
        if self._snapshot_task is not None and not self._snapshot_task.done():
            return
        self._snapshot_task = asyncio.get_running_loop().create_task(self._snapshot_loop())

    async def _snapshot_loop(self) -> None:
        attempt = 0
        while self._active and self.is_connected:
            attempt += 1
            try:
                snapshot = await self.rest.get_orderbook(self.market, self.depth)
                if not self._active:
                    return
                status = self.synchronizer.apply_snapshot(snapshot)
            except (BaseExchangeError, BookSyncError, aiohttp.ClientError) as e:
                self.logger.warning("Snapshot fetch failed", market=self.market,
                                    attempt=attempt, error=str(e))
                self.logger.counter("snapshot_failure")
                self._start_fallback()
            else:
                if status == SyncStatus.APPLIED:
                    self._promote_websocket()
                    return
                self.logger.info("Queued diffs do not continue the snapshot, refetching",
                                 market=self.market, nonce=snapshot.nonce)
            await asyncio.sleep(self.retry_policy.snapshot_retry_delay(attempt))


def start_feed(on_tick: TickCallback, on_source_change: Optional[SourceCallback] = None,
               config: Optional[FeedConfig] = None, **kwargs) -> Callable[[], None]:
    """
    Start a feed with callbacks and return its synchronous stop function.

    Must be called from a running event loop. ``kwargs`` are passed to
    FeedSupervisor (rest_client, fallback_poller, connect, retry_policy,
    clock, logger). Events go to the callbacks only, nothing is queued.
    """
    kwargs.setdefault("stream_events", False)
    supervisor = FeedSupervisor(config, on_tick=on_tick, on_source_change=on_source_change, **kwargs)
    supervisor.start()
    return supervisor.stop
