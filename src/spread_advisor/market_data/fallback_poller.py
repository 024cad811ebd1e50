"""
REST polling fallback on a secondary venue.

While the primary push feed is down, Binance depth is polled at a fixed
interval. USDT prices are converted into the market quote currency through
the cross rate (EUR per USDT = 1 / EURUSDT) and delivered as ``poll`` ticks.
"""

import asyncio
import time
from typing import Callable, Optional

import aiohttp

from spread_advisor.exchanges.integrations.binance.rest.binance_rest_public import BinancePublicRest
from spread_advisor.exchanges.structs import BookTick, BookSideType, FeedSource
from spread_advisor.exchanges.utils import normalize_levels
from spread_advisor.infrastructure.exceptions.exchange import BaseExchangeError
from spread_advisor.infrastructure.logging import HFTLoggerInterface, get_logger
from .retry_policy import FixedDelayRetryPolicy, RetryPolicy

TickHandler = Callable[[BookTick], None]


class FallbackPoller:
    """Periodic depth poller; at most one polling task runs at a time."""

    def __init__(self, rest: BinancePublicRest, symbol: str, fx_symbol: Optional[str] = "EURUSDT",
                 depth: int = 25, retry_policy: Optional[RetryPolicy] = None,
                 on_tick: Optional[TickHandler] = None,
                 clock: Callable[[], float] = time.time,
                 logger: Optional[HFTLoggerInterface] = None):
        self.rest = rest
        self.symbol = symbol.upper()
        self.fx_symbol = fx_symbol.upper() if fx_symbol else None
        self.depth = depth
        self.retry_policy = retry_policy or FixedDelayRetryPolicy()
        self.logger = logger or get_logger(f"market_data.{self.__class__.__name__}")
        self._on_tick = on_tick
        self._clock = clock
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def set_tick_handler(self, handler: Optional[TickHandler]) -> None:
        self._on_tick = handler

    def start(self) -> None:
        """Start polling; no-op when already running. Requires a running loop."""
        if self.is_running:
            return
        self._task = asyncio.get_running_loop().create_task(self._poll_loop())
        self.logger.info("Fallback polling started", symbol=self.symbol, fx_symbol=self.fx_symbol,
                         interval=self.retry_policy.poll_interval())

    def stop(self) -> None:
        """Cancel the polling task; idempotent."""
        if self._task is None:
            return
        task, self._task = self._task, None
        if not task.done():
            task.cancel()
            self.logger.info("Fallback polling stopped", symbol=self.symbol)

    async def poll_once(self) -> Optional[BookTick]:
        """
        Fetch one converted tick.

        Raises:
            BaseExchangeError: on REST failure or unusable cross rate
        """
        if self.fx_symbol:
            depth, fx_rate = await asyncio.gather(
                self.rest.get_depth(self.symbol, self.depth),
                self.rest.get_price(self.fx_symbol),
            )
            price_factor = 1.0 / fx_rate
        else:
            depth = await self.rest.get_depth(self.symbol, self.depth)
            price_factor = 1.0

        bids = normalize_levels(depth.bids, BookSideType.BID, self.depth, price_factor)
        asks = normalize_levels(depth.asks, BookSideType.ASK, self.depth, price_factor)
        return BookTick.from_levels(bids, asks, int(self._clock() * 1000), FeedSource.POLL)

    async def _poll_loop(self) -> None:
        while True:
            try:
                tick = await self.poll_once()
            except (BaseExchangeError, aiohttp.ClientError) as e:
                self.logger.warning("Fallback poll failed", symbol=self.symbol, error=str(e))
                self.logger.counter("poll_failure")
            else:
                if tick is None:
                    self.logger.debug("Fallback poll returned an empty side", symbol=self.symbol)
                elif self._on_tick is not None:
                    self._on_tick(tick)
            await asyncio.sleep(self.retry_policy.poll_interval())
