"""
Spread Advisor command-line entry point.

Streams live top-of-book ticks for one market and prints the round-trip
advice for each of them.

Usage:
    spread-advisor --market ARK-EUR --route maker-taker --position 500
    python -m spread_advisor --config config.yaml --log-level DEBUG
"""

import argparse
import asyncio
import math
import signal
import sys
from typing import List, Optional

from msgspec.structs import replace

from spread_advisor.config import AdvisorConfig, load_config
from spread_advisor.exchanges.integrations.bitvavo.rest.bitvavo_rest_public import BitvavoPublicRest
from spread_advisor.exchanges.structs import BookTick, FeedSource
from spread_advisor.exchanges.utils import normalize_market_id, sanitize_depth
from spread_advisor.infrastructure.exceptions.exchange import BaseExchangeError
from spread_advisor.infrastructure.exceptions.system import ConfigurationError
from spread_advisor.infrastructure.logging import configure_logging, get_logger
from spread_advisor.market_data import FeedEventType, FeedSupervisor
from spread_advisor.trading.pricing import EdgeParameters, EdgeResult, compute_edge, make_tick_spec


def format_advice(tick: BookTick, result: EdgeResult, precision: int) -> str:
    """One printable line per tick."""
    head = (f"[{tick.source.value}] bid {tick.bid:.{precision}f} ask {tick.ask:.{precision}f} "
            f"spread {tick.spread_pct:.3f}%")
    if not result.show_advice:
        return f"{head} | no advice"

    line = (f"{head} | buy {result.buy_price:.{precision}f} sell {result.sell_price:.{precision}f} "
            f"edge {result.edge_pct:+.3f}% (breakeven {result.breakeven_pct:.3f}%) "
            f"pnl {result.pnl:+.2f} {result.edge_state.value.upper()}")
    if result.go:
        line += " GO"
    if result.size_warning:
        line += f" ! {result.size_warning}"
    return line


class AdvisorCLI:
    """Command-line interface for the live advisor."""

    def __init__(self):
        self.logger = get_logger("cli.AdvisorCLI")

    def parse_args(self, argv: Optional[List[str]] = None) -> argparse.Namespace:
        parser = argparse.ArgumentParser(
            prog="spread-advisor",
            description="Live spread and edge advice for one spot market",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
Examples:
  # Defaults from config.yaml (or built-in defaults)
  spread-advisor

  # Another market with a deeper book
  spread-advisor --market BTC-EUR --depth 50

  # Taker exit, 1000 EUR position
  spread-advisor --route maker-taker --position 1000
            """
        )
        parser.add_argument("--config", type=str, default=None, help="Path to config.yaml")
        parser.add_argument("--market", type=str, default=None, help="Market id, e.g. ARK-EUR")
        parser.add_argument("--depth", type=int, default=None, help="Book levels per side")
        parser.add_argument("--route", type=str, default=None,
                            help="Route profile: maker-maker, maker-taker, taker-maker, taker-taker")
        parser.add_argument("--position", type=float, default=None, help="Position notional in quote currency")
        parser.add_argument("--log-level", type=str, default=None,
                            choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                            help="Console log level")
        return parser.parse_args(argv)

    def build_config(self, args: argparse.Namespace) -> AdvisorConfig:
        """Loaded configuration with command-line overrides applied."""
        config = load_config(args.config)

        feed = config.feed
        if args.market:
            feed = replace(feed, market=normalize_market_id(args.market))
        if args.depth is not None:
            feed = replace(feed, depth=sanitize_depth(args.depth, default=feed.depth))

        edge = config.edge
        if args.route:
            edge = replace(edge, route_profile=args.route)
        if args.position is not None:
            edge = replace(edge, position_notional=args.position)

        logging_config = config.logging
        if args.log_level:
            console = replace(logging_config.console, min_level=args.log_level)
            logging_config = replace(logging_config, console=console)

        return replace(config, feed=feed, edge=edge, logging=logging_config)

    async def resolve_tick(self, config: AdvisorConfig) -> float:
        """Market tick size from the venue, the configured tick when unavailable."""
        async with BitvavoPublicRest(config.feed.rest) as rest:
            try:
                spec = await rest.get_market_specification(config.feed.market)
            except BaseExchangeError as e:
                self.logger.warning("Market specification unavailable, using configured tick",
                                    market=config.feed.market, error=str(e))
                return config.edge.tick
        if spec is None or spec.tick_size is None or not math.isfinite(spec.tick_size):
            return config.edge.tick
        return spec.tick_size

    def setup_signal_handlers(self, supervisor: FeedSupervisor) -> None:
        loop = asyncio.get_running_loop()
        for signum in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(signum, supervisor.stop)
            except (NotImplementedError, RuntimeError):
                # Signal handlers are unavailable on some platforms
                pass

    async def run(self, config: AdvisorConfig) -> None:
        tick = await self.resolve_tick(config)
        spec = make_tick_spec(tick)
        edge = config.edge
        params = EdgeParameters.create(
            maker_fee_pct=edge.maker_fee_pct,
            taker_fee_pct=edge.taker_fee_pct,
            route_profile=edge.route_profile,
            slippage_pct=edge.slippage_pct,
            min_edge_pct=edge.min_edge_pct,
            position_notional=edge.position_notional,
            tick=spec.tick,
            spread_gated=edge.spread_gated,
        )
        self.logger.info("Advisor starting", market=config.feed.market, tick=spec.tick,
                         route=params.route_profile.value, position=params.position_notional)

        supervisor = FeedSupervisor(config.feed)
        self.setup_signal_handlers(supervisor)
        supervisor.start()
        try:
            async for event in supervisor.events():
                if event.event_type == FeedEventType.SOURCE_CHANGE:
                    label = "live websocket" if event.source == FeedSource.WS else "fallback polling"
                    print(f"-- source: {label}", flush=True)
                    continue
                result = compute_edge(event.tick.bid, event.tick.ask, params,
                                      event.tick.bids, event.tick.asks)
                print(format_advice(event.tick, result, spec.precision), flush=True)
        finally:
            await supervisor.aclose()


def main(argv: Optional[List[str]] = None) -> int:
    cli = AdvisorCLI()
    args = cli.parse_args(argv)
    try:
        config = cli.build_config(args)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    configure_logging(config.logging)
    try:
        asyncio.run(cli.run(config))
    except KeyboardInterrupt:
        print("\nKeyboard interrupt - exiting...")
    return 0
