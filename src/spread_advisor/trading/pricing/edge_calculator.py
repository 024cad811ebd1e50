"""
Round-trip edge for a manual maker/taker trade on one spot market.

``compute_edge`` is pure: no I/O, no state, and it never raises. Invalid
input (non-finite or non-positive prices, crossed book) yields a result with
NaN prices and ``go=False`` while the fee-only fields stay populated.
"""

import math
from typing import Any, Iterable, Optional, Tuple

from spread_advisor.exchanges.structs import PriceLevel, BookSideType
from spread_advisor.exchanges.utils import normalize_levels
from .structs import EdgeParameters, EdgeResult, EdgeState, LiquidityRole, RouteProfile, RoundingMode
from .tick_arithmetic import round_to_tick, safe_tick

# Levels walked per side for depth-weighted prices and the size warning
DEPTH_LEVELS = 3
SIZE_WARNING_RATIO = 0.25

# Spread must exceed one tick by more than this many ticks to quote inside it
_TICK_TOLERANCE = 1e-9


def _finite_or(value: Any, default: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return number if math.isfinite(number) else default


def _fee(value: Any) -> float:
    return max(0.0, _finite_or(value, 0.0))


def _valid_price(value: float) -> bool:
    return math.isfinite(value) and value > 0


def _to_levels(levels: Optional[Iterable[Any]], side: BookSideType) -> Optional[Tuple[PriceLevel, ...]]:
    if levels is None:
        return None
    rows = [(level.price, level.size) if isinstance(level, PriceLevel) else level for level in levels]
    return normalize_levels(rows, side, depth=DEPTH_LEVELS)


def depth_weighted_price(levels: Tuple[PriceLevel, ...], notional: float) -> float:
    """
    Volume-weighted average price of filling ``notional`` (quote currency)
    from best-first ``levels``. When depth runs out the average over what was
    available is returned; NaN when nothing could be filled.
    """
    remaining = notional
    filled_notional = 0.0
    filled_size = 0.0
    for level in levels:
        if remaining <= 0:
            break
        take = min(level.notional, remaining)
        filled_notional += take
        filled_size += take / level.price
        remaining -= take
    return filled_notional / filled_size if filled_size > 0 else math.nan


def _size_warning(notional: float, bids: Optional[Tuple[PriceLevel, ...]],
                  asks: Optional[Tuple[PriceLevel, ...]]) -> Optional[str]:
    if notional <= 0:
        return None
    for name, levels in (("bid", bids), ("ask", asks)):
        if levels is None:
            continue
        visible = sum(level.notional for level in levels)
        if notional > visible * SIZE_WARNING_RATIO:
            return (f"Position {notional:.2f} exceeds {SIZE_WARNING_RATIO:.0%} of visible "
                    f"{name} depth ({visible:.2f})")
    return None


def _no_advice(breakeven_pct: float, round_trip_fee_pct: float, buy_fee_pct: float,
               sell_fee_pct: float) -> EdgeResult:
    return EdgeResult(
        buy_price=math.nan,
        sell_price=math.nan,
        edge_pct=math.nan,
        breakeven_pct=breakeven_pct,
        round_trip_fee_pct=round_trip_fee_pct,
        spread_pct=math.nan,
        pnl=math.nan,
        edge_state=EdgeState.NEUTRAL,
        go=False,
        show_advice=False,
        buy_fee_pct=buy_fee_pct,
        sell_fee_pct=sell_fee_pct,
    )


def compute_edge(bid: Any, ask: Any, params: Optional[EdgeParameters] = None,
                 bid_levels: Optional[Iterable[Any]] = None,
                 ask_levels: Optional[Iterable[Any]] = None) -> EdgeResult:
    """
    Executable buy/sell prices, fees, breakeven and net edge for one round trip.

    Quotes are tick-rounded and kept inside the book (``bid <= buy <= sell <= ask``).
    Depth is only walked for taker legs; maker legs ignore ``bid_levels`` and
    ``ask_levels`` and are priced at their quote.

    Args:
        bid: Best bid
        ask: Best ask
        params: Fee/slippage/route/tick parameters (defaults when None)
        bid_levels: Optional bid depth, best first ([price, size] rows or PriceLevel)
        ask_levels: Optional ask depth, best first

    Returns:
        A fresh EdgeResult
    """
    params = params or EdgeParameters()
    route = RouteProfile.parse(params.route_profile)

    maker_fee = _fee(params.maker_fee_pct)
    taker_fee = _fee(params.taker_fee_pct)
    buy_fee = maker_fee if route.buy_side == LiquidityRole.MAKER else taker_fee
    sell_fee = maker_fee if route.sell_side == LiquidityRole.MAKER else taker_fee
    round_trip_fee = buy_fee + sell_fee
    slippage = _fee(params.slippage_pct)
    breakeven = round_trip_fee + 2 * slippage

    bid_price = _finite_or(bid, math.nan)
    ask_price = _finite_or(ask, math.nan)
    if not (_valid_price(bid_price) and _valid_price(ask_price)) or bid_price > ask_price:
        return _no_advice(breakeven, round_trip_fee, buy_fee, sell_fee)

    tick = safe_tick(params.tick)
    min_edge = _finite_or(params.min_edge_pct, 0.0)
    notional = _fee(params.position_notional)
    mid = (bid_price + ask_price) / 2
    spread_pct = (ask_price - bid_price) / mid * 100

    if (ask_price - bid_price) / tick > 1 + _TICK_TOLERANCE:
        candidate_buy = min(bid_price + tick, ask_price - tick)
        candidate_sell = max(ask_price - tick, bid_price + tick)
    else:
        candidate_buy = bid_price
        candidate_sell = ask_price
    buy_price = round_to_tick(candidate_buy, tick, RoundingMode.DOWN)
    sell_price = round_to_tick(candidate_sell, tick, RoundingMode.UP)

    # Off-grid quotes (converted fallback prices) can round outside the book
    buy_price = max(buy_price, round_to_tick(bid_price, tick, RoundingMode.UP))
    sell_price = min(sell_price, round_to_tick(ask_price, tick, RoundingMode.DOWN))
    if buy_price > sell_price:
        # No grid price inside the book: quote at the touch
        buy_price = bid_price
        sell_price = ask_price

    bids = _to_levels(bid_levels, BookSideType.BID)
    asks = _to_levels(ask_levels, BookSideType.ASK)

    effective_buy = buy_price
    effective_sell = sell_price
    if notional > 0:
        # Taker legs cross the spread: buy walks the asks, sell walks the bids
        if route.buy_side == LiquidityRole.TAKER and asks:
            walked = depth_weighted_price(asks, notional)
            if math.isfinite(walked):
                effective_buy = walked
        if route.sell_side == LiquidityRole.TAKER and bids:
            walked = depth_weighted_price(bids, notional)
            if math.isfinite(walked):
                effective_sell = walked

    if not (_valid_price(effective_buy) and _valid_price(effective_sell)):
        return _no_advice(breakeven, round_trip_fee, buy_fee, sell_fee)

    spread_ratio = (effective_sell - effective_buy) / effective_buy
    net_edge_ratio = spread_ratio - round_trip_fee / 100 - 2 * slippage / 100
    edge_pct = net_edge_ratio * 100

    if edge_pct < 0:
        edge_state = EdgeState.NEGATIVE
    elif edge_pct >= min_edge:
        edge_state = EdgeState.POSITIVE
    else:
        edge_state = EdgeState.BREAKEVEN

    go = edge_state == EdgeState.POSITIVE
    if params.spread_gated:
        go = go and spread_pct >= breakeven + min_edge

    return EdgeResult(
        buy_price=buy_price,
        sell_price=sell_price,
        edge_pct=edge_pct,
        breakeven_pct=breakeven,
        round_trip_fee_pct=round_trip_fee,
        spread_pct=spread_pct,
        pnl=notional * net_edge_ratio,
        edge_state=edge_state,
        go=go,
        show_advice=True,
        size_warning=_size_warning(notional, bids, asks),
        effective_buy_price=effective_buy,
        effective_sell_price=effective_sell,
        buy_fee_pct=buy_fee,
        sell_fee_pct=sell_fee,
    )
