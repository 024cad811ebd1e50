import math
from enum import Enum
from typing import Any, Optional

from msgspec import Struct


class RoundingMode(str, Enum):
    DOWN = "down"
    UP = "up"
    NEAREST = "nearest"


class LiquidityRole(str, Enum):
    MAKER = "maker"
    TAKER = "taker"


class RouteProfile(str, Enum):
    """
    Buy/sell liquidity roles for one round trip.

    ``parse`` accepts tokens such as "maker-taker", "Maker/Taker" or a
    member name and falls back to MAKER_MAKER for anything else.
    """
    MAKER_MAKER = "maker-maker"
    MAKER_TAKER = "maker-taker"
    TAKER_MAKER = "taker-maker"
    TAKER_TAKER = "taker-taker"

    @property
    def buy_side(self) -> LiquidityRole:
        return LiquidityRole(self.value.split("-")[0])

    @property
    def sell_side(self) -> LiquidityRole:
        return LiquidityRole(self.value.split("-")[1])

    @classmethod
    def parse(cls, value: Any) -> "RouteProfile":
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return cls.MAKER_MAKER
        token = value.strip().lower().replace("/", "-").replace("_", "-")
        try:
            return cls(token)
        except ValueError:
            return cls.MAKER_MAKER


class EdgeState(str, Enum):
    NEGATIVE = "negative"
    BREAKEVEN = "breakeven"
    POSITIVE = "positive"
    NEUTRAL = "neutral"


def _non_negative(value: Any) -> float:
    """Clamp user input to a finite value >= 0."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) and number > 0 else 0.0


class EdgeParameters(Struct, frozen=True):
    """
    Inputs of one edge computation. Percentages are plain numbers
    (0.15 means 0.15%).

    Use ``EdgeParameters.create`` to clamp raw user input.
    """
    maker_fee_pct: float = 0.15
    taker_fee_pct: float = 0.25
    route_profile: RouteProfile = RouteProfile.MAKER_MAKER
    slippage_pct: float = 0.05
    min_edge_pct: float = 0.25
    position_notional: float = 250.0
    tick: float = 0.0001
    spread_gated: bool = False

    @classmethod
    def create(cls, maker_fee_pct: Any = 0.15, taker_fee_pct: Any = 0.25, route_profile: Any = None,
               slippage_pct: Any = 0.05, min_edge_pct: Any = 0.25, position_notional: Any = 250.0,
               tick: Any = 0.0001, spread_gated: bool = False) -> "EdgeParameters":
        try:
            tick_value = float(tick)
        except (TypeError, ValueError):
            tick_value = math.nan
        try:
            min_edge = float(min_edge_pct)
        except (TypeError, ValueError):
            min_edge = 0.0
        return cls(
            maker_fee_pct=_non_negative(maker_fee_pct),
            taker_fee_pct=_non_negative(taker_fee_pct),
            route_profile=RouteProfile.parse(route_profile),
            slippage_pct=_non_negative(slippage_pct),
            min_edge_pct=min_edge if math.isfinite(min_edge) else 0.0,
            position_notional=_non_negative(position_notional),
            tick=tick_value,
            spread_gated=bool(spread_gated),
        )


class EdgeResult(Struct, frozen=True):
    """
    Advice for one bid/ask observation.

    ``buy_price``/``sell_price`` are the tick-rounded limit prices to quote.
    ``effective_buy_price``/``effective_sell_price`` are the prices the edge
    is computed from (depth-weighted for taker legs when depth is given).
    NaN prices/edge mean no advice is possible; ``show_advice`` is False then.
    """
    buy_price: float
    sell_price: float
    edge_pct: float
    breakeven_pct: float
    round_trip_fee_pct: float
    spread_pct: float
    pnl: float
    edge_state: EdgeState
    go: bool
    show_advice: bool
    size_warning: Optional[str] = None
    effective_buy_price: float = math.nan
    effective_sell_price: float = math.nan
    buy_fee_pct: float = math.nan
    sell_fee_pct: float = math.nan


class TickSpec(Struct, frozen=True):
    tick: float
    precision: int
