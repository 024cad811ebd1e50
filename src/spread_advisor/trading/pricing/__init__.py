from .structs import (
    RoundingMode, LiquidityRole, RouteProfile, EdgeState, EdgeParameters, EdgeResult, TickSpec
)
from .tick_arithmetic import DEFAULT_TICK, round_to_tick, is_on_tick, tick_precision, safe_tick, make_tick_spec
from .edge_calculator import compute_edge, depth_weighted_price

__all__ = [
    "RoundingMode",
    "LiquidityRole",
    "RouteProfile",
    "EdgeState",
    "EdgeParameters",
    "EdgeResult",
    "TickSpec",
    "DEFAULT_TICK",
    "round_to_tick",
    "is_on_tick",
    "tick_precision",
    "safe_tick",
    "make_tick_spec",
    "compute_edge",
    "depth_weighted_price",
]
