"""
Tick-grid rounding tolerant of binary floating-point drift.

Both public functions are total: invalid input yields NaN/False (or the
value unchanged for an unusable tick), never an exception.
"""

import math
import sys
from typing import Any, Union

from spread_advisor.utils.math_utils import count_decimal_places
from .structs import RoundingMode, TickSpec

DEFAULT_TICK = 0.0001

_EPSILON = sys.float_info.epsilon


def _as_float(value: Any) -> float:
    if isinstance(value, bool):
        return math.nan
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


def _is_valid_tick(tick: float) -> bool:
    return math.isfinite(tick) and tick > 0


def tick_precision(tick: float) -> int:
    """Fractional digits of the tick itself (1e-05 -> 5, 0.0025 -> 4)."""
    tick = _as_float(tick)
    if not _is_valid_tick(tick):
        return 0
    return count_decimal_places(tick)


def make_tick_spec(tick: float) -> TickSpec:
    tick = safe_tick(tick)
    return TickSpec(tick=tick, precision=tick_precision(tick))


def safe_tick(tick: Any, default: float = DEFAULT_TICK) -> float:
    """The tick when it is finite and positive, otherwise ``default``."""
    value = _as_float(tick)
    return value if _is_valid_tick(value) else default


def round_to_tick(value: Any, tick: Any, mode: Union[RoundingMode, str] = RoundingMode.NEAREST) -> float:
    """
    Round ``value`` onto the ``tick`` grid.

    The ratio value/tick is nudged by an epsilon proportional to its
    magnitude before floor/ceil so that 100.1 / 0.1 == 1000.9999999999999
    still lands on 1001. The result is rounded to the tick's own precision.
    Half-way values round up in NEAREST mode.
    """
    number = _as_float(value)
    if not math.isfinite(number):
        return math.nan
    step = _as_float(tick)
    if not _is_valid_tick(step):
        return number

    try:
        mode = RoundingMode(mode)
    except ValueError:
        mode = RoundingMode.NEAREST

    ratio = number / step
    if not math.isfinite(ratio):
        return number
    eps = _EPSILON * max(1.0, abs(ratio) * 10)

    if mode == RoundingMode.DOWN:
        units = math.floor(ratio + eps)
    elif mode == RoundingMode.UP:
        units = math.ceil(ratio - eps)
    else:
        units = math.floor(ratio + 0.5 + eps)

    return round(units * step, tick_precision(step))


def is_on_tick(value: Any, tick: Any) -> bool:
    """True when ``value`` sits on the grid within 10^-(precision+2)."""
    number = _as_float(value)
    step = _as_float(tick)
    if not math.isfinite(number) or not _is_valid_tick(step):
        return False
    tolerance = 10 ** -(tick_precision(step) + 2)
    return abs(round_to_tick(number, step, RoundingMode.NEAREST) - number) <= tolerance
