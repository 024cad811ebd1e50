import math
import re
from typing import Any, Iterable, List, Tuple

from spread_advisor.config.structs import DEFAULT_MARKET, DEFAULT_DEPTH, MAX_DEPTH
from spread_advisor.exchanges.structs import PriceLevel, BookSideType
from spread_advisor.utils.math_utils import parse_number

MARKET_ID_PATTERN = re.compile(r'^[A-Z0-9-]+$')


def normalize_market_id(market: Any = DEFAULT_MARKET, default: str = DEFAULT_MARKET) -> str:
    """Upper-case BASE-QUOTE market id, or ``default`` when the input is unusable."""
    if market is None:
        return default
    text = str(market).strip().upper()
    if not text or '-' not in text or not MARKET_ID_PATTERN.match(text):
        return default
    return text


def split_market_id(market: str) -> Tuple[str, str]:
    base, _, quote = market.partition('-')
    return base.upper(), quote.upper()


def sanitize_depth(value: Any, default: int = DEFAULT_DEPTH, maximum: int = MAX_DEPTH) -> int:
    """Positive integer depth capped at ``maximum``; ``default`` on invalid input."""
    try:
        depth = int(float(value)) if isinstance(value, str) else int(value)
    except (TypeError, ValueError, OverflowError):
        return default
    if depth <= 0:
        return default
    return min(maximum, depth)


def is_valid_level(price: float, size: float) -> bool:
    return math.isfinite(price) and math.isfinite(size) and price > 0 and size > 0


def parse_level(row: Any) -> Tuple[float, float]:
    """(price, size) floats from a raw [price, size] row; NaNs when malformed."""
    if not isinstance(row, (list, tuple)) or len(row) < 2:
        return math.nan, math.nan
    return parse_number(row[0]), parse_number(row[1])


def normalize_levels(rows: Iterable[Any], side: BookSideType, depth: int = MAX_DEPTH,
                     price_factor: float = 1.0) -> Tuple[PriceLevel, ...]:
    """
    Parse, validate, sort and cap raw levels.

    Bids sort descending, asks ascending. ``price_factor`` multiplies every
    price (currency conversion for the fallback venue).
    """
    if not isinstance(rows, (list, tuple)):
        return ()
    levels: List[PriceLevel] = []
    for row in rows:
        price, size = parse_level(row)
        price *= price_factor
        if is_valid_level(price, size):
            levels.append(PriceLevel(price=price, size=size))
    levels.sort(key=lambda level: level.price, reverse=side == BookSideType.BID)
    return tuple(levels[:depth])
