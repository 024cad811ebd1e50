"""
Market id, depth and price-level normalization helpers.
"""

import math
from decimal import Decimal

import pytest

from spread_advisor.exchanges.structs import BookSideType, PriceLevel
from spread_advisor.exchanges.utils import (
    normalize_levels, normalize_market_id, parse_level, sanitize_depth, split_market_id
)
from spread_advisor.utils.math_utils import count_decimal_places, parse_number, to_price_key


class TestMarketId:

    @pytest.mark.parametrize("value,expected", [
        ("ark-eur", "ARK-EUR"),
        ("  btc-eur ", "BTC-EUR"),
        ("1INCH-EUR", "1INCH-EUR"),
        ("ARKEUR", "ARK-EUR"),
        ("ark/eur", "ARK-EUR"),
        ("", "ARK-EUR"),
        (None, "ARK-EUR"),
    ])
    def test_normalize(self, value, expected):
        assert normalize_market_id(value) == expected

    def test_custom_default(self):
        assert normalize_market_id("???", default="BTC-EUR") == "BTC-EUR"

    def test_split(self):
        assert split_market_id("ark-eur") == ("ARK", "EUR")


class TestDepth:

    @pytest.mark.parametrize("value,expected", [
        (10, 10),
        ("50", 50),
        ("12.7", 12),
        (10_000, 500),
        (0, 25),
        (-5, 25),
        ("abc", 25),
        (None, 25),
    ])
    def test_sanitize(self, value, expected):
        assert sanitize_depth(value) == expected

    def test_custom_bounds(self):
        assert sanitize_depth(80, default=5, maximum=50) == 50
        assert sanitize_depth("x", default=5, maximum=50) == 5


class TestNumbers:

    @pytest.mark.parametrize("value,expected", [
        ("0.5", 0.5),
        ("0,5", 0.5),
        (" 12 ", 12.0),
        (3, 3.0),
        (2.5, 2.5),
    ])
    def test_parse_number(self, value, expected):
        assert parse_number(value) == expected

    @pytest.mark.parametrize("value", ["abc", None, True, [], math.inf, "nan", ""])
    def test_parse_number_invalid(self, value):
        assert math.isnan(parse_number(value))

    @pytest.mark.parametrize("number,places", [(0.0001, 4), (1e-05, 5), (1.5e-07, 8), (10.0, 0), (0.25, 2)])
    def test_count_decimal_places(self, number, places):
        assert count_decimal_places(number) == places

    def test_price_key_normalizes(self):
        assert to_price_key("0.50") == to_price_key("0.5") == to_price_key(0.5) == Decimal("0.5")
        assert to_price_key("1,25") == Decimal("1.25")

    @pytest.mark.parametrize("value", [0, -1, "abc", None, True, "inf", "NaN"])
    def test_price_key_invalid(self, value):
        assert to_price_key(value) is None


class TestLevels:

    def test_parse_level(self):
        assert parse_level(["0.5", "10"]) == (0.5, 10.0)
        price, size = parse_level(["0.5"])
        assert math.isnan(price) and math.isnan(size)

    def test_normalize_bids_descending(self):
        levels = normalize_levels([["1", "1"], ["3", "1"], ["2", "1"]], BookSideType.BID)
        assert [level.price for level in levels] == [3.0, 2.0, 1.0]

    def test_normalize_asks_ascending_and_capped(self):
        levels = normalize_levels([["3", "1"], ["1", "1"], ["2", "1"]], BookSideType.ASK, depth=2)
        assert levels == (PriceLevel(price=1.0, size=1.0), PriceLevel(price=2.0, size=1.0))

    def test_invalid_levels_dropped(self):
        rows = [["abc", "1"], ["1", "0"], ["-1", "5"], ["2", "nan"], "garbage", ["1.5", "2"]]
        assert normalize_levels(rows, BookSideType.BID) == (PriceLevel(price=1.5, size=2.0),)

    def test_price_factor(self):
        levels = normalize_levels([["1.1", "1"]], BookSideType.ASK, price_factor=1 / 1.1)
        assert levels[0].price == pytest.approx(1.0)

    def test_non_list_input(self):
        assert normalize_levels(None, BookSideType.BID) == ()
