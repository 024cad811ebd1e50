"""
Unit tests for tick-grid rounding.

Covers floor/ceil/nearest rounding under binary floating-point drift,
invalid input handling and grid membership checks.
"""

import math

import pytest

from spread_advisor.trading.pricing import (
    DEFAULT_TICK, RoundingMode, is_on_tick, make_tick_spec, round_to_tick, safe_tick, tick_precision
)


class TestRoundToTick:
    """Rounding onto the tick grid"""

    def test_exact_value_rounds_down_to_itself(self):
        assert round_to_tick(100, 0.1, RoundingMode.DOWN) == 100.0

    def test_half_tick_rounds_up(self):
        assert round_to_tick(100.05, 0.1, RoundingMode.UP) == 100.1

    def test_float_drift_does_not_lose_a_tick(self):
        # 100.1 / 0.1 evaluates to 1000.9999999999999
        assert round_to_tick(100.1, 0.1, RoundingMode.DOWN) == 100.1
        assert round_to_tick(100.1, 0.1, RoundingMode.UP) == 100.1
        assert round_to_tick(10.4, 0.1, RoundingMode.UP) == 10.4

    @pytest.mark.parametrize("mode,expected", [
        (RoundingMode.DOWN, 1.23),
        (RoundingMode.UP, 1.24),
        (RoundingMode.NEAREST, 1.23),
    ])
    def test_modes(self, mode, expected):
        assert round_to_tick(1.23456, 0.01, mode) == expected

    def test_mode_accepts_string(self):
        assert round_to_tick(1.23456, 0.01, "up") == 1.24

    def test_unknown_mode_falls_back_to_nearest(self):
        assert round_to_tick(1.236, 0.01, "sideways") == 1.24

    def test_nearest_rounds_half_up(self):
        assert round_to_tick(0.25, 0.5, RoundingMode.NEAREST) == 0.5

    def test_result_has_tick_precision(self):
        assert round_to_tick(0.50749, 0.0025, RoundingMode.NEAREST) == 0.5075
        assert round_to_tick(0.123456789, 1e-05, RoundingMode.DOWN) == 0.12345

    @pytest.mark.parametrize("value", [math.nan, math.inf, "abc", None, True])
    def test_invalid_value_returns_nan(self, value):
        assert math.isnan(round_to_tick(value, 0.1))

    @pytest.mark.parametrize("tick", [0, -0.1, math.nan, "abc", None])
    def test_invalid_tick_returns_value_unchanged(self, tick):
        assert round_to_tick(1.234, tick) == 1.234

    def test_numeric_strings_are_accepted(self):
        assert round_to_tick("10.07", "0.05", RoundingMode.DOWN) == 10.05

    @pytest.mark.parametrize("tick", [0.1, 0.05, 0.0025, 0.0001, 1e-05])
    @pytest.mark.parametrize("mode", list(RoundingMode))
    def test_idempotent(self, tick, mode):
        for value in (0.50749, 1.0, 10.4, 100.1, 1234.56789):
            once = round_to_tick(value, tick, mode)
            assert round_to_tick(once, tick, mode) == once

    @pytest.mark.parametrize("tick", [0.1, 0.05, 0.0025, 0.0001])
    def test_nearest_result_is_on_tick(self, tick):
        for value in (0.50749, 3.14159, 99.99, 100.1):
            assert is_on_tick(round_to_tick(value, tick, RoundingMode.NEAREST), tick)


class TestIsOnTick:
    """Grid membership"""

    def test_on_grid(self):
        assert is_on_tick(100.1, 0.1)
        assert is_on_tick(0.5025, 0.0025)

    def test_off_grid(self):
        assert not is_on_tick(100.15, 0.1)
        assert not is_on_tick(0.5026, 0.0025)

    def test_invalid_input(self):
        assert not is_on_tick(math.nan, 0.1)
        assert not is_on_tick(1.0, 0)
        assert not is_on_tick("abc", 0.1)


class TestTickHelpers:
    """Precision and tick sanitizing"""

    @pytest.mark.parametrize("tick,precision", [
        (1e-05, 5),
        (0.0025, 4),
        (0.1, 1),
        (1.0, 0),
        (5, 0),
        (-1, 0),
        (math.nan, 0),
    ])
    def test_tick_precision(self, tick, precision):
        assert tick_precision(tick) == precision

    def test_safe_tick(self):
        assert safe_tick(0.01) == 0.01
        assert safe_tick("0.01") == 0.01
        assert safe_tick(0) == DEFAULT_TICK
        assert safe_tick(None) == DEFAULT_TICK
        assert safe_tick(math.inf, default=0.5) == 0.5

    def test_make_tick_spec(self):
        spec = make_tick_spec(0.0025)
        assert spec.tick == 0.0025
        assert spec.precision == 4

        fallback = make_tick_spec(-1)
        assert fallback.tick == DEFAULT_TICK
        assert fallback.precision == 4
