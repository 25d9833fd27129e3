"""Tests for swing points, market structure, change of character and key levels"""

import pytest

from tradevet.indicators.levels import support_resistance
from tradevet.indicators.structure import (
    change_of_character,
    find_swing_points,
    market_structure,
)

# Three rising swing highs (5, 6, 7) and two rising swing lows (0.5, 1.0)
RISING_HIGHS = [1, 2, 5, 2, 1, 2, 6, 2, 1, 2, 7, 2, 1]
RISING_LOWS = [0, 1, 4, 1.5, 0.5, 1.5, 5, 2, 1.0, 2, 6, 1.5, 0.8]

# Swing highs 10, 9, 8 and swing lows 3, 2, 1
FALLING_HIGHS = [8, 9, 10, 8, 6, 8, 9, 7, 5, 7, 8, 6, 4, 6, 9.5]
FALLING_LOWS = [7, 8, 9, 7, 3, 7, 8, 6, 2, 6, 7, 5, 1, 5, 6]


class TestSwingPoints:
    """Test swing point detection"""

    def test_find_swing_points(self):
        """Test strict local extremes with two candles on each side"""
        highs, lows = find_swing_points(RISING_HIGHS, RISING_LOWS)

        assert [(p.index, p.price) for p in highs] == [(2, 5), (6, 6), (10, 7)]
        assert [(p.index, p.price) for p in lows] == [(4, 0.5), (8, 1.0)]

    def test_monotonic_series_has_no_swings(self):
        """Test a straight line has no swings"""
        values = [float(i) for i in range(10)]
        highs, lows = find_swing_points(values, values)
        assert highs == [] and lows == []


class TestMarketStructure:
    """Test market structure classification"""

    def test_bullish_structure(self):
        """Test higher highs and higher lows"""
        structure = market_structure(RISING_HIGHS, RISING_LOWS)

        assert structure.label == "bullish"
        assert structure.higher_highs == 2
        assert structure.higher_lows == 1
        assert structure.score == 100.0

    def test_bearish_structure(self):
        """Test the mirrored series is bearish"""
        highs = [-low for low in RISING_LOWS]
        lows = [-high for high in RISING_HIGHS]
        structure = market_structure(highs, lows)

        assert structure.label == "bearish"
        assert structure.lower_highs == 1
        assert structure.lower_lows == 2

    def test_insufficient_swings(self):
        """Test structure needs two swing highs and two swing lows"""
        values = [float(i) for i in range(20)]
        assert market_structure(values, values) is None


class TestChangeOfCharacter:
    """Test change-of-character detection"""

    def test_bullish_change_of_character(self):
        """Test a close above the last lower high after a bearish sequence"""
        closes = list(FALLING_LOWS[:-1]) + [9.0]
        choch = change_of_character(FALLING_HIGHS, FALLING_LOWS, closes)

        assert choch.detected is True
        assert choch.direction == "bullish"
        assert choch.prior_structure == "bearish"
        assert choch.break_level == 8
        assert choch.strength == 100.0

    def test_no_break(self):
        """Test a bearish sequence without a breakout"""
        closes = list(FALLING_LOWS[:-1]) + [7.5]
        choch = change_of_character(FALLING_HIGHS, FALLING_LOWS, closes)

        assert choch.detected is False
        assert choch.direction is None
        assert choch.prior_structure == "bearish"
        assert choch.strength == 0.0

    def test_needs_three_swings(self):
        """Test two swing lows are not enough"""
        assert change_of_character(RISING_HIGHS, RISING_LOWS, RISING_LOWS) is None


class TestSupportResistance:
    """Test support/resistance, pivots and Fibonacci levels"""

    def test_levels_from_swings(self):
        """Test support and resistance average the recent swings"""
        closes = list(FALLING_LOWS[:-1]) + [9.0]
        levels = support_resistance(FALLING_HIGHS, FALLING_LOWS, closes)

        assert levels.resistance == pytest.approx(9.0)
        assert levels.support == pytest.approx(2.0)

    def test_pivots_and_fibonacci(self):
        """Test classic pivots and retracements of the window range"""
        closes = list(FALLING_LOWS[:-1]) + [9.0]
        levels = support_resistance(FALLING_HIGHS, FALLING_LOWS, closes)
        pivot = (10 + 1 + 9) / 3

        assert levels.pivot == pytest.approx(pivot)
        assert levels.r1 == pytest.approx(2 * pivot - 1)
        assert levels.s1 == pytest.approx(2 * pivot - 10)
        assert levels.r2 == pytest.approx(pivot + 9)
        assert levels.s2 == pytest.approx(pivot - 9)
        assert levels.fibonacci[0.5] == pytest.approx(5.5)
        assert levels.fibonacci[0.618] == pytest.approx(10 - 9 * 0.618)

    def test_range_fallback(self):
        """Test range extremes stand in when there are no swings"""
        highs = [float(i + 1) for i in range(6)]
        lows = [float(i) for i in range(6)]
        levels = support_resistance(highs, lows, highs)

        assert levels.support == 0.0
        assert levels.resistance == 6.0

    def test_insufficient_data(self):
        """Test levels need at least five candles"""
        assert support_resistance([2, 3, 4, 5], [1, 2, 3, 4], [1.5, 2.5, 3.5, 4.5]) is None

    def test_distance_pct(self):
        """Test distance to a level in percent of price"""
        closes = list(FALLING_LOWS[:-1]) + [9.0]
        levels = support_resistance(FALLING_HIGHS, FALLING_LOWS, closes)
        assert levels.distance_pct(100.0, 98.0) == pytest.approx(2.0)
        assert levels.distance_pct(0.0, 98.0) == 0.0
