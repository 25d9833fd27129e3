"""Tests for candle structure and candlestick patterns"""

import pytest

from tradevet.data.models import Candle
from tradevet.indicators.patterns import (
    analyze_candle_structure,
    detect_patterns,
    detect_pinbar,
    is_strong_candle,
)


def candle(open_: float, high: float, low: float, close: float, timestamp: int = 1) -> Candle:
    return Candle(timestamp=timestamp, open=open_, high=high, low=low, close=close, volume=100.0)


class TestCandleStructure:
    """Test candle anatomy"""

    def test_bullish_candle(self):
        """Test proportions of a bullish candle"""
        structure = analyze_candle_structure(candle(100.0, 106.0, 98.0, 104.0))

        assert structure.range_value == 8.0
        assert structure.body == 4.0
        assert structure.upper_shadow == 2.0
        assert structure.lower_shadow == 2.0
        assert structure.body_pct == pytest.approx(0.5)
        assert structure.is_bull is True
        assert structure.is_doji is False

    def test_zero_range(self):
        """Test a flat candle has zero proportions"""
        structure = analyze_candle_structure(candle(100.0, 100.0, 100.0, 100.0))

        assert structure.body_pct == 0.0
        assert structure.is_bull is False and structure.is_bear is False

    def test_strong_candle(self):
        """Test strong candle threshold on body share"""
        assert is_strong_candle(candle(100.0, 110.2, 99.9, 110.0)) is True
        assert is_strong_candle(candle(100.0, 106.0, 98.0, 104.0)) is False


class TestPinbar:
    """Test pinbar shapes"""

    def test_bullish_pinbar(self):
        """Test long lower shadow"""
        assert detect_pinbar(candle(100.0, 100.6, 96.6, 100.5)) == "bullish"

    def test_bearish_pinbar(self):
        """Test long upper shadow"""
        assert detect_pinbar(candle(100.5, 103.9, 99.9, 100.0)) == "bearish"

    def test_large_body_is_not_pinbar(self):
        """Test a big body disqualifies a pinbar"""
        assert detect_pinbar(candle(100.0, 110.2, 99.9, 110.0)) is None


class TestDetectPatterns:
    """Test candlestick pattern detection"""

    def test_doji(self):
        """Test doji on a tiny body"""
        patterns = detect_patterns([candle(100.0, 102.0, 98.0, 100.1)])

        assert [p.name for p in patterns] == ["doji"]
        assert patterns[0].bias == "neutral"

    def test_hammer(self):
        """Test hammer scores by lower shadow share"""
        patterns = detect_patterns([candle(100.0, 100.6, 96.6, 100.5)])

        assert [p.name for p in patterns] == ["hammer"]
        assert patterns[0].bias == "bullish"
        assert patterns[0].score == pytest.approx(85.0)

    def test_shooting_star(self):
        """Test shooting star on a long upper shadow"""
        patterns = detect_patterns([candle(100.5, 103.9, 99.9, 100.0)])

        assert [p.name for p in patterns] == ["shooting_star"]
        assert patterns[0].bias == "bearish"

    def test_marubozu(self):
        """Test marubozu on an almost shadowless candle"""
        patterns = detect_patterns([candle(100.0, 110.2, 99.9, 110.0)])

        assert [p.name for p in patterns] == ["marubozu"]
        assert patterns[0].bias == "bullish"

    def test_bullish_engulfing(self):
        """Test bullish body covering the previous bearish body"""
        previous = candle(105.0, 106.0, 100.0, 101.0, timestamp=1)
        current = candle(100.5, 106.5, 100.0, 106.0, timestamp=2)
        patterns = detect_patterns([previous, current])

        assert [p.name for p in patterns] == ["bullish_engulfing"]
        assert patterns[0].score == pytest.approx(50.0 + 50.0 * 5.5 / 6.5)

    def test_bearish_engulfing(self):
        """Test bearish body covering the previous bullish body"""
        previous = candle(101.0, 106.0, 100.0, 105.0, timestamp=1)
        current = candle(105.5, 106.0, 99.5, 100.0, timestamp=2)
        patterns = detect_patterns([previous, current])

        assert [p.name for p in patterns] == ["bearish_engulfing"]
        assert patterns[0].bias == "bearish"

    def test_no_candles(self):
        """Test empty input"""
        assert detect_patterns([]) == []

    def test_flat_candle_has_no_pattern(self):
        """Test a zero range candle is not a doji"""
        assert detect_patterns([candle(100.0, 100.0, 100.0, 100.0)]) == []
