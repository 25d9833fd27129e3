"""Tests for True Range, ATR, NATR and Bollinger Bands"""

import pytest

from tradevet.indicators.volatility import BollingerBand, atr, bollinger, natr, true_range


class TestTrueRange:
    """Test True Range calculation"""

    def test_true_range_inside_bar(self):
        """Test TR equals high - low when the previous close is inside the range"""
        assert true_range([105, 108], [95, 101], [102, 107]) == [7.0]

    def test_true_range_gap_up(self):
        """Test TR with gap up"""
        # max(115-108, abs(115-102), abs(108-102)) = 13
        assert true_range([105, 115], [95, 108], [102, 112]) == [13.0]

    def test_true_range_gap_down(self):
        """Test TR with gap down"""
        # max(93-88, abs(93-102), abs(88-102)) = 14
        assert true_range([105, 93], [95, 88], [102, 91]) == [14.0]


class TestATR:
    """Test ATR calculation"""

    def test_atr_insufficient_data(self):
        """Test ATR(14) needs 15 candles"""
        highs = [110.0] * 14
        lows = [90.0] * 14
        closes = [100.0] * 14
        assert atr(highs, lows, closes, 14) == []

    def test_atr_constant_range(self):
        """Test ATR of a constant true range"""
        highs = [110.0] * 20
        lows = [90.0] * 20
        closes = [100.0] * 20
        result = atr(highs, lows, closes, 14)
        assert len(result) == 6
        assert result == pytest.approx([20.0] * 6)

    def test_atr_wilder_smoothing(self):
        """Test ATR follows Wilder smoothing after the seed"""
        highs = [110.0] * 15 + [140.0]
        lows = [90.0] * 15 + [100.0]
        closes = [100.0] * 15 + [130.0]
        result = atr(highs, lows, closes, 14)
        # seed 20, then (20 * 13 + 40) / 14
        assert result[-1] == pytest.approx((20.0 * 13 + 40.0) / 14)


class TestNATR:
    """Test normalized ATR"""

    def test_natr(self):
        """Test NATR as a percentage of price"""
        assert natr(2.0, 100.0) == pytest.approx(2.0)

    def test_natr_zero_price(self):
        """Test NATR with a non-positive price"""
        assert natr(2.0, 0.0) == 0.0


class TestBollinger:
    """Test Bollinger Bands"""

    def test_bollinger_insufficient_data(self):
        """Test bands need a full window"""
        assert bollinger([1.0] * 19, 20) == []

    def test_bollinger_flat_series(self):
        """Test bands collapse on a flat series"""
        band = bollinger([50.0] * 20, 20)[-1]
        assert band.upper == band.middle == band.lower == 50.0
        assert band.percent_b(50.0) is None

    def test_bollinger_population_std(self):
        """Test bands use the population standard deviation"""
        closes = [1.0, 3.0] * 10
        band = bollinger(closes, 20, 2.0)[-1]
        assert band.middle == pytest.approx(2.0)
        assert band.upper == pytest.approx(4.0)
        assert band.lower == pytest.approx(0.0)

    def test_percent_b(self):
        """Test %B position inside the bands"""
        band = BollingerBand(upper=110.0, middle=100.0, lower=90.0)
        assert band.percent_b(90.0) == 0.0
        assert band.percent_b(110.0) == 1.0
        assert band.width == 20.0
