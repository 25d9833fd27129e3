"""Tests for ADX, Parabolic SAR, Aroon and trend classification"""

import pytest

from tradevet.indicators.trend import (
    DOWNTREND,
    NEUTRAL,
    UPTREND,
    adx,
    aroon,
    classify_volatility,
    detect_trend,
    market_regime,
    parabolic_sar,
)


def rising(count, start=100.0, step=1.0):
    closes = [start + step * i for i in range(count)]
    highs = [c + 0.5 for c in closes]
    lows = [c - 0.5 for c in closes]
    return highs, lows, closes


class TestADX:
    """Test ADX/DMI calculation"""

    def test_adx_insufficient_data(self):
        """Test ADX needs 2 * period candles"""
        highs, lows, closes = rising(27)
        assert adx(highs, lows, closes, 14) == []

    def test_adx_length(self):
        """Test ADX series length"""
        highs, lows, closes = rising(40)
        assert len(adx(highs, lows, closes, 14)) == 40 - 28 + 1

    def test_adx_strong_uptrend(self):
        """Test a one-way rise gives +DI dominance and a high ADX"""
        highs, lows, closes = rising(60)
        point = adx(highs, lows, closes, 14)[-1]
        assert point.plus_di > point.minus_di
        assert point.minus_di == 0.0
        assert point.adx == pytest.approx(100.0)

    def test_adx_flat_market(self):
        """Test a flat market has no directional movement"""
        flat = [10.0] * 40
        point = adx(flat, flat, flat, 14)[-1]
        assert point.adx == 0.0


class TestParabolicSAR:
    """Test Parabolic SAR"""

    def test_sar_insufficient_data(self):
        """Test SAR needs two candles"""
        assert parabolic_sar([1.0], [0.5]) == []

    def test_sar_uptrend_below_price(self):
        """Test SAR trails below price in an uptrend"""
        highs, lows, _ = rising(30)
        points = parabolic_sar(highs, lows)
        assert len(points) == 29
        assert points[-1].trend == "up"
        assert points[-1].sar < lows[-1]

    def test_sar_reversal(self):
        """Test SAR flips after a sharp reversal"""
        highs, lows, _ = rising(20)
        highs += [h - 30 for h in highs[-1:]] * 3
        lows += [l - 30 for l in lows[-1:]] * 3
        points = parabolic_sar(highs, lows)
        assert points[-1].trend == "down"


class TestAroon:
    """Test Aroon indicator"""

    def test_aroon_new_high(self):
        """Test Aroon Up is 100 on a new high"""
        highs, lows, _ = rising(20)
        point = aroon(highs, lows, 14)[-1]
        assert point.up == 100.0
        assert point.down == 0.0
        assert point.oscillator == 100.0

    def test_aroon_insufficient_data(self):
        """Test Aroon needs a full window"""
        assert aroon([1.0] * 5, [0.5] * 5, 14) == []


class TestDetectTrend:
    """Test EMA-relationship trend classification"""

    def test_uptrend(self):
        """Test rising closes classify as uptrend"""
        _, _, closes = rising(80)
        result = detect_trend(closes)
        assert result.direction == UPTREND
        assert result.ema_short > result.ema_long
        assert 0 < result.strength <= 100

    def test_downtrend(self):
        """Test falling closes classify as downtrend"""
        _, _, closes = rising(80, start=200.0, step=-1.0)
        assert detect_trend(closes).direction == DOWNTREND

    def test_neutral(self):
        """Test a flat series is neutral"""
        assert detect_trend([100.0] * 60).direction == NEUTRAL

    def test_insufficient_data(self):
        """Test trend needs the long EMA"""
        assert detect_trend([100.0] * 49) is None


class TestMarketRegime:
    """Test regime and volatility classification"""

    @pytest.mark.parametrize("atr_pct,label", [
        (1.0, "low"), (1.5, "normal"), (4.0, "normal"), (5.0, "high"), (7.0, "extreme"),
    ])
    def test_classify_volatility(self, atr_pct, label):
        """Test volatility tiers"""
        assert classify_volatility(atr_pct) == label

    def test_regimes(self):
        """Test ADX thresholds"""
        assert market_regime(30.0, 2.0).regime == "trending"
        assert market_regime(15.0, 2.0).regime == "choppy"
        assert market_regime(22.0, 2.0).regime == "neutral"
        assert market_regime(None, 2.0) is None
