"""Tests for OBV, VWAP, RVOL, volume trend and cumulative volume delta"""

import pytest

from tradevet.data.models import Candle
from tradevet.indicators.volume import (
    candle_delta,
    cumulative_volume_delta,
    obv,
    relative_volume,
    volume_trend,
    vwap,
)


class TestOBV:
    """Test On-Balance Volume"""

    def test_obv_accumulation(self):
        """Test OBV adds, subtracts and carries volume"""
        closes = [10.0, 11.0, 10.5, 10.5, 12.0]
        volumes = [100.0, 200.0, 50.0, 70.0, 300.0]
        assert obv(closes, volumes) == [0.0, 200.0, 150.0, 150.0, 450.0]

    def test_obv_insufficient_data(self):
        """Test OBV needs two closes"""
        assert obv([10.0], [100.0]) == []


class TestVWAP:
    """Test VWAP"""

    def test_vwap(self):
        """Test volume-weighted typical price"""
        candles = [
            Candle(timestamp=1, open=10, high=12, low=8, close=10, volume=100),
            Candle(timestamp=2, open=20, high=22, low=18, close=20, volume=300),
        ]
        assert vwap(candles) == pytest.approx((10 * 100 + 20 * 300) / 400)

    def test_vwap_zero_volume(self):
        """Test VWAP without volume"""
        assert vwap([Candle(timestamp=1, open=1, high=1, low=1, close=1, volume=0)]) is None


class TestRelativeVolume:
    """Test RVOL calculation"""

    def test_rvol(self):
        """Test RVOL against the previous period"""
        volumes = [100.0] * 20 + [250.0]
        assert relative_volume(volumes, 20) == pytest.approx(2.5)

    def test_rvol_insufficient_data(self):
        """Test RVOL needs period + 1 volumes"""
        assert relative_volume([100.0] * 20, 20) is None

    def test_rvol_zero_history(self):
        """Test RVOL with an all-zero history"""
        assert relative_volume([0.0] * 20 + [5.0], 20) is None


class TestVolumeTrend:
    """Test volume trend classification"""

    def test_increasing(self):
        """Test rising recent volume"""
        trend = volume_trend([100.0] * 15 + [300.0] * 5, 20, 5)
        assert trend.label == "increasing"
        assert trend.ratio == pytest.approx(300.0 / 150.0)

    def test_stable(self):
        """Test constant volume"""
        assert volume_trend([100.0] * 20).label == "stable"

    def test_decreasing(self):
        """Test fading volume"""
        assert volume_trend([200.0] * 15 + [20.0] * 5).label == "decreasing"


class TestCVD:
    """Test cumulative volume delta"""

    def test_candle_delta(self):
        """Test full-range bullish candle counts as all buying"""
        candle = Candle(timestamp=1, open=10, high=12, low=10, close=12, volume=100)
        assert candle_delta(candle) == pytest.approx(100.0)

    def test_candle_delta_zero_range(self):
        """Test zero-range candle splits evenly"""
        candle = Candle(timestamp=1, open=10, high=10, low=10, close=10, volume=100)
        assert candle_delta(candle) == 0.0

    def test_cvd_insufficient_data(self):
        """Test CVD needs a full window"""
        candles = [Candle(timestamp=i, open=10, high=11, low=9, close=10, volume=1) for i in range(5)]
        assert cumulative_volume_delta(candles, 20) is None

    def test_cvd_bullish_divergence(self):
        """Test falling price with rising CVD"""
        candles = []
        price = 100.0
        for i in range(20):
            # Gap down then close near the high: price falls, buying dominates
            open_ = price - 2.0
            candles.append(Candle(timestamp=i, open=open_, high=open_ + 1.0, low=open_ - 0.1,
                                  close=open_ + 0.9, volume=100))
            price = open_ + 0.9
        result = cumulative_volume_delta(candles, 20)
        assert result.price_trend == "falling"
        assert result.trend == "rising"
        assert result.divergence == "bullish"
