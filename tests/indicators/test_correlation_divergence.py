"""Tests for cross-asset correlation and price/indicator divergence"""

import pytest

from tradevet.indicators.correlation import correlation_matrix, pct_changes, pearson
from tradevet.indicators.divergence import BEARISH, BULLISH, detect_divergence


class TestCorrelation:
    """Test Pearson correlation of returns"""

    def test_pct_changes(self):
        """Test consecutive percentage changes"""
        assert pct_changes([100.0, 110.0, 99.0]) == pytest.approx([10.0, -10.0])
        assert pct_changes([0.0, 5.0]) == [0.0]

    def test_pearson_extremes(self):
        """Test perfect positive and negative correlation"""
        xs = [1.0, 3.0, 2.0, 5.0, 4.0]
        assert pearson(xs, [x * 2 + 1 for x in xs]) == pytest.approx(1.0)
        assert pearson(xs, [-x for x in xs]) == pytest.approx(-1.0)

    def test_pearson_degenerate(self):
        """Test too few points and zero variance"""
        assert pearson([1.0], [1.0]) is None
        assert pearson([1.0, 2.0, 3.0], [5.0, 5.0, 5.0]) is None

    def test_correlation_matrix(self):
        """Test pairwise matrix of return correlations"""
        btc = [100.0, 102.0, 101.0, 104.0, 103.0, 107.0]
        matrix = correlation_matrix({
            "BTC": btc,
            "ETH": [price * 0.05 for price in btc],
            "FLAT": [10.0] * len(btc),
        })

        assert matrix["BTC"]["ETH"] == pytest.approx(1.0)
        assert matrix["ETH"]["BTC"] == pytest.approx(1.0)
        assert matrix["BTC"]["BTC"] == pytest.approx(1.0)
        assert matrix["BTC"]["FLAT"] is None


class TestDivergence:
    """Test regular divergence detection"""

    def test_bullish_divergence(self):
        """Test lower price low with a higher indicator low"""
        prices = [110, 105, 100, 105, 110, 112, 110, 108, 106, 104,
                  102, 100, 98, 96, 95, 97, 99, 101, 103, 105]
        indicator = [50.0] * 20
        indicator[2] = 20.0
        indicator[14] = 35.0

        divergence = detect_divergence(prices, indicator)

        assert divergence.kind == BULLISH
        assert divergence.price_change_pct == pytest.approx(-5.0)
        assert divergence.indicator_change == pytest.approx(15.0)

    def test_bearish_divergence(self):
        """Test higher price high with a lower indicator high"""
        prices = [100, 102, 104, 106, 110, 108, 106, 104, 102, 101,
                  101, 103, 106, 110, 115, 112, 110, 108, 106, 104]
        indicator = [50.0] * 20
        indicator[4] = 80.0
        indicator[14] = 70.0

        divergence = detect_divergence(prices, indicator)

        assert divergence.kind == BEARISH
        assert divergence.indicator_change == pytest.approx(-10.0)

    def test_confirmed_move_has_no_divergence(self):
        """Test an indicator tracking price"""
        prices = [float(100 + i) for i in range(20)]
        assert detect_divergence(prices, prices) is None

    def test_insufficient_points(self):
        """Test minimum aligned points"""
        assert detect_divergence([1.0] * 9, [1.0] * 9) is None
