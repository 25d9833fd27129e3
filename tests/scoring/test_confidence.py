"""Tests for the seven-category confidence scorer"""

from dataclasses import replace

import pytest

from tradevet.config.defaults import ScoringParams, TradingMode
from tradevet.models.signals import ExternalData, OpenLongCandidate, OpenShortCandidate, Side
from tradevet.models.snapshot import TrendAlignment
from tradevet.scoring.confidence import (
    CATEGORY_WEIGHTS,
    EXTERNAL,
    RISK_REWARD,
    TECHNICAL,
    TREND,
    reward_risk_ratio,
    score_confidence,
    score_external,
    score_risk_reward,
    score_technical,
    score_trend,
)


def alignment(daily: str, h4: str, h1: str, daily_available: bool = True) -> TrendAlignment:
    return TrendAlignment(
        daily_trend=daily,
        h4_aligned=h4 == daily,
        h1_aligned=h1 == daily,
        alignment_score=0.0,
        h4_trend=h4,
        h1_trend=h1,
        daily_available=daily_available,
    )


@pytest.fixture
def long_candidate():
    return OpenLongCandidate(asset="BTC", entry_price=110.0, stop_loss=107.8, take_profit=116.6)


class TestWeights:
    """Test category weights"""

    def test_weights_total_130(self):
        """Test the seven categories sum to 130 points"""
        assert len(CATEGORY_WEIGHTS) == 7
        assert sum(CATEGORY_WEIGHTS.values()) == 130.0


class TestTrendScore:
    """Test trend alignment scoring"""

    def test_full_agreement(self, bullish_alignment):
        """Test every timeframe agreeing"""
        score = score_trend(Side.LONG, bullish_alignment)
        assert (score.points, score.max_points) == (25.0, 25.0)

    def test_neutral_scores_half(self):
        """Test neutral timeframes earn half"""
        score = score_trend(Side.LONG, alignment("neutral", "neutral", "neutral"))
        assert score.points == pytest.approx(12.5)

    def test_unavailable_daily_reduces_maximum(self, bullish_alignment):
        """Test a missing timeframe is removed from the maximum"""
        score = score_trend(Side.LONG, replace(bullish_alignment, daily_available=False))
        assert (score.points, score.max_points) == (13.0, 13.0)

    def test_no_alignment(self):
        """Test missing alignment contributes nothing"""
        assert score_trend(Side.LONG, None).max_points == 0.0


class TestRiskRewardScore:
    """Test reward:risk scoring"""

    def test_ratio(self, long_candidate):
        """Test reward:risk of candidate levels"""
        assert reward_risk_ratio(long_candidate) == pytest.approx(3.0)

    def test_degenerate_levels(self):
        """Test missing or zero-width stops"""
        assert reward_risk_ratio(OpenLongCandidate(asset="BTC", entry_price=100.0)) is None
        flat = OpenLongCandidate(asset="BTC", entry_price=100.0, stop_loss=100.0, take_profit=105.0)
        assert reward_risk_ratio(flat) is None

    def test_top_tier_with_tight_stop(self):
        """Test 3:1 with a 1% stop earns the full 20"""
        candidate = OpenLongCandidate(asset="BTC", entry_price=100.0, stop_loss=99.0, take_profit=103.0)
        score = score_risk_reward(candidate)
        assert (score.points, score.max_points) == (20.0, 20.0)

    def test_wide_stop_low_ratio(self):
        """Test 1:1 with a 5% stop"""
        candidate = OpenLongCandidate(asset="BTC", entry_price=100.0, stop_loss=95.0, take_profit=105.0)
        score = score_risk_reward(candidate)
        assert score.points == 3.0

    def test_missing_levels_skipped(self):
        """Test missing levels are removed from the maximum"""
        score = score_risk_reward(OpenLongCandidate(asset="BTC", entry_price=100.0))
        assert score.max_points == 0.0


class TestTechnicalScore:
    """Test technical consensus scoring"""

    def test_bullish_snapshot_long(self, bullish_snapshot):
        """Test points earned and items skipped on a bullish snapshot"""
        score = score_technical(Side.LONG, bullish_snapshot)

        # EMA200 unavailable; %B above 0.8 and neutral stochastic earn nothing
        assert score.points == 18.0
        assert score.max_points == 27.0
        assert "EMA50 vs EMA200: unavailable" in score.details

    def test_bullish_snapshot_short(self, bullish_snapshot):
        """Test a short earns the Bollinger position and leaning stochastic"""
        score = score_technical(Side.SHORT, bullish_snapshot)
        assert score.points == 7.0


class TestExternalScore:
    """Test external confirmation scoring"""

    def test_all_missing(self, bullish_snapshot):
        """Test no external data means no external maximum"""
        assert score_external(Side.LONG, bullish_snapshot, None).max_points == 0.0

    def test_funding_and_flows(self, bullish_snapshot):
        """Test negative funding and exchange outflows favor longs"""
        external = ExternalData(funding_rate=-0.0002, exchange_flow=-500.0, whale_activity_score=0.5)
        score = score_external(Side.LONG, bullish_snapshot, external)

        assert score.points == 7.0
        assert score.max_points == 7.0

    def test_order_book_with_bid_wall(self, bullish_snapshot):
        """Test imbalance plus a nearby supporting wall"""
        external = ExternalData(order_book_imbalance=0.3, bid_wall_price=108.5)
        score = score_external(Side.LONG, bullish_snapshot, external)
        assert (score.points, score.max_points) == (4.0, 4.0)


class TestScoreConfidence:
    """Test the complete scorer"""

    def test_confidence_is_ratio_of_points(self, long_candidate, bullish_snapshot, bullish_alignment):
        """Test confidence equals earned over available points"""
        breakdown = score_confidence(
            long_candidate, bullish_snapshot, bullish_alignment, None,
            TradingMode.AUTONOMOUS, ScoringParams()
        )

        assert breakdown.auto_rejected is False
        assert len(breakdown.category_scores) == 7
        assert 0.0 <= breakdown.confidence <= 1.0
        assert breakdown.confidence == pytest.approx(breakdown.total_score / breakdown.max_score)
        assert breakdown.category_scores[TREND].points == 25.0
        assert breakdown.category_scores[RISK_REWARD].max_points == 20.0
        assert breakdown.category_scores[TECHNICAL].points == 18.0
        assert breakdown.category_scores[EXTERNAL].max_points == 0.0

    def test_trend_gate_auto_rejects(self, bullish_snapshot, bullish_alignment):
        """Test a short against every timeframe is auto-rejected with confidence 0"""
        candidate = OpenShortCandidate(asset="BTC", entry_price=110.0, stop_loss=112.0, take_profit=104.0)
        breakdown = score_confidence(
            candidate, bullish_snapshot, bullish_alignment, None,
            TradingMode.AUTONOMOUS, ScoringParams()
        )

        assert breakdown.auto_rejected is True
        assert breakdown.confidence == 0.0
        assert list(breakdown.category_scores) == [TREND]
        assert "below autonomous floor" in breakdown.rejection_reason

    def test_floor_depends_on_mode(self, long_candidate, bullish_snapshot):
        """Test manual review tolerates weaker trend alignment"""
        weak = alignment("neutral", "downtrend", "downtrend")

        autonomous = score_confidence(
            long_candidate, bullish_snapshot, weak, None, TradingMode.AUTONOMOUS, ScoringParams()
        )
        manual = score_confidence(
            long_candidate, bullish_snapshot, weak, None, TradingMode.MANUAL_REVIEW, ScoringParams()
        )

        assert autonomous.auto_rejected is True
        assert manual.auto_rejected is False
        assert manual.confidence > 0.0

    def test_breakdown_serializes(self, long_candidate, bullish_snapshot, bullish_alignment):
        """Test breakdown to_dict"""
        breakdown = score_confidence(
            long_candidate, bullish_snapshot, bullish_alignment, None,
            TradingMode.AUTONOMOUS, ScoringParams()
        )
        data = breakdown.to_dict()

        assert data["auto_rejected"] is False
        assert data["category_scores"][TREND]["max"] == 25.0
