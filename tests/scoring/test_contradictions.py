"""Tests for contradiction detection"""

from dataclasses import replace

import pytest

from tradevet.models.decision import Severity
from tradevet.models.signals import Side
from tradevet.models.snapshot import IndicatorSnapshot
from tradevet.scoring.contradictions import (
    NO_INDICATORS_POINTS,
    detect_contradictions,
    severity_for,
)


class TestSeverity:
    """Test severity buckets"""

    @pytest.mark.parametrize("score,expected", [
        (0, Severity.LOW),
        (3, Severity.LOW),
        (4, Severity.MEDIUM),
        (7, Severity.HIGH),
        (9, Severity.HIGH),
        (10, Severity.CRITICAL),
        (31, Severity.CRITICAL),
    ])
    def test_severity_for(self, score, expected):
        """Test thresholds at 4, 7 and 10 points"""
        assert severity_for(score) is expected


class TestDetectContradictions:
    """Test contradiction scoring against indicator bias"""

    def test_short_against_bullish_market(self, bullish_snapshot, bullish_alignment):
        """Test a short into a bullish snapshot is critically contradicted"""
        report = detect_contradictions(Side.SHORT, bullish_snapshot, bullish_alignment)

        # OBV 2, strong MACD 5, Aroon 3, daily 4, 4h 2, EMA stack 5, SAR 3, 24h move 4
        assert report.score == 28
        assert report.severity is Severity.CRITICAL
        assert report.count == 8
        assert any("MACD" in item for item in report.items)
        assert any("Daily trend is uptrend" in item for item in report.items)

    def test_long_with_bullish_market(self, bullish_snapshot, bullish_alignment):
        """Test a long only contradicted by stretched Bollinger position"""
        report = detect_contradictions(Side.LONG, bullish_snapshot, bullish_alignment)

        assert report.score == 3
        assert report.severity is Severity.LOW
        assert report.items == ("Price above upper Bollinger Band (+3)",)

    def test_opposing_indicators_only_raise_score(self, bullish_snapshot, bullish_alignment):
        """Test adding opposing readings never lowers the score"""
        base = detect_contradictions(Side.LONG, bullish_snapshot, bullish_alignment).score

        overbought = replace(bullish_snapshot, rsi=85.0)
        with_rsi = detect_contradictions(Side.LONG, overbought, bullish_alignment).score
        with_cci = detect_contradictions(Side.LONG, replace(overbought, cci=250.0), bullish_alignment).score

        assert base < with_rsi < with_cci
        assert with_rsi == base + 5
        assert with_cci == with_rsi + 4

    def test_no_indicators(self):
        """Test an empty snapshot scores the no-indicator penalty"""
        snapshot = IndicatorSnapshot(asset="BTC", interval="1h", timestamp=0, price=100.0, candle_count=10)
        report = detect_contradictions(Side.LONG, snapshot)

        assert report.score == NO_INDICATORS_POINTS
        assert report.items == ("No indicators available (+7)",)
        assert report.severity is Severity.HIGH

    def test_missing_alignment_skips_trend(self, bullish_snapshot):
        """Test trend items require alignment data"""
        report = detect_contradictions(Side.SHORT, bullish_snapshot, None)
        assert report.score == 22

    def test_unavailable_daily_trend_ignored(self, bullish_snapshot, bullish_alignment):
        """Test the daily item is skipped when the daily series is missing"""
        alignment = replace(bullish_alignment, daily_available=False)
        report = detect_contradictions(Side.SHORT, bullish_snapshot, alignment)
        assert report.score == 24

    def test_macd_tiers(self, bullish_snapshot):
        """Test histogram size relative to price sets the MACD points"""
        weak = replace(bullish_snapshot, macd_histogram=0.05)
        moderate = replace(bullish_snapshot, macd_histogram=0.2)
        strong = replace(bullish_snapshot, macd_histogram=0.5)

        def macd_points(snapshot):
            report = detect_contradictions(Side.SHORT, snapshot)
            return [item for item in report.items if "MACD" in item][0]

        assert macd_points(weak).endswith("(+2)")
        assert macd_points(moderate).endswith("(+3)")
        assert macd_points(strong).endswith("(+5)")
