"""Tests for expected value and the execution level gate"""

import pytest

from tradevet.config.defaults import ConfidenceThresholds, EVThresholds, TradingMode
from tradevet.models.decision import ExecutionLevel
from tradevet.risk.expected_value import ev_gate, execution_level, expected_value


@pytest.fixture
def thresholds():
    return ConfidenceThresholds(), EVThresholds()


class TestExpectedValue:
    """Test EV formula"""

    def test_expected_value(self):
        """Test EV = p * ratio * risk - (1 - p) * risk"""
        assert expected_value(0.5, 2.0, 10.0) == pytest.approx(5.0)
        assert expected_value(0.6, 2.0, 1.5) == pytest.approx(1.2)

    def test_negative_expected_value(self):
        """Test losing proposition"""
        assert expected_value(0.2, 1.0, 10.0) == pytest.approx(-6.0)

    def test_zero_risk(self):
        """Test nothing at risk has zero EV"""
        assert expected_value(0.9, 3.0, 0.0) == 0.0


class TestExecutionLevel:
    """Test execution level tiers"""

    @pytest.mark.parametrize("confidence,ev,level", [
        (0.65, 1.0, ExecutionLevel.HIGH),
        (0.65, 0.5, ExecutionLevel.MEDIUM),
        (0.40, 1.0, ExecutionLevel.MEDIUM),
        (0.30, 0.5, ExecutionLevel.LOW),
        (0.22, 0.1, ExecutionLevel.MARGINAL),
        (0.65, -0.1, ExecutionLevel.MARGINAL),
        (0.10, 1.0, ExecutionLevel.REJECT),
        (0.65, -0.5, ExecutionLevel.REJECT),
    ])
    def test_levels(self, thresholds, confidence, ev, level):
        """Test both values must clear a tier"""
        assert execution_level(confidence, ev, *thresholds) is level


class TestEVGate:
    """Test mode-dependent minimum level"""

    def test_autonomous_accepts_low(self, thresholds):
        """Test LOW passes in autonomous mode"""
        result = ev_gate(0.30, 0.5, TradingMode.AUTONOMOUS, *thresholds)

        assert result.level is ExecutionLevel.LOW
        assert result.passed is True

    def test_signal_only_needs_medium(self, thresholds):
        """Test LOW fails in signal-only mode"""
        result = ev_gate(0.30, 0.5, TradingMode.SIGNAL_ONLY, *thresholds)

        assert result.passed is False
        assert result.reason.startswith("ev_gate:")
        assert "below signal_only minimum medium" in result.reason

    def test_manual_review_flagged(self, thresholds):
        """Test manual review acceptances are flagged"""
        result = ev_gate(0.30, 0.5, TradingMode.MANUAL_REVIEW, *thresholds)

        assert result.passed is True
        assert result.reason.endswith("flagged for manual review")

    def test_marginal_rejected(self, thresholds):
        """Test MARGINAL never passes"""
        for mode in TradingMode:
            assert ev_gate(0.22, 0.1, mode, *thresholds).passed is False
