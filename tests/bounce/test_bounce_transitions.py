"""Tests for the bounce state machine replay"""

from dataclasses import replace

import pytest

from tradevet.bounce.models import BounceSignal, BounceState, Confirmation
from tradevet.bounce.transitions import assess_bounce, decay_threshold
from tradevet.config.defaults import BounceParams
from tradevet.models.signals import Side

DETECTION_INDEX = 52


@pytest.fixture
def params():
    return BounceParams()


def long_signal(candles_since: int, strength: float = 1.0) -> BounceSignal:
    return BounceSignal(
        detected=True,
        side=Side.LONG,
        strength=strength,
        confirmations=(Confirmation.RSI_EXTREME, Confirmation.VOLUME_SPIKE),
        band_level=95.0,
        detection_index=DETECTION_INDEX,
        detection_price=99.0,
        candles_since=candles_since,
    )


def states(assessment):
    return [t.to_state for t in assessment.transitions]


class TestPersistence:
    """Test persistence confirmation and failure"""

    def test_confirmed_by_favorable_move(self, bounce_followup, params):
        """Test a 0.5% favorable move confirms the bounce"""
        series = bounce_followup([100.0])
        assessment = assess_bounce(long_signal(1), series, params)

        assert assessment.state is BounceState.CONFIRMED
        assert states(assessment) == [BounceState.BOUNCE_MODE, BounceState.CONFIRMED]
        assert assessment.max_favorable_move_pct == pytest.approx(100.0 / 99.0 * 100.0 - 100.0)

    def test_confirmed_without_reclaim_penalized(self, bounce_followup, params):
        """Test closing under EMA(20) costs the reclaim penalty"""
        assessment = assess_bounce(long_signal(1), bounce_followup([100.0]), params)

        assert assessment.confidence_factor == pytest.approx(0.85)
        assert any("not reclaimed" in note for note in assessment.notes)

    def test_persistence_failure(self, bounce_followup, params):
        """Test no follow-through within three candles halves confidence"""
        series = bounce_followup([99.1, 99.2, 99.0])
        assessment = assess_bounce(long_signal(3), series, params)

        assert assessment.state is BounceState.FAILED
        assert BounceState.FAILED in states(assessment)
        # Failure factor and the reclaim penalty
        assert assessment.confidence_factor == pytest.approx(0.5 * 0.85)

    def test_reentry_after_failure(self, bounce_followup, params):
        """Test a reclaim soon after failure boosts confidence"""
        series = bounce_followup([99.1, 99.2, 99.0, 110.0])
        assessment = assess_bounce(long_signal(4), series, params)

        assert assessment.state is BounceState.REENTERED
        assert states(assessment)[-2:] == [BounceState.FAILED, BounceState.REENTERED]
        assert assessment.confidence_factor == pytest.approx(0.5 * 1.15)

    def test_weak_bounce_smaller_boost(self, bounce_followup, params):
        """Test weak bounces get the smaller re-entry boost"""
        series = bounce_followup([99.1, 99.2, 99.0, 110.0])
        assessment = assess_bounce(long_signal(4, strength=0.4), series, params)

        assert assessment.confidence_factor == pytest.approx(0.5 * 1.10)


class TestDecay:
    """Test bounce aging"""

    def test_decay_thresholds(self, params):
        """Test per-interval thresholds with the 1h fallback"""
        assert decay_threshold(params, "1h") == 12
        assert decay_threshold(params, "4h") == 6
        assert decay_threshold(params, "15m") == 12

    def test_decay_applied(self, bounce_followup, params):
        """Test 2% per candle past the threshold"""
        series = bounce_followup([101.0] * 20)
        assessment = assess_bounce(long_signal(20), series, params)

        assert assessment.decay_applied == pytest.approx(0.16)
        assert any("Bounce aging" in note for note in assessment.notes)
        assert assessment.confidence_factor < 0.84 + 1e-9

    def test_decay_capped(self, bounce_followup, params):
        """Test decay never exceeds the cap"""
        series = bounce_followup([101.0] * 20)
        assessment = assess_bounce(long_signal(20), series, replace(params, decay_per_candle=0.2))
        assert assessment.decay_applied == pytest.approx(0.5)


class TestExitRules:
    """Test EMA(8) exit monitoring"""

    def test_trim_and_trail_on_ema8_cross(self, bounce_followup, params):
        """Test giving back a large move across EMA(8) trims and trails"""
        series = bounce_followup([102.0, 105.0, 108.0, 101.0])
        assessment = assess_bounce(long_signal(4), series, params)

        assert assessment.state is BounceState.EXIT_SIGNALLED
        assert assessment.trim_recommended is True
        assert assessment.trim_fraction == 0.5
        assert assessment.trailed_take_profit == 101.0

    def test_no_exit_while_above_ema8(self, bounce_followup, params):
        """Test a running bounce keeps its target"""
        series = bounce_followup([99.1, 99.2, 99.0, 110.0])
        assessment = assess_bounce(long_signal(4), series, params)

        assert assessment.trim_recommended is False
        assert assessment.trailed_take_profit is None

    def test_detection_candle_only(self, bounce_series, params):
        """Test an assessment at the detection candle"""
        assessment = assess_bounce(long_signal(0), bounce_series, params)

        assert assessment.state is BounceState.BOUNCE_MODE
        assert assessment.confidence_factor == 1.0
        assert assessment.transitions[0].from_state is BounceState.NONE


class TestDeterminism:
    """Test replay is deterministic"""

    def test_same_series_same_assessment(self, bounce_followup, params):
        """Test replaying twice gives identical results"""
        series = bounce_followup([102.0, 105.0, 108.0, 101.0])
        assert assess_bounce(long_signal(4), series, params) == assess_bounce(long_signal(4), series, params)
