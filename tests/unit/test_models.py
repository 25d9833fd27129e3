"""Unit tests for candidate and decision models."""

import dataclasses

import orjson
import pytest

from tradevet.models.decision import (
    Adjustment,
    AdjustmentDecision,
    AdjustmentKind,
    CategoryScore,
    ConfidenceBreakdown,
    ContradictionReport,
    ExecutionLevel,
    Severity,
    SignalDecision,
)
from tradevet.models.signals import (
    AddCandidate,
    CloseCandidate,
    Direction,
    HoldCandidate,
    OpenLongCandidate,
    OpenShortCandidate,
    ReduceCandidate,
    Side,
    is_entry,
    with_levels,
    with_side,
)


class TestCandidates:
    """Test the candidate variants."""

    def test_directions(self):
        """Test the direction reported by each variant."""
        assert OpenLongCandidate("BTC", 100.0).direction is Direction.BUY_TO_ENTER
        assert OpenShortCandidate("BTC", 100.0).direction is Direction.SELL_TO_ENTER
        assert AddCandidate("BTC", Side.LONG, 100.0).direction is Direction.ADD
        assert HoldCandidate("BTC").direction is Direction.HOLD
        assert CloseCandidate("BTC").direction is Direction.CLOSE
        assert CloseCandidate("BTC", close_all=True).direction is Direction.CLOSE_ALL
        assert ReduceCandidate("BTC", 0.5).direction is Direction.REDUCE

    def test_sides(self):
        """Test entry sides and Side.opposite."""
        assert OpenLongCandidate("BTC", 100.0).side is Side.LONG
        assert OpenShortCandidate("BTC", 100.0).side is Side.SHORT
        assert Side.LONG.opposite is Side.SHORT
        assert Side.SHORT.opposite is Side.LONG

    def test_is_entry(self):
        """Test entry classification."""
        assert is_entry(OpenLongCandidate("BTC", 100.0))
        assert is_entry(AddCandidate("BTC", Side.SHORT, 100.0))
        assert not is_entry(HoldCandidate("BTC"))
        assert not is_entry(CloseCandidate("BTC"))
        assert not is_entry(ReduceCandidate("BTC", 0.5))

    def test_candidates_are_frozen(self):
        """Test that candidates cannot be mutated."""
        candidate = OpenLongCandidate("BTC", 100.0)
        with pytest.raises(dataclasses.FrozenInstanceError):
            candidate.stop_loss = 95.0

    def test_with_levels(self):
        """Test copying a candidate with new levels."""
        original = OpenLongCandidate("BTC", 100.0, stop_loss=97.0, take_profit=106.0)
        updated = with_levels(original, take_profit=108.0)

        assert updated.take_profit == 108.0
        assert updated.stop_loss == 97.0
        assert original.take_profit == 106.0

    def test_with_side_flips_variant(self):
        """Test flipping a long into a short drops its levels."""
        original = OpenLongCandidate("BTC", 100.0, stop_loss=97.0, take_profit=106.0, raw_confidence=0.6)
        flipped = with_side(original, Side.SHORT)

        assert isinstance(flipped, OpenShortCandidate)
        assert flipped.entry_price == 100.0
        assert flipped.stop_loss is None
        assert flipped.take_profit is None
        assert flipped.raw_confidence == 0.6

    def test_with_side_add(self):
        """Test flipping an add candidate keeps the variant."""
        flipped = with_side(AddCandidate("BTC", Side.LONG, 100.0, stop_loss=97.0), Side.SHORT)

        assert isinstance(flipped, AddCandidate)
        assert flipped.side is Side.SHORT
        assert flipped.stop_loss is None


def make_decision(**overrides):
    """Accepted long decision with a consistent EV."""
    values = {
        "candidate": OpenLongCandidate("BTC", 100.0, stop_loss=97.0, take_profit=106.0),
        "confidence": 0.6,
        "expected_value": 0.6 * 2.0 * 150.0 - 0.4 * 150.0,
        "risk_reward_ratio": 2.0,
        "risk_amount": 150.0,
        "position_size": 50.0,
        "leverage": 5.0,
        "execution_level": ExecutionLevel.MEDIUM,
        "accepted": True,
        "reason": "level medium",
        "evaluated_at": 1_700_000_000_000,
    }
    values.update(overrides)
    return SignalDecision(**values)


class TestSignalDecision:
    """Test decision serialization."""

    def test_properties_follow_candidate(self):
        """Test level properties read from the candidate."""
        decision = make_decision()

        assert decision.asset == "BTC"
        assert decision.direction == "buy_to_enter"
        assert decision.entry_price == 100.0
        assert decision.stop_loss == 97.0
        assert decision.take_profit == 106.0

    def test_non_entry_levels_are_none(self):
        """Test that non-entry decisions report no levels."""
        decision = make_decision(candidate=CloseCandidate("BTC"))

        assert decision.entry_price is None
        assert decision.stop_loss is None
        assert decision.to_dict()["is_entry"] is False

    def test_to_dict_full(self):
        """Test serialization of every nested artifact."""
        breakdown = ConfidenceBreakdown(
            category_scores={"trend": CategoryScore(20.0, 25.0, ("daily uptrend",))},
            total_score=20.0,
            max_score=25.0,
            confidence=0.8,
        )
        decision = make_decision(
            breakdown=breakdown,
            contradictions=ContradictionReport(score=5, items=("rsi overbought",), severity=Severity.MEDIUM),
            adjustment=AdjustmentDecision(AdjustmentKind.FLAG_CONTRADICTION, "flagged"),
            adjustments=(Adjustment("take_profit", 104.0, 106.0, "min_reward_risk_2"),),
            warnings=("check funding",),
        )

        data = decision.to_dict()

        assert data["execution_level"] == "medium"
        assert data["breakdown"]["category_scores"]["trend"] == {
            "points": 20.0, "max": 25.0, "details": ["daily uptrend"]
        }
        assert data["contradictions"] == {"score": 5, "items": ["rsi overbought"], "severity": "medium"}
        assert data["adjustment"] == {"kind": "flag_contradiction", "reason": "flagged", "exempt": False}
        assert data["adjustments"] == [{
            "field": "take_profit", "old_value": 104.0, "new_value": 106.0, "rule": "min_reward_risk_2"
        }]
        assert data["warnings"] == ["check funding"]

    def test_to_json_roundtrip(self):
        """Test that the JSON output parses back to to_dict()."""
        decision = make_decision()
        assert orjson.loads(decision.to_json()) == decision.to_dict()

    def test_contradiction_count(self):
        """Test ContradictionReport.count."""
        report = ContradictionReport(score=7, items=("a", "b"), severity=Severity.MEDIUM)
        assert report.count == 2
