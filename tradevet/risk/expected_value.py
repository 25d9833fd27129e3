"""Expected value computation and the tiered, mode-dependent gate"""

from dataclasses import dataclass

from ..config.defaults import ConfidenceThresholds, EVThresholds, TradingMode
from ..models.decision import ExecutionLevel

LEVEL_RANK = {
    ExecutionLevel.REJECT: 0,
    ExecutionLevel.MARGINAL: 1,
    ExecutionLevel.LOW: 2,
    ExecutionLevel.MEDIUM: 3,
    ExecutionLevel.HIGH: 4,
}

MINIMUM_LEVEL = {
    TradingMode.AUTONOMOUS: ExecutionLevel.LOW,
    TradingMode.SIGNAL_ONLY: ExecutionLevel.MEDIUM,
    TradingMode.MANUAL_REVIEW: ExecutionLevel.LOW,
}


def expected_value(probability: float, reward_risk: float, risk_amount: float) -> float:
    """EV = p * (ratio * risk) - (1 - p) * risk"""
    return probability * reward_risk * risk_amount - (1.0 - probability) * risk_amount


def execution_level(
    confidence: float,
    ev: float,
    confidence_thresholds: ConfidenceThresholds,
    ev_thresholds: EVThresholds
) -> ExecutionLevel:
    """
    Tier a (confidence, EV) pair.

    A tier requires both values at or above its thresholds. Either value
    below its reject floor is REJECT; anything else is MARGINAL.
    """
    if confidence < confidence_thresholds.reject or ev < ev_thresholds.reject:
        return ExecutionLevel.REJECT

    for level, conf_min, ev_min in (
        (ExecutionLevel.HIGH, confidence_thresholds.high, ev_thresholds.high),
        (ExecutionLevel.MEDIUM, confidence_thresholds.medium, ev_thresholds.medium),
        (ExecutionLevel.LOW, confidence_thresholds.low, ev_thresholds.low),
    ):
        if confidence >= conf_min and ev >= ev_min:
            return level

    return ExecutionLevel.MARGINAL


@dataclass(frozen=True)
class GateResult:
    """Outcome of the expected value gate."""
    level: ExecutionLevel
    passed: bool
    reason: str


def ev_gate(
    confidence: float,
    ev: float,
    mode: TradingMode,
    confidence_thresholds: ConfidenceThresholds,
    ev_thresholds: EVThresholds
) -> GateResult:
    """
    Apply the mode-dependent minimum execution level.

    Autonomous and manual review accept LOW and above, signal-only accepts
    MEDIUM and above. Manual review acceptances are flagged for review.
    """
    level = execution_level(confidence, ev, confidence_thresholds, ev_thresholds)
    minimum = MINIMUM_LEVEL[mode]
    passed = LEVEL_RANK[level] >= LEVEL_RANK[minimum]

    summary = f"level {level.value} (confidence {confidence:.3f}, EV {ev:.3f})"
    if not passed:
        reason = f"ev_gate: {summary} below {mode.value} minimum {minimum.value}"
    elif mode is TradingMode.MANUAL_REVIEW:
        reason = f"{summary}, flagged for manual review"
    else:
        reason = summary

    return GateResult(level=level, passed=passed, reason=reason)
