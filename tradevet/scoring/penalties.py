"""Confidence penalties applied after scoring"""

from dataclasses import dataclass

from ..config.defaults import ScoringParams
from ..models.decision import ContradictionReport
from ..models.signals import Side
from ..models.snapshot import IndicatorSnapshot


@dataclass(frozen=True)
class PenaltyResult:
    """Combined penalty multiplier and the confidence it produced."""
    multiplier: float
    confidence: float
    items: tuple[str, ...]


def contradiction_penalty(score: int, params: ScoringParams) -> float:
    """Fraction removed for contradictions: 3% per point, at most 1 - floor."""
    kept = max(params.contradiction_floor, 1.0 - params.contradiction_penalty_per_point * score)
    return 1.0 - kept


def momentum_penalty(side: Side, snapshot: IndicatorSnapshot, params: ScoringParams) -> float:
    """
    Flat penalty when the MACD histogram opposes the candidate.

    Tiered by |histogram| as a percentage of price: < 0.1% weak, < 0.25%
    moderate, otherwise strong.
    """
    histogram = snapshot.macd_histogram
    if histogram is None or snapshot.price <= 0:
        return 0.0

    opposing = histogram < 0 if side is Side.LONG else histogram > 0
    if not opposing:
        return 0.0

    relative = abs(histogram) / snapshot.price * 100.0
    if relative < 0.1:
        return params.momentum_penalty_weak
    if relative < 0.25:
        return params.momentum_penalty_moderate
    return params.momentum_penalty_strong


def low_volatility_penalty(snapshot: IndicatorSnapshot, params: ScoringParams) -> float:
    """Penalty when ATR is below the low-volatility threshold."""
    if snapshot.atr_pct is None:
        return 0.0
    if snapshot.atr_pct < params.low_volatility_atr_pct:
        return params.low_volatility_penalty
    return 0.0


def apply_penalties(
    confidence: float,
    side: Side,
    report: ContradictionReport,
    snapshot: IndicatorSnapshot,
    params: ScoringParams
) -> PenaltyResult:
    """
    Apply every penalty to a scored confidence.

    Penalties are summed and the multiplier clamp(1 - sum) is bounded to
    [penalty_floor, penalty_ceiling], so confidence can never go negative.
    """
    items = []
    total = 0.0

    contradiction = contradiction_penalty(report.score, params)
    if contradiction > 0:
        items.append(f"Contradictions ({report.score} pts): -{contradiction:.0%}")
        total += contradiction

    momentum = momentum_penalty(side, snapshot, params)
    if momentum > 0:
        items.append(f"Opposing momentum: -{momentum:.0%}")
        total += momentum

    volatility = low_volatility_penalty(snapshot, params)
    if volatility > 0:
        items.append(f"Low volatility (ATR {snapshot.atr_pct:.2f}%): -{volatility:.0%}")
        total += volatility

    multiplier = max(params.penalty_floor, min(params.penalty_ceiling, 1.0 - total))
    adjusted = max(0.0, min(1.0, confidence * multiplier))

    return PenaltyResult(multiplier=multiplier, confidence=adjusted, items=tuple(items))
