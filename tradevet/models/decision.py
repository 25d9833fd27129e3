"""
Evaluation result models.

ContradictionReport, ConfidenceBreakdown and AdjustmentDecision are the
intermediate artifacts of one pipeline run; SignalDecision is the terminal
artifact handed back to the caller.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

import orjson

from .signals import SignalCandidate, is_entry


class Severity(str, Enum):
    """Contradiction severity buckets."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass(frozen=True)
class ContradictionReport:
    """Indicators opposing the candidate's direction."""
    score: int
    items: tuple[str, ...]
    severity: Severity

    @property
    def count(self) -> int:
        return len(self.items)


@dataclass(frozen=True)
class CategoryScore:
    """Points earned in one scoring category."""
    points: float
    max_points: float
    details: tuple[str, ...] = ()


@dataclass(frozen=True)
class ConfidenceBreakdown:
    """Auditable result of the confidence scorer."""
    category_scores: dict[str, CategoryScore]
    total_score: float
    max_score: float
    confidence: float
    auto_rejected: bool = False
    rejection_reason: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "category_scores": {
                name: {"points": score.points, "max": score.max_points, "details": list(score.details)}
                for name, score in self.category_scores.items()
            },
            "total_score": self.total_score,
            "max_score": self.max_score,
            "confidence": self.confidence,
            "auto_rejected": self.auto_rejected,
            "rejection_reason": self.rejection_reason,
        }


class AdjustmentKind(str, Enum):
    """Outcome of the contradiction adjustment decision."""
    KEEP = "keep"
    FLIP = "flip"
    REJECT = "reject"
    FLAG_CONTRADICTION = "flag_contradiction"


@dataclass(frozen=True)
class AdjustmentDecision:
    """What to do with a candidate given its contradictions."""
    kind: AdjustmentKind
    reason: str
    exempt: bool = False                 # Contrarian or bounce exemption applied


@dataclass(frozen=True)
class Adjustment:
    """Audit record of one documented change to a candidate."""
    field: str
    old_value: Any
    new_value: Any
    rule: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "field": self.field,
            "old_value": self.old_value,
            "new_value": self.new_value,
            "rule": self.rule,
        }


class ExecutionLevel(str, Enum):
    """Tier assigned by the expected value gate."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    MARGINAL = "marginal"
    REJECT = "reject"


@dataclass(frozen=True)
class SignalDecision:
    """Terminal, immutable outcome of evaluating one candidate."""
    candidate: SignalCandidate
    confidence: float
    expected_value: float
    risk_reward_ratio: float
    risk_amount: float
    position_size: float
    leverage: float
    execution_level: ExecutionLevel
    accepted: bool
    reason: str
    evaluated_at: int                                  # Epoch ms
    margin_pct: float = 0.0
    penalty_multiplier: float = 1.0
    breakdown: Optional[ConfidenceBreakdown] = None
    contradictions: Optional[ContradictionReport] = None
    adjustment: Optional[AdjustmentDecision] = None
    adjustments: tuple[Adjustment, ...] = ()
    bounce_mode: bool = False
    trim_recommended: bool = False
    warnings: tuple[str, ...] = field(default_factory=tuple)

    @property
    def asset(self) -> str:
        return self.candidate.asset

    @property
    def direction(self) -> str:
        return self.candidate.direction.value

    @property
    def stop_loss(self) -> Optional[float]:
        return getattr(self.candidate, "stop_loss", None)

    @property
    def take_profit(self) -> Optional[float]:
        return getattr(self.candidate, "take_profit", None)

    @property
    def entry_price(self) -> Optional[float]:
        return getattr(self.candidate, "entry_price", None)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to plain JSON-compatible types."""
        return {
            "asset": self.asset,
            "direction": self.direction,
            "is_entry": is_entry(self.candidate),
            "entry_price": self.entry_price,
            "stop_loss": self.stop_loss,
            "take_profit": self.take_profit,
            "confidence": self.confidence,
            "expected_value": self.expected_value,
            "risk_reward_ratio": self.risk_reward_ratio,
            "risk_amount": self.risk_amount,
            "position_size": self.position_size,
            "leverage": self.leverage,
            "margin_pct": self.margin_pct,
            "execution_level": self.execution_level.value,
            "accepted": self.accepted,
            "reason": self.reason,
            "evaluated_at": self.evaluated_at,
            "penalty_multiplier": self.penalty_multiplier,
            "breakdown": self.breakdown.to_dict() if self.breakdown else None,
            "contradictions": {
                "score": self.contradictions.score,
                "items": list(self.contradictions.items),
                "severity": self.contradictions.severity.value,
            } if self.contradictions else None,
            "adjustment": {
                "kind": self.adjustment.kind.value,
                "reason": self.adjustment.reason,
                "exempt": self.adjustment.exempt,
            } if self.adjustment else None,
            "adjustments": [a.to_dict() for a in self.adjustments],
            "bounce_mode": self.bounce_mode,
            "trim_recommended": self.trim_recommended,
            "warnings": list(self.warnings),
        }

    def to_json(self) -> bytes:
        """Serialize to JSON bytes."""
        return orjson.dumps(self.to_dict())
