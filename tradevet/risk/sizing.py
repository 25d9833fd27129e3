"""Risk budget, position size, leverage and margin"""

from dataclasses import dataclass
from typing import Optional

from ..config.defaults import TradingConfig
from ..models.signals import Side
from ..models.snapshot import IndicatorSnapshot


@dataclass(frozen=True)
class SizingResult:
    """Position sizing outcome."""
    risk_pct: float                  # % of equity at risk
    risk_amount: float               # Account currency at risk
    position_size: float
    leverage: float
    margin_pct: float
    stop_distance: float
    reward_risk: float


def base_risk_pct(confidence: float) -> float:
    """Confidence-tiered risk budget: 2% / 1.5% / 1% / 0.5% of equity."""
    if confidence >= 0.8:
        return 2.0
    if confidence >= 0.6:
        return 1.5
    if confidence >= 0.4:
        return 1.0
    return 0.5


def sizing_multiplier(confidence: float, config: TradingConfig) -> float:
    """Position sizing multiplier for the confidence tier."""
    thresholds = config.confidence_thresholds
    multipliers = config.position_sizing
    if confidence >= thresholds.high:
        return multipliers.high
    if confidence >= thresholds.medium:
        return multipliers.medium
    return multipliers.low


def risk_budget_pct(confidence: float, config: TradingConfig) -> float:
    """Risk budget capped by ``max_risk_per_trade`` and scaled by the tier multiplier."""
    pct = min(base_risk_pct(confidence), config.safety.max_risk_per_trade)
    return pct * sizing_multiplier(confidence, config)


def _structure_agrees(side: Side, snapshot: IndicatorSnapshot) -> bool:
    structure = snapshot.structure
    if structure is None:
        return False
    return structure.label == ("bullish" if side is Side.LONG else "bearish")


def _near_volume_node(snapshot: IndicatorSnapshot, within_pct: float = 1.0) -> bool:
    profile = snapshot.volume_profile
    price = snapshot.price
    if profile is None or price <= 0:
        return False

    nodes = [profile.poc]
    hvn = profile.nearest_hvn(price)
    if hvn is not None:
        nodes.append(hvn)
    return any(abs(node - price) / price * 100.0 <= within_pct for node in nodes)


def calculate_leverage(
    side: Side,
    confidence: float,
    reward_risk: float,
    snapshot: IndicatorSnapshot,
    base: float,
    max_leverage: float
) -> float:
    """
    Base leverage plus bonuses, clamped to [1, max_leverage].

    Volatility: ATR% < 2 +2, < 4 +1, > 6 -1. ADX > 40 +2, > 25 +1.
    Confidence >= 0.7 +2, >= 0.5 +1. Reward:risk >= 3 +1. Clear structure
    +1. Near a volume node +1.
    """
    leverage = base

    atr_pct = snapshot.atr_pct
    if atr_pct is not None:
        if atr_pct < 2.0:
            leverage += 2
        elif atr_pct < 4.0:
            leverage += 1
        elif atr_pct > 6.0:
            leverage -= 1

    if snapshot.adx is not None:
        if snapshot.adx > 40:
            leverage += 2
        elif snapshot.adx > 25:
            leverage += 1

    if confidence >= 0.7:
        leverage += 2
    elif confidence >= 0.5:
        leverage += 1

    if reward_risk >= 3.0:
        leverage += 1
    if _structure_agrees(side, snapshot):
        leverage += 1
    if _near_volume_node(snapshot):
        leverage += 1

    return max(1.0, min(max_leverage, leverage))


def calculate_margin_pct(
    side: Side,
    confidence: float,
    reward_risk: float,
    snapshot: IndicatorSnapshot,
    base: float
) -> float:
    """
    Base margin percentage plus adjustments, clamped to [25, 100].

    Confidence >= 0.7 +10, >= 0.5 +5. Reward:risk >= 3 +10. ATR% > 4 -10.
    Clear structure +5. Near a volume node +5. ADX > 25 +5.
    """
    margin = base

    if confidence >= 0.7:
        margin += 10
    elif confidence >= 0.5:
        margin += 5

    if reward_risk >= 3.0:
        margin += 10
    if snapshot.atr_pct is not None and snapshot.atr_pct > 4.0:
        margin -= 10
    if _structure_agrees(side, snapshot):
        margin += 5
    if _near_volume_node(snapshot):
        margin += 5
    if snapshot.adx is not None and snapshot.adx > 25:
        margin += 5

    return max(25.0, min(100.0, margin))


def calculate_sizing(
    side: Side,
    entry: float,
    stop_loss: float,
    take_profit: float,
    confidence: float,
    snapshot: IndicatorSnapshot,
    config: TradingConfig,
    equity: Optional[float] = None
) -> SizingResult:
    """
    Size a position.

    position_size = risk_amount / (stop_distance * leverage)

    Args:
        side: Position side
        entry: Entry price
        stop_loss: Stop price
        take_profit: Target price
        confidence: Final confidence
        snapshot: Indicator snapshot
        config: Trading configuration
        equity: Account equity; defaults to ``risk.default_account_equity``

    Returns:
        SizingResult
    """
    if equity is None:
        equity = config.risk.default_account_equity

    distance = abs(entry - stop_loss)
    reward_risk = abs(take_profit - entry) / distance if distance > 0 else 0.0

    risk_pct = risk_budget_pct(confidence, config)
    risk_amount = equity * risk_pct / 100.0

    leverage = calculate_leverage(
        side, confidence, reward_risk, snapshot,
        config.risk.base_leverage, config.max_leverage_for(snapshot.asset),
    )
    margin_pct = calculate_margin_pct(side, confidence, reward_risk, snapshot, config.risk.base_margin_pct)

    position_size = risk_amount / (distance * leverage) if distance > 0 else 0.0

    return SizingResult(
        risk_pct=risk_pct,
        risk_amount=risk_amount,
        position_size=position_size,
        leverage=leverage,
        margin_pct=margin_pct,
        stop_distance=distance,
        reward_risk=reward_risk,
    )
