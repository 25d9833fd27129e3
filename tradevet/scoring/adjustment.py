"""
Contradiction adjustment decision.

Turns a contradiction report into a single keep / flip / reject / flag
decision. Flipping is off unless explicitly configured; by default strong
contradictions are reported and, at the extreme threshold, rejected.
"""

from ..config.defaults import TradingConfig
from ..models.decision import AdjustmentDecision, AdjustmentKind, ContradictionReport
from ..models.signals import Side
from ..models.snapshot import IndicatorSnapshot

FLAG_THRESHOLD = 4
LOWER_BAND_PROXIMITY = 1.005


def contrarian_exemption(side: Side, snapshot: IndicatorSnapshot, config: TradingConfig) -> bool:
    """
    Whether a candidate qualifies as a deliberate oversold/overbought play.

    Requires ``limited_pairs.allow_oversold_plays``. A long qualifies with
    RSI <= 30 (or %K <= 20) at or below the lower band; a short with the
    mirror conditions; any candidate riding a detected bounce on its own
    side qualifies.
    """
    if not config.limited_pairs.allow_oversold_plays:
        return False

    bounce = snapshot.bounce
    if bounce is not None and bounce.detected and bounce.side is side:
        return True

    band = snapshot.bollinger
    if band is None:
        return False

    rsi_value, stoch_k = snapshot.rsi, snapshot.stoch_k

    if side is Side.LONG:
        extreme = (rsi_value is not None and rsi_value <= 30) or (stoch_k is not None and stoch_k <= 20)
        return extreme and snapshot.price <= band.lower * LOWER_BAND_PROXIMITY

    extreme = (rsi_value is not None and rsi_value >= 70) or (stoch_k is not None and stoch_k >= 80)
    return extreme and snapshot.price >= band.upper / LOWER_BAND_PROXIMITY


def decide_adjustment(
    side: Side,
    report: ContradictionReport,
    snapshot: IndicatorSnapshot,
    config: TradingConfig
) -> AdjustmentDecision:
    """
    Decide how to treat a candidate given its contradictions.

    Returns:
        REJECT or FLIP at the extreme threshold (FLAG with ``exempt`` for
        contrarian plays), FLAG_CONTRADICTION from medium severity up,
        KEEP otherwise
    """
    params = config.scoring

    if report.score >= params.extreme_contradiction_score:
        if contrarian_exemption(side, snapshot, config):
            return AdjustmentDecision(
                kind=AdjustmentKind.FLAG_CONTRADICTION,
                reason=f"Extreme contradiction score {report.score} exempted as contrarian play",
                exempt=True,
            )
        if params.allow_signal_flip:
            return AdjustmentDecision(
                kind=AdjustmentKind.FLIP,
                reason=f"Extreme contradiction score {report.score}: flipping to {side.opposite.value}",
            )
        return AdjustmentDecision(
            kind=AdjustmentKind.REJECT,
            reason=f"Extreme contradiction score {report.score} >= {params.extreme_contradiction_score}",
        )

    if report.score >= FLAG_THRESHOLD:
        return AdjustmentDecision(
            kind=AdjustmentKind.FLAG_CONTRADICTION,
            reason=f"{report.severity.value} contradictions ({report.score} pts)",
        )

    return AdjustmentDecision(kind=AdjustmentKind.KEEP, reason="No significant contradictions")
