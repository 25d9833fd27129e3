"""
Bounce state machine replay.

Starting from the detection candle, every later candle of the series is
replayed through the persistence and re-entry rules. The reclaim check,
decay timer, exit monitor and take-profit trail are evaluated at the
latest candle. The same series always yields the same assessment.
"""

from typing import Optional

from ..config.defaults import BounceParams
from ..data.models import OHLCVSeries
from ..indicators.moving_averages import ema
from ..logging.config import get_state_logger, log_state_transition
from ..models.signals import Side
from .models import BounceAssessment, BounceSignal, BounceState

state_logger = get_state_logger(__name__)

RECLAIM_PERIOD = 20
EXIT_EMA_PERIOD = 8


def _ema_at(series: list[float], period: int, index: int) -> Optional[float]:
    position = index - (period - 1)
    if position < 0 or position >= len(series):
        return None
    return series[position]


def _favorable_move_pct(side: Side, start: float, price: float) -> float:
    if start <= 0:
        return 0.0
    change = (price - start) / start * 100.0
    return change if side is Side.LONG else -change


def _reclaimed(
    side: Side,
    close: float,
    ema20: Optional[float],
    h4_ema8: Optional[float]
) -> Optional[bool]:
    """
    Moving-average reclaim status.

    Longs must close above EMA(20) or the 4h EMA(8); shorts must stay
    below EMA(20). None when no reference average is available.
    """
    if side is Side.LONG:
        checks = [close > level for level in (ema20, h4_ema8) if level is not None]
        return any(checks) if checks else None

    if ema20 is None:
        return None
    return close < ema20


def decay_threshold(params: BounceParams, interval: str) -> int:
    """Candles before decay starts for an interval (1h threshold for unlisted intervals)."""
    return int(params.decay_after.get(interval, params.decay_after.get("1h", 12)))


def assess_bounce(
    signal: BounceSignal,
    series: OHLCVSeries,
    params: BounceParams,
    h4_series: Optional[OHLCVSeries] = None
) -> BounceAssessment:
    """
    Replay the bounce lifecycle from detection to the latest candle.

    Args:
        signal: Detected bounce
        series: Series the bounce was detected on
        params: Bounce parameters
        h4_series: Optional 4h series for the EMA(8) reclaim alternative

    Returns:
        BounceAssessment with the confidence factor and exit recommendations
    """
    closes = series.closes
    side = signal.side
    start = signal.detection_index
    latest = len(closes) - 1

    ema20 = ema(closes, RECLAIM_PERIOD)
    ema8 = ema(closes, EXIT_EMA_PERIOD)
    h4_ema8 = None
    if h4_series is not None:
        h4_values = ema(h4_series.closes, EXIT_EMA_PERIOD)
        h4_ema8 = h4_values[-1] if h4_values else None

    assessment = BounceAssessment(signal=signal, state=BounceState.NONE)
    assessment = assessment.transition(BounceState.BOUNCE_MODE, "band_reentry", 0)

    failure_offset = None
    max_move = 0.0

    for index in range(start + 1, latest + 1):
        offset = index - start
        close = closes[index]
        move = _favorable_move_pct(side, signal.detection_price, close)
        max_move = max(max_move, move)

        if assessment.state is BounceState.BOUNCE_MODE:
            if move >= params.persistence_min_move_pct:
                assessment = assessment.transition(BounceState.CONFIRMED, "favorable_move", offset)
            elif offset >= params.persistence_candles:
                failure_offset = offset
                assessment = assessment.transition(BounceState.FAILED, "no_follow_through", offset)
                assessment = assessment.with_factor(
                    params.persistence_failure_factor,
                    f"Persistence failed: no {params.persistence_min_move_pct}% move "
                    f"within {params.persistence_candles} candles"
                )

        elif assessment.state is BounceState.FAILED and failure_offset is not None:
            if offset - failure_offset <= params.reentry_window:
                reclaim = _reclaimed(side, close, _ema_at(ema20, RECLAIM_PERIOD, index), h4_ema8)
                if reclaim:
                    boost = (params.reentry_boost_strong if signal.strength >= 0.6
                             else params.reentry_boost_weak)
                    assessment = assessment.transition(BounceState.REENTERED, "reclaim_after_failure", offset)
                    assessment = assessment.with_factor(
                        1.0 + boost,
                        f"Second attempt: reclaim within {params.reentry_window} candles (+{boost:.0%})"
                    )

    assessment = assessment.with_updates(max_favorable_move_pct=max_move)
    close = closes[latest]

    if assessment.state in (BounceState.CONFIRMED, BounceState.FAILED):
        reclaim = _reclaimed(side, close, _ema_at(ema20, RECLAIM_PERIOD, latest), h4_ema8)
        if reclaim is False:
            assessment = assessment.with_factor(
                1.0 - params.reclaim_penalty,
                f"Moving average not reclaimed (-{params.reclaim_penalty:.0%})"
            )

    threshold = decay_threshold(params, series.interval)
    if signal.candles_since > threshold:
        decay = min(params.decay_cap, params.decay_per_candle * (signal.candles_since - threshold))
        assessment = assessment.with_factor(
            1.0 - decay,
            f"Bounce aging: {signal.candles_since} candles since detection (-{decay:.0%})"
        ).with_updates(decay_applied=decay)

    if latest > start:
        assessment = _apply_exit_rules(assessment, side, closes, ema8, latest, params)

    for record in assessment.transitions:
        log_state_transition(
            state_logger,
            asset=series.asset,
            from_state=record.from_state.value,
            to_state=record.to_state.value,
            trigger=record.trigger,
            context={"candle_offset": record.candle_offset}
        )

    return assessment


def _apply_exit_rules(
    assessment: BounceAssessment,
    side: Side,
    closes: list[float],
    ema8: list[float],
    latest: int,
    params: BounceParams
) -> BounceAssessment:
    current_ema = _ema_at(ema8, EXIT_EMA_PERIOD, latest)
    previous_ema = _ema_at(ema8, EXIT_EMA_PERIOD, latest - 1)
    if current_ema is None or previous_ema is None:
        return assessment

    close = closes[latest]
    previous_close = closes[latest - 1]
    offset = assessment.signal.candles_since

    if side is Side.LONG:
        against_now = close < current_ema
        crossed = previous_close >= previous_ema and against_now
    else:
        against_now = close > current_ema
        crossed = previous_close <= previous_ema and against_now

    if crossed:
        assessment = assessment.with_updates(
            trailed_take_profit=close,
            notes=assessment.notes + (f"Take-profit trailed to {close} on EMA(8) cross",),
        )

    if against_now and assessment.max_favorable_move_pct > params.trim_trigger_pct:
        assessment = assessment.with_updates(
            trim_recommended=True,
            trim_fraction=params.trim_fraction,
            notes=assessment.notes + (
                f"Trim {params.trim_fraction:.0%}: gave back a "
                f"{assessment.max_favorable_move_pct:.2f}% move across EMA(8)",
            ),
        )

    if crossed or assessment.trim_recommended:
        assessment = assessment.transition(BounceState.EXIT_SIGNALLED, "ema8_cross", offset)

    return assessment
