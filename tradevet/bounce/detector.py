"""Bollinger Band bounce detection"""

from typing import Optional, Sequence

import structlog

from ..config.defaults import BounceParams, IndicatorParams
from ..data.models import OHLCVSeries
from ..indicators.momentum import rsi, stochastic
from ..indicators.volatility import atr, bollinger, natr
from ..models.signals import Side
from .models import BounceInputs, BounceSignal, Confirmation

logger = structlog.get_logger(__name__)


def bounce_side(inputs: BounceInputs) -> Optional[Side]:
    """
    Side implied by a close back inside the bands.

    Returns:
        LONG after a close below the lower band followed by a close at or
        above it, SHORT for the upper-band mirror, None otherwise
    """
    if inputs.previous_close < inputs.previous_lower and inputs.close >= inputs.lower:
        return Side.LONG
    if inputs.previous_close > inputs.previous_upper and inputs.close <= inputs.upper:
        return Side.SHORT
    return None


def evaluate_confirmations(
    inputs: BounceInputs,
    side: Side,
    params: BounceParams
) -> tuple[Confirmation, ...]:
    """Confirmations supporting a bounce on ``side``."""
    confirmations = []

    if inputs.rsi_values:
        if side is Side.LONG and min(inputs.rsi_values) <= params.rsi_oversold:
            confirmations.append(Confirmation.RSI_EXTREME)
        elif side is Side.SHORT and max(inputs.rsi_values) >= params.rsi_overbought:
            confirmations.append(Confirmation.RSI_EXTREME)

    if inputs.stoch_k is not None and inputs.stoch_d is not None:
        if (side is Side.LONG and inputs.stoch_k > inputs.stoch_d) or \
                (side is Side.SHORT and inputs.stoch_k < inputs.stoch_d):
            confirmations.append(Confirmation.STOCHASTIC_CROSS)

    if inputs.volume is not None and inputs.average_volume:
        if inputs.volume > inputs.average_volume:
            confirmations.append(Confirmation.VOLUME_SPIKE)

    if inputs.atr is not None and inputs.close > 0:
        if natr(inputs.atr, inputs.close) > params.min_atr_pct:
            confirmations.append(Confirmation.VOLATILITY)

        if inputs.body is not None and abs(inputs.body) > params.body_atr_ratio * inputs.atr:
            confirmations.append(Confirmation.STRONG_BODY)

    return tuple(confirmations)


def bounce_strength(confirmation_count: int) -> float:
    """0.2 per confirmation, bounded to [0.2, 1.0]."""
    return max(0.2, min(1.0, 0.2 * confirmation_count))


def detect_from_inputs(
    inputs: BounceInputs,
    params: BounceParams,
    detection_index: int = 0,
    candles_since: int = 0
) -> Optional[BounceSignal]:
    """
    Evaluate one band re-entry candle.

    Returns:
        BounceSignal (``detected`` reflects the confirmation threshold) or
        None when the candle is not a band re-entry
    """
    side = bounce_side(inputs)
    if side is None:
        return None

    confirmations = evaluate_confirmations(inputs, side, params)

    return BounceSignal(
        detected=len(confirmations) >= params.min_confirmations,
        side=side,
        strength=bounce_strength(len(confirmations)),
        confirmations=confirmations,
        band_level=inputs.lower if side is Side.LONG else inputs.upper,
        detection_index=detection_index,
        detection_price=inputs.close,
        candles_since=candles_since,
    )


def _at(series: Sequence, offset: int, index: int):
    """Value of an indicator series at a candle index, or None."""
    position = index - offset
    if position < 0 or position >= len(series):
        return None
    return series[position]


def detect_bounce(
    series: OHLCVSeries,
    params: BounceParams,
    indicator_params: IndicatorParams
) -> Optional[BounceSignal]:
    """
    Find the most recent Bollinger Band bounce in the last ``params.lookback`` candles.

    The most recent confirmed bounce wins; without one, the most recent
    unconfirmed re-entry is returned so callers can report why it was not
    accepted.

    Returns:
        BounceSignal or None when no band re-entry happened in the window
    """
    if not params.enabled:
        return None

    closes, highs, lows, volumes = series.closes, series.highs, series.lows, series.volumes
    count = len(closes)

    period = indicator_params.bollinger_period
    bands = bollinger(closes, period, indicator_params.bollinger_std)
    if len(bands) < 2:
        return None

    rsi_series = rsi(closes, indicator_params.rsi_period)
    stoch_series = stochastic(highs, lows, closes, indicator_params.stochastic_k, indicator_params.stochastic_d)
    atr_series = atr(highs, lows, closes, indicator_params.atr_period)

    band_offset = period - 1
    rsi_offset = indicator_params.rsi_period
    stoch_offset = indicator_params.stochastic_k + indicator_params.stochastic_d - 2
    atr_offset = indicator_params.atr_period
    volume_period = indicator_params.volume_average_period

    first = max(band_offset + 1, count - params.lookback)
    fallback = None

    for index in range(count - 1, first - 1, -1):
        band = _at(bands, band_offset, index)
        previous_band = _at(bands, band_offset, index - 1)

        rsi_values = tuple(
            value for value in (_at(rsi_series, rsi_offset, index - 1), _at(rsi_series, rsi_offset, index))
            if value is not None
        )
        stoch = _at(stoch_series, stoch_offset, index)
        history = volumes[max(0, index - volume_period):index]

        inputs = BounceInputs(
            previous_close=closes[index - 1],
            close=closes[index],
            previous_upper=previous_band.upper,
            previous_lower=previous_band.lower,
            upper=band.upper,
            lower=band.lower,
            rsi_values=rsi_values,
            stoch_k=stoch.k if stoch else None,
            stoch_d=stoch.d if stoch else None,
            volume=volumes[index],
            average_volume=sum(history) / len(history) if history else None,
            atr=_at(atr_series, atr_offset, index),
            body=series[index].body,
        )

        signal = detect_from_inputs(inputs, params, detection_index=index, candles_since=count - 1 - index)
        if signal is None:
            continue

        if signal.detected:
            logger.debug(
                "Bounce detected",
                asset=series.asset,
                side=signal.side.value,
                strength=signal.strength,
                confirmations=[c.value for c in signal.confirmations],
                candles_since=signal.candles_since
            )
            return signal

        if fallback is None:
            fallback = signal

    return fallback
