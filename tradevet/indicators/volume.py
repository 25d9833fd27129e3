"""Volume indicators: OBV, VWAP, RVOL, volume trend and cumulative volume delta"""

from dataclasses import dataclass
from typing import Optional, Sequence

from ..data.models import Candle


def obv(closes: Sequence[float], volumes: Sequence[float]) -> list[float]:
    """
    Calculate On-Balance Volume

    Starts at 0; adds volume on a higher close, subtracts it on a lower
    close, carries the total on an equal close.

    Returns:
        OBV series of len(closes), or [] with fewer than 2 closes
    """
    if len(closes) < 2:
        return []

    total = 0.0
    result = [total]
    for i in range(1, len(closes)):
        if closes[i] > closes[i - 1]:
            total += volumes[i]
        elif closes[i] < closes[i - 1]:
            total -= volumes[i]
        result.append(total)

    return result


def vwap(candles: Sequence[Candle]) -> Optional[float]:
    """
    Calculate VWAP over the full window

    VWAP = sum(typical_price * volume) / sum(volume)

    Returns:
        VWAP or None if there are no candles or total volume is 0
    """
    total_volume = sum(c.volume for c in candles)
    if total_volume <= 0:
        return None

    return sum(c.typical_price * c.volume for c in candles) / total_volume


def relative_volume(volumes: Sequence[float], period: int = 20) -> Optional[float]:
    """
    Calculate Relative Volume (RVOL) of the last candle

    RVOL = current_volume / SMA(previous ``period`` volumes)

    Returns:
        RVOL value or None if insufficient data
    """
    if len(volumes) < period + 1:
        return None

    # Use the 'period' values before the current one
    history = volumes[-period - 1:-1]
    volume_average = sum(history) / len(history)

    if volume_average <= 0:
        return None

    return volumes[-1] / volume_average


@dataclass(frozen=True)
class VolumeTrend:
    """Recent volume compared to its longer average."""
    ratio: float
    label: str          # increasing / decreasing / stable


def volume_trend(
    volumes: Sequence[float],
    period: int = 20,
    recent: int = 5
) -> Optional[VolumeTrend]:
    """
    Compare the average of the last ``recent`` volumes to the ``period`` average

    A ratio above 1.2 is increasing, below 0.8 decreasing, otherwise stable.
    """
    if len(volumes) < period or recent > period:
        return None

    period_average = sum(volumes[-period:]) / period
    if period_average <= 0:
        return None

    ratio = (sum(volumes[-recent:]) / recent) / period_average

    if ratio > 1.2:
        label = "increasing"
    elif ratio < 0.8:
        label = "decreasing"
    else:
        label = "stable"

    return VolumeTrend(ratio=ratio, label=label)


@dataclass(frozen=True)
class CVDResult:
    """Cumulative volume delta over a rolling window."""
    cvd: float                      # Running buy - sell total at the last candle
    window_delta: float             # CVD change across the window
    trend: str                      # rising / falling / flat
    price_trend: str                # rising / falling / flat
    divergence: Optional[str]       # bullish / bearish / None


def _direction(change: float) -> str:
    if change > 0:
        return "rising"
    if change < 0:
        return "falling"
    return "flat"


def candle_delta(candle: Candle) -> float:
    """
    Estimated buy - sell volume for one candle

    The buy share is 0.5 + 0.5 * body / range, so a full-range bullish
    candle is all buying and a zero-range candle is split evenly.
    """
    if candle.range <= 0:
        return 0.0

    buy_ratio = 0.5 + 0.5 * candle.body / candle.range
    buy_volume = candle.volume * buy_ratio
    sell_volume = candle.volume - buy_volume
    return buy_volume - sell_volume


def cumulative_volume_delta(candles: Sequence[Candle], window: int = 20) -> Optional[CVDResult]:
    """
    Calculate cumulative volume delta and its divergence from price

    Divergence is bullish when price falls while CVD rises across the
    window, bearish for the mirror case.

    Returns:
        CVDResult or None with fewer than ``window`` candles
    """
    if window < 2 or len(candles) < window:
        return None

    running = 0.0
    cumulative = []
    for candle in candles:
        running += candle_delta(candle)
        cumulative.append(running)

    window_delta = cumulative[-1] - cumulative[-window]
    price_change = candles[-1].close - candles[-window].close

    trend = _direction(window_delta)
    price_trend = _direction(price_change)

    divergence = None
    if price_trend == "falling" and trend == "rising":
        divergence = "bullish"
    elif price_trend == "rising" and trend == "falling":
        divergence = "bearish"

    return CVDResult(
        cvd=running,
        window_delta=window_delta,
        trend=trend,
        price_trend=price_trend,
        divergence=divergence,
    )
