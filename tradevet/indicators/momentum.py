"""Momentum oscillators: RSI, MACD, Stochastic, CCI and Williams %R"""

from dataclasses import dataclass
from typing import Optional, Sequence

from .moving_averages import ema, sma


def _rsi_value(avg_gain: float, avg_loss: float) -> float:
    if avg_loss == 0:
        return 100.0
    rs = avg_gain / avg_loss
    return 100.0 - 100.0 / (1.0 + rs)


def rsi(closes: Sequence[float], period: int = 14) -> list[float]:
    """
    Calculate Relative Strength Index with Wilder smoothing

    Args:
        closes: Closing prices in chronological order
        period: RSI period (default 14)

    Returns:
        RSI series in [0, 100] of length len(closes) - period,
        or [] if fewer than period + 1 closes
    """
    if period <= 0 or len(closes) < period + 1:
        return []

    changes = [closes[i] - closes[i - 1] for i in range(1, len(closes))]
    gains = [max(change, 0.0) for change in changes]
    losses = [max(-change, 0.0) for change in changes]

    avg_gain = sum(gains[:period]) / period
    avg_loss = sum(losses[:period]) / period
    result = [_rsi_value(avg_gain, avg_loss)]

    for i in range(period, len(changes)):
        avg_gain = (avg_gain * (period - 1) + gains[i]) / period
        avg_loss = (avg_loss * (period - 1) + losses[i]) / period
        result.append(_rsi_value(avg_gain, avg_loss))

    return result


@dataclass(frozen=True)
class MACDResult:
    """MACD line, signal line and histogram.

    ``signal_line`` and ``histogram`` are aligned with each other and with
    the tail of ``macd_line``.
    """
    macd_line: list[float]
    signal_line: list[float]
    histogram: list[float]

    @property
    def macd(self) -> float:
        return self.macd_line[-1]

    @property
    def signal(self) -> float:
        return self.signal_line[-1]

    @property
    def last_histogram(self) -> float:
        return self.histogram[-1]

    @property
    def previous_histogram(self) -> Optional[float]:
        if len(self.histogram) < 2:
            return None
        return self.histogram[-2]


def macd(
    closes: Sequence[float],
    fast: int = 12,
    slow: int = 26,
    signal: int = 9
) -> Optional[MACDResult]:
    """
    Calculate MACD

    The fast EMA starts earlier than the slow EMA, so it is trimmed to
    line up with the slow EMA before the MACD line is formed.

    Returns:
        MACDResult or None if there are fewer than slow + signal - 1 closes
    """
    if fast >= slow:
        return None

    slow_ema = ema(closes, slow)
    if not slow_ema:
        return None

    fast_ema = ema(closes, fast)[slow - fast:]
    macd_line = [f - s for f, s in zip(fast_ema, slow_ema)]

    signal_line = ema(macd_line, signal)
    if not signal_line:
        return None

    aligned = macd_line[signal - 1:]
    histogram = [m - s for m, s in zip(aligned, signal_line)]

    return MACDResult(macd_line=macd_line, signal_line=signal_line, histogram=histogram)


def _range_position(high: float, low: float, close: float) -> Optional[float]:
    """Close position within [low, high] as a 0..1 fraction; None on zero range."""
    price_range = high - low
    if price_range == 0:
        return None
    return (close - low) / price_range


@dataclass(frozen=True)
class StochasticPoint:
    """Stochastic %K and %D values."""
    k: float
    d: float


def stochastic(
    highs: Sequence[float],
    lows: Sequence[float],
    closes: Sequence[float],
    k_period: int = 14,
    d_period: int = 3
) -> list[StochasticPoint]:
    """
    Calculate the Stochastic oscillator

    %K = (close - lowest low) / (highest high - lowest low) * 100, 50 on a
    flat window. %D = SMA(%K, d_period).

    Returns:
        Points aligned to the last len(%D) candles, or [] if insufficient data
    """
    if len(closes) < k_period:
        return []

    k_values = []
    for i in range(k_period - 1, len(closes)):
        window_high = max(highs[i - k_period + 1:i + 1])
        window_low = min(lows[i - k_period + 1:i + 1])
        position = _range_position(window_high, window_low, closes[i])
        k_values.append(50.0 if position is None else position * 100.0)

    d_values = sma(k_values, d_period)
    if not d_values:
        return []

    return [
        StochasticPoint(k=k, d=d)
        for k, d in zip(k_values[d_period - 1:], d_values)
    ]


def cci(
    highs: Sequence[float],
    lows: Sequence[float],
    closes: Sequence[float],
    period: int = 20
) -> list[float]:
    """
    Calculate Commodity Channel Index

    CCI = (TP - SMA(TP)) / (0.015 * mean deviation), 0 when the mean
    deviation is 0.
    """
    if period <= 0 or len(closes) < period:
        return []

    typical = [(h + l + c) / 3.0 for h, l, c in zip(highs, lows, closes)]
    result = []

    for i in range(period - 1, len(typical)):
        window = typical[i - period + 1:i + 1]
        mean = sum(window) / period
        mean_deviation = sum(abs(value - mean) for value in window) / period
        if mean_deviation == 0:
            result.append(0.0)
        else:
            result.append((typical[i] - mean) / (0.015 * mean_deviation))

    return result


def williams_r(
    highs: Sequence[float],
    lows: Sequence[float],
    closes: Sequence[float],
    period: int = 14
) -> list[float]:
    """
    Calculate Williams %R in [-100, 0], -50 on a flat window
    """
    if period <= 0 or len(closes) < period:
        return []

    result = []
    for i in range(period - 1, len(closes)):
        window_high = max(highs[i - period + 1:i + 1])
        window_low = min(lows[i - period + 1:i + 1])
        position = _range_position(window_high, window_low, closes[i])
        result.append(-50.0 if position is None else (position - 1.0) * 100.0)

    return result
