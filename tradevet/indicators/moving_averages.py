"""Simple and exponential moving averages"""

from typing import Any, Optional, Sequence


def sma(values: Sequence[float], period: int) -> list[float]:
    """
    Calculate Simple Moving Average

    Args:
        values: Input values in chronological order
        period: Window length

    Returns:
        SMA series of length len(values) - period + 1, or [] if insufficient data
    """
    if period <= 0 or len(values) < period:
        return []

    return [
        sum(values[i - period + 1:i + 1]) / period
        for i in range(period - 1, len(values))
    ]


def ema(values: Sequence[float], period: int) -> list[float]:
    """
    Calculate Exponential Moving Average

    The first value is seeded with the SMA of the first ``period`` values,
    then v[i] = (x[i] - v[i-1]) * 2/(period+1) + v[i-1].

    Args:
        values: Input values in chronological order
        period: EMA period

    Returns:
        EMA series of length len(values) - period + 1, or [] if insufficient data
    """
    if period <= 0 or len(values) < period:
        return []

    multiplier = 2.0 / (period + 1)
    current = sum(values[:period]) / period
    result = [current]

    for value in values[period:]:
        current = (value - current) * multiplier + current
        result.append(current)

    return result


def latest(series: Sequence) -> Optional[Any]:
    """Last element of an indicator series, or None if it is empty."""
    if not series:
        return None
    return series[-1]


def previous(series: Sequence) -> Optional[Any]:
    """Second to last element of an indicator series, or None."""
    if len(series) < 2:
        return None
    return series[-2]
