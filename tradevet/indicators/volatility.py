"""ATR, NATR and Bollinger Band calculations"""

import math
from dataclasses import dataclass
from typing import Optional, Sequence

from .moving_averages import sma


def true_range(
    highs: Sequence[float],
    lows: Sequence[float],
    closes: Sequence[float]
) -> list[float]:
    """
    Calculate True Range for every candle that has a previous close

    TR = max(high - low, abs(high - prev_close), abs(low - prev_close))

    Returns:
        TR series of length len(closes) - 1
    """
    result = []
    for i in range(1, len(closes)):
        previous_close = closes[i - 1]
        result.append(max(
            highs[i] - lows[i],
            abs(highs[i] - previous_close),
            abs(lows[i] - previous_close),
        ))
    return result


def atr(
    highs: Sequence[float],
    lows: Sequence[float],
    closes: Sequence[float],
    period: int = 14
) -> list[float]:
    """
    Calculate Average True Range

    Seeded with the SMA of the first ``period`` true ranges, then Wilder
    smoothed: atr = (prev * (period - 1) + tr) / period.

    Returns:
        ATR series of length len(closes) - period, or [] if insufficient data
    """
    if period <= 0:
        return []

    ranges = true_range(highs, lows, closes)
    if len(ranges) < period:
        return []

    current = sum(ranges[:period]) / period
    result = [current]
    for value in ranges[period:]:
        current = (current * (period - 1) + value) / period
        result.append(current)

    return result


def natr(atr_value: float, current_price: float) -> float:
    """
    Calculate Normalized ATR

    NATR = 100 * ATR / current_price

    Returns:
        ATR as a percentage of price, 0.0 for a non-positive price
    """
    if current_price <= 0:
        return 0.0

    return 100.0 * atr_value / current_price


@dataclass(frozen=True)
class BollingerBand:
    """Bollinger Band values for one candle."""
    upper: float
    middle: float
    lower: float

    @property
    def width(self) -> float:
        return self.upper - self.lower

    def percent_b(self, price: float) -> Optional[float]:
        """Price position within the bands (0 = lower, 1 = upper)."""
        if self.width == 0:
            return None
        return (price - self.lower) / self.width


def bollinger(
    closes: Sequence[float],
    period: int = 20,
    num_std: float = 2.0
) -> list[BollingerBand]:
    """
    Calculate Bollinger Bands using the population standard deviation

    Returns:
        Bands aligned to the last len(closes) - period + 1 candles
    """
    middles = sma(closes, period)
    bands = []

    for offset, middle in enumerate(middles):
        window = closes[offset:offset + period]
        variance = sum((value - middle) ** 2 for value in window) / period
        deviation = math.sqrt(variance)
        bands.append(BollingerBand(
            upper=middle + num_std * deviation,
            middle=middle,
            lower=middle - num_std * deviation,
        ))

    return bands
