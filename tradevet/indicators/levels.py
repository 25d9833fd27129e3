"""Support/resistance, pivot point and Fibonacci retracement levels"""

from dataclasses import dataclass, field
from typing import Optional, Sequence

from .structure import find_swing_points

FIBONACCI_RATIOS = (0.236, 0.382, 0.5, 0.618, 0.786)


@dataclass(frozen=True)
class SupportResistance:
    """Key price levels derived from recent swings and range."""
    support: float
    resistance: float
    pivot: float
    r1: float
    r2: float
    s1: float
    s2: float
    fibonacci: dict = field(default_factory=dict)   # ratio -> retracement price

    def distance_pct(self, price: float, level: float) -> float:
        """Absolute distance between price and a level as % of price."""
        if price <= 0:
            return 0.0
        return abs(price - level) / price * 100.0


def _average_recent(points, count: int) -> Optional[float]:
    if not points:
        return None
    recent = points[-count:]
    return sum(p.price for p in recent) / len(recent)


def support_resistance(
    highs: Sequence[float],
    lows: Sequence[float],
    closes: Sequence[float],
    lookback: int = 50,
    wing: int = 2,
    recent_swings: int = 3
) -> Optional[SupportResistance]:
    """
    Calculate support and resistance levels

    Support is the average of the most recent swing lows (lowest low of the
    window without any), resistance the average of the most recent swing
    highs. Pivot levels use the window's high/low and the last close;
    Fibonacci levels retrace from the window high toward its low.

    Returns:
        SupportResistance or None with fewer than 2*wing + 1 candles
    """
    if len(closes) < 2 * wing + 1:
        return None

    window_highs = list(highs[-lookback:])
    window_lows = list(lows[-lookback:])
    swing_highs, swing_lows = find_swing_points(window_highs, window_lows, wing)

    range_high = max(window_highs)
    range_low = min(window_lows)
    close = closes[-1]

    resistance = _average_recent(swing_highs, recent_swings)
    support = _average_recent(swing_lows, recent_swings)
    if resistance is None:
        resistance = range_high
    if support is None:
        support = range_low

    pivot = (range_high + range_low + close) / 3.0
    span = range_high - range_low

    return SupportResistance(
        support=support,
        resistance=resistance,
        pivot=pivot,
        r1=2 * pivot - range_low,
        r2=pivot + span,
        s1=2 * pivot - range_high,
        s2=pivot - span,
        fibonacci={ratio: range_high - span * ratio for ratio in FIBONACCI_RATIOS},
    )
