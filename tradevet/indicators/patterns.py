"""Candle structure analysis and candlestick pattern detection"""

from dataclasses import dataclass
from typing import Optional, Sequence

from ..data.models import Candle


@dataclass(frozen=True)
class CandleStructure:
    """Candle structure analysis results"""
    range_value: float
    body: float
    upper_shadow: float
    lower_shadow: float
    body_pct: float
    upper_pct: float
    lower_pct: float
    is_bull: bool
    is_bear: bool
    is_doji: bool


def analyze_candle_structure(candle: Candle, doji_threshold: float = 0.1) -> CandleStructure:
    """
    Analyze candle structure components

    Args:
        candle: Candle to analyze
        doji_threshold: Threshold for doji detection (body % of range)

    Returns:
        CandleStructure with all analysis components
    """
    range_value = candle.range
    body = abs(candle.body)
    upper_shadow = candle.high - max(candle.open, candle.close)
    lower_shadow = min(candle.open, candle.close) - candle.low

    # Zero range candles have no meaningful proportions
    if range_value > 0:
        body_pct = body / range_value
        upper_pct = upper_shadow / range_value
        lower_pct = lower_shadow / range_value
    else:
        body_pct = upper_pct = lower_pct = 0.0

    return CandleStructure(
        range_value=range_value,
        body=body,
        upper_shadow=upper_shadow,
        lower_shadow=lower_shadow,
        body_pct=body_pct,
        upper_pct=upper_pct,
        lower_pct=lower_pct,
        is_bull=candle.close > candle.open,
        is_bear=candle.close < candle.open,
        is_doji=body_pct <= doji_threshold,
    )


def detect_pinbar(candle: Candle, body_threshold: float = 0.4,
                  shadow_threshold: float = 0.66, tail_threshold: float = 0.1) -> Optional[str]:
    """
    Detect pinbar patterns (hammer / shooting star shapes)

    Returns:
        'bullish' for a long lower shadow, 'bearish' for a long upper shadow,
        None otherwise
    """
    structure = analyze_candle_structure(candle)

    if structure.body_pct > body_threshold:
        return None

    if structure.upper_pct >= shadow_threshold and structure.lower_pct <= tail_threshold:
        return 'bearish'

    if structure.lower_pct >= shadow_threshold and structure.upper_pct <= tail_threshold:
        return 'bullish'

    return None


def is_strong_candle(candle: Candle, min_body_pct: float = 0.6) -> bool:
    """Check if candle shows strong directional movement"""
    return analyze_candle_structure(candle).body_pct >= min_body_pct


@dataclass(frozen=True)
class CandlePattern:
    """Detected candlestick pattern."""
    name: str
    bias: str           # bullish / bearish / neutral
    score: float        # 0-100 confidence in the pattern


def _engulfing(previous: Candle, current: Candle) -> Optional[CandlePattern]:
    prev_structure = analyze_candle_structure(previous)
    structure = analyze_candle_structure(current)

    if prev_structure.is_doji or structure.is_doji:
        return None

    prev_top = max(previous.open, previous.close)
    prev_bottom = min(previous.open, previous.close)
    top = max(current.open, current.close)
    bottom = min(current.open, current.close)
    covers = top >= prev_top and bottom <= prev_bottom and structure.body > prev_structure.body

    if not covers:
        return None

    score = min(100.0, 50.0 + 50.0 * structure.body_pct)
    if prev_structure.is_bear and structure.is_bull:
        return CandlePattern(name="bullish_engulfing", bias="bullish", score=score)
    if prev_structure.is_bull and structure.is_bear:
        return CandlePattern(name="bearish_engulfing", bias="bearish", score=score)
    return None


def detect_patterns(candles: Sequence[Candle]) -> list[CandlePattern]:
    """
    Detect candlestick patterns on the last one or two candles

    Recognizes doji, hammer, shooting star, marubozu and engulfing patterns.
    """
    if not candles:
        return []

    current = candles[-1]
    structure = analyze_candle_structure(current)
    patterns = []

    if structure.range_value > 0 and structure.is_doji:
        patterns.append(CandlePattern(name="doji", bias="neutral", score=50.0))

    pinbar = detect_pinbar(current)
    if pinbar == 'bullish':
        patterns.append(CandlePattern(name="hammer", bias="bullish", score=100.0 * structure.lower_pct))
    elif pinbar == 'bearish':
        patterns.append(CandlePattern(name="shooting_star", bias="bearish", score=100.0 * structure.upper_pct))

    if structure.body_pct >= 0.9:
        bias = "bullish" if structure.is_bull else "bearish"
        patterns.append(CandlePattern(name="marubozu", bias=bias, score=100.0 * structure.body_pct))

    if len(candles) >= 2:
        engulfing = _engulfing(candles[-2], current)
        if engulfing is not None:
            patterns.append(engulfing)

    return patterns
