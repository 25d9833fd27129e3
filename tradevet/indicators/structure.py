"""Swing points, market structure and change-of-character detection"""

from dataclasses import dataclass
from typing import Optional, Sequence


@dataclass(frozen=True)
class SwingPoint:
    """Local extreme at a candle index."""
    index: int
    price: float


def find_swing_points(
    highs: Sequence[float],
    lows: Sequence[float],
    wing: int = 2
) -> tuple[list[SwingPoint], list[SwingPoint]]:
    """
    Find swing highs and swing lows

    A swing high is strictly higher than the ``wing`` highs on each side; a
    swing low is strictly lower than the ``wing`` lows on each side.

    Returns:
        (swing_highs, swing_lows) in chronological order
    """
    swing_highs, swing_lows = [], []

    for i in range(wing, len(highs) - wing):
        neighbours = [j for j in range(i - wing, i + wing + 1) if j != i]
        if all(highs[i] > highs[j] for j in neighbours):
            swing_highs.append(SwingPoint(index=i, price=highs[i]))
        if all(lows[i] < lows[j] for j in neighbours):
            swing_lows.append(SwingPoint(index=i, price=lows[i]))

    return swing_highs, swing_lows


def _pair_counts(points: Sequence[SwingPoint]) -> tuple[int, int]:
    """(rising pairs, falling pairs) across consecutive swing points."""
    rising = falling = 0
    for earlier, later in zip(points, points[1:]):
        if later.price > earlier.price:
            rising += 1
        elif later.price < earlier.price:
            falling += 1
    return rising, falling


@dataclass(frozen=True)
class MarketStructure:
    """Swing-sequence classification."""
    label: str              # bullish / bearish / ranging
    higher_highs: int
    higher_lows: int
    lower_highs: int
    lower_lows: int
    score: float            # 0-100, how one-sided the sequence is


def market_structure(
    highs: Sequence[float],
    lows: Sequence[float],
    wing: int = 2,
    swings: int = 4
) -> Optional[MarketStructure]:
    """
    Classify market structure from the last ``swings`` swing highs and lows

    Returns:
        MarketStructure or None with fewer than two swing highs or lows
    """
    swing_highs, swing_lows = find_swing_points(highs, lows, wing)
    if len(swing_highs) < 2 or len(swing_lows) < 2:
        return None

    higher_highs, lower_highs = _pair_counts(swing_highs[-swings:])
    higher_lows, lower_lows = _pair_counts(swing_lows[-swings:])

    bullish = higher_highs + higher_lows
    bearish = lower_highs + lower_lows
    total = bullish + bearish

    if bullish > bearish and bullish >= 2:
        label = "bullish"
    elif bearish > bullish and bearish >= 2:
        label = "bearish"
    else:
        label = "ranging"

    score = abs(bullish - bearish) / total * 100.0 if total else 0.0

    return MarketStructure(
        label=label,
        higher_highs=higher_highs,
        higher_lows=higher_lows,
        lower_highs=lower_highs,
        lower_lows=lower_lows,
        score=score,
    )


@dataclass(frozen=True)
class ChangeOfCharacter:
    """Market-structure reversal signal."""
    detected: bool
    direction: Optional[str]        # bullish / bearish when detected
    prior_structure: str            # bullish / bearish / ranging
    break_level: Optional[float]
    strength: float                 # 0-100


def change_of_character(
    highs: Sequence[float],
    lows: Sequence[float],
    closes: Sequence[float],
    wing: int = 2
) -> Optional[ChangeOfCharacter]:
    """
    Detect a change of character

    A bearish swing sequence (lower highs / lower lows) followed by a close
    above the last swing high is a bullish change of character; the mirror
    is bearish. Strength is 40 plus 15 per consistent swing pair (max 45)
    plus up to 15 for the breakout magnitude.

    Returns:
        ChangeOfCharacter or None with fewer than three swing highs or lows
    """
    swing_highs, swing_lows = find_swing_points(highs, lows, wing)
    if len(swing_highs) < 3 or len(swing_lows) < 3:
        return None

    higher_highs, lower_highs = _pair_counts(swing_highs[-3:])
    higher_lows, lower_lows = _pair_counts(swing_lows[-3:])
    bullish_pairs = higher_highs + higher_lows
    bearish_pairs = lower_highs + lower_lows

    if bearish_pairs > bullish_pairs and bearish_pairs >= 2:
        prior = "bearish"
    elif bullish_pairs > bearish_pairs and bullish_pairs >= 2:
        prior = "bullish"
    else:
        prior = "ranging"

    close = closes[-1]
    last_high = swing_highs[-1].price
    last_low = swing_lows[-1].price

    if prior == "bearish" and close > last_high:
        breakout_pct = (close - last_high) / last_high * 100.0
        strength = 40.0 + min(45.0, 15.0 * bearish_pairs) + min(15.0, breakout_pct * 5.0)
        return ChangeOfCharacter(
            detected=True,
            direction="bullish",
            prior_structure=prior,
            break_level=last_high,
            strength=min(strength, 100.0),
        )

    if prior == "bullish" and close < last_low:
        breakout_pct = (last_low - close) / last_low * 100.0
        strength = 40.0 + min(45.0, 15.0 * bullish_pairs) + min(15.0, breakout_pct * 5.0)
        return ChangeOfCharacter(
            detected=True,
            direction="bearish",
            prior_structure=prior,
            break_level=last_low,
            strength=min(strength, 100.0),
        )

    return ChangeOfCharacter(
        detected=False,
        direction=None,
        prior_structure=prior,
        break_level=None,
        strength=0.0,
    )
