"""Trend indicators: ADX/DMI, Parabolic SAR, Aroon, trend and regime classification"""

from dataclasses import dataclass
from typing import Optional, Sequence

from .moving_averages import ema

UPTREND = "uptrend"
DOWNTREND = "downtrend"
NEUTRAL = "neutral"


@dataclass(frozen=True)
class ADXPoint:
    """ADX with the directional indicators it was derived from."""
    adx: float
    plus_di: float
    minus_di: float


def adx(
    highs: Sequence[float],
    lows: Sequence[float],
    closes: Sequence[float],
    period: int = 14
) -> list[ADXPoint]:
    """
    Calculate ADX, +DI and -DI with Wilder smoothing

    +DM counts only when the up move is positive and larger than the down
    move; -DM is the mirror. TR, +DM and -DM are smoothed as running sums,
    DX = |+DI - -DI| / (+DI + -DI) * 100 (0 when both are 0), and ADX is
    the Wilder average of DX seeded with the mean of the first ``period`` DX.

    Returns:
        Points for the last len(closes) - 2*period + 1 candles,
        or [] if fewer than 2*period candles
    """
    if period <= 0 or len(closes) < 2 * period:
        return []

    ranges, plus_dm, minus_dm = [], [], []
    for i in range(1, len(closes)):
        up_move = highs[i] - highs[i - 1]
        down_move = lows[i - 1] - lows[i]
        plus_dm.append(up_move if up_move > down_move and up_move > 0 else 0.0)
        minus_dm.append(down_move if down_move > up_move and down_move > 0 else 0.0)
        ranges.append(max(
            highs[i] - lows[i],
            abs(highs[i] - closes[i - 1]),
            abs(lows[i] - closes[i - 1]),
        ))

    smooth_tr = sum(ranges[:period])
    smooth_plus = sum(plus_dm[:period])
    smooth_minus = sum(minus_dm[:period])

    directional = []
    for i in range(period - 1, len(ranges)):
        if i >= period:
            smooth_tr = smooth_tr - smooth_tr / period + ranges[i]
            smooth_plus = smooth_plus - smooth_plus / period + plus_dm[i]
            smooth_minus = smooth_minus - smooth_minus / period + minus_dm[i]

        if smooth_tr == 0:
            plus_di = minus_di = 0.0
        else:
            plus_di = 100.0 * smooth_plus / smooth_tr
            minus_di = 100.0 * smooth_minus / smooth_tr

        di_sum = plus_di + minus_di
        dx = 0.0 if di_sum == 0 else abs(plus_di - minus_di) / di_sum * 100.0
        directional.append((dx, plus_di, minus_di))

    current = sum(dx for dx, _, _ in directional[:period]) / period
    _, plus_di, minus_di = directional[period - 1]
    result = [ADXPoint(adx=current, plus_di=plus_di, minus_di=minus_di)]

    for dx, plus_di, minus_di in directional[period:]:
        current = (current * (period - 1) + dx) / period
        result.append(ADXPoint(adx=current, plus_di=plus_di, minus_di=minus_di))

    return result


@dataclass(frozen=True)
class SARPoint:
    """Parabolic SAR level and the trend it belongs to ('up' or 'down')."""
    sar: float
    trend: str


def parabolic_sar(
    highs: Sequence[float],
    lows: Sequence[float],
    step: float = 0.02,
    max_step: float = 0.2
) -> list[SARPoint]:
    """
    Calculate Parabolic SAR

    The acceleration factor starts at ``step``, grows by ``step`` on each new
    extreme point and is capped at ``max_step``. When price crosses the SAR
    the trend reverses, the SAR jumps to the previous extreme point and the
    acceleration factor resets.

    Returns:
        Points for every candle after the first, or [] with fewer than 2 candles
    """
    if len(highs) < 2:
        return []

    uptrend = highs[1] > highs[0]
    sar = lows[0] if uptrend else highs[0]
    extreme = highs[0] if uptrend else lows[0]
    factor = step
    result = []

    for i in range(1, len(highs)):
        sar = sar + factor * (extreme - sar)

        if uptrend:
            sar = min(sar, lows[i - 1], lows[i - 2] if i >= 2 else lows[i - 1])
            if lows[i] < sar:
                uptrend = False
                sar = extreme
                extreme = lows[i]
                factor = step
            elif highs[i] > extreme:
                extreme = highs[i]
                factor = min(factor + step, max_step)
        else:
            sar = max(sar, highs[i - 1], highs[i - 2] if i >= 2 else highs[i - 1])
            if highs[i] > sar:
                uptrend = True
                sar = extreme
                extreme = highs[i]
                factor = step
            elif lows[i] < extreme:
                extreme = lows[i]
                factor = min(factor + step, max_step)

        result.append(SARPoint(sar=sar, trend="up" if uptrend else "down"))

    return result


@dataclass(frozen=True)
class AroonPoint:
    """Aroon Up/Down and their difference."""
    up: float
    down: float

    @property
    def oscillator(self) -> float:
        return self.up - self.down


def _periods_since_extreme(window: Sequence[float], use_max: bool) -> int:
    # Scan from the most recent value so ties resolve to the latest occurrence
    target = max(window) if use_max else min(window)
    for age, value in enumerate(reversed(window)):
        if value == target:
            return age
    return len(window) - 1


def aroon(
    highs: Sequence[float],
    lows: Sequence[float],
    period: int = 14
) -> list[AroonPoint]:
    """
    Calculate Aroon Up/Down over a ``period``-candle window

    Up = (period - 1 - candles since highest high) / (period - 1) * 100.
    """
    if period < 2 or len(highs) < period:
        return []

    scale = period - 1
    result = []
    for i in range(period - 1, len(highs)):
        high_window = highs[i - period + 1:i + 1]
        low_window = lows[i - period + 1:i + 1]
        up = (scale - _periods_since_extreme(high_window, True)) / scale * 100.0
        down = (scale - _periods_since_extreme(low_window, False)) / scale * 100.0
        result.append(AroonPoint(up=up, down=down))

    return result


@dataclass(frozen=True)
class TrendResult:
    """EMA-relationship trend classification."""
    direction: str          # uptrend / downtrend / neutral
    strength: float         # 0-100
    ema_short: float
    ema_long: float


def detect_trend(
    closes: Sequence[float],
    short_period: int = 20,
    long_period: int = 50,
    neutral_band_pct: float = 0.1
) -> Optional[TrendResult]:
    """
    Classify trend from the short/long EMA relationship

    A gap between the EMAs smaller than ``neutral_band_pct`` of price is
    neutral. Strength grows with the gap and gets a bonus when price sits
    on the trend side of the short EMA.

    Returns:
        TrendResult or None if there are fewer than ``long_period`` closes
    """
    short_series = ema(closes, short_period)
    long_series = ema(closes, long_period)
    if not short_series or not long_series:
        return None

    ema_short = short_series[-1]
    ema_long = long_series[-1]
    price = closes[-1]
    if price <= 0:
        return None

    gap_pct = (ema_short - ema_long) / price * 100.0

    if abs(gap_pct) < neutral_band_pct:
        direction = NEUTRAL
    elif gap_pct > 0:
        direction = UPTREND
    else:
        direction = DOWNTREND

    strength = min(abs(gap_pct) * 25.0, 75.0)
    if (direction == UPTREND and price > ema_short) or (direction == DOWNTREND and price < ema_short):
        strength += 25.0

    return TrendResult(
        direction=direction,
        strength=min(strength, 100.0),
        ema_short=ema_short,
        ema_long=ema_long,
    )


@dataclass(frozen=True)
class MarketRegime:
    """Trend regime plus volatility label."""
    regime: str             # trending / choppy / neutral
    volatility: str         # low / normal / high / extreme
    adx: float
    atr_pct: Optional[float]


def classify_volatility(atr_pct: Optional[float]) -> Optional[str]:
    """Volatility label from ATR as a percentage of price."""
    if atr_pct is None:
        return None
    if atr_pct < 1.5:
        return "low"
    if atr_pct <= 4.0:
        return "normal"
    if atr_pct <= 6.0:
        return "high"
    return "extreme"


def market_regime(adx_value: Optional[float], atr_pct: Optional[float]) -> Optional[MarketRegime]:
    """
    Classify the market regime

    ADX above 25 is trending, below 20 is choppy, anything between is neutral.

    Returns:
        MarketRegime or None when ADX is unavailable
    """
    if adx_value is None:
        return None

    if adx_value > 25:
        regime = "trending"
    elif adx_value < 20:
        regime = "choppy"
    else:
        regime = "neutral"

    return MarketRegime(
        regime=regime,
        volatility=classify_volatility(atr_pct) or "normal",
        adx=adx_value,
        atr_pct=atr_pct,
    )
