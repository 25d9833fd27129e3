"""
Contradiction detection.

Each indicator family whose bias opposes the candidate's side adds a
textual item and severity-weighted points. Rules are written for a long
candidate and mirrored for a short one. Adding opposing indicators can
only raise the score.
"""

from typing import Optional

from ..indicators.divergence import BEARISH, BULLISH
from ..indicators.trend import DOWNTREND, UPTREND
from ..models.decision import ContradictionReport, Severity
from ..models.signals import Side
from ..models.snapshot import IndicatorSnapshot, TrendAlignment

NO_INDICATORS_POINTS = 7


def severity_for(score: int) -> Severity:
    """Bucket a contradiction score (thresholds 4 / 7 / 10)."""
    if score < 4:
        return Severity.LOW
    if score < 7:
        return Severity.MEDIUM
    if score < 10:
        return Severity.HIGH
    return Severity.CRITICAL


class _Report:
    def __init__(self) -> None:
        self.score = 0
        self.items: list[str] = []

    def add(self, points: int, text: str) -> None:
        self.score += points
        self.items.append(f"{text} (+{points})")

    def build(self) -> ContradictionReport:
        return ContradictionReport(
            score=self.score,
            items=tuple(self.items),
            severity=severity_for(self.score),
        )


def _bollinger(report: _Report, side: Side, snapshot: IndicatorSnapshot) -> None:
    band = snapshot.bollinger
    pct_b = snapshot.bollinger_pct_b
    if band is None:
        return

    if side is Side.LONG:
        if snapshot.price > band.upper:
            report.add(3, "Price above upper Bollinger Band")
        elif pct_b is not None and pct_b > 0.8:
            report.add(2, f"Price near upper Bollinger Band (%B {pct_b:.2f})")
    else:
        if snapshot.price < band.lower:
            report.add(3, "Price below lower Bollinger Band")
        elif pct_b is not None and pct_b < 0.2:
            report.add(2, f"Price near lower Bollinger Band (%B {pct_b:.2f})")


def _obv(report: _Report, side: Side, snapshot: IndicatorSnapshot) -> None:
    if snapshot.obv is None:
        return
    if side is Side.LONG and snapshot.obv < 0:
        report.add(2, "OBV negative (distribution)")
    elif side is Side.SHORT and snapshot.obv > 0:
        report.add(2, "OBV positive (accumulation)")


def _macd(report: _Report, side: Side, snapshot: IndicatorSnapshot) -> None:
    histogram = snapshot.macd_histogram
    if histogram is None or snapshot.price <= 0:
        return

    opposing = histogram < 0 if side is Side.LONG else histogram > 0
    if not opposing:
        return

    relative = abs(histogram) / snapshot.price * 100.0
    label = "bearish" if side is Side.LONG else "bullish"
    if relative >= 0.25:
        report.add(5, f"Strong {label} MACD histogram ({histogram:.4f})")
    elif relative >= 0.1:
        report.add(3, f"Moderate {label} MACD histogram ({histogram:.4f})")
    else:
        report.add(2, f"Weak {label} MACD histogram ({histogram:.4f})")


def _aroon(report: _Report, side: Side, snapshot: IndicatorSnapshot) -> None:
    up, down = snapshot.aroon_up, snapshot.aroon_down
    if up is None or down is None:
        return
    if side is Side.LONG and down >= 70 and up <= 30:
        report.add(3, f"Aroon shows strong downtrend (up {up:.0f}, down {down:.0f})")
    elif side is Side.SHORT and up >= 70 and down <= 30:
        report.add(3, f"Aroon shows strong uptrend (up {up:.0f}, down {down:.0f})")


def _trend(report: _Report, side: Side, alignment: Optional[TrendAlignment]) -> None:
    if alignment is None:
        return

    opposing = DOWNTREND if side is Side.LONG else UPTREND
    if alignment.daily_available and alignment.daily_trend == opposing:
        report.add(4, f"Daily trend is {opposing}")
    if alignment.h4_trend == opposing:
        report.add(2, f"4h trend is {opposing}")


def _ema_order(report: _Report, side: Side, snapshot: IndicatorSnapshot) -> None:
    ema20, ema50 = snapshot.ema20, snapshot.ema50
    if ema20 is None or ema50 is None:
        return

    price = snapshot.price
    if side is Side.LONG:
        if price < ema20 < ema50:
            report.add(5, "Bearish EMA stack (price < EMA20 < EMA50)")
        elif ema20 < ema50:
            report.add(3, "EMA20 below EMA50")
    else:
        if price > ema20 > ema50:
            report.add(5, "Bullish EMA stack (price > EMA20 > EMA50)")
        elif ema20 > ema50:
            report.add(3, "EMA20 above EMA50")


def _rsi(report: _Report, side: Side, snapshot: IndicatorSnapshot) -> None:
    value = snapshot.rsi
    if value is None:
        return
    if side is Side.LONG:
        if value > 80:
            report.add(5, f"RSI extremely overbought ({value:.1f})")
        elif value > 70:
            report.add(3, f"RSI overbought ({value:.1f})")
    else:
        if value < 20:
            report.add(5, f"RSI extremely oversold ({value:.1f})")
        elif value < 30:
            report.add(3, f"RSI oversold ({value:.1f})")


def _divergence(report: _Report, side: Side, snapshot: IndicatorSnapshot) -> None:
    opposing = BEARISH if side is Side.LONG else BULLISH
    if snapshot.rsi_divergence is not None and snapshot.rsi_divergence.kind == opposing:
        report.add(3, f"{opposing.capitalize()} RSI divergence")
    if snapshot.macd_divergence is not None and snapshot.macd_divergence.kind == opposing:
        report.add(3, f"{opposing.capitalize()} MACD divergence")


def _sar(report: _Report, side: Side, snapshot: IndicatorSnapshot) -> None:
    if snapshot.sar_trend is None:
        return
    if side is Side.LONG and snapshot.sar_trend == "down":
        report.add(3, "Parabolic SAR above price")
    elif side is Side.SHORT and snapshot.sar_trend == "up":
        report.add(3, "Parabolic SAR below price")


def _cci(report: _Report, side: Side, snapshot: IndicatorSnapshot) -> None:
    value = snapshot.cci
    if value is None:
        return
    if side is Side.LONG:
        if value > 200:
            report.add(4, f"CCI extremely overbought ({value:.0f})")
        elif value > 100:
            report.add(2, f"CCI overbought ({value:.0f})")
    else:
        if value < -200:
            report.add(4, f"CCI extremely oversold ({value:.0f})")
        elif value < -100:
            report.add(2, f"CCI oversold ({value:.0f})")


def _price_change(report: _Report, side: Side, snapshot: IndicatorSnapshot) -> None:
    change = snapshot.price_change_24h
    if change is None:
        return
    if side is Side.LONG:
        if change <= -5:
            report.add(4, f"Price down {abs(change):.1f}% in 24h")
        elif change <= -3:
            report.add(2, f"Price down {abs(change):.1f}% in 24h")
    else:
        if change >= 5:
            report.add(4, f"Price up {change:.1f}% in 24h")
        elif change >= 3:
            report.add(2, f"Price up {change:.1f}% in 24h")


def detect_contradictions(
    side: Side,
    snapshot: IndicatorSnapshot,
    alignment: Optional[TrendAlignment] = None
) -> ContradictionReport:
    """
    Score the indicators that oppose a candidate's side.

    Args:
        side: Side the candidate would open or add to
        snapshot: Indicator snapshot of the evaluation
        alignment: Multi-timeframe trend alignment

    Returns:
        ContradictionReport with items in evaluation order
    """
    report = _Report()

    if snapshot.available_count() == 0:
        report.add(NO_INDICATORS_POINTS, "No indicators available")
        return report.build()

    _bollinger(report, side, snapshot)
    _obv(report, side, snapshot)
    _macd(report, side, snapshot)
    _aroon(report, side, snapshot)
    _trend(report, side, alignment)
    _ema_order(report, side, snapshot)
    _rsi(report, side, snapshot)
    _divergence(report, side, snapshot)
    _sar(report, side, snapshot)
    _cci(report, side, snapshot)
    _price_change(report, side, snapshot)

    return report.build()
