"""
Confidence scoring.

Seven fixed-weight categories summing to 130 points. Sub-items whose
inputs are unavailable are removed from the maximum instead of scoring
zero, so confidence = earned / available points. Trend alignment is a
gatekeeper: below the trading mode's floor the signal is auto-rejected
with confidence 0 and the remaining categories are not evaluated.
"""

from typing import Optional

from ..config.defaults import ScoringParams, TradingMode
from ..indicators.divergence import BEARISH, BULLISH
from ..indicators.trend import DOWNTREND, NEUTRAL, UPTREND
from ..models.decision import CategoryScore, ConfidenceBreakdown
from ..models.signals import EntryCandidate, ExternalData, Side
from ..models.snapshot import IndicatorSnapshot, TrendAlignment

TREND = "trend_alignment"
RISK_REWARD = "risk_reward"
TECHNICAL = "technical_consensus"
MARKET_CONTEXT = "market_context"
SUPPORT_RESISTANCE = "support_resistance"
MOMENTUM = "divergence_momentum"
EXTERNAL = "external_confirmation"

CATEGORY_WEIGHTS = {
    TREND: 25.0,
    RISK_REWARD: 20.0,
    TECHNICAL: 30.0,
    MARKET_CONTEXT: 10.0,
    SUPPORT_RESISTANCE: 5.0,
    MOMENTUM: 10.0,
    EXTERNAL: 30.0,
}


class _Tally:
    """Accumulates the points of one category."""

    def __init__(self) -> None:
        self.points = 0.0
        self.max_points = 0.0
        self.details: list[str] = []

    def add(self, label: str, points: float, max_points: float) -> None:
        points = max(0.0, min(points, max_points))
        self.points += points
        self.max_points += max_points
        self.details.append(f"{label}: {points:g}/{max_points:g}")

    def skip(self, label: str) -> None:
        self.details.append(f"{label}: unavailable")

    def build(self) -> CategoryScore:
        return CategoryScore(points=self.points, max_points=self.max_points, details=tuple(self.details))


def _wanted_trend(side: Side) -> str:
    return UPTREND if side is Side.LONG else DOWNTREND


def _trend_points(trend: Optional[str], side: Side, weight: float) -> Optional[float]:
    if trend is None:
        return None
    if trend == _wanted_trend(side):
        return weight
    if trend == NEUTRAL:
        return weight / 2.0
    return 0.0


def score_trend(side: Side, alignment: Optional[TrendAlignment]) -> CategoryScore:
    """Daily 12, 4h 8, 1h 5; agreeing full, neutral half, opposing 0."""
    tally = _Tally()
    if alignment is None:
        tally.skip("timeframes")
        return tally.build()

    daily = alignment.daily_trend if alignment.daily_available else None
    for label, trend, weight in (
        ("daily", daily, 12.0),
        ("4h", alignment.h4_trend, 8.0),
        ("1h", alignment.h1_trend, 5.0),
    ):
        points = _trend_points(trend, side, weight)
        if points is None:
            tally.skip(label)
        else:
            tally.add(f"{label} {trend}", points, weight)

    return tally.build()


def reward_risk_ratio(candidate: EntryCandidate) -> Optional[float]:
    """Reward:risk of a candidate's levels, None when levels are missing or degenerate."""
    if candidate.stop_loss is None or candidate.take_profit is None:
        return None
    risk = abs(candidate.entry_price - candidate.stop_loss)
    if risk == 0:
        return None
    return abs(candidate.take_profit - candidate.entry_price) / risk


def score_risk_reward(candidate: EntryCandidate) -> CategoryScore:
    """Reward:risk tiers (15) plus a stop tightness bonus (5)."""
    tally = _Tally()
    ratio = reward_risk_ratio(candidate)
    if ratio is None or candidate.entry_price <= 0:
        tally.skip("reward:risk")
        return tally.build()

    if ratio >= 3.0:
        points = 15
    elif ratio >= 2.5:
        points = 12
    elif ratio >= 2.0:
        points = 10
    elif ratio >= 1.5:
        points = 7
    elif ratio >= 1.0:
        points = 3
    else:
        points = 0
    tally.add(f"reward:risk {ratio:.2f}", points, 15)

    stop_pct = abs(candidate.entry_price - candidate.stop_loss) / candidate.entry_price * 100.0
    if stop_pct <= 1.5:
        bonus = 5
    elif stop_pct <= 2.0:
        bonus = 3
    elif stop_pct <= 3.0:
        bonus = 1
    else:
        bonus = 0
    tally.add(f"stop {stop_pct:.2f}%", bonus, 5)

    return tally.build()


def score_technical(side: Side, snapshot: IndicatorSnapshot) -> CategoryScore:
    """EMA ladder (8), VWAP (5), Bollinger (5), SAR (4), OBV (4), Stochastic/Williams (4)."""
    tally = _Tally()
    price = snapshot.price
    long = side is Side.LONG

    def above(a: float, b: float) -> bool:
        return a > b if long else a < b

    if snapshot.ema20 is not None:
        tally.add("price vs EMA20", 2 if above(price, snapshot.ema20) else 0, 2)
    else:
        tally.skip("price vs EMA20")
    if snapshot.ema20 is not None and snapshot.ema50 is not None:
        tally.add("EMA20 vs EMA50", 3 if above(snapshot.ema20, snapshot.ema50) else 0, 3)
    else:
        tally.skip("EMA20 vs EMA50")
    if snapshot.ema50 is not None and snapshot.ema200 is not None:
        tally.add("EMA50 vs EMA200", 3 if above(snapshot.ema50, snapshot.ema200) else 0, 3)
    else:
        tally.skip("EMA50 vs EMA200")

    if snapshot.vwap is not None:
        tally.add("VWAP side", 5 if above(price, snapshot.vwap) else 0, 5)
    else:
        tally.skip("VWAP side")

    pct_b = snapshot.bollinger_pct_b
    if pct_b is not None:
        position = pct_b if long else 1.0 - pct_b
        if position <= 0.2:
            points = 5
        elif position <= 0.5:
            points = 3
        elif position <= 0.8:
            points = 2
        else:
            points = 0
        tally.add(f"Bollinger %B {pct_b:.2f}", points, 5)
    else:
        tally.skip("Bollinger")

    if snapshot.sar_trend is not None:
        agrees = snapshot.sar_trend == ("up" if long else "down")
        tally.add(f"SAR {snapshot.sar_trend}", 4 if agrees else 0, 4)
    else:
        tally.skip("SAR")

    if snapshot.obv is not None:
        agrees = snapshot.obv > 0 if long else snapshot.obv < 0
        tally.add("OBV sign", 4 if agrees else 0, 4)
    else:
        tally.skip("OBV sign")

    k, williams = snapshot.stoch_k, snapshot.williams_r
    if k is not None or williams is not None:
        if long:
            extreme = (k is not None and k <= 20) or (williams is not None and williams <= -80)
            leaning = k is not None and k < 50
        else:
            extreme = (k is not None and k >= 80) or (williams is not None and williams >= -20)
            leaning = k is not None and k > 50
        tally.add("Stochastic/Williams", 4 if extreme else 2 if leaning else 0, 4)
    else:
        tally.skip("Stochastic/Williams")

    return tally.build()


def score_market_context(side: Side, snapshot: IndicatorSnapshot) -> CategoryScore:
    """Regime (5) plus ATR% volatility tier (5)."""
    tally = _Tally()

    regime = snapshot.regime
    if regime is not None:
        if regime.regime == "trending":
            agrees = snapshot.trend is not None and snapshot.trend.direction == _wanted_trend(side)
            points = 5 if agrees else 0
        elif regime.regime == "neutral":
            points = 3
        else:
            points = 1
        tally.add(f"regime {regime.regime}", points, 5)
    else:
        tally.skip("regime")

    atr_pct = snapshot.atr_pct
    if atr_pct is not None:
        if 1.5 <= atr_pct <= 4.0:
            points = 5
        elif 4.0 < atr_pct <= 6.0:
            points = 3
        elif atr_pct < 1.5:
            points = 2
        else:
            points = 1
        tally.add(f"ATR {atr_pct:.2f}%", points, 5)
    else:
        tally.skip("volatility")

    return tally.build()


def score_support_resistance(side: Side, snapshot: IndicatorSnapshot) -> CategoryScore:
    """Proximity to support (long) or resistance (short): 1/2/3% tiers."""
    tally = _Tally()
    levels = snapshot.levels
    price = snapshot.price
    if levels is None or price <= 0:
        tally.skip("levels")
        return tally.build()

    level = levels.support if side is Side.LONG else levels.resistance
    on_correct_side = level <= price if side is Side.LONG else level >= price
    distance = levels.distance_pct(price, level)

    if not on_correct_side:
        points = 0
    elif distance <= 1.0:
        points = 5
    elif distance <= 2.0:
        points = 3
    elif distance <= 3.0:
        points = 1
    else:
        points = 0

    label = "support" if side is Side.LONG else "resistance"
    tally.add(f"{label} {distance:.2f}% away", points, 5)
    return tally.build()


def score_momentum(side: Side, snapshot: IndicatorSnapshot) -> CategoryScore:
    """MACD histogram agreement (5) plus RSI zone with divergence bonus (5)."""
    tally = _Tally()
    long = side is Side.LONG

    histogram = snapshot.macd_histogram
    if histogram is not None:
        directional = histogram if long else -histogram
        previous = snapshot.macd_histogram_prev
        improving = previous is not None and (histogram > previous if long else histogram < previous)
        if directional > 0 and improving:
            points = 5
        elif directional > 0:
            points = 3
        elif improving:
            points = 2
        else:
            points = 0
        tally.add("MACD histogram", points, 5)
    else:
        tally.skip("MACD histogram")

    rsi_value = snapshot.rsi
    if rsi_value is not None:
        zone = rsi_value if long else 100.0 - rsi_value
        if zone < 30:
            points = 5
        elif zone < 50:
            points = 3
        elif zone < 70:
            points = 2
        else:
            points = 0

        agreeing = BULLISH if long else BEARISH
        divergences = (snapshot.rsi_divergence, snapshot.macd_divergence)
        if any(d is not None and d.kind == agreeing for d in divergences):
            points += 2
        tally.add(f"RSI {rsi_value:.1f}", min(points, 5), 5)
    else:
        tally.skip("RSI")

    return tally.build()


def score_external(side: Side, snapshot: IndicatorSnapshot, external: Optional[ExternalData]) -> CategoryScore:
    """
    External confirmation (30).

    Funding 3, open interest 3, order book 4, volume profile 4,
    accumulation/distribution 3, change of character 4, CVD 3, exchange
    flow 2, volume trend 2, whale activity 2. Externally supplied volume
    profile, change of character and CVD take precedence over the values
    computed from the series.
    """
    tally = _Tally()
    external = external or ExternalData()
    long = side is Side.LONG
    price = snapshot.price
    trend_agrees = snapshot.trend is not None and snapshot.trend.direction == _wanted_trend(side)

    # Funding: paying shorts favors longs
    rate = external.funding_rate
    if rate is not None:
        if long:
            points = 3 if rate < 0 else 2 if rate <= 0.0001 else 0
        else:
            points = 3 if rate > 0.0001 else 2 if rate >= 0 else 0
        tally.add(f"funding {rate:.5f}", points, 3)
    else:
        tally.skip("funding")

    oi_trend = external.open_interest_trend
    if oi_trend is not None:
        if oi_trend == "increasing":
            points = 3 if trend_agrees else 1
        elif oi_trend == "stable":
            points = 1
        else:
            points = 0
        tally.add(f"open interest {oi_trend}", points, 3)
    else:
        tally.skip("open interest")

    imbalance = external.order_book_imbalance
    if imbalance is not None:
        directional = imbalance if long else -imbalance
        points = 3 if directional >= 0.2 else 2 if directional >= 0.05 else 1 if directional > -0.05 else 0
        wall = external.bid_wall_price if long else external.ask_wall_price
        if wall is not None and price > 0:
            supportive = wall <= price if long else wall >= price
            if supportive and abs(price - wall) / price * 100.0 <= 2.0:
                points += 1
        tally.add(f"order book {imbalance:+.2f}", points, 4)
    else:
        tally.skip("order book")

    profile = external.volume_profile or snapshot.volume_profile
    if profile is not None:
        position = profile.position_of(price)
        discount = "below_value_area" if long else "above_value_area"
        if position == discount:
            points = 3
        elif position == "in_value_area":
            points = 2 if (price <= profile.poc if long else price >= profile.poc) else 1
        else:
            points = 0
        node = profile.nearest_hvn(price)
        if node is not None and price > 0 and abs(node - price) / price * 100.0 <= 1.0:
            points += 1
        tally.add(f"volume profile {position}", points, 4)
    else:
        tally.skip("volume profile")

    cvd = external.cumulative_volume_delta or snapshot.cvd
    composite = snapshot.composite_profile
    if composite is not None and cvd is not None:
        if composite.val <= price <= composite.poc and cvd.trend == "rising":
            zone = "accumulation"
        elif composite.poc <= price <= composite.vah and cvd.trend == "falling":
            zone = "distribution"
        else:
            zone = "none"
        wanted = "accumulation" if long else "distribution"
        points = 3 if zone == wanted else 1 if zone == "none" else 0
        tally.add(f"zone {zone}", points, 3)
    else:
        tally.skip("accumulation/distribution")

    coc = external.change_of_character or snapshot.change_of_character
    if coc is not None:
        wanted = "bullish" if long else "bearish"
        if coc.detected and coc.direction == wanted:
            points = 2 + 2 * coc.strength / 100.0
        elif not coc.detected:
            points = 1
        else:
            points = 0
        tally.add("change of character", round(points, 2), 4)
    else:
        tally.skip("change of character")

    if cvd is not None:
        wanted_divergence = BULLISH if long else BEARISH
        wanted_trend = "rising" if long else "falling"
        if cvd.divergence == wanted_divergence:
            points = 3
        elif cvd.trend == wanted_trend:
            points = 2
        elif cvd.trend == "flat":
            points = 1
        else:
            points = 0
        tally.add(f"CVD {cvd.trend}", points, 3)
    else:
        tally.skip("CVD")

    flow = external.exchange_flow
    if flow is not None:
        # Outflows from exchanges favor longs
        directional = -flow if long else flow
        tally.add("exchange flow", 2 if directional > 0 else 1 if directional == 0 else 0, 2)
    else:
        tally.skip("exchange flow")

    volume = snapshot.volume_trend
    if volume is not None:
        if volume.label == "increasing":
            points = 2 if trend_agrees else 1
        elif volume.label == "stable":
            points = 1
        else:
            points = 0
        tally.add(f"volume {volume.label}", points, 2)
    else:
        tally.skip("volume trend")

    whale = external.whale_activity_score
    if whale is not None:
        directional = whale if long else -whale
        tally.add("whale activity", 2 if directional >= 0.3 else 1 if directional > 0 else 0, 2)
    else:
        tally.skip("whale activity")

    return tally.build()


def score_confidence(
    candidate: EntryCandidate,
    snapshot: IndicatorSnapshot,
    alignment: Optional[TrendAlignment],
    external: Optional[ExternalData],
    mode: TradingMode,
    params: ScoringParams
) -> ConfidenceBreakdown:
    """
    Score an entry candidate.

    Args:
        candidate: Entry candidate with resolved stop and target
        snapshot: Indicator snapshot
        alignment: Multi-timeframe trend alignment
        external: Optional external market inputs
        mode: Trading mode (selects the trend floor)
        params: Scoring parameters

    Returns:
        ConfidenceBreakdown with confidence in [0, 1]
    """
    side = candidate.side
    trend = score_trend(side, alignment)
    categories = {TREND: trend}

    if trend.max_points > 0:
        rescaled = trend.points / trend.max_points * CATEGORY_WEIGHTS[TREND]
        floor = float(params.trend_floor.get(mode.value, 0.0))
        if rescaled < floor:
            return ConfidenceBreakdown(
                category_scores=categories,
                total_score=trend.points,
                max_score=trend.max_points,
                confidence=0.0,
                auto_rejected=True,
                rejection_reason=(
                    f"Trend alignment {rescaled:.1f}/25 below {mode.value} floor {floor:g}"
                ),
            )

    categories[RISK_REWARD] = score_risk_reward(candidate)
    categories[TECHNICAL] = score_technical(side, snapshot)
    categories[MARKET_CONTEXT] = score_market_context(side, snapshot)
    categories[SUPPORT_RESISTANCE] = score_support_resistance(side, snapshot)
    categories[MOMENTUM] = score_momentum(side, snapshot)
    categories[EXTERNAL] = score_external(side, snapshot, external)

    total = sum(score.points for score in categories.values())
    maximum = sum(score.max_points for score in categories.values())
    confidence = total / maximum if maximum > 0 else 0.0

    return ConfidenceBreakdown(
        category_scores=categories,
        total_score=total,
        max_score=maximum,
        confidence=max(0.0, min(1.0, confidence)),
    )
