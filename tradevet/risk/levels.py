"""
Stop-loss and take-profit levels.

Stops are ATR based with a volatility-tiered multiplier, a per-tier floor
and a fixed wick buffer. Standard targets start at a floor percentage and
grow with momentum, volatility, trend and volume bonuses; bounce targets
aim at the Bollinger middle band. Either is pushed outward when needed to
meet the minimum reward:risk ratio.
"""

import math
from dataclasses import dataclass
from typing import Optional

from ..config.defaults import RiskParams
from ..logging.config import get_logger, log_adjustment
from ..models.decision import Adjustment
from ..models.signals import EntryCandidate, Side, with_levels
from ..models.snapshot import IndicatorSnapshot

logger = get_logger(__name__)

# Levels below entry never drop under this fraction of the entry price
MIN_PRICE_FRACTION = 0.01


@dataclass(frozen=True)
class StopPlan:
    """How a stop distance was derived."""
    distance: float
    multiplier: Optional[float]
    floor_pct: Optional[float]
    atr_pct: Optional[float]
    fallback: bool = False


def stop_distance(entry: float, atr_value: Optional[float], params: RiskParams) -> StopPlan:
    """
    ATR-based stop distance.

    ATR% <= 2: 1.5x ATR, floor 1.5%; ATR% <= 4: 1.75x, floor 2%;
    otherwise 2.0x, floor 3%; then a wick buffer of ``wick_buffer_pct`` of
    entry is added. Without ATR the distance is a flat ``fallback_stop_pct``.
    """
    if atr_value is None or atr_value <= 0 or entry <= 0:
        return StopPlan(
            distance=entry * params.fallback_stop_pct / 100.0,
            multiplier=None,
            floor_pct=None,
            atr_pct=None,
            fallback=True,
        )

    atr_pct = atr_value / entry * 100.0
    if atr_pct <= 2.0:
        multiplier, floor_pct = 1.5, 1.5
    elif atr_pct <= 4.0:
        multiplier, floor_pct = 1.75, 2.0
    else:
        multiplier, floor_pct = 2.0, 3.0

    distance = max(atr_value * multiplier, entry * floor_pct / 100.0)
    distance += entry * params.wick_buffer_pct / 100.0

    return StopPlan(distance=distance, multiplier=multiplier, floor_pct=floor_pct, atr_pct=atr_pct)


def required_reward_risk(confidence: float) -> float:
    """Minimum reward:risk for a confidence level."""
    if confidence >= 0.6:
        return 2.0
    if confidence >= 0.4:
        return 2.5
    return 3.0


def take_profit_pct(side: Side, snapshot: IndicatorSnapshot, params: RiskParams) -> tuple[float, list[str]]:
    """
    Dynamic take-profit distance as a percentage of entry.

    Returns:
        (percentage within [floor, ceiling], descriptions of applied bonuses)
    """
    long = side is Side.LONG
    pct = params.take_profit_floor_pct
    notes = []

    momentum = 0.0
    histogram = snapshot.macd_histogram
    if histogram is not None and (histogram > 0 if long else histogram < 0):
        momentum += 0.5
    if snapshot.rsi is not None and (snapshot.rsi > 50 if long else snapshot.rsi < 50):
        momentum += 0.5
    momentum = min(momentum, 1.0)

    volatility = 0.0
    if snapshot.atr_pct is not None:
        volatility = min(1.0, max(0.0, (snapshot.atr_pct - 1.5) * 0.5))

    trend = 0.0
    wanted = "uptrend" if long else "downtrend"
    if snapshot.adx is not None and snapshot.adx > 25 and snapshot.trend is not None \
            and snapshot.trend.direction == wanted:
        trend = min(0.75, (snapshot.adx - 25.0) / 20.0 * 0.75)

    volume = 0.0
    if snapshot.relative_volume is not None and snapshot.relative_volume > 1.0:
        volume = min(0.5, (snapshot.relative_volume - 1.0) * 0.5)

    for label, bonus in (("momentum", momentum), ("volatility", volatility),
                         ("trend", trend), ("volume", volume)):
        if bonus > 0:
            pct += bonus
            notes.append(f"{label} +{bonus:.2f}%")

    pct = max(params.take_profit_floor_pct, min(params.take_profit_ceiling_pct, pct))
    return pct, notes


def bounce_take_profit_pct(entry: float, snapshot: IndicatorSnapshot, params: RiskParams) -> float:
    """Distance to the Bollinger middle band, clamped to the bounce target band."""
    band = snapshot.bollinger
    if band is None or entry <= 0:
        return params.bounce_take_profit_min_pct

    pct = abs(band.middle - entry) / entry * 100.0
    return max(params.bounce_take_profit_min_pct, min(params.bounce_take_profit_max_pct, pct))


def _max_distance(entry: float, side: Side, toward_profit: bool) -> float:
    """Largest distance a level may sit from entry and stay a positive price."""
    if (side is Side.LONG) == toward_profit:
        return math.inf
    return entry * (1.0 - MIN_PRICE_FRACTION)


def _price_from(entry: float, side: Side, distance: float, toward_profit: bool) -> float:
    sign = 1.0 if (side is Side.LONG) == toward_profit else -1.0
    return entry + sign * min(distance, _max_distance(entry, side, toward_profit))


def _is_finite(value: Optional[float]) -> bool:
    return value is not None and math.isfinite(value)


def target_price(
    entry: float,
    side: Side,
    stop_dist: float,
    pct: float,
    min_reward_risk: float
) -> float:
    """
    Target at ``pct`` of entry, pushed out to satisfy ``min_reward_risk``.

    Short targets are capped at ``MIN_PRICE_FRACTION`` of entry, so a very
    wide stop can leave the target short of the requested ratio.
    """
    distance = max(entry * pct / 100.0, stop_dist * min_reward_risk)
    return _price_from(entry, side, distance, toward_profit=True)


def target_capped(entry: float, side: Side, stop_dist: float, min_reward_risk: float) -> bool:
    """Whether the ratio target would fall below the short target cap."""
    return stop_dist * min_reward_risk > _max_distance(entry, side, toward_profit=True)


class LevelResolver:
    """
    Applies the documented corrections to an entry candidate's levels.

    Every change is logged and returned as an Adjustment record.
    """

    def __init__(self, params: RiskParams):
        self.params = params

    def _record(
        self,
        adjustments: list[Adjustment],
        asset: str,
        field: str,
        old_value,
        new_value,
        rule: str
    ) -> None:
        adjustments.append(Adjustment(field=field, old_value=old_value, new_value=new_value, rule=rule))
        log_adjustment(logger, asset, field, old_value, new_value, rule)

    def resolve(
        self,
        candidate: EntryCandidate,
        snapshot: IndicatorSnapshot,
        confidence_hint: float,
        bounce_mode: bool = False
    ) -> tuple[EntryCandidate, list[Adjustment]]:
        """
        Fix non-positive entries and missing or inverted stops/targets.

        Non-finite levels count as missing and are replaced the same way.

        Args:
            candidate: Entry candidate as proposed
            snapshot: Indicator snapshot (price, ATR, bands)
            confidence_hint: Confidence used to pick the minimum reward:risk
            bounce_mode: Use the bounce target instead of the standard one

        Returns:
            (corrected candidate, adjustments applied)
        """
        adjustments: list[Adjustment] = []
        asset = candidate.asset
        side = candidate.side

        entry = candidate.entry_price
        if not _is_finite(entry) or entry <= 0:
            rule = "non_positive_entry" if _is_finite(entry) else "non_finite_entry"
            self._record(adjustments, asset, "entry_price", entry, snapshot.price, rule)
            candidate = with_levels(candidate, entry_price=snapshot.price)
            entry = snapshot.price

        plan = stop_distance(entry, snapshot.atr, self.params)

        stop = candidate.stop_loss
        if stop is None:
            rule = "missing_stop"
        elif not math.isfinite(stop):
            rule = "non_finite_stop"
        elif stop <= 0 or (stop >= entry if side is Side.LONG else stop <= entry):
            rule = "inverted_stop"
        else:
            rule = None
        if rule is not None:
            new_stop = _price_from(entry, side, plan.distance, toward_profit=False)
            self._record(adjustments, asset, "stop_loss", stop, new_stop, rule)
            candidate = with_levels(candidate, stop_loss=new_stop)

        stop_dist = abs(entry - candidate.stop_loss)
        target = candidate.take_profit
        if target is None:
            rule = "missing_take_profit"
        elif not math.isfinite(target):
            rule = "non_finite_take_profit"
        elif target <= 0 or (target <= entry if side is Side.LONG else target >= entry):
            rule = "inverted_take_profit"
        else:
            rule = None
        if rule is not None:
            if bounce_mode:
                minimum = self.params.bounce_min_reward_risk
                pct = bounce_take_profit_pct(entry, snapshot, self.params)
            else:
                minimum = required_reward_risk(confidence_hint)
                pct, _ = take_profit_pct(side, snapshot, self.params)
            new_target = target_price(entry, side, stop_dist, pct, minimum)
            if target_capped(entry, side, stop_dist, minimum):
                rule += "_capped"
            self._record(adjustments, asset, "take_profit", target, new_target, rule)
            candidate = with_levels(candidate, take_profit=new_target)

        return candidate, adjustments

    def enforce_reward_risk(
        self,
        candidate: EntryCandidate,
        confidence: float,
        bounce_mode: bool = False
    ) -> tuple[EntryCandidate, list[Adjustment]]:
        """
        Push the target outward when reward:risk is below the minimum for ``confidence``.

        A short target never moves below the price cap; when the cap is
        already reached the candidate is returned unchanged.
        """
        adjustments: list[Adjustment] = []
        entry = candidate.entry_price
        stop_dist = abs(entry - candidate.stop_loss)
        if stop_dist == 0:
            return candidate, adjustments

        minimum = self.params.bounce_min_reward_risk if bounce_mode else required_reward_risk(confidence)
        reward = abs(candidate.take_profit - entry)
        if reward / stop_dist >= minimum:
            return candidate, adjustments

        new_target = _price_from(entry, candidate.side, stop_dist * minimum, toward_profit=True)
        if abs(new_target - entry) <= reward or math.isclose(new_target, candidate.take_profit):
            return candidate, adjustments

        rule = f"min_reward_risk_{minimum:g}"
        if target_capped(entry, candidate.side, stop_dist, minimum):
            rule += "_capped"
        self._record(adjustments, candidate.asset, "take_profit", candidate.take_profit, new_target, rule)
        return with_levels(candidate, take_profit=new_target), adjustments
