"""
Volume profile construction.

Bins the observed price range, distributes each candle's volume across the
bins it overlaps, and derives the point of control, value area and high/low
volume nodes. A session profile covers the most recent candles only; a
composite profile covers the whole series.
"""

from dataclasses import dataclass
from typing import Optional, Sequence

from ..data.models import Candle


@dataclass(frozen=True)
class VolumeBin:
    """Price bucket with the volume traded inside it."""
    low: float
    high: float
    volume: float

    @property
    def mid(self) -> float:
        return (self.low + self.high) / 2.0


@dataclass(frozen=True)
class VolumeProfile:
    """Volume-at-price summary."""
    poc: float                                  # Point of control
    vah: float                                  # Value area high
    val: float                                  # Value area low
    hvn: tuple[float, ...] = ()                 # High volume node prices
    lvn: tuple[float, ...] = ()                 # Low volume node prices
    bins: tuple[VolumeBin, ...] = ()
    total_volume: float = 0.0

    def position_of(self, price: float) -> str:
        """Where a price sits relative to the value area."""
        if price > self.vah:
            return "above_value_area"
        if price < self.val:
            return "below_value_area"
        return "in_value_area"

    def nearest_hvn(self, price: float) -> Optional[float]:
        """High volume node closest to a price."""
        if not self.hvn:
            return None
        return min(self.hvn, key=lambda node: (abs(node - price), node))


def _distribute(candle: Candle, range_low: float, width: float, volumes: list[float]) -> None:
    bins = len(volumes)

    if candle.high == candle.low:
        index = min(int((candle.low - range_low) / width), bins - 1)
        volumes[index] += candle.volume
        return

    first = max(0, min(int((candle.low - range_low) / width), bins - 1))
    last = max(0, min(int((candle.high - range_low) / width), bins - 1))
    span = candle.high - candle.low

    for index in range(first, last + 1):
        bin_low = range_low + index * width
        bin_high = bin_low + width
        overlap = min(candle.high, bin_high) - max(candle.low, bin_low)
        if overlap > 0:
            volumes[index] += candle.volume * overlap / span


def _value_area(volumes: list[float], poc_index: int, target: float) -> tuple[int, int]:
    low_index = high_index = poc_index
    captured = volumes[poc_index]
    last = len(volumes) - 1

    while captured < target and (low_index > 0 or high_index < last):
        up = volumes[high_index + 1] if high_index < last else -1.0
        down = volumes[low_index - 1] if low_index > 0 else -1.0

        if up > down:
            take_upper = True
        elif down > up:
            take_upper = False
        else:
            # Equal volume: take the bin closer to the POC, upper on a tie
            up_distance = high_index + 1 - poc_index
            down_distance = poc_index - (low_index - 1)
            take_upper = up_distance <= down_distance

        if take_upper:
            high_index += 1
            captured += volumes[high_index]
        else:
            low_index -= 1
            captured += volumes[low_index]

    return low_index, high_index


def build_volume_profile(
    candles: Sequence[Candle],
    bins: int = 50,
    value_area_pct: float = 0.70,
    hvn_factor: float = 1.5,
    lvn_factor: float = 0.5
) -> Optional[VolumeProfile]:
    """
    Build a volume profile

    Args:
        candles: Candles to profile
        bins: Number of price buckets
        value_area_pct: Share of total volume the value area must capture
        hvn_factor: Bins above this multiple of the mean bin volume are HVNs
        lvn_factor: Bins below this multiple of the mean bin volume are LVNs

    Returns:
        VolumeProfile or None when there is no candle or no volume
    """
    if not candles or bins <= 0:
        return None

    range_low = min(c.low for c in candles)
    range_high = max(c.high for c in candles)
    total = sum(c.volume for c in candles)
    if total <= 0:
        return None

    if range_high == range_low:
        only = VolumeBin(low=range_low, high=range_high, volume=total)
        return VolumeProfile(
            poc=range_low, vah=range_high, val=range_low,
            bins=(only,), total_volume=total,
        )

    width = (range_high - range_low) / bins
    volumes = [0.0] * bins
    for candle in candles:
        _distribute(candle, range_low, width, volumes)

    profile_bins = tuple(
        VolumeBin(low=range_low + i * width, high=range_low + (i + 1) * width, volume=volume)
        for i, volume in enumerate(volumes)
    )

    # First maximum wins
    poc_index = max(range(bins), key=lambda i: (volumes[i], -i))
    low_index, high_index = _value_area(volumes, poc_index, sum(volumes) * value_area_pct)

    mean_volume = sum(volumes) / bins
    hvn = tuple(b.mid for b in profile_bins if b.volume > mean_volume * hvn_factor)
    lvn = tuple(b.mid for b in profile_bins if b.volume < mean_volume * lvn_factor)

    return VolumeProfile(
        poc=profile_bins[poc_index].mid,
        vah=profile_bins[high_index].high,
        val=profile_bins[low_index].low,
        hvn=hvn,
        lvn=lvn,
        bins=profile_bins,
        total_volume=total,
    )


def session_volume_profile(
    candles: Sequence[Candle],
    session_length: int = 24,
    bins: int = 50,
    value_area_pct: float = 0.70
) -> Optional[VolumeProfile]:
    """Volume profile of the most recent ``session_length`` candles."""
    if session_length <= 0:
        return None
    return build_volume_profile(list(candles)[-session_length:], bins, value_area_pct)


def composite_volume_profile(
    candles: Sequence[Candle],
    bins: int = 50,
    value_area_pct: float = 0.70
) -> Optional[VolumeProfile]:
    """Volume profile of the whole series."""
    return build_volume_profile(candles, bins, value_area_pct)
