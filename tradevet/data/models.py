"""
Canonical data models for OHLCV candle series.

This module defines immutable data structures that represent clean, validated
candle data after normalization from raw exchange formats. The evaluation
core only ever reads these objects.
"""

import math
from dataclasses import dataclass
from typing import Iterator, Optional, Sequence

from ..errors import MalformedDataError, MissingDataError, TemporalDataError


@dataclass(frozen=True)
class Candle:
    """Single OHLCV candle with an epoch-millisecond timestamp."""
    timestamp: int     # Candle open time, epoch ms
    open: float        # Opening price
    high: float        # High price
    low: float         # Low price
    close: float       # Closing price
    volume: float      # Base volume

    def __post_init__(self):
        prices = (self.open, self.high, self.low, self.close)
        for price in prices + (self.volume,):
            if not isinstance(price, (int, float)) or isinstance(price, bool):
                raise MalformedDataError(f"Invalid candle value type: {type(price)}")
            if math.isnan(price) or math.isinf(price):
                raise MalformedDataError(f"Invalid candle value: {price}")

        if self.high < max(self.open, self.close):
            raise MalformedDataError(
                "High price less than open/close",
                context={"timestamp": self.timestamp, "high": self.high}
            )
        if self.low > min(self.open, self.close):
            raise MalformedDataError(
                "Low price greater than open/close",
                context={"timestamp": self.timestamp, "low": self.low}
            )
        if self.volume < 0:
            raise MalformedDataError(f"Negative volume: {self.volume}")

    @property
    def typical_price(self) -> float:
        """(high + low + close) / 3"""
        return (self.high + self.low + self.close) / 3.0

    @property
    def range(self) -> float:
        """High-low range."""
        return self.high - self.low

    @property
    def body(self) -> float:
        """Signed candle body (close - open)."""
        return self.close - self.open


@dataclass(frozen=True)
class OHLCVSeries:
    """Ordered, immutable candle sequence for one asset and interval."""
    asset: str
    interval: str
    candles: tuple[Candle, ...]

    def __post_init__(self):
        if not isinstance(self.candles, tuple):
            object.__setattr__(self, "candles", tuple(self.candles))

        if not self.candles:
            raise MissingDataError(
                f"Empty candle series for {self.asset} {self.interval}",
                data_type="ohlcv"
            )

        previous = None
        for candle in self.candles:
            if previous is not None and candle.timestamp <= previous.timestamp:
                raise TemporalDataError(
                    "Candle timestamps must be strictly increasing",
                    timestamp=candle.timestamp,
                    previous_timestamp=previous.timestamp,
                    context={"asset": self.asset, "interval": self.interval}
                )
            previous = candle

    def __len__(self) -> int:
        return len(self.candles)

    def __iter__(self) -> Iterator[Candle]:
        return iter(self.candles)

    def __getitem__(self, index):
        return self.candles[index]

    @property
    def last(self) -> Candle:
        """Most recent candle."""
        return self.candles[-1]

    @property
    def opens(self) -> list[float]:
        return [c.open for c in self.candles]

    @property
    def highs(self) -> list[float]:
        return [c.high for c in self.candles]

    @property
    def lows(self) -> list[float]:
        return [c.low for c in self.candles]

    @property
    def closes(self) -> list[float]:
        return [c.close for c in self.candles]

    @property
    def volumes(self) -> list[float]:
        return [c.volume for c in self.candles]

    def tail(self, count: int) -> list[Candle]:
        """Last ``count`` candles as a list."""
        if count <= 0:
            return []
        return list(self.candles[-count:])

    @classmethod
    def from_candles(cls, asset: str, interval: str, candles: Sequence[Candle]) -> "OHLCVSeries":
        """Create a series from already-built candles."""
        return cls(asset=asset, interval=interval, candles=tuple(candles))


@dataclass(frozen=True)
class MarketData:
    """Primary series plus optional 1h/4h/1d series for one asset."""
    primary: OHLCVSeries
    h1: Optional[OHLCVSeries] = None
    h4: Optional[OHLCVSeries] = None
    d1: Optional[OHLCVSeries] = None

    @property
    def asset(self) -> str:
        return self.primary.asset

    def timeframe(self, label: str) -> Optional[OHLCVSeries]:
        """Series for a timeframe label (``1h``, ``4h``, ``1d``), falling back to the primary series."""
        series = {"1h": self.h1, "4h": self.h4, "1d": self.d1}.get(label)
        if series is None and self.primary.interval == label:
            return self.primary
        return series
