"""Pytest configuration and shared fixtures."""

import math
from typing import Callable, Optional, Sequence

import pytest

from tradevet.config.defaults import get_default_config
from tradevet.data.models import Candle, MarketData, OHLCVSeries
from tradevet.indicators.volatility import BollingerBand
from tradevet.models.snapshot import IndicatorSnapshot, TrendAlignment
from tradevet.utils.time import interval_to_ms

START_MS = 1_700_000_000_000


def build_series(
    closes: Sequence[float],
    asset: str = "BTC",
    interval: str = "1h",
    volumes: Optional[Sequence[float]] = None,
    spread: float = 0.5,
    start_ms: int = START_MS
) -> OHLCVSeries:
    """
    Build a deterministic series from closes.

    Each candle opens at the previous close and its wicks extend ``spread``
    beyond the body.
    """
    step = interval_to_ms(interval)
    candles = []
    previous = closes[0]
    for i, close in enumerate(closes):
        candles.append(Candle(
            timestamp=start_ms + i * step,
            open=previous,
            high=max(previous, close) + spread,
            low=min(previous, close) - spread,
            close=close,
            volume=volumes[i] if volumes is not None else 1000.0,
        ))
        previous = close
    return OHLCVSeries.from_candles(asset, interval, candles)


def trending_closes(count: int, start: float, slope: float, wave: float = 1.5) -> list[float]:
    """Linear trend with a deterministic sine wiggle."""
    return [start + slope * i + wave * math.sin(i / 3.0) for i in range(count)]


def bounce_closes() -> list[float]:
    """Flat 130, a steady decline to 100, a drop to 92 and a rebound to 99."""
    return [130.0] * 20 + [130.0 - i for i in range(31)] + [92.0, 99.0]


@pytest.fixture
def make_series() -> Callable[..., OHLCVSeries]:
    """Factory for deterministic series."""
    return build_series


@pytest.fixture
def default_config():
    """Default trading configuration."""
    return get_default_config()


@pytest.fixture
def uptrend_market() -> MarketData:
    """Steady uptrend on the 1h, 4h and 1d timeframes."""
    return MarketData(
        primary=build_series(trending_closes(220, 100.0, 0.4)),
        h4=build_series(trending_closes(120, 60.0, 1.2), interval="4h"),
        d1=build_series(trending_closes(120, 40.0, 2.0), interval="1d"),
    )


@pytest.fixture
def downtrend_market() -> MarketData:
    """Steady downtrend on the 1h, 4h and 1d timeframes."""
    return MarketData(
        primary=build_series(trending_closes(220, 300.0, -0.4)),
        h4=build_series(trending_closes(120, 400.0, -1.2), interval="4h"),
        d1=build_series(trending_closes(120, 500.0, -2.0), interval="1d"),
    )


@pytest.fixture
def bounce_series() -> OHLCVSeries:
    """Close below the lower band followed by a high-volume close back inside."""
    closes = bounce_closes()
    volumes = [1000.0] * (len(closes) - 1) + [3000.0]
    return build_series(closes, volumes=volumes)


@pytest.fixture
def bullish_snapshot() -> IndicatorSnapshot:
    """Snapshot where every major indicator family leans bullish."""
    return IndicatorSnapshot(
        asset="BTC",
        interval="1h",
        timestamp=START_MS,
        price=110.0,
        candle_count=200,
        rsi=65.0,
        macd=1.2,
        macd_signal=0.7,
        macd_histogram=0.5,
        stoch_k=60.0,
        stoch_d=55.0,
        cci=90.0,
        ema8=109.0,
        ema20=106.0,
        ema50=100.0,
        bollinger=BollingerBand(upper=108.0, middle=104.0, lower=100.0),
        atr=2.2,
        atr_pct=2.0,
        adx=32.0,
        sar=105.0,
        sar_trend="up",
        aroon_up=100.0,
        aroon_down=0.0,
        obv=25000.0,
        vwap=105.0,
        price_change_24h=6.0,
    )


@pytest.fixture
def bullish_alignment() -> TrendAlignment:
    """Uptrend on every timeframe."""
    return TrendAlignment(
        daily_trend="uptrend",
        h4_aligned=True,
        h1_aligned=True,
        alignment_score=100.0,
        h4_trend="uptrend",
        h1_trend="uptrend",
    )


@pytest.fixture
def bounce_followup() -> Callable[[Sequence[float]], OHLCVSeries]:
    """Factory for the bounce series followed by extra closes."""
    def build(extra: Sequence[float]) -> OHLCVSeries:
        closes = bounce_closes() + list(extra)
        volumes = [1000.0] * 52 + [3000.0] + [1000.0] * len(extra)
        return build_series(closes, volumes=volumes)
    return build
