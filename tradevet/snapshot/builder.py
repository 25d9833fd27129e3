"""Indicator snapshot builder for coordinating all indicator calculations"""

import math
from dataclasses import astuple, is_dataclass
from typing import Any, Callable, Optional

import structlog

from ..bounce.detector import detect_bounce
from ..config.defaults import TradingConfig, get_default_config
from ..data.models import MarketData, OHLCVSeries
from ..errors import IndicatorCalculationError
from ..indicators.divergence import detect_divergence
from ..indicators.levels import support_resistance
from ..indicators.momentum import cci, macd, rsi, stochastic, williams_r
from ..indicators.moving_averages import ema, latest, previous
from ..indicators.patterns import detect_patterns
from ..indicators.structure import change_of_character, market_structure
from ..indicators.trend import NEUTRAL, adx, aroon, detect_trend, market_regime, parabolic_sar
from ..indicators.volatility import atr, bollinger, natr
from ..indicators.volume import cumulative_volume_delta, obv, relative_volume, volume_trend, vwap
from ..indicators.volume_profile import composite_volume_profile, session_volume_profile
from ..models.snapshot import IndicatorSnapshot, TrendAlignment
from ..utils.time import candles_per_day, resolve_evaluation_time

logger = structlog.get_logger(__name__)


def _check_finite(name: str, value: Any) -> None:
    items = astuple(value) if is_dataclass(value) else (value,)
    if any(isinstance(item, float) and not math.isfinite(item) for item in items):
        raise IndicatorCalculationError(
            f"{name} produced a non-finite value",
            indicator_name=name,
            calculation_input={"value": repr(value)}
        )


def timeframe_trend(series: Optional[OHLCVSeries]) -> Optional[str]:
    """EMA(20)/EMA(50) trend direction of a timeframe, None if unavailable."""
    if series is None:
        return None
    result = detect_trend(series.closes, 20, 50)
    return result.direction if result else None


def build_trend_alignment(market: MarketData) -> TrendAlignment:
    """
    Summarize daily/4h/1h trend agreement.

    A lower timeframe is aligned when its trend equals a non-neutral daily
    trend. Score = 40 for a directional daily trend + 30 per aligned
    lower timeframe.
    """
    daily = timeframe_trend(market.timeframe("1d"))
    h4 = timeframe_trend(market.timeframe("4h"))
    h1 = timeframe_trend(market.timeframe("1h"))

    daily_direction = daily or NEUTRAL
    directional = daily_direction != NEUTRAL
    h4_aligned = directional and h4 == daily_direction
    h1_aligned = directional and h1 == daily_direction

    score = (40.0 if directional else 0.0) + (30.0 if h4_aligned else 0.0) + (30.0 if h1_aligned else 0.0)

    return TrendAlignment(
        daily_trend=daily_direction,
        h4_aligned=h4_aligned,
        h1_aligned=h1_aligned,
        alignment_score=score,
        h4_trend=h4,
        h1_trend=h1,
        daily_available=daily is not None,
    )


class IndicatorSnapshotBuilder:
    """
    Builds the IndicatorSnapshot and TrendAlignment for one pipeline run.

    Every indicator is computed independently; one that cannot be computed
    is logged and left as None so the rest of the evaluation continues.
    """

    def __init__(self, config: Optional[TradingConfig] = None):
        self.config = config or get_default_config()

    def _safe(self, asset: str, name: str, compute: Callable[[], Any]) -> Any:
        try:
            value = compute()
            _check_finite(name, value)
            return value
        except IndicatorCalculationError as e:
            logger.warning(
                "Indicator unavailable",
                asset=asset,
                indicator=name,
                error=str(e)
            )
            return None

    def build(self, market: MarketData, now_ms: Optional[int] = None) -> tuple[IndicatorSnapshot, TrendAlignment]:
        """
        Build the snapshot for the primary series of ``market``.

        Args:
            market: Primary series plus optional 1h/4h/1d series
            now_ms: Evaluation time; defaults to the last primary candle

        Returns:
            (IndicatorSnapshot, TrendAlignment)
        """
        series = market.primary
        params = self.config.indicators
        asset = series.asset

        closes, highs, lows, volumes = series.closes, series.highs, series.lows, series.volumes
        candles = list(series.candles)
        price = series.last.close

        def value(name: str, compute: Callable[[], Any]) -> Any:
            return self._safe(asset, name, compute)

        rsi_series = rsi(closes, params.rsi_period)
        macd_result = macd(closes, params.macd_fast, params.macd_slow, params.macd_signal)
        stoch_series = stochastic(highs, lows, closes, params.stochastic_k, params.stochastic_d)
        bands = bollinger(closes, params.bollinger_period, params.bollinger_std)
        atr_series = atr(highs, lows, closes, params.atr_period)
        adx_series = adx(highs, lows, closes, params.adx_period)
        sar_series = parabolic_sar(highs, lows, params.sar_step, params.sar_max)
        aroon_series = aroon(highs, lows, params.aroon_period)

        atr_value = value("atr", lambda: latest(atr_series))
        atr_pct = natr(atr_value, price) if atr_value is not None else None
        adx_point = latest(adx_series)
        stoch_point = latest(stoch_series)
        stoch_prev = previous(stoch_series)
        sar_point = latest(sar_series)
        aroon_point = latest(aroon_series)
        band = value("bollinger", lambda: latest(bands))

        h4_series = market.timeframe("4h")
        h4_ema8 = None
        if h4_series is not None:
            h4_ema8 = value("h4_ema8", lambda: latest(ema(h4_series.closes, 8)))

        adx_value = value("adx", lambda: adx_point.adx if adx_point else None)

        snapshot = IndicatorSnapshot(
            asset=asset,
            interval=series.interval,
            timestamp=resolve_evaluation_time(now_ms, series.last.timestamp),
            price=price,
            candle_count=len(series),
            rsi=value("rsi", lambda: latest(rsi_series)),
            macd=value("macd", lambda: macd_result.macd if macd_result else None),
            macd_signal=value("macd_signal", lambda: macd_result.signal if macd_result else None),
            macd_histogram=value("macd_histogram", lambda: macd_result.last_histogram if macd_result else None),
            macd_histogram_prev=value(
                "macd_histogram_prev", lambda: macd_result.previous_histogram if macd_result else None
            ),
            stoch_k=value("stoch_k", lambda: stoch_point.k if stoch_point else None),
            stoch_d=value("stoch_d", lambda: stoch_point.d if stoch_point else None),
            stoch_k_prev=stoch_prev.k if stoch_prev else None,
            stoch_d_prev=stoch_prev.d if stoch_prev else None,
            cci=value("cci", lambda: latest(cci(highs, lows, closes, params.cci_period))),
            williams_r=value("williams_r", lambda: latest(williams_r(highs, lows, closes, params.williams_period))),
            ema8=value("ema8", lambda: latest(ema(closes, 8))),
            ema20=value("ema20", lambda: latest(ema(closes, 20))),
            ema50=value("ema50", lambda: latest(ema(closes, 50))),
            ema200=value("ema200", lambda: latest(ema(closes, 200))),
            bollinger=band,
            atr=atr_value,
            atr_pct=atr_pct,
            adx=adx_value,
            plus_di=adx_point.plus_di if adx_point else None,
            minus_di=adx_point.minus_di if adx_point else None,
            sar=value("sar", lambda: sar_point.sar if sar_point else None),
            sar_trend=sar_point.trend if sar_point else None,
            aroon_up=aroon_point.up if aroon_point else None,
            aroon_down=aroon_point.down if aroon_point else None,
            trend=detect_trend(closes, 20, 50),
            regime=market_regime(adx_value, atr_pct),
            structure=market_structure(highs, lows),
            obv=value("obv", lambda: latest(obv(closes, volumes))),
            vwap=value("vwap", lambda: vwap(candles)),
            relative_volume=value("relative_volume", lambda: relative_volume(volumes, params.volume_average_period)),
            volume_trend=volume_trend(volumes, params.volume_average_period),
            volume_profile=session_volume_profile(
                candles, params.session_length, params.volume_profile_bins, params.value_area_pct
            ),
            composite_profile=composite_volume_profile(
                candles, params.volume_profile_bins, params.value_area_pct
            ),
            cvd=cumulative_volume_delta(candles, params.cvd_window),
            levels=support_resistance(highs, lows, closes, params.support_resistance_lookback),
            change_of_character=change_of_character(highs, lows, closes),
            rsi_divergence=detect_divergence(closes, rsi_series, params.divergence_lookback),
            macd_divergence=detect_divergence(
                closes, macd_result.histogram if macd_result else [], params.divergence_lookback
            ),
            patterns=tuple(detect_patterns(candles[-2:])),
            price_change_24h=value("price_change_24h", lambda: self._price_change_24h(series)),
            h4_ema8=h4_ema8,
            bounce=detect_bounce(series, self.config.bounce, params),
        )

        alignment = build_trend_alignment(market)

        logger.debug(
            "Snapshot built",
            asset=asset,
            interval=series.interval,
            candles=len(series),
            available_indicators=snapshot.available_count(),
            daily_trend=alignment.daily_trend,
            alignment_score=alignment.alignment_score
        )

        return snapshot, alignment

    def _price_change_24h(self, series: OHLCVSeries) -> Optional[float]:
        """Percent change over the last day of candles."""
        try:
            lookback = max(1, round(candles_per_day(series.interval)))
        except ValueError:
            return None

        if len(series) <= lookback:
            return None

        base = series[-1 - lookback].close
        if base == 0:
            return None
        return (series.last.close - base) / base * 100.0
