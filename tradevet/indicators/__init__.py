"""Technical indicator library.

Every function is pure and returns an empty list or None when the input is
shorter than the indicator's warm-up window.
"""

from .correlation import correlation_matrix, pearson
from .divergence import detect_divergence
from .levels import support_resistance
from .momentum import cci, macd, rsi, stochastic, williams_r
from .moving_averages import ema, sma
from .patterns import analyze_candle_structure, detect_patterns, detect_pinbar
from .structure import change_of_character, find_swing_points, market_structure
from .trend import adx, aroon, detect_trend, market_regime, parabolic_sar
from .volatility import atr, bollinger, natr, true_range
from .volume import cumulative_volume_delta, obv, relative_volume, volume_trend, vwap
from .volume_profile import (
    build_volume_profile,
    composite_volume_profile,
    session_volume_profile,
)

__all__ = [
    "sma",
    "ema",
    "rsi",
    "macd",
    "stochastic",
    "cci",
    "williams_r",
    "true_range",
    "atr",
    "natr",
    "bollinger",
    "adx",
    "parabolic_sar",
    "aroon",
    "detect_trend",
    "market_regime",
    "obv",
    "vwap",
    "relative_volume",
    "volume_trend",
    "cumulative_volume_delta",
    "build_volume_profile",
    "session_volume_profile",
    "composite_volume_profile",
    "find_swing_points",
    "market_structure",
    "change_of_character",
    "support_resistance",
    "detect_divergence",
    "analyze_candle_structure",
    "detect_pinbar",
    "detect_patterns",
    "pearson",
    "correlation_matrix",
]
