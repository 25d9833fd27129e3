"""
Indicator snapshot models.

An IndicatorSnapshot holds the latest value of every indicator for one
asset at one evaluation instant. It is built once per pipeline run and
never mutated; a field left as None means the indicator was unavailable.
"""

from dataclasses import dataclass, fields
from typing import TYPE_CHECKING, Any, Optional

from ..indicators.divergence import Divergence
from ..indicators.levels import SupportResistance
from ..indicators.patterns import CandlePattern
from ..indicators.structure import ChangeOfCharacter, MarketStructure
from ..indicators.trend import MarketRegime, TrendResult
from ..indicators.volatility import BollingerBand
from ..indicators.volume import CVDResult, VolumeTrend
from ..indicators.volume_profile import VolumeProfile

if TYPE_CHECKING:
    from ..bounce.models import BounceSignal


@dataclass(frozen=True)
class TrendAlignment:
    """Multi-timeframe trend agreement derived from EMA(20)/EMA(50)."""
    daily_trend: str                     # uptrend / downtrend / neutral
    h4_aligned: bool
    h1_aligned: bool
    alignment_score: float               # 0-100
    h4_trend: Optional[str] = None       # None when the timeframe is unavailable
    h1_trend: Optional[str] = None
    daily_available: bool = True


# Scalar fields counted when deciding whether any indicator is available
CORE_INDICATORS = (
    "rsi", "macd_histogram", "ema20", "ema50", "bollinger", "atr",
    "adx", "obv", "vwap", "stoch_k", "cci", "williams_r", "sar", "aroon_up",
)


@dataclass(frozen=True)
class IndicatorSnapshot:
    """Latest indicator values for one asset at one evaluation instant."""
    asset: str
    interval: str
    timestamp: int                                   # Evaluation time, epoch ms
    price: float
    candle_count: int

    # Momentum
    rsi: Optional[float] = None
    macd: Optional[float] = None
    macd_signal: Optional[float] = None
    macd_histogram: Optional[float] = None
    macd_histogram_prev: Optional[float] = None
    stoch_k: Optional[float] = None
    stoch_d: Optional[float] = None
    stoch_k_prev: Optional[float] = None
    stoch_d_prev: Optional[float] = None
    cci: Optional[float] = None
    williams_r: Optional[float] = None

    # Moving averages
    ema8: Optional[float] = None
    ema20: Optional[float] = None
    ema50: Optional[float] = None
    ema200: Optional[float] = None

    # Volatility
    bollinger: Optional[BollingerBand] = None
    atr: Optional[float] = None
    atr_pct: Optional[float] = None

    # Trend
    adx: Optional[float] = None
    plus_di: Optional[float] = None
    minus_di: Optional[float] = None
    sar: Optional[float] = None
    sar_trend: Optional[str] = None                  # up / down
    aroon_up: Optional[float] = None
    aroon_down: Optional[float] = None
    trend: Optional[TrendResult] = None
    regime: Optional[MarketRegime] = None
    structure: Optional[MarketStructure] = None

    # Volume
    obv: Optional[float] = None
    vwap: Optional[float] = None
    relative_volume: Optional[float] = None
    volume_trend: Optional[VolumeTrend] = None
    volume_profile: Optional[VolumeProfile] = None   # Session profile
    composite_profile: Optional[VolumeProfile] = None
    cvd: Optional[CVDResult] = None

    # Structure, levels, patterns
    levels: Optional[SupportResistance] = None
    change_of_character: Optional[ChangeOfCharacter] = None
    rsi_divergence: Optional[Divergence] = None
    macd_divergence: Optional[Divergence] = None
    patterns: tuple[CandlePattern, ...] = ()

    price_change_24h: Optional[float] = None         # Percent
    h4_ema8: Optional[float] = None
    bounce: Optional["BounceSignal"] = None

    @property
    def bollinger_pct_b(self) -> Optional[float]:
        if self.bollinger is None:
            return None
        return self.bollinger.percent_b(self.price)

    def available_count(self) -> int:
        """Number of core indicators with a value."""
        return sum(1 for name in CORE_INDICATORS if getattr(self, name) is not None)

    def get(self, name: str, default: Any = None) -> Any:
        value = getattr(self, name, None)
        return default if value is None else value

    def as_dict(self) -> dict[str, Any]:
        """Scalar indicator values keyed by name (composite values flattened)."""
        result: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None or isinstance(value, (int, float, str)):
                result[f.name] = value

        band = self.bollinger
        result["bollinger_upper"] = band.upper if band else None
        result["bollinger_middle"] = band.middle if band else None
        result["bollinger_lower"] = band.lower if band else None
        result["bollinger_pct_b"] = self.bollinger_pct_b
        result["trend_direction"] = self.trend.direction if self.trend else None
        result["regime"] = self.regime.regime if self.regime else None
        result["support"] = self.levels.support if self.levels else None
        result["resistance"] = self.levels.resistance if self.levels else None
        result["rsi_divergence"] = self.rsi_divergence.kind if self.rsi_divergence else None
        result["macd_divergence"] = self.macd_divergence.kind if self.macd_divergence else None
        result["patterns"] = [p.name for p in self.patterns]
        result["bounce_mode"] = bool(self.bounce and self.bounce.detected)
        return result
