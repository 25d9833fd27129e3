"""Default configuration parameters for the signal evaluation system."""

from dataclasses import dataclass, field
from enum import Enum


class TradingMode(str, Enum):
    """How accepted decisions are consumed downstream."""
    AUTONOMOUS = "autonomous"
    SIGNAL_ONLY = "signal_only"
    MANUAL_REVIEW = "manual_review"


@dataclass(frozen=True)
class ConfidenceThresholds:
    """Confidence tiers for execution levels."""
    high: float = 0.60                               # Full position
    medium: float = 0.32                             # 70% position
    low: float = 0.25                                # 50% position, extremes only
    reject: float = 0.20                             # Hard reject below


@dataclass(frozen=True)
class EVThresholds:
    """Expected value tiers (account currency)."""
    high: float = 0.8
    medium: float = 0.3
    low: float = 0.0                                 # Breakeven or better
    reject: float = -0.3                             # Reject deep negative only


@dataclass(frozen=True)
class PositionSizingMultipliers:
    """Fraction of the calculated size used per confidence tier."""
    high: float = 1.0
    medium: float = 0.7
    low: float = 0.5


@dataclass(frozen=True)
class SafetyLimits:
    """Account-level safety limits."""
    max_risk_per_trade: float = 2.0                  # % of equity
    max_open_positions: int = 2
    daily_loss_limit: float = 5.0                    # % of equity
    consecutive_losses: int = 3                      # Pause after N losses
    min_account_balance: float = 10.0


@dataclass(frozen=True)
class LimitedPairsParams:
    """Rules for running against a small universe of highly correlated assets."""
    enabled: bool = True
    allow_oversold_plays: bool = True                # Contrarian exemption
    correlation_threshold: float = 0.7               # Same-direction exposure limit
    correlation_lookback: int = 30


@dataclass(frozen=True)
class IndicatorParams:
    """Indicator periods and windows."""
    rsi_period: int = 14
    macd_fast: int = 12
    macd_slow: int = 26
    macd_signal: int = 9
    bollinger_period: int = 20
    bollinger_std: float = 2.0
    atr_period: int = 14
    adx_period: int = 14
    stochastic_k: int = 14
    stochastic_d: int = 3
    cci_period: int = 20
    williams_period: int = 14
    aroon_period: int = 14
    sar_step: float = 0.02
    sar_max: float = 0.2
    volume_profile_bins: int = 50
    value_area_pct: float = 0.70
    session_length: int = 24                         # Candles in a session profile
    cvd_window: int = 20
    support_resistance_lookback: int = 50
    divergence_lookback: int = 30
    volume_average_period: int = 20


@dataclass(frozen=True)
class RiskParams:
    """Stop, target, sizing and leverage parameters."""
    wick_buffer_pct: float = 0.3
    fallback_stop_pct: float = 2.0
    take_profit_floor_pct: float = 2.0
    take_profit_ceiling_pct: float = 5.0
    bounce_take_profit_min_pct: float = 1.5
    bounce_take_profit_max_pct: float = 4.0
    bounce_min_reward_risk: float = 1.5
    base_leverage: float = 3.0
    default_max_leverage: float = 10.0
    asset_max_leverage: dict = field(default_factory=lambda: {
        "BTC": 40.0,
        "ETH": 25.0,
    })
    base_margin_pct: float = 50.0
    default_account_equity: float = 100.0


@dataclass(frozen=True)
class BounceParams:
    """Bounce/reversal detector parameters."""
    enabled: bool = True
    lookback: int = 24                               # Candles scanned for a re-entry into the band
    min_confirmations: int = 2
    rsi_oversold: float = 30.0
    rsi_overbought: float = 70.0
    min_atr_pct: float = 1.5
    body_atr_ratio: float = 0.5
    persistence_candles: int = 3
    persistence_min_move_pct: float = 0.5
    persistence_failure_factor: float = 0.5
    reclaim_penalty: float = 0.15
    reentry_window: int = 6
    reentry_boost_strong: float = 0.15
    reentry_boost_weak: float = 0.10
    decay_after: dict = field(default_factory=lambda: {
        "1h": 12,
        "4h": 6,
        "1d": 1,
    })
    decay_per_candle: float = 0.02
    decay_cap: float = 0.5
    trim_trigger_pct: float = 3.0
    trim_fraction: float = 0.5
    force_direction: bool = True


@dataclass(frozen=True)
class ScoringParams:
    """Confidence scoring and penalty parameters."""
    trend_floor: dict = field(default_factory=lambda: {
        TradingMode.AUTONOMOUS.value: 10.0,
        TradingMode.SIGNAL_ONLY.value: 8.0,
        TradingMode.MANUAL_REVIEW.value: 6.0,
    })
    contradiction_penalty_per_point: float = 0.03
    contradiction_floor: float = 0.4
    momentum_penalty_weak: float = 0.10
    momentum_penalty_moderate: float = 0.15
    momentum_penalty_strong: float = 0.20
    low_volatility_atr_pct: float = 1.5
    low_volatility_penalty: float = 0.10
    penalty_floor: float = 0.2
    penalty_ceiling: float = 1.0
    extreme_contradiction_score: int = 20
    allow_signal_flip: bool = False


@dataclass(frozen=True)
class TradingConfig:
    """Complete evaluation configuration."""
    trading_mode: TradingMode
    confidence_thresholds: ConfidenceThresholds
    ev_thresholds: EVThresholds
    position_sizing: PositionSizingMultipliers
    safety: SafetyLimits
    limited_pairs: LimitedPairsParams
    indicators: IndicatorParams
    risk: RiskParams
    bounce: BounceParams
    scoring: ScoringParams

    def max_leverage_for(self, asset: str) -> float:
        """Maximum leverage allowed for an asset symbol."""
        base_symbol = asset.upper().split("-")[0].split("/")[0]
        return float(self.risk.asset_max_leverage.get(base_symbol, self.risk.default_max_leverage))


def get_default_config() -> TradingConfig:
    """Get the default configuration instance."""
    return TradingConfig(
        trading_mode=TradingMode.AUTONOMOUS,
        confidence_thresholds=ConfidenceThresholds(),
        ev_thresholds=EVThresholds(),
        position_sizing=PositionSizingMultipliers(),
        safety=SafetyLimits(),
        limited_pairs=LimitedPairsParams(),
        indicators=IndicatorParams(),
        risk=RiskParams(),
        bounce=BounceParams(),
        scoring=ScoringParams(),
    )
