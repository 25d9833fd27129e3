"""
Bounce/reversal state models.

A bounce is detected when price closes back inside a Bollinger Band after
closing outside it. After detection the bounce moves through a small
state machine (persistence, reclaim, re-entry, decay, exit) that is
replayed from the candle series on every evaluation.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional

from ..models.signals import Side


class BounceState(str, Enum):
    """Bounce lifecycle states."""
    NONE = "none"
    BOUNCE_MODE = "bounce_mode"                  # Detected, persistence pending
    CONFIRMED = "confirmed"                      # Favorable move within the persistence window
    FAILED = "persistence_failed"                # No favorable move within the window
    REENTERED = "reentered"                      # Reclaim after a failed persistence check
    EXIT_SIGNALLED = "exit_signalled"            # Trim / trail triggered by EMA(8)


class Confirmation(str, Enum):
    """Bounce confirmations counted at the re-entry candle."""
    RSI_EXTREME = "rsi_extreme"
    STOCHASTIC_CROSS = "stochastic_cross"
    VOLUME_SPIKE = "volume_spike"
    VOLATILITY = "volatility"
    STRONG_BODY = "strong_body"


@dataclass(frozen=True)
class BounceSignal:
    """Result of bounce detection."""
    detected: bool
    side: Side                                   # LONG for a lower-band bounce
    strength: float                              # [0.2, 1.0]
    confirmations: tuple[Confirmation, ...]
    band_level: float                            # Band the price re-entered
    detection_index: int                         # Candle index of the re-entry
    detection_price: float                       # Close of the re-entry candle
    candles_since: int                           # Candles after detection

    @property
    def confirmation_count(self) -> int:
        return len(self.confirmations)


@dataclass(frozen=True)
class BounceTransition:
    """One recorded state change."""
    from_state: BounceState
    to_state: BounceState
    trigger: str
    candle_offset: int                           # Candles after detection


@dataclass(frozen=True)
class BounceAssessment:
    """
    Outcome of replaying the bounce state machine.

    ``confidence_factor`` multiplies the scored confidence; notes describe
    every rule that changed it.
    """
    signal: BounceSignal
    state: BounceState = BounceState.BOUNCE_MODE
    confidence_factor: float = 1.0
    notes: tuple[str, ...] = ()
    transitions: tuple[BounceTransition, ...] = ()
    trim_recommended: bool = False
    trim_fraction: float = 0.0
    trailed_take_profit: Optional[float] = None
    max_favorable_move_pct: float = 0.0
    decay_applied: float = 0.0

    def transition(self, to_state: BounceState, trigger: str, candle_offset: int) -> "BounceAssessment":
        """Create new assessment in ``to_state`` with the transition recorded."""
        record = BounceTransition(
            from_state=self.state,
            to_state=to_state,
            trigger=trigger,
            candle_offset=candle_offset,
        )
        return replace(self, state=to_state, transitions=self.transitions + (record,))

    def with_factor(self, factor: float, note: str) -> "BounceAssessment":
        """Create new assessment with the confidence factor scaled by ``factor``."""
        return replace(
            self,
            confidence_factor=self.confidence_factor * factor,
            notes=self.notes + (note,),
        )

    def with_updates(self, **kwargs) -> "BounceAssessment":
        """Create new assessment with updated fields."""
        return replace(self, **kwargs)


@dataclass(frozen=True)
class BounceInputs:
    """Scalar values evaluated at the candle that closed back inside a band."""
    previous_close: float
    close: float
    previous_upper: float
    previous_lower: float
    upper: float
    lower: float
    rsi_values: tuple[float, ...] = field(default_factory=tuple)  # RSI at the previous and re-entry candles
    stoch_k: Optional[float] = None
    stoch_d: Optional[float] = None
    volume: Optional[float] = None
    average_volume: Optional[float] = None
    atr: Optional[float] = None
    body: Optional[float] = None
