"""
Signal candidate models.

A proposal coming from the external proposal generator is parsed into one
of six frozen variants, each carrying only the fields meaningful to it.
Entry variants (open long, open short, add) carry price levels; the others
carry none.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import TYPE_CHECKING, Optional, Union

if TYPE_CHECKING:
    from ..indicators.structure import ChangeOfCharacter
    from ..indicators.volume import CVDResult
    from ..indicators.volume_profile import VolumeProfile


class Direction(str, Enum):
    """Proposal directions understood by the pipeline."""
    BUY_TO_ENTER = "buy_to_enter"
    SELL_TO_ENTER = "sell_to_enter"
    HOLD = "hold"
    CLOSE = "close"
    CLOSE_ALL = "close_all"
    REDUCE = "reduce"
    ADD = "add"


class Side(str, Enum):
    """Position side."""
    LONG = "long"
    SHORT = "short"

    @property
    def opposite(self) -> "Side":
        return Side.SHORT if self is Side.LONG else Side.LONG


@dataclass(frozen=True)
class OpenLongCandidate:
    """Open a new long position."""
    asset: str
    entry_price: float
    stop_loss: Optional[float] = None
    take_profit: Optional[float] = None
    raw_confidence: Optional[float] = None

    @property
    def direction(self) -> Direction:
        return Direction.BUY_TO_ENTER

    @property
    def side(self) -> Side:
        return Side.LONG


@dataclass(frozen=True)
class OpenShortCandidate:
    """Open a new short position."""
    asset: str
    entry_price: float
    stop_loss: Optional[float] = None
    take_profit: Optional[float] = None
    raw_confidence: Optional[float] = None

    @property
    def direction(self) -> Direction:
        return Direction.SELL_TO_ENTER

    @property
    def side(self) -> Side:
        return Side.SHORT


@dataclass(frozen=True)
class AddCandidate:
    """Add to an existing position on the given side."""
    asset: str
    side: Side
    entry_price: float
    stop_loss: Optional[float] = None
    take_profit: Optional[float] = None
    raw_confidence: Optional[float] = None

    @property
    def direction(self) -> Direction:
        return Direction.ADD


@dataclass(frozen=True)
class HoldCandidate:
    """Take no action."""
    asset: str
    raw_confidence: Optional[float] = None

    @property
    def direction(self) -> Direction:
        return Direction.HOLD


@dataclass(frozen=True)
class CloseCandidate:
    """Close the position on an asset (or every position)."""
    asset: str
    close_all: bool = False
    raw_confidence: Optional[float] = None

    @property
    def direction(self) -> Direction:
        return Direction.CLOSE_ALL if self.close_all else Direction.CLOSE


@dataclass(frozen=True)
class ReduceCandidate:
    """Reduce the position on an asset by a fraction."""
    asset: str
    fraction: Optional[float] = None
    raw_confidence: Optional[float] = None

    @property
    def direction(self) -> Direction:
        return Direction.REDUCE


EntryCandidate = Union[OpenLongCandidate, OpenShortCandidate, AddCandidate]
SignalCandidate = Union[
    OpenLongCandidate,
    OpenShortCandidate,
    AddCandidate,
    HoldCandidate,
    CloseCandidate,
    ReduceCandidate,
]

ENTRY_TYPES = (OpenLongCandidate, OpenShortCandidate, AddCandidate)


def is_entry(candidate: SignalCandidate) -> bool:
    """True for candidates that open or grow exposure."""
    return isinstance(candidate, ENTRY_TYPES)


def with_levels(
    candidate: EntryCandidate,
    stop_loss: Optional[float] = None,
    take_profit: Optional[float] = None,
    entry_price: Optional[float] = None
) -> EntryCandidate:
    """Copy of an entry candidate with replaced price levels."""
    changes = {}
    if stop_loss is not None:
        changes["stop_loss"] = stop_loss
    if take_profit is not None:
        changes["take_profit"] = take_profit
    if entry_price is not None:
        changes["entry_price"] = entry_price
    return replace(candidate, **changes)


def with_side(candidate: EntryCandidate, side: Side) -> EntryCandidate:
    """
    Copy of an entry candidate pointing the other way.

    Price levels are dropped because they belong to the original side.
    """
    if isinstance(candidate, AddCandidate):
        return replace(candidate, side=side, stop_loss=None, take_profit=None)

    target = OpenLongCandidate if side is Side.LONG else OpenShortCandidate
    return target(
        asset=candidate.asset,
        entry_price=candidate.entry_price,
        raw_confidence=candidate.raw_confidence,
    )


@dataclass(frozen=True)
class ExternalData:
    """
    Optional market inputs resolved by the market-data collaborator.

    Every field may be absent; the matching scoring item is then skipped.
    """
    funding_rate: Optional[float] = None                 # Fraction per funding period
    open_interest_trend: Optional[str] = None            # increasing / decreasing / stable
    order_book_imbalance: Optional[float] = None         # (bids - asks) / (bids + asks), [-1, 1]
    bid_wall_price: Optional[float] = None
    ask_wall_price: Optional[float] = None
    whale_activity_score: Optional[float] = None         # [-1, 1], positive = accumulation
    exchange_flow: Optional[float] = None                # Net inflow to exchanges, positive = inflow
    volume_profile: Optional["VolumeProfile"] = None
    change_of_character: Optional["ChangeOfCharacter"] = None
    cumulative_volume_delta: Optional["CVDResult"] = None


@dataclass(frozen=True)
class OpenPosition:
    """Position currently held by the account."""
    asset: str
    side: Side


@dataclass(frozen=True)
class AccountState:
    """Account snapshot used for sizing and safety limits."""
    equity: float
    open_positions: tuple[OpenPosition, ...] = ()
    daily_pnl_pct: float = 0.0
    consecutive_losses: int = 0
