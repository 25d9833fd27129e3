"""
Candidate normalization for converting raw trade proposals to typed candidates.

Proposals come from an external generator and are untrusted. Field names and
direction spellings are standardized here; anything that cannot be turned
into a candidate at all, including NaN or infinite numbers, raises
InvalidCandidateError. Level problems (missing or inverted stops and
targets) are left for the level resolver.
"""

import math
from typing import Any, Optional, Union

import structlog

from ..errors import InvalidCandidateError
from ..models.signals import (
    AddCandidate,
    CloseCandidate,
    Direction,
    HoldCandidate,
    OpenLongCandidate,
    OpenShortCandidate,
    ReduceCandidate,
    Side,
    SignalCandidate,
)
from .normalizer import parse_json_payload

logger = structlog.get_logger(__name__)

DEFAULT_REDUCE_FRACTION = 0.5

_FIELD_ALIASES = {
    "asset": ("asset", "coin", "symbol"),
    "direction": ("direction", "signal", "action"),
    "entry_price": ("entry_price", "entry", "price"),
    "stop_loss": ("stop_loss", "stop", "sl"),
    "take_profit": ("take_profit", "profit_target", "target", "tp"),
    "raw_confidence": ("raw_confidence", "confidence"),
    "side": ("side", "position_side"),
    "fraction": ("fraction", "reduce_fraction"),
}

_DIRECTION_ALIASES = {
    "buy": Direction.BUY_TO_ENTER,
    "long": Direction.BUY_TO_ENTER,
    "open_long": Direction.BUY_TO_ENTER,
    "sell": Direction.SELL_TO_ENTER,
    "short": Direction.SELL_TO_ENTER,
    "open_short": Direction.SELL_TO_ENTER,
    "wait": Direction.HOLD,
    "exit": Direction.CLOSE,
    "close_position": Direction.CLOSE,
    "exit_all": Direction.CLOSE_ALL,
    "trim": Direction.REDUCE,
}

_SIDE_ALIASES = {
    "long": Side.LONG,
    "buy": Side.LONG,
    "short": Side.SHORT,
    "sell": Side.SHORT,
}


def _lookup(raw: dict[str, Any], field: str) -> Any:
    for name in _FIELD_ALIASES[field]:
        if name in raw and raw[name] is not None:
            return raw[name]
    return None


def _optional_float(raw: dict[str, Any], field: str) -> Optional[float]:
    value = _lookup(raw, field)
    if value is None or value == "":
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidCandidateError(f"Invalid {field}: {value!r}", field=field, value=value)
    if not math.isfinite(number):
        raise InvalidCandidateError(f"Non-finite {field}: {value!r}", field=field, value=value)
    return number


def _parse_direction(value: Any) -> Direction:
    if value is None:
        raise InvalidCandidateError("Missing required field: direction", field="direction")

    text = str(value).strip().lower()
    try:
        return Direction(text)
    except ValueError:
        pass

    if text in _DIRECTION_ALIASES:
        return _DIRECTION_ALIASES[text]
    raise InvalidCandidateError(f"Unknown direction: {value!r}", field="direction", value=value)


def _parse_confidence(raw: dict[str, Any]) -> Optional[float]:
    """Confidence in [0, 1]; values above 1 are read as percentages."""
    value = _optional_float(raw, "raw_confidence")
    if value is None:
        return None
    if value > 1.0:
        value /= 100.0
    return max(0.0, min(1.0, value))


def normalize_candidate(raw_data: Union[dict[str, Any], str, bytes]) -> SignalCandidate:
    """
    Normalize a raw proposal into a typed candidate.

    Args:
        raw_data: Proposal dict, or a JSON string/bytes of one

    Returns:
        The candidate variant matching the proposal's direction

    Raises:
        InvalidCandidateError: If the asset is missing, the direction is unknown
            or a numeric field is not a finite number
    """
    raw = parse_json_payload(raw_data) if isinstance(raw_data, (str, bytes)) else raw_data
    if not isinstance(raw, dict):
        raise InvalidCandidateError(f"Candidate must be an object, got {type(raw).__name__}")

    asset = _lookup(raw, "asset")
    if not asset or not str(asset).strip():
        raise InvalidCandidateError("Missing required field: asset", field="asset")
    asset = str(asset).strip().upper()

    direction = _parse_direction(_lookup(raw, "direction"))
    confidence = _parse_confidence(raw)

    if direction is Direction.HOLD:
        return HoldCandidate(asset=asset, raw_confidence=confidence)

    if direction in (Direction.CLOSE, Direction.CLOSE_ALL):
        return CloseCandidate(
            asset=asset,
            close_all=direction is Direction.CLOSE_ALL,
            raw_confidence=confidence,
        )

    if direction is Direction.REDUCE:
        fraction = _optional_float(raw, "fraction")
        if fraction is None:
            fraction = DEFAULT_REDUCE_FRACTION
        if not 0 < fraction <= 1:
            raise InvalidCandidateError(f"Reduce fraction must be in (0, 1], got {fraction}",
                                        field="fraction", value=fraction)
        return ReduceCandidate(asset=asset, fraction=fraction, raw_confidence=confidence)

    entry_price = _optional_float(raw, "entry_price")
    levels = {
        "asset": asset,
        # Non-positive entries are replaced with the market price downstream
        "entry_price": entry_price if entry_price is not None else 0.0,
        "stop_loss": _optional_float(raw, "stop_loss"),
        "take_profit": _optional_float(raw, "take_profit"),
        "raw_confidence": confidence,
    }

    if direction is Direction.BUY_TO_ENTER:
        return OpenLongCandidate(**levels)
    if direction is Direction.SELL_TO_ENTER:
        return OpenShortCandidate(**levels)

    side_value = _lookup(raw, "side")
    side = _SIDE_ALIASES.get(str(side_value).strip().lower()) if side_value is not None else None
    if side is None:
        raise InvalidCandidateError(f"Add candidate needs a side, got {side_value!r}",
                                    field="side", value=side_value)

    logger.debug("Normalized add candidate", asset=asset, side=side.value)
    return AddCandidate(side=side, **levels)
