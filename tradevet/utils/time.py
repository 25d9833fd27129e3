"""
Time semantics utilities for candle timestamps and intervals.

Candle timestamps are epoch milliseconds and are authoritative for every
evaluation. Wall-clock time is never read inside the pipeline so that the
same inputs always produce the same decision.
"""

from datetime import datetime, timezone
from typing import Optional

_UNIT_MS = {
    "m": 60_000,
    "h": 3_600_000,
    "d": 86_400_000,
    "w": 604_800_000,
}

DAY_MS = _UNIT_MS["d"]


def interval_to_ms(interval: str) -> int:
    """
    Convert an interval label such as ``15m``, ``1h``, ``4h`` or ``1d`` to milliseconds.

    Args:
        interval: Interval label (count followed by unit m/h/d/w)

    Returns:
        Interval length in milliseconds

    Raises:
        ValueError: If the label cannot be parsed
    """
    label = interval.strip().lower()
    if len(label) < 2 or label[-1] not in _UNIT_MS:
        raise ValueError(f"Unsupported interval: {interval!r}")

    count = label[:-1]
    if not count.isdigit() or int(count) <= 0:
        raise ValueError(f"Unsupported interval: {interval!r}")

    return int(count) * _UNIT_MS[label[-1]]


def candles_per_day(interval: str) -> float:
    """Number of candles of the given interval that fit in one day."""
    return DAY_MS / interval_to_ms(interval)


def ms_to_datetime(timestamp_ms: int) -> datetime:
    """Convert epoch milliseconds to an aware UTC datetime."""
    return datetime.fromtimestamp(timestamp_ms / 1000.0, tz=timezone.utc)


def datetime_to_ms(value: datetime) -> int:
    """Convert a datetime to epoch milliseconds (naive values are treated as UTC)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp() * 1000)


def resolve_evaluation_time(now_ms: Optional[int], last_candle_ms: int) -> int:
    """
    Pick the evaluation instant for a pipeline run.

    Args:
        now_ms: Caller-supplied evaluation time, if any
        last_candle_ms: Timestamp of the most recent primary candle

    Returns:
        ``now_ms`` when supplied, otherwise the last candle timestamp
    """
    if now_ms is not None:
        return now_ms
    return last_candle_ms


def format_market_time(timestamp_ms: int) -> str:
    """
    Format a market timestamp for decisions and logging.

    Args:
        timestamp_ms: Epoch milliseconds

    Returns:
        ISO8601 formatted string
    """
    return ms_to_datetime(timestamp_ms).isoformat()
