"""
OHLCV normalization for converting raw exchange rows to candle series.

Accepts the row shapes produced by common exchange REST endpoints (lists of
``[ts, open, high, low, close, volume, ...]``, dicts with long or short field
names, or a JSON string of either) and produces a validated OHLCVSeries.
"""

from typing import Any, Union

import orjson
import structlog

from ..errors import MalformedDataError, MissingDataError
from .models import Candle, OHLCVSeries

logger = structlog.get_logger(__name__)

# Timestamps below this are treated as epoch seconds
_SECONDS_CUTOFF = 10_000_000_000

_FIELD_ALIASES = {
    "timestamp": ("timestamp", "ts", "t", "time", "open_time"),
    "open": ("open", "o"),
    "high": ("high", "h"),
    "low": ("low", "l"),
    "close": ("close", "c"),
    "volume": ("volume", "v", "vol"),
}


def parse_json_payload(raw_data: Union[str, bytes]) -> Any:
    """
    Parse a raw JSON payload.

    Args:
        raw_data: Raw JSON string or bytes

    Returns:
        Parsed object

    Raises:
        MalformedDataError: If JSON parsing fails
    """
    try:
        return orjson.loads(raw_data)
    except orjson.JSONDecodeError as e:
        raise MalformedDataError(f"Invalid JSON: {e}", raw_data=str(raw_data)[:100])


def _to_float(value: Any, field: str) -> float:
    try:
        result = float(value)
    except (TypeError, ValueError):
        raise MalformedDataError(f"Invalid {field} value: {value!r}", expected_format="number")
    return result


def _to_timestamp_ms(value: Any) -> int:
    try:
        ts = int(float(value))
    except (TypeError, ValueError):
        raise MalformedDataError(f"Invalid timestamp: {value!r}", expected_format="epoch ms")

    if ts <= 0:
        raise MalformedDataError(f"Non-positive timestamp: {ts}", expected_format="epoch ms")

    if ts < _SECONDS_CUTOFF:
        ts *= 1000
    return ts


def _lookup(row: dict[str, Any], field: str) -> Any:
    for alias in _FIELD_ALIASES[field]:
        if alias in row:
            return row[alias]
    raise MalformedDataError(f"Row missing '{field}' field", raw_data=str(row)[:100])


def normalize_row(row: Any) -> Candle:
    """
    Normalize a single raw row into a Candle.

    Args:
        row: ``[ts, o, h, l, c, v, ...]`` sequence or dict with OHLCV fields

    Returns:
        Validated Candle

    Raises:
        MalformedDataError: If the row is malformed or violates candle invariants
    """
    if isinstance(row, dict):
        values = [_lookup(row, field) for field in _FIELD_ALIASES]
    elif isinstance(row, (list, tuple)):
        if len(row) < 6:
            raise MalformedDataError(
                f"Row has {len(row)} fields, expected at least 6",
                raw_data=str(row)[:100]
            )
        values = list(row[:6])
    else:
        raise MalformedDataError(f"Unsupported row type: {type(row)}", raw_data=str(row)[:100])

    return Candle(
        timestamp=_to_timestamp_ms(values[0]),
        open=_to_float(values[1], "open"),
        high=_to_float(values[2], "high"),
        low=_to_float(values[3], "low"),
        close=_to_float(values[4], "close"),
        volume=_to_float(values[5], "volume"),
    )


def normalize_ohlcv(asset: str, interval: str, rows: Any) -> OHLCVSeries:
    """
    Normalize raw OHLCV rows into an OHLCVSeries.

    Rows are sorted by timestamp; duplicated timestamps keep the last row seen,
    which is how exchanges report the still-forming candle.

    Args:
        asset: Asset symbol
        interval: Interval label (``1h``, ``4h``, ...)
        rows: Sequence of rows, a ``{"data": rows}`` envelope, or a JSON string

    Returns:
        Validated OHLCVSeries
    """
    if isinstance(rows, (str, bytes)):
        rows = parse_json_payload(rows)

    if isinstance(rows, dict):
        rows = rows.get("data")

    if not rows:
        raise MissingDataError(f"No OHLCV rows for {asset} {interval}", data_type="ohlcv")

    by_timestamp: dict[int, Candle] = {}
    for row in rows:
        candle = normalize_row(row)
        by_timestamp[candle.timestamp] = candle

    duplicates = len(rows) - len(by_timestamp)
    if duplicates:
        logger.debug(
            "Dropped duplicate candle timestamps",
            asset=asset,
            interval=interval,
            duplicates=duplicates
        )

    candles = [by_timestamp[ts] for ts in sorted(by_timestamp)]
    return OHLCVSeries.from_candles(asset, interval, candles)
