"""Return correlation across assets"""

import math
from typing import Optional, Sequence


def pct_changes(values: Sequence[float]) -> list[float]:
    """Percentage changes between consecutive values (0 where the base is 0)."""
    return [
        0.0 if values[i - 1] == 0 else (values[i] - values[i - 1]) / values[i - 1] * 100.0
        for i in range(1, len(values))
    ]


def pearson(xs: Sequence[float], ys: Sequence[float]) -> Optional[float]:
    """
    Pearson correlation of two equal-length sequences

    Returns:
        Correlation in [-1, 1], or None for fewer than 2 points or zero variance
    """
    n = min(len(xs), len(ys))
    if n < 2:
        return None

    xs, ys = list(xs[-n:]), list(ys[-n:])
    mean_x = sum(xs) / n
    mean_y = sum(ys) / n

    covariance = sum((x - mean_x) * (y - mean_y) for x, y in zip(xs, ys))
    variance_x = sum((x - mean_x) ** 2 for x in xs)
    variance_y = sum((y - mean_y) ** 2 for y in ys)

    if variance_x == 0 or variance_y == 0:
        return None

    result = covariance / math.sqrt(variance_x * variance_y)
    return max(-1.0, min(1.0, result))


def correlation_matrix(
    closes_by_asset: dict[str, Sequence[float]],
    lookback: int = 30
) -> dict[str, dict[str, Optional[float]]]:
    """
    Pairwise Pearson correlation of percentage-change series

    Each series is cut to its last ``lookback`` changes before comparing.

    Returns:
        Nested mapping asset -> asset -> correlation (None on zero variance)
    """
    changes = {
        asset: pct_changes(closes)[-lookback:]
        for asset, closes in closes_by_asset.items()
    }

    matrix: dict[str, dict[str, Optional[float]]] = {}
    for asset in changes:
        matrix[asset] = {}
        for other in changes:
            matrix[asset][other] = pearson(changes[asset], changes[other])

    return matrix
