"""Price vs indicator divergence detection"""

from dataclasses import dataclass
from typing import Optional, Sequence

BULLISH = "bullish"
BEARISH = "bearish"


@dataclass(frozen=True)
class Divergence:
    """Regular divergence between price and an oscillator."""
    kind: str                   # bullish / bearish
    price_change_pct: float     # Change between the two compared extremes
    indicator_change: float


def _pct_change(start: float, end: float) -> float:
    if start == 0:
        return 0.0
    return (end - start) / start * 100.0


def detect_divergence(
    prices: Sequence[float],
    indicator: Sequence[float],
    lookback: int = 30,
    min_points: int = 10
) -> Optional[Divergence]:
    """
    Detect regular divergence over the aligned tails of price and indicator

    The window is split in two halves. Bullish divergence: the second half
    makes a lower price low while the indicator at that low is higher than
    at the first half's low. Bearish divergence is the mirror on highs.

    Args:
        prices: Price series
        indicator: Indicator series aligned to the tail of ``prices``
        lookback: Maximum window length
        min_points: Minimum aligned points required

    Returns:
        Divergence or None when there is none or data is insufficient
    """
    length = min(len(prices), len(indicator), lookback)
    if length < min_points:
        return None

    price_window = list(prices[-length:])
    indicator_window = list(indicator[-length:])
    half = length // 2

    first_prices, second_prices = price_window[:half], price_window[half:]

    first_low = min(range(half), key=lambda i: first_prices[i])
    second_low = half + min(range(len(second_prices)), key=lambda i: second_prices[i])
    if (price_window[second_low] < price_window[first_low]
            and indicator_window[second_low] > indicator_window[first_low]):
        return Divergence(
            kind=BULLISH,
            price_change_pct=_pct_change(price_window[first_low], price_window[second_low]),
            indicator_change=indicator_window[second_low] - indicator_window[first_low],
        )

    first_high = max(range(half), key=lambda i: first_prices[i])
    second_high = half + max(range(len(second_prices)), key=lambda i: second_prices[i])
    if (price_window[second_high] > price_window[first_high]
            and indicator_window[second_high] < indicator_window[first_high]):
        return Divergence(
            kind=BEARISH,
            price_change_pct=_pct_change(price_window[first_high], price_window[second_high]),
            indicator_change=indicator_window[second_high] - indicator_window[first_high],
        )

    return None
