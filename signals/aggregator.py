"""Combine per-indicator results into one composite signal."""
import logging
from typing import Iterable, Optional, Sequence

from indicators.helpers import round_half_up
from indicators.registry import select_indicators
from models.enums import SignalStrength
from models.indicators import CombinedSignal, IndicatorResult, PriceSeries

logger = logging.getLogger("signalpulse.signals")

STRONG_BUY_SCORE = 50
BUY_SCORE = 20
SELL_SCORE = -20
STRONG_SELL_SCORE = -50


def classify_score(score) -> SignalStrength:
    """Map a [-100, 100] score onto a signal level. Shared with the sentiment summary."""
    if score >= STRONG_BUY_SCORE:
        return SignalStrength.STRONG_BUY
    if score >= BUY_SCORE:
        return SignalStrength.BUY
    if score <= STRONG_SELL_SCORE:
        return SignalStrength.STRONG_SELL
    if score <= SELL_SCORE:
        return SignalStrength.SELL
    return SignalStrength.NEUTRAL


def combine(results: Iterable[IndicatorResult]) -> CombinedSignal:
    results = tuple(results)
    if not results:
        return CombinedSignal()

    total = sum(r.signal.weight for r in results)
    score = int(round_half_up(100 * total / (2 * len(results)), 0))

    return CombinedSignal(
        overall=classify_score(score),
        score=score,
        bullish_count=sum(1 for r in results if r.signal.is_bullish),
        bearish_count=sum(1 for r in results if r.signal.is_bearish),
        neutral_count=sum(1 for r in results if r.signal is SignalStrength.NEUTRAL),
        indicators=results,
    )


def calculate_combined_signal(prices: Sequence[float],
                              volumes: Optional[Sequence[float]] = None,
                              enabled_ids: Optional[Iterable[str]] = None) -> CombinedSignal:
    """Run the enabled indicators over one series and combine them.

    ``enabled_ids=None`` uses the default set; an empty list yields a neutral,
    empty signal.
    """
    series = PriceSeries.of(prices, volumes)
    indicators = select_indicators(enabled_ids)
    results = [indicator.compute(series) for indicator in indicators]
    combined = combine(results)
    logger.debug(f"Combined {len(results)} indicators over {len(series)} prices: "
                 f"{combined.overall.value} ({combined.score})")
    return combined
