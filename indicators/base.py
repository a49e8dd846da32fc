"""Indicator capability type and the shared classification helper."""
import logging
import math
from dataclasses import dataclass
from typing import Callable

from models.enums import SignalStrength
from models.indicators import IndicatorResult, PriceSeries

logger = logging.getLogger("signalpulse.indicators")

INSUFFICIENT_DATA = "Insufficient data"


def classify(value, strong_buy, buy, sell, strong_sell, inverted=False):
    """Map a value onto the five signal levels.

    Normal mode treats high values as bullish (``value >= strong_buy``), inverted
    mode treats low values as bullish (oscillators where low means oversold).
    """
    if inverted:
        if value <= strong_buy:
            return SignalStrength.STRONG_BUY
        if value <= buy:
            return SignalStrength.BUY
        if value >= strong_sell:
            return SignalStrength.STRONG_SELL
        if value >= sell:
            return SignalStrength.SELL
        return SignalStrength.NEUTRAL
    if value >= strong_buy:
        return SignalStrength.STRONG_BUY
    if value >= buy:
        return SignalStrength.BUY
    if value <= strong_sell:
        return SignalStrength.STRONG_SELL
    if value <= sell:
        return SignalStrength.SELL
    return SignalStrength.NEUTRAL


def insufficient(short_name, neutral_value=0, detail=None):
    description = INSUFFICIENT_DATA if detail is None else f"{INSUFFICIENT_DATA}: {detail}"
    return IndicatorResult(name=short_name, value=neutral_value,
                           signal=SignalStrength.NEUTRAL, description=description)


@dataclass(frozen=True)
class Indicator:
    """An immutable indicator: metadata plus a pure compute function.

    Whether a user wants an indicator is a preference held elsewhere
    (see ``indicators.registry.select_indicators``), never state on this object.
    """
    id: str
    name: str
    short_name: str
    description: str
    min_length: int
    func: Callable
    neutral_value: float = 0
    enabled_by_default: bool = True
    needs_volume: bool = False

    def compute(self, prices, volumes=None) -> IndicatorResult:
        series = prices if isinstance(prices, PriceSeries) else PriceSeries.of(prices, volumes)
        if len(series) < self.min_length:
            return insufficient(self.short_name, self.neutral_value,
                                f"need {self.min_length} prices, have {len(series)}")
        if not all(math.isfinite(p) for p in series.closes):
            return insufficient(self.short_name, self.neutral_value, "non-finite prices")
        if series.has_volume and not all(math.isfinite(v) for v in series.volumes):
            if self.needs_volume:
                return insufficient(self.short_name, self.neutral_value, "non-finite volumes")
            series = PriceSeries(closes=series.closes)
        if self.needs_volume and not series.has_volume:
            return insufficient(self.short_name, self.neutral_value, "volume unavailable")
        result = self.func(series)
        logger.debug(f"{self.short_name}: {result.value} -> {result.signal.value}")
        return result

    __call__ = compute
