"""Volume-based indicators: volume ratio and VWAP deviation."""
import numpy as np

from indicators.base import Indicator, insufficient
from indicators.helpers import round_half_up, sma, to_array
from models.enums import SignalStrength
from models.indicators import IndicatorResult

VOLUME_PERIOD = 20
VWAP_PERIOD = 20


def _volume(series):
    volumes = to_array(series.volumes)
    average = float(volumes[-VOLUME_PERIOD:-1].mean())
    if average == 0:
        return insufficient("VOL", 1, "zero average volume")

    ratio = volumes[-1] / average
    price_up = series.closes[-1] > series.closes[-2]

    if ratio > 1.5:
        if price_up:
            signal, description = SignalStrength.STRONG_BUY, "High volume on rising price"
        else:
            signal, description = SignalStrength.STRONG_SELL, "High volume on falling price"
    elif ratio > 1.2:
        if price_up:
            signal, description = SignalStrength.BUY, "Above-average volume, price rising"
        else:
            signal, description = SignalStrength.SELL, "Above-average volume, price falling"
    else:
        signal, description = SignalStrength.NEUTRAL, "Normal volume"
    return IndicatorResult("VOL", round_half_up(ratio), signal, description)


def _vwap(series):
    closes = to_array(series.closes[-VWAP_PERIOD:])
    vwap = None
    if series.has_volume:
        volumes = to_array(series.volumes[-VWAP_PERIOD:])
        total = volumes.sum()
        if total > 0:
            vwap = float(np.dot(closes, volumes) / total)
    if vwap is None:
        # No usable volume, fall back to a plain average
        vwap = sma(closes, VWAP_PERIOD)
    if vwap == 0:
        return insufficient("VWAP", 0, "zero average price")

    deviation = (closes[-1] - vwap) / vwap * 100
    if deviation > 5:
        signal, description = SignalStrength.SELL, "Extended above VWAP"
    elif deviation < -5:
        signal, description = SignalStrength.BUY, "Discount to VWAP"
    else:
        signal, description = SignalStrength.NEUTRAL, "Trading near VWAP"
    return IndicatorResult("VWAP", round_half_up(deviation), signal, description)


VOLUME = Indicator(
    id="volume",
    name="Volume Analysis",
    short_name="VOL",
    description="Latest volume against the prior 19-period average, signed by price direction.",
    min_length=VOLUME_PERIOD,
    func=_volume,
    neutral_value=1,
    needs_volume=True,
)

VWAP = Indicator(
    id="vwap",
    name="Volume Weighted Average Price",
    short_name="VWAP",
    description="Deviation of price from the 20-period VWAP (SMA when volume is missing).",
    min_length=VWAP_PERIOD,
    func=_vwap,
    enabled_by_default=False,
)
