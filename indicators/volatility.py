"""Volatility indicators: Bollinger Bands position and ATR."""
import numpy as np

from indicators.base import Indicator, classify
from indicators.helpers import deltas, rolling_std, round_half_up, sma
from models.enums import SignalStrength
from models.indicators import IndicatorResult

BB_PERIOD = 20
BB_STD = 2
ATR_PERIOD = 14


def _bollinger(series):
    closes = series.closes
    middle = sma(closes, BB_PERIOD)
    std = rolling_std(closes, BB_PERIOD)
    if std == 0:
        return IndicatorResult("BB", 0.5, SignalStrength.NEUTRAL, "Flat price - bands collapsed")

    upper = middle + BB_STD * std
    lower = middle - BB_STD * std
    position = (closes[-1] - lower) / (upper - lower)

    signal = classify(position, 0, 0.2, 0.8, 1, inverted=True)
    if position < 0.2:
        description = "Near lower band - potentially oversold"
    elif position > 0.8:
        description = "Near upper band - potentially overbought"
    else:
        description = "Within bands"
    return IndicatorResult("BB", round_half_up(position), signal, description)


def _atr(series):
    closes = series.closes
    recent = np.abs(deltas(closes[-(ATR_PERIOD + 1):]))
    price = closes[-1]
    atr_pct = float(recent.mean()) / price * 100 if price else 0.0

    if atr_pct > 5:
        description = "High volatility"
    elif atr_pct < 1:
        description = "Low volatility"
    else:
        description = "Normal volatility"
    # Volatility has no direction, never votes
    return IndicatorResult("ATR", round_half_up(atr_pct), SignalStrength.NEUTRAL, description)


BOLLINGER = Indicator(
    id="bollinger",
    name="Bollinger Bands",
    short_name="BB",
    description="Position of price between the 20-period +/-2 std bands (0 = lower, 1 = upper).",
    min_length=BB_PERIOD,
    func=_bollinger,
    neutral_value=0.5,
)

ATR = Indicator(
    id="atr",
    name="Average True Range",
    short_name="ATR",
    description="Mean absolute change over 14 periods as a percentage of price.",
    min_length=ATR_PERIOD + 1,
    func=_atr,
    enabled_by_default=False,
)
