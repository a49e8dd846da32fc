"""Momentum oscillators: RSI, MACD, momentum, stochastic, Williams %R, CCI, ROC, STC."""
import numpy as np

from indicators.base import Indicator, classify
from indicators.helpers import (
    deltas, ema, ema_series, pct_change, round_half_up, to_array, wilder_series,
)
from models.enums import SignalStrength
from models.indicators import IndicatorResult

RSI_PERIOD = 14
MOMENTUM_PERIOD = 10
STOCH_PERIOD = 14
WILLIAMS_PERIOD = 14
CCI_PERIOD = 20
ROC_PERIOD = 12

STC_CYCLE = 14
STC_FAST = 25
STC_SLOW = 60
STC_FACTOR = 1.5


def _rsi(series):
    changes = deltas(series.closes)
    gains = np.clip(changes, 0, None)
    losses = np.clip(-changes, 0, None)
    avg_gain = wilder_series(gains, RSI_PERIOD)[-1]
    avg_loss = wilder_series(losses, RSI_PERIOD)[-1]

    if avg_loss == 0:
        rsi = 100.0 if avg_gain > 0 else 50.0
    else:
        rsi = 100 - 100 / (1 + avg_gain / avg_loss)

    signal = classify(rsi, 0, 30, 70, 80, inverted=True)
    if rsi < 30:
        description = "Oversold - potential buying opportunity"
    elif rsi > 70:
        description = "Overbought - potential selling opportunity"
    else:
        description = "Neutral momentum"
    return IndicatorResult("RSI", round_half_up(rsi), signal, description)


def _macd(series):
    closes = series.closes
    macd_line = ema(closes, 12) - ema(closes, 26)
    price = closes[-1]
    macd_pct = macd_line / price * 100 if price else 0.0

    signal = classify(macd_pct, 2, 0.5, -0.5, -2)
    if macd_pct > 0.5:
        description = "Bullish momentum - fast EMA above slow EMA"
    elif macd_pct < -0.5:
        description = "Bearish momentum - fast EMA below slow EMA"
    else:
        description = "Consolidating"
    return IndicatorResult("MACD", round_half_up(macd_pct, 3), signal, description)


def _momentum(series):
    closes = series.closes
    momentum = pct_change(closes[-1], closes[-MOMENTUM_PERIOD - 1])

    signal = classify(momentum, 10, 3, -3, -10)
    if momentum > 3:
        description = "Strong upward momentum"
    elif momentum < -3:
        description = "Strong downward momentum"
    else:
        description = "Momentum neutral"
    return IndicatorResult("MOM", round_half_up(momentum), signal, description)


def _range_position(closes, period):
    """(close - low) / (high - low) over the last ``period`` closes, or None when flat."""
    window = to_array(closes[-period:])
    high, low = window.max(), window.min()
    if high == low:
        return None
    return (window[-1] - low) / (high - low)


def _stochastic(series):
    position = _range_position(series.closes, STOCH_PERIOD)
    stoch_k = 50.0 if position is None else position * 100

    signal = classify(stoch_k, 0, 20, 80, 100, inverted=True)
    if stoch_k < 20:
        description = "Oversold condition"
    elif stoch_k > 80:
        description = "Overbought condition"
    else:
        description = "Normal range"
    return IndicatorResult("STOCH", round_half_up(stoch_k), signal, description)


def _williams_r(series):
    position = _range_position(series.closes, WILLIAMS_PERIOD)
    # (high - close) / (high - low) * -100 == (position - 1) * 100
    williams = -50.0 if position is None else (position - 1) * 100

    if williams > -20:
        signal, description = SignalStrength.SELL, "Overbought - close near period high"
    elif williams < -80:
        signal, description = SignalStrength.BUY, "Oversold - close near period low"
    else:
        signal, description = SignalStrength.NEUTRAL, "Mid-range"
    return IndicatorResult("W%R", round_half_up(williams), signal, description)


def _cci(series):
    window = to_array(series.closes[-CCI_PERIOD:])
    mean = window.mean()
    mean_dev = np.abs(window - mean).mean()
    cci = 0.0 if mean_dev == 0 else (window[-1] - mean) / (0.015 * mean_dev)

    if cci > 200:
        signal, description = SignalStrength.STRONG_SELL, "Extremely overbought"
    elif cci > 100:
        signal, description = SignalStrength.SELL, "Overbought"
    elif cci < -200:
        signal, description = SignalStrength.STRONG_BUY, "Extremely oversold"
    elif cci < -100:
        signal, description = SignalStrength.BUY, "Oversold"
    else:
        signal, description = SignalStrength.NEUTRAL, "Within normal deviation"
    return IndicatorResult("CCI", round_half_up(cci), signal, description)


def _roc(series):
    closes = series.closes
    roc = pct_change(closes[-1], closes[-ROC_PERIOD - 1])

    if roc > 10:
        signal, description = SignalStrength.STRONG_BUY, "Sharp rise over 12 periods"
    elif roc > 3:
        signal, description = SignalStrength.BUY, "Rising rate of change"
    elif roc < -10:
        signal, description = SignalStrength.STRONG_SELL, "Sharp fall over 12 periods"
    elif roc < -3:
        signal, description = SignalStrength.SELL, "Falling rate of change"
    else:
        signal, description = SignalStrength.NEUTRAL, "Flat rate of change"
    return IndicatorResult("ROC", round_half_up(roc), signal, description)


def _smoothed_stochastic(values, cycle, factor):
    out = []
    prev = None
    for i in range(cycle - 1, len(values)):
        window = values[i - cycle + 1:i + 1]
        low, high = window.min(), window.max()
        if high > low:
            raw = (values[i] - low) / (high - low) * 100
        else:
            raw = prev if prev is not None else 50.0
        smoothed = raw if prev is None else prev + factor * (raw - prev)
        smoothed = min(max(smoothed, 0.0), 100.0)
        out.append(smoothed)
        prev = smoothed
    return np.asarray(out)


def stc_series(closes, cycle=STC_CYCLE, fast=STC_FAST, slow=STC_SLOW, factor=STC_FACTOR):
    """Schaff Trend Cycle: two smoothed stochastic passes over the fast/slow EMA difference."""
    macd = ema_series(closes, fast) - ema_series(closes, slow)
    macd = macd[slow - 1:]
    first = _smoothed_stochastic(macd, cycle, factor)
    return _smoothed_stochastic(first, cycle, factor)


def _stc(series):
    values = stc_series(series.closes)
    stc, prev = float(values[-1]), float(values[-2])

    if stc < 25:
        signal, description = SignalStrength.STRONG_BUY, "Cycle bottoming"
    elif stc > 75:
        signal, description = SignalStrength.STRONG_SELL, "Cycle topping"
    elif stc > prev:
        signal, description = SignalStrength.BUY, "Cycle turning up"
    elif stc < prev:
        signal, description = SignalStrength.SELL, "Cycle turning down"
    else:
        signal, description = SignalStrength.NEUTRAL, "Cycle flat"
    return IndicatorResult("STC", round_half_up(stc), signal, description)


RSI = Indicator(
    id="rsi",
    name="Relative Strength Index",
    short_name="RSI",
    description="Speed and magnitude of price changes. Below 30 is oversold, above 70 overbought.",
    min_length=RSI_PERIOD + 1,
    func=_rsi,
    neutral_value=50,
)

MACD = Indicator(
    id="macd",
    name="Moving Average Convergence Divergence",
    short_name="MACD",
    description="EMA(12) minus EMA(26) as a percentage of price.",
    min_length=26,
    func=_macd,
)

MOMENTUM = Indicator(
    id="momentum",
    name="Price Momentum",
    short_name="MOM",
    description="Percentage price change over the last 10 periods.",
    min_length=MOMENTUM_PERIOD + 1,
    func=_momentum,
    enabled_by_default=False,
)

STOCHASTIC = Indicator(
    id="stochastic",
    name="Stochastic Oscillator",
    short_name="STOCH",
    description="Close relative to the 14-period range. Below 20 oversold, above 80 overbought.",
    min_length=STOCH_PERIOD,
    func=_stochastic,
    neutral_value=50,
    enabled_by_default=False,
)

WILLIAMS_R = Indicator(
    id="williams_r",
    name="Williams %R",
    short_name="W%R",
    description="Distance of the close from the 14-period high, from 0 to -100.",
    min_length=WILLIAMS_PERIOD,
    func=_williams_r,
    neutral_value=-50,
    enabled_by_default=False,
)

CCI = Indicator(
    id="cci",
    name="Commodity Channel Index",
    short_name="CCI",
    description="Deviation of price from its 20-period mean, scaled by mean absolute deviation.",
    min_length=CCI_PERIOD,
    func=_cci,
    enabled_by_default=False,
)

ROC = Indicator(
    id="roc",
    name="Rate of Change",
    short_name="ROC",
    description="Percentage price change over the last 12 periods.",
    min_length=ROC_PERIOD + 1,
    func=_roc,
    enabled_by_default=False,
)

STC = Indicator(
    id="stc",
    name="Schaff Trend Cycle",
    short_name="STC",
    description="Double-smoothed stochastic of the EMA(25)/EMA(60) difference.",
    min_length=STC_SLOW + 2 * STC_CYCLE,
    func=_stc,
    enabled_by_default=False,
)
