"""Trend indicators: SMA/EMA crossovers, DMI/ADX, Aroon, SuperTrend."""
import numpy as np

from indicators.base import Indicator, classify, insufficient
from indicators.helpers import (
    bars_since_extreme, ema_series, round_half_up, sma, synthetic_bars, to_array,
    true_ranges, wilder_series,
)
from models.enums import SignalStrength
from models.indicators import IndicatorResult

DMI_LENGTH = 15
ADX_SMOOTHING = 34
AROON_PERIOD = 25
SUPERTREND_PERIOD = 10
SUPERTREND_MULTIPLIER = 3.0
EMA_FAST = 9
EMA_SLOW = 21


def _sma_crossover(series):
    closes = series.closes
    n = len(closes)

    if n < 200:
        # Not enough history for 50/200, scale the windows to what we have
        short_period = min(10, n // 3)
        long_period = min(30, int(n * 0.8))
        if short_period == 0 or n < long_period + 5:
            return insufficient("SMA")
        short_sma = sma(closes, short_period)
        long_sma = sma(closes, long_period)
        diff = (short_sma - long_sma) / long_sma * 100 if long_sma else 0.0
        signal = classify(diff, 5, 1, -1, -5)
        description = "Short-term bullish trend" if diff > 0 else "Short-term bearish trend"
        return IndicatorResult("SMA", round_half_up(diff), signal, description)

    sma50 = sma(closes, 50)
    sma200 = sma(closes, 200)
    diff = (sma50 - sma200) / sma200 * 100 if sma200 else 0.0
    signal = classify(diff, 10, 2, -2, -10)
    if diff > 2:
        description = "Golden cross territory - bullish"
    elif diff < -2:
        description = "Death cross territory - bearish"
    else:
        description = "SMAs converging"
    return IndicatorResult("SMA", round_half_up(diff), signal, description)


def _ema_crossover(series):
    fast = ema_series(series.closes, EMA_FAST)
    slow = ema_series(series.closes, EMA_SLOW)
    diff = (fast[-1] - slow[-1]) / slow[-1] * 100 if slow[-1] else 0.0

    crossed_up = fast[-2] <= slow[-2] and fast[-1] > slow[-1]
    crossed_down = fast[-2] >= slow[-2] and fast[-1] < slow[-1]

    if crossed_up:
        signal, description = SignalStrength.STRONG_BUY, "EMA 9 crossed above EMA 21"
    elif crossed_down:
        signal, description = SignalStrength.STRONG_SELL, "EMA 9 crossed below EMA 21"
    elif diff > 2:
        signal, description = SignalStrength.BUY, "EMA 9 well above EMA 21"
    elif diff < -2:
        signal, description = SignalStrength.SELL, "EMA 9 well below EMA 21"
    else:
        signal, description = SignalStrength.NEUTRAL, "EMAs close together"
    return IndicatorResult("EMA", round_half_up(diff), signal, description)


def _safe_ratio(numerator, denominator):
    return np.divide(numerator, denominator,
                     out=np.zeros_like(numerator), where=denominator > 0)


def dmi_series(closes, length=DMI_LENGTH, smoothing=ADX_SMOOTHING):
    """Return (+DI, -DI, ADX) arrays. ADX is aligned to the tail of the DI arrays."""
    highs, lows, _ = synthetic_bars(closes)
    up_move = highs[1:] - highs[:-1]
    down_move = lows[:-1] - lows[1:]
    plus_dm = np.where((up_move > down_move) & (up_move > 0), up_move, 0.0)
    minus_dm = np.where((down_move > up_move) & (down_move > 0), down_move, 0.0)
    tr = true_ranges(closes)[1:]

    smoothed_tr = wilder_series(tr, length)[length - 1:]
    plus_di = 100 * _safe_ratio(wilder_series(plus_dm, length)[length - 1:], smoothed_tr)
    minus_di = 100 * _safe_ratio(wilder_series(minus_dm, length)[length - 1:], smoothed_tr)

    dx = 100 * _safe_ratio(np.abs(plus_di - minus_di), plus_di + minus_di)
    adx = wilder_series(dx, smoothing)
    return plus_di, minus_di, adx


def _dmi(series):
    plus_di, minus_di, adx_values = dmi_series(series.closes)
    adx = float(adx_values[-1])

    crossed_up = plus_di[-2] <= minus_di[-2] and plus_di[-1] > minus_di[-1]
    crossed_down = plus_di[-2] >= minus_di[-2] and plus_di[-1] < minus_di[-1]

    if crossed_up:
        signal = SignalStrength.STRONG_BUY if adx > 40 else SignalStrength.BUY
        description = f"+DI crossed above -DI (ADX {adx:.1f})"
    elif crossed_down:
        signal = SignalStrength.STRONG_SELL if adx > 40 else SignalStrength.SELL
        description = f"-DI crossed above +DI (ADX {adx:.1f})"
    elif adx >= 25 and plus_di[-1] > minus_di[-1]:
        signal, description = SignalStrength.BUY, "Trending up"
    elif adx >= 25 and minus_di[-1] > plus_di[-1]:
        signal, description = SignalStrength.SELL, "Trending down"
    else:
        signal, description = SignalStrength.NEUTRAL, "No strong trend"
    return IndicatorResult("DMI", round_half_up(adx), signal, description)


def _aroon(series):
    window = to_array(series.closes[-(AROON_PERIOD + 1):])
    up = 100 * (AROON_PERIOD - bars_since_extreme(window, highest=True)) / AROON_PERIOD
    down = 100 * (AROON_PERIOD - bars_since_extreme(window, highest=False)) / AROON_PERIOD
    oscillator = up - down

    if up > 70 and down < 30:
        signal, description = SignalStrength.STRONG_BUY, "Strong uptrend - recent highs"
    elif down > 70 and up < 30:
        signal, description = SignalStrength.STRONG_SELL, "Strong downtrend - recent lows"
    elif up > down:
        signal, description = SignalStrength.BUY, "Aroon up dominant"
    elif down > up:
        signal, description = SignalStrength.SELL, "Aroon down dominant"
    else:
        signal, description = SignalStrength.NEUTRAL, "No dominant direction"
    return IndicatorResult("AROON", round_half_up(oscillator), signal, description)


def supertrend(closes, period=SUPERTREND_PERIOD, multiplier=SUPERTREND_MULTIPLIER):
    """Return (direction, band) for the last bar; direction is 1 for up, -1 for down."""
    atr = wilder_series(true_ranges(closes), period)
    prices = to_array(closes)[1:]

    start = period - 1
    final_upper = prices[start] + multiplier * atr[start]
    final_lower = prices[start] - multiplier * atr[start]
    direction = 1
    for i in range(start + 1, len(prices)):
        basic_upper = prices[i] + multiplier * atr[i]
        basic_lower = prices[i] - multiplier * atr[i]
        if basic_upper < final_upper or prices[i - 1] > final_upper:
            final_upper = basic_upper
        if basic_lower > final_lower or prices[i - 1] < final_lower:
            final_lower = basic_lower

        if direction == 1 and prices[i] < final_lower:
            direction = -1
        elif direction == -1 and prices[i] > final_upper:
            direction = 1

    band = final_lower if direction == 1 else final_upper
    return direction, float(band)


def _supertrend(series):
    direction, band = supertrend(series.closes)
    price = series.closes[-1]
    if band <= 0:
        return insufficient("ST", 0, "band undefined")

    if direction == 1:
        distance = (price - band) / band * 100
        signal = SignalStrength.STRONG_BUY if distance > 5 else SignalStrength.BUY
        description = "Uptrend - price above trailing band"
    else:
        distance = (band - price) / band * 100
        signal = SignalStrength.STRONG_SELL if distance > 5 else SignalStrength.SELL
        description = "Downtrend - price below trailing band"
    return IndicatorResult("ST", round_half_up(distance), signal, description)


SMA_CROSSOVER = Indicator(
    id="sma_cross",
    name="SMA Crossover (50/200)",
    short_name="SMA",
    description="Golden cross (50 above 200) is bullish, death cross bearish. "
                "Shorter windows are used with less than 200 prices.",
    min_length=21,
    func=_sma_crossover,
)

EMA_CROSSOVER = Indicator(
    id="ema_cross",
    name="EMA Crossover (9/21)",
    short_name="EMA",
    description="Fast/slow EMA spread with fresh-cross detection.",
    min_length=EMA_SLOW + 1,
    func=_ema_crossover,
    enabled_by_default=False,
)

DMI = Indicator(
    id="dmi",
    name="Directional Movement Index / ADX",
    short_name="DMI",
    description="+DI/-DI crossovers weighted by ADX trend strength.",
    min_length=DMI_LENGTH + ADX_SMOOTHING + 1,
    func=_dmi,
    enabled_by_default=False,
)

AROON = Indicator(
    id="aroon",
    name="Aroon Oscillator",
    short_name="AROON",
    description="Bars since the 25-period high versus bars since the low.",
    min_length=AROON_PERIOD + 1,
    func=_aroon,
    enabled_by_default=False,
)

SUPERTREND = Indicator(
    id="supertrend",
    name="SuperTrend",
    short_name="ST",
    description="ATR(10) x3 trailing band; band flips define trend direction.",
    min_length=SUPERTREND_PERIOD + 2,
    func=_supertrend,
    enabled_by_default=False,
)
