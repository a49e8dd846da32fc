"""Numeric building blocks shared by the indicators (NumPy)."""
import math

import numpy as np


def round_half_up(value, digits=2):
    """Round half toward +inf, the convention all published indicator values use."""
    if not math.isfinite(value):
        return value
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def to_array(values):
    return np.asarray(values, dtype=np.float64)


def sma(values, period):
    """Mean of the last ``period`` values."""
    arr = to_array(values)
    return float(np.mean(arr[-period:]))


def ema_series(values, period):
    """EMA seeded with the SMA of the first ``period`` values.

    Entries before the seed are NaN.
    """
    arr = to_array(values)
    out = np.full(arr.shape, np.nan)
    if len(arr) < period:
        return out
    k = 2.0 / (period + 1)
    out[period - 1] = np.mean(arr[:period])
    for i in range(period, len(arr)):
        out[i] = arr[i] * k + out[i - 1] * (1 - k)
    return out


def ema(values, period):
    return float(ema_series(values, period)[-1])


def wilder_series(values, period):
    """Wilder's RMA: seed with the mean of the first ``period`` values, alpha = 1/period."""
    arr = to_array(values)
    out = np.full(arr.shape, np.nan)
    if len(arr) < period:
        return out
    out[period - 1] = np.mean(arr[:period])
    alpha = 1.0 / period
    for i in range(period, len(arr)):
        out[i] = alpha * arr[i] + (1 - alpha) * out[i - 1]
    return out


def deltas(values):
    return np.diff(to_array(values))


def synthetic_bars(closes):
    """Per-bar high/low/prev-close from consecutive closes.

    Only closing prices are available, so each bar spans the move from the
    previous close to the current one. Arrays have length ``len(closes) - 1``.
    """
    arr = to_array(closes)
    prev, cur = arr[:-1], arr[1:]
    return np.maximum(prev, cur), np.minimum(prev, cur), prev


def true_ranges(closes):
    highs, lows, prev_close = synthetic_bars(closes)
    return np.maximum.reduce([
        highs - lows,
        np.abs(highs - prev_close),
        np.abs(lows - prev_close),
    ])


def rolling_std(values, period):
    """Population standard deviation of the last ``period`` values."""
    return float(np.std(to_array(values)[-period:]))


def bars_since_extreme(window, highest=True):
    """Bars elapsed since the most recent max (or min) within ``window``."""
    arr = to_array(window)
    target = arr.max() if highest else arr.min()
    last_idx = int(np.flatnonzero(arr == target)[-1])
    return len(arr) - 1 - last_idx


def pct_change(current, previous):
    if previous == 0:
        return 0.0
    return (current - previous) / previous * 100
