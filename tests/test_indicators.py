"""Tests for the indicator catalogue and individual indicators."""
import math
import pytest
from dataclasses import FrozenInstanceError

from indicators import ALL_INDICATORS, DEFAULT_ENABLED, select_indicators, get_indicator
from indicators.base import INSUFFICIENT_DATA, classify
from indicators.helpers import ema_series, round_half_up, synthetic_bars
from indicators.momentum import CCI, MACD, MOMENTUM, ROC, RSI, STC, STOCHASTIC, WILLIAMS_R
from indicators.trend import AROON, DMI, EMA_CROSSOVER, SMA_CROSSOVER, SUPERTREND
from indicators.volatility import ATR, BOLLINGER
from indicators.volume import VOLUME, VWAP
from models.enums import SignalStrength as S
from models.indicators import PriceSeries


# ── Helpers ─────────────────────────────────────────────

def test_round_half_up():
    assert round_half_up(0.125, 2) == 0.13
    assert round_half_up(-0.125, 2) == -0.12
    assert round_half_up(2.5, 0) == 3
    assert round_half_up(-2.5, 0) == -2


def test_ema_series_seeded_with_sma():
    out = ema_series([1, 2, 3, 4, 5], 3)
    assert math.isnan(out[0]) and math.isnan(out[1])
    assert list(out[2:]) == [2.0, 3.0, 4.0]


def test_synthetic_bars():
    highs, lows, prev = synthetic_bars([10, 12, 11])
    assert list(highs) == [12, 12]
    assert list(lows) == [10, 11]
    assert list(prev) == [10, 12]


def test_classify_normal_and_inverted():
    assert classify(12, 10, 3, -3, -10) == S.STRONG_BUY
    assert classify(0, 10, 3, -3, -10) == S.NEUTRAL
    assert classify(-10, 10, 3, -3, -10) == S.STRONG_SELL
    assert classify(25, 0, 30, 70, 80, inverted=True) == S.BUY
    assert classify(75, 0, 30, 70, 80, inverted=True) == S.SELL


def test_price_series_drops_mismatched_volumes():
    series = PriceSeries.of([1, 2, 3], [10, 20])
    assert series.volumes is None
    assert not series.has_volume
    assert PriceSeries.of([1, 2], [5, 6]).volumes == (5.0, 6.0)


# ── Catalogue ───────────────────────────────────────────

def test_catalogue_ids_unique():
    ids = [ind.id for ind in ALL_INDICATORS]
    assert len(ids) == 17
    assert len(set(ids)) == len(ids)


def test_default_enabled_set():
    assert DEFAULT_ENABLED == ("rsi", "macd", "bollinger", "sma_cross", "volume")


def test_select_indicators_catalogue_order_and_unknown_ids():
    selected = select_indicators(["macd", "bogus", "rsi"])
    assert [i.id for i in selected] == ["rsi", "macd"]
    assert select_indicators([]) == []
    assert [i.id for i in select_indicators()] == list(DEFAULT_ENABLED)


def test_indicator_is_immutable():
    with pytest.raises(FrozenInstanceError):
        RSI.enabled_by_default = False
    assert get_indicator("rsi") is RSI
    assert get_indicator("nope") is None


@pytest.mark.parametrize("indicator", ALL_INDICATORS, ids=lambda i: i.id)
def test_insufficient_data(indicator):
    result = indicator.compute([100.0, 101.0], [1.0, 1.0])
    assert result.signal == S.NEUTRAL
    assert result.value == indicator.neutral_value
    assert result.description.startswith(INSUFFICIENT_DATA)


@pytest.mark.parametrize("indicator", ALL_INDICATORS, ids=lambda i: i.id)
def test_long_random_walk_never_fails(indicator):
    prices = [100 + 10 * math.sin(i / 5) + i * 0.1 for i in range(250)]
    volumes = [1000 + 100 * math.cos(i / 3) for i in range(250)]
    result = indicator.compute(prices, volumes)
    assert isinstance(result.signal, S)
    assert math.isfinite(result.value)


def test_non_finite_prices_are_insufficient():
    prices = [100.0] * 30
    prices[10] = float("nan")
    result = RSI.compute(prices)
    assert result.signal == S.NEUTRAL
    assert "non-finite" in result.description


def test_compute_does_not_mutate_input(rising_prices):
    before = list(rising_prices)
    for ind in ALL_INDICATORS:
        ind.compute(rising_prices)
    assert rising_prices == before


# ── Momentum ────────────────────────────────────────────

def test_rsi_extremes(rising_prices, falling_prices, flat_prices):
    up = RSI.compute(rising_prices)
    assert up.value == 100
    assert up.signal == S.STRONG_SELL
    down = RSI.compute(falling_prices)
    assert down.value == 0
    assert down.signal == S.STRONG_BUY
    flat = RSI.compute(flat_prices)
    assert flat.value == 50
    assert flat.signal == S.NEUTRAL


def test_macd_trend_direction(rising_prices, falling_prices):
    assert MACD.compute(rising_prices).signal == S.STRONG_BUY
    assert MACD.compute(falling_prices).signal.is_bearish


def test_momentum_and_roc(rising_prices):
    mom = MOMENTUM.compute(rising_prices)
    assert mom.value == round_half_up((159 - 149) / 149 * 100)
    assert mom.signal == S.BUY
    roc = ROC.compute(rising_prices)
    assert roc.signal == S.BUY


def test_momentum_minimum_length():
    assert MOMENTUM.min_length == 11
    assert MOMENTUM.compute(list(range(1, 12))).description != INSUFFICIENT_DATA


def test_stochastic_and_williams(rising_prices, falling_prices, flat_prices):
    assert STOCHASTIC.compute(rising_prices).value == 100
    assert STOCHASTIC.compute(rising_prices).signal == S.STRONG_SELL
    assert STOCHASTIC.compute(falling_prices).signal == S.STRONG_BUY
    assert STOCHASTIC.compute(flat_prices).value == 50
    assert WILLIAMS_R.compute(rising_prices).signal == S.SELL
    assert WILLIAMS_R.compute(falling_prices).signal == S.BUY
    assert WILLIAMS_R.compute(flat_prices).value == -50


def test_cci(rising_prices, flat_prices):
    result = CCI.compute(rising_prices)
    assert result.signal == S.SELL
    assert CCI.compute(flat_prices).value == 0


def test_stc_bounded():
    prices = [100 + 10 * math.sin(i / 6) for i in range(150)]
    result = STC.compute(prices)
    assert 0 <= result.value <= 100


# ── Volatility ──────────────────────────────────────────

def test_bollinger_flat_is_midpoint(flat_prices):
    result = BOLLINGER.compute(flat_prices)
    assert result.value == 0.5
    assert result.signal == S.NEUTRAL


def test_bollinger_near_upper_band(rising_prices):
    result = BOLLINGER.compute(rising_prices)
    assert 0.8 < result.value < 1
    assert result.signal == S.SELL


def test_atr_never_votes(rising_prices):
    result = ATR.compute(rising_prices)
    assert result.signal == S.NEUTRAL
    assert result.description == "Low volatility"


# ── Trend ───────────────────────────────────────────────

def test_sma_crossover_short_history(rising_prices, falling_prices):
    assert SMA_CROSSOVER.compute(rising_prices).signal == S.STRONG_BUY
    assert SMA_CROSSOVER.compute(falling_prices).signal == S.STRONG_SELL


def test_sma_crossover_full_history():
    prices = [100 + i for i in range(250)]
    result = SMA_CROSSOVER.compute(prices)
    assert result.signal == S.STRONG_BUY
    assert "Golden cross" in result.description


def test_ema_crossover_detects_fresh_cross():
    prices = [100 - i * 0.5 for i in range(40)] + [85, 95, 110]
    result = EMA_CROSSOVER.compute(prices)
    assert result.signal == S.STRONG_BUY
    assert "crossed above" in result.description


def test_ema_crossover_steady_trend(rising_prices):
    assert EMA_CROSSOVER.compute(rising_prices).signal == S.BUY


def test_dmi_trending_up(rising_prices, falling_prices):
    up = DMI.compute(rising_prices)
    assert up.value == 100
    assert up.signal == S.BUY
    assert DMI.compute(falling_prices).signal == S.SELL


def test_aroon(rising_prices, falling_prices):
    up = AROON.compute(rising_prices)
    assert up.value == 100
    assert up.signal == S.STRONG_BUY
    assert AROON.compute(falling_prices).signal == S.STRONG_SELL


def test_supertrend(rising_prices, falling_prices):
    up = SUPERTREND.compute(rising_prices)
    assert up.signal == S.BUY
    assert up.value == round_half_up(3 / 156 * 100)
    assert SUPERTREND.compute(falling_prices).signal.is_bearish


# ── Volume ──────────────────────────────────────────────

def test_volume_requires_volumes(rising_prices):
    result = VOLUME.compute(rising_prices)
    assert result.description.endswith("volume unavailable")


def test_volume_spike_signed_by_direction(rising_prices, falling_prices):
    volumes = [100.0] * 59 + [200.0]
    assert VOLUME.compute(rising_prices, volumes).signal == S.STRONG_BUY
    assert VOLUME.compute(falling_prices, volumes).signal == S.STRONG_SELL
    moderate = [100.0] * 59 + [130.0]
    assert VOLUME.compute(rising_prices, moderate).signal == S.BUY
    quiet = [100.0] * 60
    assert VOLUME.compute(rising_prices, quiet).signal == S.NEUTRAL


def test_volume_zero_average(rising_prices):
    result = VOLUME.compute(rising_prices, [0.0] * 60)
    assert result.signal == S.NEUTRAL
    assert result.value == 1


def test_vwap_falls_back_to_sma(rising_prices):
    result = VWAP.compute(rising_prices)
    assert result.value == round_half_up((159 - 149.5) / 149.5 * 100)
    assert result.signal == S.SELL


def test_non_finite_volumes(rising_prices):
    volumes = [100.0] * 59 + [float("nan")]
    result = VOLUME.compute(rising_prices, volumes)
    assert result.signal == S.NEUTRAL
    assert result.value == 1
    assert "non-finite volumes" in result.description

    vwap = VWAP.compute(rising_prices, volumes)
    assert vwap.value == VWAP.compute(rising_prices).value
    assert math.isfinite(vwap.value)
