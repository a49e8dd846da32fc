"""Contrarian classification of market-positioning metrics.

Extreme fear, negative funding and crowded shorts read as bullish; extreme
greed, expensive funding and crowded longs read as bearish. Open interest is
reported for context only.
"""
import logging
from typing import Dict, Optional

from indicators.base import classify
from indicators.helpers import round_half_up
from models.enums import SignalStrength
from models.sentiment import SentimentInputs, SentimentMetric, SentimentSummary
from signals.aggregator import classify_score

logger = logging.getLogger("signalpulse.sentiment")

SENTIMENT_WEIGHTS = {
    "fear_greed": 0.4,
    "funding_rate": 0.3,
    "long_short_ratio": 0.3,
}


def classify_fear_greed(value, label=None) -> SentimentMetric:
    signal = classify(value, 20, 35, 65, 80, inverted=True)
    if value <= 20:
        description = "Extreme fear - historically a buying opportunity"
    elif value <= 35:
        description = "Fear in the market"
    elif value >= 80:
        description = "Extreme greed - elevated correction risk"
    elif value >= 65:
        description = "Greed in the market"
    else:
        description = "Neutral sentiment"
    if label:
        description = f"{label}: {description}"
    return SentimentMetric("Fear & Greed", value, signal, description)


def classify_funding_rate(rate_pct) -> SentimentMetric:
    """``rate_pct`` is the per-interval funding rate in percent (0.01 == 0.01%)."""
    signal = classify(rate_pct, -0.1, -0.03, 0.03, 0.1, inverted=True)
    if rate_pct <= -0.03:
        description = "Shorts paying longs - bearish crowding"
    elif rate_pct >= 0.03:
        description = "Longs paying shorts - leveraged long crowding"
    else:
        description = "Funding balanced"
    return SentimentMetric("Funding Rate", round_half_up(rate_pct, 4), signal, description)


def classify_long_short(ratio) -> SentimentMetric:
    signal = classify(ratio, 0.5, 0.7, 2.5, 3.0, inverted=True)
    if ratio <= 0.7:
        description = "Crowded shorts - squeeze risk"
    elif ratio >= 2.5:
        description = "Crowded longs - liquidation risk"
    else:
        description = "Positioning balanced"
    return SentimentMetric("Long/Short Ratio", round_half_up(ratio), signal, description)


def classify_open_interest(value_usd) -> SentimentMetric:
    billions = value_usd / 1e9
    return SentimentMetric("Open Interest", round_half_up(billions),
                           SignalStrength.NEUTRAL, f"${billions:.2f}B in open futures positions")


def summarize(inputs: SentimentInputs,
              weights: Optional[Dict[str, float]] = None) -> SentimentSummary:
    """Classify every present metric and blend them into one score.

    Each weighted metric contributes ``signal.weight * 50`` (a value in
    [-100, 100]). Missing metrics drop out and the remaining weights are
    renormalised, so absence never counts as a neutral reading.
    """
    weights = weights or SENTIMENT_WEIGHTS

    fear_greed = None
    if inputs.fear_greed_value is not None:
        fear_greed = classify_fear_greed(inputs.fear_greed_value, inputs.fear_greed_label)
    funding = None
    if inputs.funding_rate_pct is not None:
        funding = classify_funding_rate(inputs.funding_rate_pct)
    long_short = None
    if inputs.long_short_ratio is not None:
        long_short = classify_long_short(inputs.long_short_ratio)
    open_interest = None
    if inputs.open_interest_usd is not None:
        open_interest = classify_open_interest(inputs.open_interest_usd)

    weighted = {"fear_greed": fear_greed, "funding_rate": funding, "long_short_ratio": long_short}
    total_weight = 0.0
    total = 0.0
    for key, metric in weighted.items():
        if metric is None:
            continue
        weight = weights.get(key, 0.0)
        total_weight += weight
        total += weight * metric.signal.weight * 50

    score = int(round_half_up(total / total_weight, 0)) if total_weight > 0 else 0
    if total_weight == 0:
        logger.debug("No weighted sentiment metrics available")

    return SentimentSummary(
        fear_greed=fear_greed,
        funding_rate=funding,
        long_short_ratio=long_short,
        open_interest=open_interest,
        overall=classify_score(score),
        score=score,
    )
