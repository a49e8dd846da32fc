from sentiment.evaluator import (
    SENTIMENT_WEIGHTS,
    classify_fear_greed,
    classify_funding_rate,
    classify_long_short,
    classify_open_interest,
    summarize,
)

__all__ = [
    "SENTIMENT_WEIGHTS",
    "classify_fear_greed",
    "classify_funding_rate",
    "classify_long_short",
    "classify_open_interest",
    "summarize",
]
