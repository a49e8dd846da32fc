from indicators.base import Indicator, classify
from indicators.registry import (
    ALL_INDICATORS, DEFAULT_ENABLED, get_indicator, indicator_ids, select_indicators,
)

__all__ = [
    "Indicator",
    "classify",
    "ALL_INDICATORS",
    "DEFAULT_ENABLED",
    "get_indicator",
    "indicator_ids",
    "select_indicators",
]
