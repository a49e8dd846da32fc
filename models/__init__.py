"""Data models."""
from models.enums import SignalStrength, AlertType
from models.indicators import PriceSeries, IndicatorResult, CombinedSignal
from models.sentiment import SentimentInputs, SentimentMetric, SentimentSummary
from models.alerts import (
    AlertConfig, AlertConfigError, MetricSnapshot, AlertDecision, AlertEvent,
    DeliveryResult, AlertCheckResult,
)
