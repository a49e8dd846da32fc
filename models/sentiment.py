"""Dataclasses for market-positioning inputs and their contrarian readings."""
from dataclasses import dataclass
from typing import Optional

from models.enums import SignalStrength


@dataclass(frozen=True)
class SentimentInputs:
    """Raw scalars as fetched from upstream providers. ``None`` means unavailable."""
    fear_greed_value: Optional[int] = None
    fear_greed_label: Optional[str] = None
    funding_rate_pct: Optional[float] = None
    long_short_ratio: Optional[float] = None
    long_percent: Optional[float] = None
    short_percent: Optional[float] = None
    open_interest_usd: Optional[float] = None


@dataclass(frozen=True)
class SentimentMetric:
    name: str
    value: float
    signal: SignalStrength = SignalStrength.NEUTRAL
    description: str = ""

    def to_dict(self):
        return {
            "name": self.name,
            "value": self.value,
            "signal": self.signal.value,
            "description": self.description,
        }


@dataclass(frozen=True)
class SentimentSummary:
    fear_greed: Optional[SentimentMetric] = None
    funding_rate: Optional[SentimentMetric] = None
    long_short_ratio: Optional[SentimentMetric] = None
    open_interest: Optional[SentimentMetric] = None
    overall: SignalStrength = SignalStrength.NEUTRAL
    score: int = 0

    @property
    def metrics(self):
        return [m for m in (self.fear_greed, self.funding_rate,
                            self.long_short_ratio, self.open_interest) if m is not None]

    def to_dict(self):
        return {
            "fearGreed": self.fear_greed.to_dict() if self.fear_greed else None,
            "fundingRate": self.funding_rate.to_dict() if self.funding_rate else None,
            "longShortRatio": self.long_short_ratio.to_dict() if self.long_short_ratio else None,
            "openInterest": self.open_interest.to_dict() if self.open_interest else None,
            "overallSignal": self.overall.value,
            "overallScore": self.score,
        }
