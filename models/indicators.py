"""Dataclasses for price series, indicator results and combined signals."""
from dataclasses import dataclass, field
from typing import Optional, Sequence

from models.enums import SignalStrength


@dataclass(frozen=True)
class PriceSeries:
    """Chronological closes with an optional parallel volume sequence.

    Values are copied into tuples so no computation can mutate the caller's data.
    Volumes whose length does not match the closes are dropped.
    """
    closes: tuple = ()
    volumes: Optional[tuple] = None

    @classmethod
    def of(cls, prices: Sequence[float], volumes: Optional[Sequence[float]] = None):
        closes = tuple(float(p) for p in prices)
        vols = None
        if volumes is not None and len(volumes) == len(closes):
            vols = tuple(float(v) for v in volumes)
        return cls(closes=closes, volumes=vols)

    def __len__(self):
        return len(self.closes)

    @property
    def last(self):
        return self.closes[-1] if self.closes else None

    @property
    def has_volume(self):
        return self.volumes is not None and len(self.volumes) > 0


@dataclass(frozen=True)
class IndicatorResult:
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
class CombinedSignal:
    overall: SignalStrength = SignalStrength.NEUTRAL
    score: int = 0
    bullish_count: int = 0
    bearish_count: int = 0
    neutral_count: int = 0
    indicators: tuple = field(default_factory=tuple)

    def to_dict(self):
        return {
            "overall": self.overall.value,
            "score": self.score,
            "bullishCount": self.bullish_count,
            "bearishCount": self.bearish_count,
            "neutralCount": self.neutral_count,
            "indicators": [r.to_dict() for r in self.indicators],
        }
