"""Enums for signal levels and alert types."""
from enum import Enum


class SignalStrength(str, Enum):
    STRONG_SELL = "strong_sell"
    SELL = "sell"
    NEUTRAL = "neutral"
    BUY = "buy"
    STRONG_BUY = "strong_buy"

    @property
    def weight(self):
        return _WEIGHTS[self]

    @property
    def is_bullish(self):
        return self in (SignalStrength.BUY, SignalStrength.STRONG_BUY)

    @property
    def is_bearish(self):
        return self in (SignalStrength.SELL, SignalStrength.STRONG_SELL)

    @property
    def label(self):
        return self.value.replace("_", " ").upper()


_WEIGHTS = {
    SignalStrength.STRONG_BUY: 2,
    SignalStrength.BUY: 1,
    SignalStrength.NEUTRAL: 0,
    SignalStrength.SELL: -1,
    SignalStrength.STRONG_SELL: -2,
}


class AlertType(str, Enum):
    BUY = "BUY"
    SELL = "SELL"
    CAUTION = "CAUTION"
    INFO = "INFO"
