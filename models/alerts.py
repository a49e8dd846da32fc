"""Dataclasses for alert configuration, decisions and the alert history record."""
from dataclasses import dataclass, field, fields, replace, asdict
from datetime import datetime, timezone
from typing import Optional

from models.enums import AlertType

MIN_COOLDOWN_MINUTES = 5


class AlertConfigError(ValueError):
    """Alert configuration is missing or fails validation."""


def _utcnow():
    return datetime.now(timezone.utc)


def _parse_ts(value):
    if value is None:
        return None
    if isinstance(value, datetime):
        ts = value
    else:
        ts = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


@dataclass(frozen=True)
class AlertConfig:
    """Read-mostly snapshot of one user's alert settings.

    Instances are immutable; ``with_updates`` returns a validated copy. The
    durable copy lives in the alert store.
    """
    user_id: str = "default"
    telegram_enabled: bool = False
    telegram_chat_id: Optional[str] = None
    fear_greed_enabled: bool = True
    fear_greed_buy_threshold: float = 15
    fear_greed_sell_threshold: float = 85
    funding_rate_enabled: bool = True
    funding_rate_high_threshold: float = 0.1
    funding_rate_low_threshold: float = -0.05
    long_short_enabled: bool = True
    long_short_high_threshold: float = 3.5
    long_short_low_threshold: float = 0.5
    price_change_enabled: bool = True
    price_change_threshold: float = 10
    price_rally_multiplier: float = 1.5
    min_minutes_between_alerts: int = 60
    updated_at: Optional[datetime] = None

    def validate(self):
        for name in ("fear_greed_buy_threshold", "fear_greed_sell_threshold"):
            value = getattr(self, name)
            if not 0 <= value <= 100:
                raise AlertConfigError(f"{name} must be 0-100, got {value}")
        for name in ("long_short_high_threshold", "long_short_low_threshold"):
            if getattr(self, name) <= 0:
                raise AlertConfigError(f"{name} must be a positive ratio")
        if self.price_change_threshold <= 0:
            raise AlertConfigError("price_change_threshold must be positive")
        if self.price_rally_multiplier < 1:
            raise AlertConfigError("price_rally_multiplier must be >= 1")
        if self.min_minutes_between_alerts < MIN_COOLDOWN_MINUTES:
            raise AlertConfigError(
                f"min_minutes_between_alerts must be at least {MIN_COOLDOWN_MINUTES} minutes"
            )
        return self

    def with_updates(self, **changes):
        unknown = set(changes) - {f.name for f in fields(self)}
        if unknown:
            raise AlertConfigError(f"Unknown config fields: {sorted(unknown)}")
        changes.setdefault("updated_at", _utcnow())
        return replace(self, **_coerce(changes)).validate()

    @property
    def cooldown_seconds(self):
        return self.min_minutes_between_alerts * 60

    def to_dict(self, redact=False):
        d = asdict(self)
        d["updated_at"] = self.updated_at.isoformat() if self.updated_at else None
        if redact and d["telegram_chat_id"]:
            d["telegram_chat_id"] = "***configured***"
        return d

    @classmethod
    def from_dict(cls, d):
        known = {f.name for f in fields(cls)}
        values = _coerce({k: v for k, v in (d or {}).items() if k in known})
        return cls(**values).validate()


_BOOL_FIELDS = {"telegram_enabled", "fear_greed_enabled", "funding_rate_enabled",
                "long_short_enabled", "price_change_enabled"}


def _coerce(values):
    """Normalise types coming from SQLite rows, YAML, JSON or CLI strings."""
    out = {}
    for key, val in values.items():
        if key in _BOOL_FIELDS:
            if isinstance(val, str):
                val = val.strip().lower() in ("1", "true", "yes", "on")
            out[key] = bool(val)
        elif key == "min_minutes_between_alerts":
            out[key] = int(float(val))
        elif key == "updated_at":
            out[key] = _parse_ts(val)
        elif key in ("user_id", "telegram_chat_id"):
            out[key] = None if val is None else str(val)
        else:
            try:
                out[key] = float(val)
            except (TypeError, ValueError):
                raise AlertConfigError(f"{key} must be numeric, got {val!r}")
    return out


@dataclass(frozen=True)
class MetricSnapshot:
    """Point-in-time market metrics the alert rules are evaluated against."""
    fear_greed: Optional[float] = None
    fear_greed_label: Optional[str] = None
    funding_rate: Optional[float] = None
    long_short_ratio: Optional[float] = None
    long_percent: Optional[float] = None
    open_interest_usd: Optional[float] = None
    price: Optional[float] = None
    price_change_24h: Optional[float] = None
    overall_signal: Optional[str] = None
    overall_score: Optional[int] = None
    timestamp: datetime = field(default_factory=_utcnow)

    @classmethod
    def from_sentiment(cls, inputs, summary=None, price=None, price_change_24h=None):
        return cls(
            fear_greed=inputs.fear_greed_value,
            fear_greed_label=inputs.fear_greed_label,
            funding_rate=inputs.funding_rate_pct,
            long_short_ratio=inputs.long_short_ratio,
            long_percent=inputs.long_percent,
            open_interest_usd=inputs.open_interest_usd,
            price=price,
            price_change_24h=price_change_24h,
            overall_signal=summary.overall.value if summary else None,
            overall_score=summary.score if summary else None,
        )

    def to_dict(self):
        d = asdict(self)
        d["timestamp"] = self.timestamp.isoformat()
        return d

    @classmethod
    def from_dict(cls, d):
        d = dict(d or {})
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in d.items() if k in known}
        values["timestamp"] = _parse_ts(values.get("timestamp")) or _utcnow()
        return cls(**values)


@dataclass(frozen=True)
class AlertDecision:
    should_send: bool
    alert_type: AlertType = AlertType.INFO
    reason: str = ""
    rule_id: Optional[str] = None


@dataclass(frozen=True)
class DeliveryResult:
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class AlertEvent:
    """Append-only record of one fired alert and its delivery outcome."""
    alert_type: AlertType
    reason: str
    snapshot: MetricSnapshot
    delivered: bool
    message_id: Optional[str] = None
    error: Optional[str] = None
    rule_id: Optional[str] = None
    user_id: str = "default"
    timestamp: datetime = field(default_factory=_utcnow)
    id: Optional[int] = None

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "timestamp": self.timestamp.isoformat(),
            "alert_type": self.alert_type.value,
            "rule_id": self.rule_id,
            "reason": self.reason,
            "snapshot": self.snapshot.to_dict(),
            "delivered": self.delivered,
            "message_id": self.message_id,
            "error": self.error,
        }


@dataclass(frozen=True)
class AlertCheckResult:
    """Outcome of one engine evaluation cycle."""
    decision: AlertDecision
    event: Optional[AlertEvent] = None
    suppressed: bool = False
    next_allowed_at: Optional[datetime] = None

    @property
    def should_send(self):
        return self.decision.should_send and not self.suppressed

    @property
    def alert_type(self):
        return self.decision.alert_type

    @property
    def reason(self):
        return self.decision.reason

    def to_dict(self):
        return {
            "shouldSend": self.should_send,
            "alertType": self.alert_type.value,
            "reason": self.reason,
            "ruleId": self.decision.rule_id,
            "suppressed": self.suppressed,
            "nextAllowedAt": self.next_allowed_at.isoformat() if self.next_allowed_at else None,
            "delivered": self.event.delivered if self.event else None,
            "messageId": self.event.message_id if self.event else None,
            "error": self.event.error if self.event else None,
        }
