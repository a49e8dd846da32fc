"""Alert store contract and the in-memory implementation.

The engine only talks to a store through these methods. ``models.database.Database``
is the durable implementation.
"""
import threading
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Protocol

from models.alerts import AlertConfig, AlertEvent, MetricSnapshot


class AlertStore(Protocol):
    def get_alert_config(self, user_id: str = "default") -> Optional[AlertConfig]: ...

    def save_alert_config(self, config: AlertConfig) -> AlertConfig: ...

    def append_alert(self, event: AlertEvent) -> AlertEvent: ...

    def get_alert_history(self, user_id: str = "default", limit: int = 20) -> List[AlertEvent]: ...

    def get_last_alert_time(self, user_id: str = "default") -> Optional[datetime]: ...

    def compare_and_set_last_alert_time(self, user_id: str, expected: Optional[datetime],
                                        new: Optional[datetime]) -> bool: ...

    def save_market_snapshot(self, snapshot: MetricSnapshot) -> None: ...

    def get_market_snapshots(self, limit: int = 100) -> List[MetricSnapshot]: ...

    def get_alert_stats(self, user_id: str = "default", now: Optional[datetime] = None) -> dict: ...


def summarize_events(events, now=None) -> dict:
    """Totals per alert type plus 24h / 7d counts over delivered alerts."""
    now = now or datetime.now(timezone.utc)
    delivered = [e for e in events if e.delivered]
    by_type = {}
    for e in delivered:
        by_type[e.alert_type.value] = by_type.get(e.alert_type.value, 0) + 1
    return {
        "total": len(delivered),
        "failed": len(events) - len(delivered),
        "by_type": by_type,
        "last_24h": sum(1 for e in delivered if e.timestamp >= now - timedelta(hours=24)),
        "last_7d": sum(1 for e in delivered if e.timestamp >= now - timedelta(days=7)),
    }


class InMemoryAlertStore:
    """Process-local store for tests and ephemeral runs. Thread-safe."""

    def __init__(self, configs=None):
        self._lock = threading.Lock()
        self._configs = {c.user_id: c for c in (configs or [])}
        self._history = []
        self._last_alert = {}
        self._snapshots = []

    def get_alert_config(self, user_id="default"):
        with self._lock:
            return self._configs.get(user_id)

    def save_alert_config(self, config):
        config = config.validate()
        with self._lock:
            self._configs[config.user_id] = config
        return config

    def append_alert(self, event):
        with self._lock:
            stored = replace(event, id=len(self._history) + 1)
            self._history.append(stored)
        return stored

    def get_alert_history(self, user_id="default", limit=20):
        with self._lock:
            events = [e for e in self._history if e.user_id == user_id]
        return list(reversed(events))[:limit]

    def get_last_alert_time(self, user_id="default"):
        with self._lock:
            return self._last_alert.get(user_id)

    def compare_and_set_last_alert_time(self, user_id, expected, new):
        with self._lock:
            if self._last_alert.get(user_id) != expected:
                return False
            self._last_alert[user_id] = new
            return True

    def save_market_snapshot(self, snapshot):
        with self._lock:
            self._snapshots.append(snapshot)

    def get_market_snapshots(self, limit=100):
        with self._lock:
            return list(reversed(self._snapshots))[:limit]

    def get_alert_stats(self, user_id="default", now=None):
        with self._lock:
            events = [e for e in self._history if e.user_id == user_id]
        return summarize_events(events, now)
