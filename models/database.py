"""SQLite database for alert configuration, alert history and market snapshots."""
import json
import sqlite3
import logging
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from pathlib import Path

from alerts.store import summarize_events
from models.alerts import AlertConfig, AlertEvent, MetricSnapshot, _parse_ts
from models.enums import AlertType

logger = logging.getLogger("signalpulse.db")

_CONFIG_COLUMNS = [
    "telegram_enabled", "telegram_chat_id",
    "fear_greed_enabled", "fear_greed_buy_threshold", "fear_greed_sell_threshold",
    "funding_rate_enabled", "funding_rate_high_threshold", "funding_rate_low_threshold",
    "long_short_enabled", "long_short_high_threshold", "long_short_low_threshold",
    "price_change_enabled", "price_change_threshold", "price_rally_multiplier",
    "min_minutes_between_alerts", "updated_at",
]


def _iso(ts):
    return ts.astimezone(timezone.utc).isoformat() if ts is not None else None


class Database:
    """Durable alert store. Implements the ``alerts.store.AlertStore`` methods."""

    def __init__(self, db_path="data/signalpulse.db"):
        self.db_path = db_path
        self.conn = None

    def connect(self):
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(self.db_path, check_same_thread=False,
                                    isolation_level=None)
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA journal_mode=WAL")
        self._create_tables()
        return self

    def close(self):
        if self.conn:
            self.conn.close()
            self.conn = None

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, *args):
        self.close()

    def _create_tables(self):
        self.conn.executescript("""
            CREATE TABLE IF NOT EXISTS alert_configs (
                user_id TEXT PRIMARY KEY,
                telegram_enabled INTEGER NOT NULL DEFAULT 0,
                telegram_chat_id TEXT,
                fear_greed_enabled INTEGER NOT NULL DEFAULT 1,
                fear_greed_buy_threshold REAL NOT NULL DEFAULT 15,
                fear_greed_sell_threshold REAL NOT NULL DEFAULT 85,
                funding_rate_enabled INTEGER NOT NULL DEFAULT 1,
                funding_rate_high_threshold REAL NOT NULL DEFAULT 0.1,
                funding_rate_low_threshold REAL NOT NULL DEFAULT -0.05,
                long_short_enabled INTEGER NOT NULL DEFAULT 1,
                long_short_high_threshold REAL NOT NULL DEFAULT 3.5,
                long_short_low_threshold REAL NOT NULL DEFAULT 0.5,
                price_change_enabled INTEGER NOT NULL DEFAULT 1,
                price_change_threshold REAL NOT NULL DEFAULT 10,
                price_rally_multiplier REAL NOT NULL DEFAULT 1.5,
                min_minutes_between_alerts INTEGER NOT NULL DEFAULT 60
                    CHECK (min_minutes_between_alerts >= 5),
                updated_at TEXT
            );

            CREATE TABLE IF NOT EXISTS alert_history (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id TEXT NOT NULL DEFAULT 'default',
                timestamp TEXT NOT NULL,
                alert_type TEXT NOT NULL CHECK (alert_type IN ('BUY', 'SELL', 'CAUTION', 'INFO')),
                rule_id TEXT,
                reason TEXT NOT NULL,
                snapshot TEXT NOT NULL,
                delivered INTEGER NOT NULL DEFAULT 0,
                message_id TEXT,
                error TEXT
            );

            CREATE INDEX IF NOT EXISTS idx_alert_history_user_ts
                ON alert_history(user_id, timestamp);

            CREATE TABLE IF NOT EXISTS alert_state (
                user_id TEXT PRIMARY KEY,
                last_alert_at TEXT
            );

            CREATE TABLE IF NOT EXISTS market_snapshots (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                timestamp TEXT NOT NULL,
                fear_greed REAL,
                fear_greed_label TEXT,
                funding_rate REAL,
                long_short_ratio REAL,
                long_percent REAL,
                open_interest_usd REAL,
                price REAL,
                price_change_24h REAL,
                overall_signal TEXT,
                overall_score INTEGER
            );

            CREATE INDEX IF NOT EXISTS idx_market_snapshots_ts
                ON market_snapshots(timestamp);
        """)

    # --- Alert Config ---

    def get_alert_config(self, user_id="default"):
        row = self.conn.execute(
            "SELECT * FROM alert_configs WHERE user_id = ?", (user_id,)
        ).fetchone()
        if row is None:
            return None
        return AlertConfig.from_dict(dict(row))

    def save_alert_config(self, config):
        config = config.validate()
        d = config.to_dict()
        values = [d["user_id"]] + [
            int(d[c]) if isinstance(d[c], bool) else d[c] for c in _CONFIG_COLUMNS
        ]
        columns = ", ".join(["user_id"] + _CONFIG_COLUMNS)
        placeholders = ", ".join("?" for _ in values)
        self.conn.execute(
            f"INSERT OR REPLACE INTO alert_configs ({columns}) VALUES ({placeholders})",
            values,
        )
        logger.debug(f"Saved alert config for {config.user_id}")
        return config

    # --- Alert History ---

    def append_alert(self, event):
        cur = self.conn.execute("""
            INSERT INTO alert_history
            (user_id, timestamp, alert_type, rule_id, reason, snapshot, delivered, message_id, error)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        """, (
            event.user_id, _iso(event.timestamp), event.alert_type.value, event.rule_id,
            event.reason, json.dumps(event.snapshot.to_dict()), int(event.delivered),
            event.message_id, event.error,
        ))
        return replace(event, id=cur.lastrowid)

    def _row_to_event(self, row):
        return AlertEvent(
            id=row["id"],
            user_id=row["user_id"],
            timestamp=_parse_ts(row["timestamp"]),
            alert_type=AlertType(row["alert_type"]),
            rule_id=row["rule_id"],
            reason=row["reason"],
            snapshot=MetricSnapshot.from_dict(json.loads(row["snapshot"])),
            delivered=bool(row["delivered"]),
            message_id=row["message_id"],
            error=row["error"],
        )

    def get_alert_history(self, user_id="default", limit=20):
        rows = self.conn.execute("""
            SELECT * FROM alert_history WHERE user_id = ?
            ORDER BY timestamp DESC, id DESC LIMIT ?
        """, (user_id, limit)).fetchall()
        return [self._row_to_event(r) for r in rows]

    def get_alert_stats(self, user_id="default", now=None):
        now = now or datetime.now(timezone.utc)
        rows = self.conn.execute("""
            SELECT * FROM alert_history WHERE user_id = ? AND timestamp >= ?
        """, (user_id, _iso(now - timedelta(days=7)))).fetchall()
        stats = summarize_events([self._row_to_event(r) for r in rows], now)

        # Totals cover all time, the windows only the last week
        totals = self.conn.execute("""
            SELECT alert_type, COUNT(*) AS count FROM alert_history
            WHERE user_id = ? AND delivered = 1 GROUP BY alert_type
        """, (user_id,)).fetchall()
        failed = self.conn.execute("""
            SELECT COUNT(*) AS count FROM alert_history WHERE user_id = ? AND delivered = 0
        """, (user_id,)).fetchone()
        stats["by_type"] = {r["alert_type"]: r["count"] for r in totals}
        stats["total"] = sum(stats["by_type"].values())
        stats["failed"] = failed["count"]
        return stats

    # --- Last-alert state ---

    def get_last_alert_time(self, user_id="default"):
        row = self.conn.execute(
            "SELECT last_alert_at FROM alert_state WHERE user_id = ?", (user_id,)
        ).fetchone()
        if row is None:
            return None
        return _parse_ts(row["last_alert_at"])

    def compare_and_set_last_alert_time(self, user_id, expected, new):
        """Atomically move the last-alert timestamp from ``expected`` to ``new``."""
        self.conn.execute(
            "INSERT OR IGNORE INTO alert_state (user_id, last_alert_at) VALUES (?, NULL)",
            (user_id,),
        )
        if expected is None:
            cur = self.conn.execute(
                "UPDATE alert_state SET last_alert_at = ? WHERE user_id = ? AND last_alert_at IS NULL",
                (_iso(new), user_id),
            )
        else:
            cur = self.conn.execute(
                "UPDATE alert_state SET last_alert_at = ? WHERE user_id = ? AND last_alert_at = ?",
                (_iso(new), user_id, _iso(expected)),
            )
        return cur.rowcount == 1

    # --- Market Snapshots ---

    def save_market_snapshot(self, snapshot):
        d = snapshot.to_dict()
        self.conn.execute("""
            INSERT INTO market_snapshots
            (timestamp, fear_greed, fear_greed_label, funding_rate, long_short_ratio,
             long_percent, open_interest_usd, price, price_change_24h, overall_signal, overall_score)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """, (
            _iso(snapshot.timestamp), d["fear_greed"], d["fear_greed_label"], d["funding_rate"],
            d["long_short_ratio"], d["long_percent"], d["open_interest_usd"], d["price"],
            d["price_change_24h"], d["overall_signal"], d["overall_score"],
        ))
        logger.debug(f"Saved market snapshot at {d['timestamp']}")

    def get_market_snapshots(self, limit=100):
        rows = self.conn.execute(
            "SELECT * FROM market_snapshots ORDER BY timestamp DESC LIMIT ?", (limit,)
        ).fetchall()
        return [MetricSnapshot.from_dict(dict(r)) for r in rows]
