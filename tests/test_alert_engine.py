"""Tests for the alert engine: cooldown, delivery outcomes and history."""
import pytest
from datetime import datetime, timedelta, timezone

from alerts.engine import AlertEngine, TEST_ALERT_REASON
from alerts.store import InMemoryAlertStore
from conftest import FakeSender
from models.alerts import AlertConfig, AlertConfigError
from models.enums import AlertType

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


class RacingStore(InMemoryAlertStore):
    """Another check claims the cooldown slot between read and CAS."""

    def compare_and_set_last_alert_time(self, user_id, expected, new):
        super().compare_and_set_last_alert_time(user_id, expected, NOW - timedelta(minutes=1))
        return False


class ExplodingSender:
    def send(self, text, chat_id=None):
        raise ConnectionError("network down")


def test_check_sends_and_records(memory_store, sender, fear_snapshot):
    engine = AlertEngine(memory_store, sender)
    result = engine.check(fear_snapshot, now=NOW)

    assert result.should_send
    assert result.event.delivered
    assert result.event.message_id == "1"
    assert result.event.rule_id == "fear_greed_buy"
    assert len(sender.sent) == 1
    text, chat_id = sender.sent[0]
    assert chat_id == "12345"
    assert "SignalPulse Alert: BUY" in text
    assert memory_store.get_last_alert_time() == NOW
    assert len(engine.get_history()) == 1


def test_cooldown_suppresses_second_alert(memory_store, sender, fear_snapshot):
    engine = AlertEngine(memory_store, sender)
    engine.check(fear_snapshot, now=NOW)
    result = engine.check(fear_snapshot, now=NOW + timedelta(minutes=30))

    assert result.suppressed
    assert not result.should_send
    assert result.next_allowed_at == NOW + timedelta(minutes=60)
    assert len(sender.sent) == 1
    assert len(engine.get_history()) == 1


def test_cooldown_expires(memory_store, sender, fear_snapshot):
    engine = AlertEngine(memory_store, sender)
    engine.check(fear_snapshot, now=NOW)
    result = engine.check(fear_snapshot, now=NOW + timedelta(minutes=60))
    assert result.event.delivered
    assert len(sender.sent) == 2


def test_failed_delivery_recorded_without_cooldown(memory_store, fear_snapshot):
    sender = FakeSender(fail=True)
    engine = AlertEngine(memory_store, sender)
    result = engine.check(fear_snapshot, now=NOW)

    assert not result.event.delivered
    assert result.event.error == "boom"
    assert memory_store.get_last_alert_time() is None

    # Next check is free to try again
    engine.check(fear_snapshot, now=NOW + timedelta(minutes=1))
    assert len(sender.sent) == 2
    assert len(engine.get_history()) == 2


def test_failed_delivery_restores_previous_timestamp(memory_store, fear_snapshot):
    earlier = NOW - timedelta(hours=3)
    memory_store.compare_and_set_last_alert_time("default", None, earlier)
    engine = AlertEngine(memory_store, FakeSender(fail=True))
    engine.check(fear_snapshot, now=NOW)
    assert memory_store.get_last_alert_time() == earlier


def test_sender_exception_becomes_failed_delivery(memory_store, fear_snapshot):
    engine = AlertEngine(memory_store, ExplodingSender())
    result = engine.check(fear_snapshot, now=NOW)
    assert not result.event.delivered
    assert "network down" in result.event.error


def test_no_sender_configured(memory_store, fear_snapshot):
    engine = AlertEngine(memory_store)
    result = engine.check(fear_snapshot, now=NOW)
    assert not result.event.delivered
    assert result.event.error == "No notification sender configured"


def test_missing_config_raises(sender, fear_snapshot):
    engine = AlertEngine(InMemoryAlertStore(), sender)
    with pytest.raises(AlertConfigError):
        engine.check(fear_snapshot, now=NOW)
    assert sender.sent == []


def test_lost_race_is_suppressed(enabled_config, sender, fear_snapshot):
    store = RacingStore([enabled_config])
    engine = AlertEngine(store, sender)
    result = engine.check(fear_snapshot, now=NOW)
    assert result.suppressed
    assert sender.sent == []
    assert store.get_alert_history() == []


def test_no_match_leaves_no_trace(memory_store, sender, calm_snapshot):
    engine = AlertEngine(memory_store, sender)
    result = engine.check(calm_snapshot, now=NOW)
    assert not result.should_send
    assert result.event is None
    assert sender.sent == []
    assert engine.get_history() == []


def test_test_rules_ignores_cooldown(memory_store, sender, fear_snapshot):
    engine = AlertEngine(memory_store, sender)
    engine.check(fear_snapshot, now=NOW)
    report = engine.test_rules(fear_snapshot)
    assert report["decision"].should_send
    assert len(report["rules"]) == 8
    assert report["next_allowed_at"] == NOW + timedelta(minutes=60)
    assert len(sender.sent) == 1


def test_send_test_alert_not_recorded(memory_store, sender):
    engine = AlertEngine(memory_store, sender)
    result = engine.send_test_alert()
    assert result.success
    assert TEST_ALERT_REASON in sender.sent[0][0]
    assert "INFO" in sender.sent[0][0]
    assert engine.get_history() == []
    assert memory_store.get_last_alert_time() is None


# ── Configuration ───────────────────────────────────────

def test_ensure_config_seeds_once():
    store = InMemoryAlertStore()
    engine = AlertEngine(store, user_id="alice")
    config = engine.ensure_config({"fear_greed_buy_threshold": 20, "user_id": "ignored"})
    assert config.user_id == "alice"
    assert config.fear_greed_buy_threshold == 20
    again = engine.ensure_config({"fear_greed_buy_threshold": 5})
    assert again.fear_greed_buy_threshold == 20


def test_update_config_coerces_strings(memory_store):
    engine = AlertEngine(memory_store)
    config = engine.update_config(fear_greed_buy_threshold="20", price_change_enabled="false")
    assert config.fear_greed_buy_threshold == 20.0
    assert config.price_change_enabled is False
    assert config.updated_at is not None
    assert engine.get_config() == config


@pytest.mark.parametrize("changes", [
    {"min_minutes_between_alerts": 1},
    {"fear_greed_buy_threshold": 150},
    {"long_short_low_threshold": 0},
    {"price_rally_multiplier": 0.5},
    {"no_such_field": 1},
    {"funding_rate_high_threshold": "lots"},
])
def test_update_config_rejects_invalid(memory_store, changes):
    engine = AlertEngine(memory_store)
    before = engine.get_config()
    with pytest.raises(AlertConfigError):
        engine.update_config(**changes)
    assert engine.get_config() == before


def test_reset_keeps_chat_and_disables(memory_store):
    engine = AlertEngine(memory_store)
    engine.update_config(fear_greed_buy_threshold=5)
    config = engine.reset_config()
    assert config.telegram_chat_id == "12345"
    assert config.telegram_enabled is False
    assert config.fear_greed_buy_threshold == AlertConfig().fear_greed_buy_threshold


def test_custom_cooldown(memory_store, sender, fear_snapshot):
    engine = AlertEngine(memory_store, sender)
    engine.update_config(min_minutes_between_alerts=5)
    engine.check(fear_snapshot, now=NOW)
    result = engine.check(fear_snapshot, now=NOW + timedelta(minutes=5))
    assert result.event is not None and result.event.delivered


# ── History ─────────────────────────────────────────────

def test_history_newest_first_and_stats(memory_store, fear_snapshot, calm_snapshot):
    sender = FakeSender()
    engine = AlertEngine(memory_store, sender)
    engine.check(fear_snapshot, now=NOW)
    sender.fail = True
    engine.check(fear_snapshot, now=NOW + timedelta(hours=2))

    history = engine.get_history(limit=500)
    assert [e.delivered for e in history] == [False, True]
    assert history[0].alert_type == AlertType.BUY

    stats = engine.get_alert_stats(now=NOW + timedelta(hours=3))
    assert stats["total"] == 1
    assert stats["failed"] == 1
    assert stats["by_type"] == {"BUY": 1}
    assert stats["last_24h"] == 1
    assert stats["last_7d"] == 1
