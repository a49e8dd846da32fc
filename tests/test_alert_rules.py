"""Tests for ordered alert rule evaluation."""
import pytest
from dataclasses import replace

from alerts.rules import ALERTS_DISABLED, DEFAULT_RULES, NO_CONDITIONS, evaluate_conditions, explain_rules
from models.alerts import AlertConfig, MetricSnapshot
from models.enums import AlertType


def test_rule_ids_in_priority_order():
    assert [r.id for r in DEFAULT_RULES] == [
        "fear_greed_buy", "fear_greed_sell", "funding_low", "funding_high",
        "long_short_low", "long_short_high", "price_drop", "price_rally",
    ]


def test_extreme_fear_fires_buy(enabled_config, fear_snapshot):
    decision = evaluate_conditions(enabled_config, fear_snapshot)
    assert decision.should_send
    assert decision.alert_type == AlertType.BUY
    assert decision.rule_id == "fear_greed_buy"
    assert "Fear & Greed: 10" in decision.reason


def test_first_match_wins(enabled_config, fear_snapshot):
    # Funding 0.2 would also fire, but Fear & Greed comes first
    decision = evaluate_conditions(enabled_config, fear_snapshot)
    assert "Funding" not in decision.reason


def test_disabled_condition_falls_through(enabled_config, fear_snapshot):
    config = replace(enabled_config, fear_greed_enabled=False)
    decision = evaluate_conditions(config, fear_snapshot)
    assert decision.alert_type == AlertType.CAUTION
    assert decision.rule_id == "funding_high"
    assert decision.reason == "High Funding (0.2000%)"


def test_master_switch_off(fear_snapshot):
    decision = evaluate_conditions(AlertConfig(telegram_enabled=False), fear_snapshot)
    assert not decision.should_send
    assert decision.reason == ALERTS_DISABLED


def test_calm_market(enabled_config, calm_snapshot):
    decision = evaluate_conditions(enabled_config, calm_snapshot)
    assert not decision.should_send
    assert decision.reason == NO_CONDITIONS
    assert decision.alert_type == AlertType.INFO


def test_missing_metrics_never_match(enabled_config):
    decision = evaluate_conditions(enabled_config, MetricSnapshot())
    assert not decision.should_send


def test_thresholds_are_inclusive(enabled_config):
    decision = evaluate_conditions(enabled_config, MetricSnapshot(fear_greed=15))
    assert decision.rule_id == "fear_greed_buy"
    decision = evaluate_conditions(enabled_config, MetricSnapshot(fear_greed=85))
    assert decision.alert_type == AlertType.SELL


@pytest.mark.parametrize("snapshot,rule_id,alert_type", [
    (MetricSnapshot(funding_rate=-0.06), "funding_low", AlertType.BUY),
    (MetricSnapshot(long_short_ratio=0.45), "long_short_low", AlertType.BUY),
    (MetricSnapshot(long_short_ratio=3.6), "long_short_high", AlertType.CAUTION),
    (MetricSnapshot(price_change_24h=-12), "price_drop", AlertType.BUY),
    (MetricSnapshot(price_change_24h=15), "price_rally", AlertType.CAUTION),
])
def test_each_condition(enabled_config, snapshot, rule_id, alert_type):
    decision = evaluate_conditions(enabled_config, snapshot)
    assert decision.rule_id == rule_id
    assert decision.alert_type == alert_type


def test_rally_needs_multiplied_threshold(enabled_config):
    # 10% threshold * 1.5 multiplier
    assert not evaluate_conditions(enabled_config, MetricSnapshot(price_change_24h=14.9)).should_send
    decision = evaluate_conditions(enabled_config, MetricSnapshot(price_change_24h=-10))
    assert decision.reason == "Large Drop (-10.00%)"


def test_explain_rules_marks_single_winner(enabled_config, fear_snapshot):
    rows = explain_rules(enabled_config, fear_snapshot)
    assert len(rows) == len(DEFAULT_RULES)
    firing = [r["rule_id"] for r in rows if r["would_fire"]]
    assert firing == ["fear_greed_buy", "funding_high"]
    selected = [r["rule_id"] for r in rows if r["selected"]]
    assert selected == ["fear_greed_buy"]
    drop = next(r for r in rows if r["rule_id"] == "price_drop")
    assert drop["threshold"] == -10
    assert drop["current_value"] == -4.0


def test_explain_rules_ignores_master_switch(fear_snapshot):
    rows = explain_rules(AlertConfig(telegram_enabled=False), fear_snapshot)
    assert any(r["selected"] for r in rows)
