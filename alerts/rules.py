"""Ordered alert rules. The first matching rule wins."""
import logging
from dataclasses import dataclass
from typing import Callable, List, Sequence

from models.alerts import AlertConfig, AlertDecision, MetricSnapshot
from models.enums import AlertType

logger = logging.getLogger("signalpulse.alerts.rules")

OPERATOR_MAP = {
    "<=": lambda v, t: v <= t,
    ">=": lambda v, t: v >= t,
}

ALERTS_DISABLED = "Alerts disabled"
NO_CONDITIONS = "No extreme conditions"


@dataclass(frozen=True)
class AlertRule:
    id: str
    name: str
    enabled_flag: str              # AlertConfig attribute switching the condition on
    metric: str                    # MetricSnapshot attribute
    operator: str
    threshold: Callable[[AlertConfig], float]
    alert_type: AlertType
    reason: str                    # format string, receives ``value``

    def is_enabled(self, config: AlertConfig) -> bool:
        return bool(getattr(config, self.enabled_flag))

    def value(self, snapshot: MetricSnapshot):
        return getattr(snapshot, self.metric)

    def matches(self, config: AlertConfig, snapshot: MetricSnapshot) -> bool:
        value = self.value(snapshot)
        if value is None:
            return False
        return OPERATOR_MAP[self.operator](value, self.threshold(config))

    def decision(self, snapshot: MetricSnapshot) -> AlertDecision:
        return AlertDecision(
            should_send=True,
            alert_type=self.alert_type,
            reason=self.reason.format(value=self.value(snapshot)),
            rule_id=self.id,
        )


DEFAULT_RULES = (
    AlertRule(
        id="fear_greed_buy",
        name="Extreme Fear",
        enabled_flag="fear_greed_enabled",
        metric="fear_greed",
        operator="<=",
        threshold=lambda c: c.fear_greed_buy_threshold,
        alert_type=AlertType.BUY,
        reason="Extreme Fear (Fear & Greed: {value:.0f})",
    ),
    AlertRule(
        id="fear_greed_sell",
        name="Extreme Greed",
        enabled_flag="fear_greed_enabled",
        metric="fear_greed",
        operator=">=",
        threshold=lambda c: c.fear_greed_sell_threshold,
        alert_type=AlertType.SELL,
        reason="Extreme Greed (Fear & Greed: {value:.0f})",
    ),
    AlertRule(
        id="funding_low",
        name="Negative Funding",
        enabled_flag="funding_rate_enabled",
        metric="funding_rate",
        operator="<=",
        threshold=lambda c: c.funding_rate_low_threshold,
        alert_type=AlertType.BUY,
        reason="Negative Funding ({value:.4f}%)",
    ),
    AlertRule(
        id="funding_high",
        name="High Funding",
        enabled_flag="funding_rate_enabled",
        metric="funding_rate",
        operator=">=",
        threshold=lambda c: c.funding_rate_high_threshold,
        alert_type=AlertType.CAUTION,
        reason="High Funding ({value:.4f}%)",
    ),
    AlertRule(
        id="long_short_low",
        name="Crowded Shorts",
        enabled_flag="long_short_enabled",
        metric="long_short_ratio",
        operator="<=",
        threshold=lambda c: c.long_short_low_threshold,
        alert_type=AlertType.BUY,
        reason="Crowded Shorts (L/S: {value:.2f})",
    ),
    AlertRule(
        id="long_short_high",
        name="Crowded Longs",
        enabled_flag="long_short_enabled",
        metric="long_short_ratio",
        operator=">=",
        threshold=lambda c: c.long_short_high_threshold,
        alert_type=AlertType.CAUTION,
        reason="Crowded Longs (L/S: {value:.2f})",
    ),
    AlertRule(
        id="price_drop",
        name="Large Drop",
        enabled_flag="price_change_enabled",
        metric="price_change_24h",
        operator="<=",
        threshold=lambda c: -c.price_change_threshold,
        alert_type=AlertType.BUY,
        reason="Large Drop ({value:.2f}%)",
    ),
    AlertRule(
        id="price_rally",
        name="Large Rally",
        enabled_flag="price_change_enabled",
        metric="price_change_24h",
        operator=">=",
        threshold=lambda c: c.price_change_threshold * c.price_rally_multiplier,
        alert_type=AlertType.CAUTION,
        reason="Large Rally ({value:.2f}%)",
    ),
)


def evaluate_conditions(config: AlertConfig, snapshot: MetricSnapshot,
                        rules: Sequence[AlertRule] = DEFAULT_RULES) -> AlertDecision:
    """Pure first-match evaluation of ``rules`` against one snapshot."""
    if not config.telegram_enabled:
        return AlertDecision(should_send=False, reason=ALERTS_DISABLED)

    for rule in rules:
        if rule.is_enabled(config) and rule.matches(config, snapshot):
            logger.debug(f"Rule {rule.id} matched")
            return rule.decision(snapshot)
    return AlertDecision(should_send=False, reason=NO_CONDITIONS)


def explain_rules(config: AlertConfig, snapshot: MetricSnapshot,
                  rules: Sequence[AlertRule] = DEFAULT_RULES) -> List[dict]:
    """Per-rule breakdown for testing thresholds. Ignores the master switch."""
    results = []
    winner = None
    for rule in rules:
        enabled = rule.is_enabled(config)
        would_fire = enabled and rule.matches(config, snapshot)
        if would_fire and winner is None:
            winner = rule.id
        results.append({
            "rule_id": rule.id,
            "name": rule.name,
            "metric": rule.metric,
            "operator": rule.operator,
            "threshold": rule.threshold(config),
            "current_value": rule.value(snapshot),
            "alert_type": rule.alert_type.value,
            "enabled": enabled,
            "would_fire": would_fire,
            "selected": False,
        })
    for row in results:
        row["selected"] = row["rule_id"] == winner
    return results
