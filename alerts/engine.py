"""Alert evaluation engine."""
import logging
from datetime import datetime, timedelta, timezone

from alerts.rules import DEFAULT_RULES, evaluate_conditions, explain_rules
from models.alerts import (
    AlertCheckResult, AlertConfig, AlertConfigError, AlertEvent, DeliveryResult,
    MetricSnapshot,
)
from models.enums import AlertType
from notifications.telegram_bot import format_alert_message

logger = logging.getLogger("signalpulse.alerts.engine")

MAX_HISTORY_LIMIT = 100
TEST_ALERT_REASON = "Test alert - notifications are working"


class AlertEngine:
    """Config read, rule evaluation, cooldown, delivery and history for one user.

    The engine holds no state of its own. Configuration, the last-sent
    timestamp and history all live in ``store``; the cooldown slot is claimed
    with the store's compare-and-set so overlapping checks send at most once.
    """

    def __init__(self, store, sender=None, user_id="default", rules=DEFAULT_RULES,
                 formatter=format_alert_message):
        self.store = store
        self.sender = sender
        self.user_id = user_id
        self.rules = rules
        self.formatter = formatter

    # ── configuration ────────────────────────────────

    def get_config(self) -> AlertConfig:
        config = self.store.get_alert_config(self.user_id)
        if config is None:
            raise AlertConfigError(f"No alert configuration for user '{self.user_id}'")
        return config

    def ensure_config(self, seed=None) -> AlertConfig:
        """Return the stored config, creating it from ``seed`` (a dict) if absent."""
        config = self.store.get_alert_config(self.user_id)
        if config is None:
            values = dict(seed or {})
            values["user_id"] = self.user_id
            config = self.store.save_alert_config(AlertConfig.from_dict(values))
            logger.info(f"Created default alert config for '{self.user_id}'")
        return config

    def update_config(self, **changes) -> AlertConfig:
        changes.pop("user_id", None)
        config = self.get_config().with_updates(**changes)
        return self.store.save_alert_config(config)

    def reset_config(self) -> AlertConfig:
        """Restore defaults. Alerts are switched off; the chat id is kept."""
        current = self.store.get_alert_config(self.user_id)
        config = AlertConfig(user_id=self.user_id, updated_at=datetime.now(timezone.utc))
        if current is not None and current.telegram_chat_id:
            config = config.with_updates(telegram_chat_id=current.telegram_chat_id)
        return self.store.save_alert_config(config)

    # ── evaluation ───────────────────────────────────

    def evaluate(self, snapshot: MetricSnapshot, config=None):
        return evaluate_conditions(config or self.get_config(), snapshot, self.rules)

    def next_allowed_at(self, config=None):
        last = self.store.get_last_alert_time(self.user_id)
        if last is None:
            return None
        config = config or self.get_config()
        return last + timedelta(seconds=config.cooldown_seconds)

    def check(self, snapshot: MetricSnapshot, now=None) -> AlertCheckResult:
        """Main entry point: evaluate, rate-limit, deliver and record.

        Raises ``AlertConfigError`` when no configuration is stored; the caller's
        scheduler decides when to try again.
        """
        now = now or datetime.now(timezone.utc)
        config = self.get_config()
        decision = evaluate_conditions(config, snapshot, self.rules)
        if not decision.should_send:
            logger.debug(f"No alert: {decision.reason}")
            return AlertCheckResult(decision)

        last = self.store.get_last_alert_time(self.user_id)
        if last is not None:
            allowed_at = last + timedelta(seconds=config.cooldown_seconds)
            if now < allowed_at:
                logger.info(f"Alert '{decision.reason}' suppressed by cooldown until "
                            f"{allowed_at.isoformat()}")
                return AlertCheckResult(decision, suppressed=True, next_allowed_at=allowed_at)

        if not self.store.compare_and_set_last_alert_time(self.user_id, last, now):
            logger.info(f"Alert '{decision.reason}' suppressed, another check claimed the slot")
            return AlertCheckResult(decision, suppressed=True, next_allowed_at=self.next_allowed_at(config))

        text = self.formatter(decision.alert_type, snapshot, decision.reason)
        delivery = self._deliver(text, chat_id=config.telegram_chat_id)
        if not delivery.success:
            # Failed sends do not start a cooldown
            self.store.compare_and_set_last_alert_time(self.user_id, now, last)

        event = self.store.append_alert(AlertEvent(
            alert_type=decision.alert_type,
            reason=decision.reason,
            snapshot=snapshot,
            delivered=delivery.success,
            message_id=delivery.message_id,
            error=delivery.error,
            rule_id=decision.rule_id,
            user_id=self.user_id,
            timestamp=now,
        ))
        logger.info(f"Alert {decision.alert_type.value} '{decision.reason}' "
                    f"{'sent' if delivery.success else 'failed'}")
        return AlertCheckResult(decision, event=event)

    def test_rules(self, snapshot: MetricSnapshot) -> dict:
        """Evaluate rules ignoring the cooldown, for testing thresholds."""
        config = self.get_config()
        return {
            "decision": evaluate_conditions(config, snapshot, self.rules),
            "rules": explain_rules(config, snapshot, self.rules),
            "next_allowed_at": self.next_allowed_at(config),
        }

    def send_test_alert(self, snapshot=None) -> DeliveryResult:
        """Send an INFO message bypassing conditions. Not recorded in history."""
        config = self.store.get_alert_config(self.user_id)
        text = self.formatter(AlertType.INFO, snapshot or MetricSnapshot(), TEST_ALERT_REASON)
        return self._deliver(text, chat_id=config.telegram_chat_id if config else None)

    # ── history ──────────────────────────────────────

    def get_history(self, limit=20):
        limit = max(1, min(int(limit), MAX_HISTORY_LIMIT))
        return self.store.get_alert_history(self.user_id, limit)

    def get_alert_stats(self, now=None):
        return self.store.get_alert_stats(self.user_id, now)

    def _deliver(self, text, chat_id=None) -> DeliveryResult:
        if self.sender is None:
            return DeliveryResult(success=False, error="No notification sender configured")
        try:
            return self.sender.send(text, chat_id=chat_id)
        except Exception as e:
            logger.warning(f"Notification sender error: {e}")
            return DeliveryResult(success=False, error=str(e))
