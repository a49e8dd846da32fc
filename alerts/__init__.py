"""Alert system module."""
from alerts.engine import AlertEngine
from alerts.rules import AlertRule, DEFAULT_RULES, evaluate_conditions
from alerts.store import AlertStore, InMemoryAlertStore
from alerts.channels import ConsoleChannel, TelegramChannel
