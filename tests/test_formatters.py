"""Tests for terminal formatters and logging setup."""
import logging
from datetime import datetime, timedelta, timezone

from models.enums import AlertType, SignalStrength
from utils.formatters import (
    format_alert_type, format_pct, format_score, format_signal, format_timestamp,
    format_usd, time_ago,
)
from utils.logger import LOGGER_NAME, setup_logging


def test_format_usd():
    assert format_usd(67543.21) == "$67,543.21"
    assert format_usd(0) == "$0.00"
    assert format_usd(None) == "N/A"


def test_format_usd_compact():
    assert format_usd(1_234_567_890, compact=True) == "$1.23B"
    assert format_usd(2_500_000_000_000, compact=True) == "$2.50T"
    assert format_usd(950, compact=True) == "$950.00"


def test_format_pct():
    assert format_pct(5.4) == "+5.40%"
    assert format_pct(-12.5) == "-12.50%"
    assert format_pct(0) == "+0.00%"
    assert format_pct(None) == "N/A"


def test_format_pct_colored():
    assert "green" in format_pct(5.0, with_color=True)
    assert "red" in format_pct(-5.0, with_color=True)


def test_format_signal_and_alert_type():
    assert format_signal(SignalStrength.STRONG_BUY) == "[bold green]STRONG BUY[/]"
    assert format_signal("sell") == "[red]SELL[/]"
    assert format_alert_type(AlertType.CAUTION) == "[bold yellow]CAUTION[/]"


def test_format_score():
    assert format_score(35) == "[green]+35[/green]"
    assert format_score(-20) == "[red]-20[/red]"
    assert format_score(0) == "[white]+0[/white]"
    assert format_score(None) == "N/A"


def test_format_timestamp():
    ts = datetime(2024, 6, 1, 12, 5, tzinfo=timezone.utc)
    assert format_timestamp(ts) == "2024-06-01 12:05 UTC"
    assert format_timestamp(None) == "N/A"


def test_time_ago():
    now = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
    assert time_ago(now - timedelta(seconds=30), now) == "30s ago"
    assert time_ago(now - timedelta(minutes=5), now) == "5m ago"
    assert time_ago(now - timedelta(hours=3), now) == "3h ago"
    assert time_ago(now - timedelta(days=2), now) == "2d ago"
    assert time_ago(None) == "never"


def test_setup_logging(tmp_path):
    log_file = tmp_path / "signalpulse.log"
    logger = setup_logging("debug", str(log_file))
    assert logger.name == LOGGER_NAME
    assert logger.level == logging.DEBUG
    assert logger.handlers
    logging.getLogger("signalpulse.test").debug("hello")
