"""Formatting utilities for terminal display."""
from datetime import datetime, timezone

from models.enums import AlertType, SignalStrength

SIGNAL_STYLES = {
    SignalStrength.STRONG_BUY: "bold green",
    SignalStrength.BUY: "green",
    SignalStrength.NEUTRAL: "dim",
    SignalStrength.SELL: "red",
    SignalStrength.STRONG_SELL: "bold red",
}

ALERT_STYLES = {
    AlertType.BUY: "bold green",
    AlertType.SELL: "bold red",
    AlertType.CAUTION: "bold yellow",
    AlertType.INFO: "bold blue",
}


def format_usd(value, compact=False):
    """Dollar amount with commas; large values collapse to B/T when ``compact``."""
    if value is None:
        return "N/A"
    value = float(value)
    if compact:
        for divisor, suffix in ((1e12, "T"), (1e9, "B"), (1e6, "M")):
            if abs(value) >= divisor:
                return f"${value / divisor:,.2f}{suffix}"
    return f"${value:,.2f}"


def format_pct(value, decimals=2, with_color=False):
    """Signed percentage, optionally wrapped in rich color markup."""
    if value is None:
        return "N/A"
    value = float(value)
    formatted = f"{value:+.{decimals}f}%"
    if with_color:
        color = "green" if value >= 0 else "red"
        return f"[{color}]{formatted}[/{color}]"
    return formatted


def format_signal(signal):
    """Rich markup for a signal level, e.g. ``[bold green]STRONG BUY[/]``."""
    signal = SignalStrength(signal)
    return f"[{SIGNAL_STYLES[signal]}]{signal.label}[/]"


def format_alert_type(alert_type):
    alert_type = AlertType(alert_type)
    return f"[{ALERT_STYLES[alert_type]}]{alert_type.value}[/]"


def format_score(score):
    if score is None:
        return "N/A"
    color = "green" if score >= 20 else "red" if score <= -20 else "white"
    return f"[{color}]{int(score):+d}[/{color}]"


def format_timestamp(ts):
    if ts is None:
        return "N/A"
    if isinstance(ts, str):
        return ts
    return ts.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M UTC")


def time_ago(dt, now=None):
    """Return human-readable time since dt. E.g., '3h ago', '2d ago'."""
    if dt is None:
        return "never"
    now = now or datetime.now(timezone.utc)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    seconds = int((now - dt).total_seconds())

    if seconds < 60:
        return f"{seconds}s ago"
    if seconds < 3600:
        return f"{seconds // 60}m ago"
    if seconds < 86400:
        return f"{seconds // 3600}h ago"
    return f"{seconds // 86400}d ago"
