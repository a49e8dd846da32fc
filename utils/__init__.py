"""Utility modules for SignalPulse."""
from utils.logger import setup_logging
from utils.formatters import format_usd, format_pct, format_signal, format_alert_type, time_ago
from utils.http_client import HTTPClient, APIError, RateLimiter
