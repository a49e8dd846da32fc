"""Configuration management.

``default_config.yaml`` is merged with an optional user file, then with
environment overrides, then validated.
"""
import os
from pathlib import Path

import yaml

from models.alerts import MIN_COOLDOWN_MINUTES

_config = None
_DEFAULT_CONFIG = Path(__file__).parent / "default_config.yaml"

REQUIRED_SECTIONS = ["api", "monitor", "indicators", "alerts", "telegram", "database", "web", "logging"]
MIN_CHECK_INTERVAL = 60

# env var -> (config path, type)
ENV_MAP = {
    "SIGNALPULSE_DB_PATH": (("database", "path"), str),
    "SIGNALPULSE_LOG_LEVEL": (("logging", "level"), str),
    "SIGNALPULSE_CHECK_INTERVAL": (("monitor", "check_interval"), int),
    "TELEGRAM_BOT_TOKEN": (("telegram", "bot_token"), str),
    "TELEGRAM_CHAT_ID": (("telegram", "chat_id"), str),
    "CRON_SECRET": (("web", "cron_secret"), str),
}


class ConfigError(ValueError):
    """Configuration file or environment is invalid."""


def load_config(path=None, environ=None):
    """Load config from YAML, merging defaults with optional overrides."""
    global _config
    environ = os.environ if environ is None else environ

    with open(_DEFAULT_CONFIG) as f:
        config = yaml.safe_load(f)

    if path:
        if not Path(path).exists():
            raise ConfigError(f"Config file not found: {path}")
        with open(path) as f:
            overrides = yaml.safe_load(f) or {}
        config = _deep_merge(config, overrides)

    for env_key, (config_path, cast) in ENV_MAP.items():
        val = environ.get(env_key)
        if not val:
            continue
        d = config
        for k in config_path[:-1]:
            d = d.setdefault(k, {})
        try:
            d[config_path[-1]] = cast(val)
        except ValueError:
            raise ConfigError(f"{env_key} must be {cast.__name__}, got {val!r}")

    _validate_config(config)
    _config = config
    return config


def get_config():
    """Return cached config, loading defaults if needed."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def _deep_merge(base, override):
    """Recursively merge override into base dict."""
    result = base.copy()
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result


def _validate_config(config):
    for section in REQUIRED_SECTIONS:
        if section not in config:
            raise ConfigError(f"Missing required config section: {section}")

    if config["monitor"].get("check_interval", 0) < MIN_CHECK_INTERVAL:
        raise ConfigError(f"check_interval must be >= {MIN_CHECK_INTERVAL} seconds")

    cooldown = config["alerts"].get("min_minutes_between_alerts", MIN_COOLDOWN_MINUTES)
    if cooldown < MIN_COOLDOWN_MINUTES:
        raise ConfigError(f"min_minutes_between_alerts must be >= {MIN_COOLDOWN_MINUTES}")

    enabled = config["indicators"].get("enabled")
    if enabled is not None and not isinstance(enabled, list):
        raise ConfigError("indicators.enabled must be a list of indicator ids")
