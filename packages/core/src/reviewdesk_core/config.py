import os
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_CONFIG: dict = {
    "store": "sqlite",  # sqlite | memory
    "store_path": ".reviewdesk.db",
    "notifier": "log",  # log | slack
    "notify_timeout": 5.0,  # seconds, per Slack API call
    "deadline_days": 3,
    "workday_end_hour": 17,
    "log_level": "WARNING",
}

_VALID_STORES = ("sqlite", "memory")
_VALID_NOTIFIERS = ("log", "slack")
_VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def load_config(config_path: str = ".reviewdesk.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .reviewdesk.yml in the current directory
      3. CLI argument overrides
    """
    config = dict(DEFAULT_CONFIG)

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        config.update(file_config)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    # Resolve credentials from environment variables
    config["slack_bot_token"] = os.environ.get("SLACK_BOT_TOKEN")

    validate_config(config)
    return config


def validate_config(config: dict) -> None:
    """Raise ValueError for settings the factories cannot act on."""
    if config.get("store") not in _VALID_STORES:
        raise ValueError(f"Unknown store {config.get('store')!r}. Choose one of: {', '.join(_VALID_STORES)}.")
    if config.get("notifier") not in _VALID_NOTIFIERS:
        raise ValueError(
            f"Unknown notifier {config.get('notifier')!r}. Choose one of: {', '.join(_VALID_NOTIFIERS)}."
        )
    hour = config.get("workday_end_hour")
    if not isinstance(hour, int) or not 0 <= hour <= 23:
        raise ValueError(f"workday_end_hour must be an integer between 0 and 23, got {hour!r}.")
    days = config.get("deadline_days")
    if not isinstance(days, int) or days < 0:
        raise ValueError(f"deadline_days must be a non-negative integer, got {days!r}.")
    level = config.get("log_level")
    if not isinstance(level, str) or level.upper() not in _VALID_LOG_LEVELS:
        raise ValueError(f"Unknown log_level {level!r}. Choose one of: {', '.join(_VALID_LOG_LEVELS)}.")
