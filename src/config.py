"""
Centralized configuration for the hand-hygiene compliance dashboard.
All tunable constants, the startup configuration surface, and logging in one place.
"""

import os
import logging

from dotenv import load_dotenv

from errors import ConfigurationError

# ── Project paths ──
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
DATA_DIR = os.path.join(PROJECT_ROOT, "data")
EXPORT_DIR = os.path.join(PROJECT_ROOT, "exports")
ENV_PATH = os.path.join(PROJECT_ROOT, ".env")

# ── Defaults for the startup configuration surface ──
DEFAULTS = {
    "total_workers_estimate": 50,
    "refresh_interval_ms": 30000,
    "source_document": os.path.join(DATA_DIR, "LoginInfo.csv"),
    "fetch_timeout_s": 10,
}

# Environment variable → settings key
ENV_KEYS = {
    "TOTAL_WORKERS_ESTIMATE": "total_workers_estimate",
    "REFRESH_INTERVAL_MS": "refresh_interval_ms",
    "SOURCE_DOCUMENT": "source_document",
    "FETCH_TIMEOUT_S": "fetch_timeout_s",
}

POSITIVE_INT_KEYS = ("total_workers_estimate", "refresh_interval_ms", "fetch_timeout_s")

# ── Source document layout ──
LOG_FORMAT = {
    "delimiter": ",",
    "header_keys": {"name": "name", "timestamp": "timestamp"},
}

# ── Sentinels when no event exists ──
NO_WORKER = "None"
NO_ACTIVITY = "No activity yet"

# ── Compliance tiers (lower bounds, percent) ──
COMPLIANCE = {
    "high": 80,
    "medium": 50,
}

# ── Display ──
DISPLAY = {
    "tier_classes": {
        "high": "compliance-high",
        "medium": "compliance-med",
        "low": "compliance-low",
    },
    "row_status": "Completed",
    "empty_today": "No hand washing records found for today.",
    "waiting_title": "Waiting for Data Connection",
    "waiting_detail": "Ensure the hygiene log is generated and reachable from the server.",
}

# ── Spreadsheet export ──
EXPORT = {
    "sheet_name": "Daily Log",
    "filename_template": "WellReflect_Hygiene_Log_{date}.xlsx",
    "columns": ["Worker Name", "Time", "Date", "Status"],
}


# ── Logging setup ──
def get_logger(name):
    """Get a configured logger for a module."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            "[%(asctime)s] %(name)s %(levelname)s: %(message)s",
            datefmt="%H:%M:%S",
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
    return logger


def validate_settings(settings):
    """Validate the configuration surface. Raises ConfigurationError on bad values."""
    for key in POSITIVE_INT_KEYS:
        value = settings.get(key)
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigurationError(f"Setting '{key}' must be an integer, got {value!r}")
        if value <= 0:
            raise ConfigurationError(f"Setting '{key}' must be positive, got {value}")

    locator = settings.get("source_document")
    if not isinstance(locator, str) or not locator.strip():
        raise ConfigurationError("Setting 'source_document' must be a non-empty string")
    return True


def resolve_locator(locator, root=PROJECT_ROOT):
    """URLs pass through; relative paths are taken from the project root, not the cwd."""
    if not locator or locator.lower().startswith(("http://", "https://")):
        return locator
    return os.path.normpath(os.path.join(root, os.path.expanduser(locator)))


def load_settings(env=None, env_path=ENV_PATH):
    """
    Build the startup settings from DEFAULTS overridden by environment variables.

    A .env file at the project root is loaded first (existing variables win).
    Returns a validated dict; raises ConfigurationError if any value is unusable.
    """
    if env is None:
        load_dotenv(env_path)
        env = os.environ

    settings = dict(DEFAULTS)
    for env_key, key in ENV_KEYS.items():
        raw = env.get(env_key)
        if raw is None or raw == "":
            continue
        if key in POSITIVE_INT_KEYS:
            try:
                settings[key] = int(raw)
            except ValueError:
                raise ConfigurationError(f"{env_key} must be an integer, got {raw!r}")
        else:
            settings[key] = raw.strip()

    settings["source_document"] = resolve_locator(settings["source_document"])
    validate_settings(settings)
    return settings
