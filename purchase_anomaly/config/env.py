"""
Environment variable loading and validation.

- PURCHASE_NETWORK_DEPTH: D, degrees of friendship in a network (default: 2)
- PURCHASE_TRACKED_COUNT: T, purchases tracked per network (default: 50)
- PURCHASE_NETWORK_MODEL: timing_ignored | timing_aware (default: timing_ignored)
- PURCHASE_ALLOW_PARALLEL_EDGES: keep duplicate edges on repeated befriend (default: false)
- Loads .env from project root when available.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

from purchase_anomaly.core.exceptions import ConfigurationError

# Project root: config is purchase_anomaly/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_PACKAGE_DIR = _CONFIG_DIR.parent
_ROOT = _PACKAGE_DIR.parent
_ENV_PATH = _ROOT / ".env"

DEFAULT_NETWORK_DEPTH = 2
DEFAULT_TRACKED_PURCHASES = 50
DEFAULT_NETWORK_MODEL = "timing_ignored"

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off", "")


def load_purchase_env() -> None:
    """Load .env from project root. Safe to call multiple times; real env vars win."""
    load_dotenv(_ENV_PATH, override=False)


def _positive_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from None
    if value < 1:
        raise ConfigurationError(f"{name} must be >= 1, got {value}")
    return value


def get_network_depth() -> int:
    """Return D from PURCHASE_NETWORK_DEPTH. Default: 2."""
    load_purchase_env()
    return _positive_int("PURCHASE_NETWORK_DEPTH", DEFAULT_NETWORK_DEPTH)


def get_tracked_purchases() -> int:
    """Return T from PURCHASE_TRACKED_COUNT. Default: 50."""
    load_purchase_env()
    return _positive_int("PURCHASE_TRACKED_COUNT", DEFAULT_TRACKED_PURCHASES)


def get_network_model() -> str:
    """
    Return PURCHASE_NETWORK_MODEL: timing_ignored | timing_aware.
    Accepts dashes for underscores ("timing-aware").
    """
    load_purchase_env()
    raw = (os.getenv("PURCHASE_NETWORK_MODEL") or DEFAULT_NETWORK_MODEL).strip().lower()
    return raw.replace("-", "_")


def allow_parallel_edges() -> bool:
    """Return True if PURCHASE_ALLOW_PARALLEL_EDGES is set to a truthy value."""
    load_purchase_env()
    raw = (os.getenv("PURCHASE_ALLOW_PARALLEL_EDGES") or "").strip().lower()
    if raw in _TRUE_VALUES:
        return True
    if raw in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"PURCHASE_ALLOW_PARALLEL_EDGES must be a boolean, got {raw!r}")
