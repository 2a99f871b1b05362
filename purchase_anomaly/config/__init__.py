"""
Configuration management for the purchase anomaly detector.

Loads and validates settings from environment variables and an optional
.env file. Exposes a single source of truth for the stream defaults.
"""

from purchase_anomaly.config.settings import Settings, get_settings  # noqa: F401

__all__ = ["Settings", "get_settings"]
