"""
Application settings.

Responsibilities:
- Read the stream defaults (D, T, network model, edge multiplicity) from the environment.
- Validate them and expose one typed, immutable Settings object.
- A configure event in the input stream still overrides D and T at runtime;
  these values only apply until the first one arrives.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from purchase_anomaly.analysis_engine.network import NETWORK_MODELS
from purchase_anomaly.config import env
from purchase_anomaly.core.exceptions import ConfigurationError


@dataclass(frozen=True)
class Settings:
    """Stream defaults used to build an orchestrator."""

    network_depth: int = env.DEFAULT_NETWORK_DEPTH
    tracked_purchases: int = env.DEFAULT_TRACKED_PURCHASES
    network_model: str = env.DEFAULT_NETWORK_MODEL
    allow_parallel_edges: bool = False

    def __post_init__(self) -> None:
        if self.network_depth < 1:
            raise ConfigurationError(f"network_depth must be >= 1, got {self.network_depth}")
        if self.tracked_purchases < 1:
            raise ConfigurationError(f"tracked_purchases must be >= 1, got {self.tracked_purchases}")
        if self.network_model not in NETWORK_MODELS:
            raise ConfigurationError(
                f"unknown network_model {self.network_model!r}; "
                f"expected one of {sorted(NETWORK_MODELS)}"
            )

    def to_dict(self) -> dict[str, Any]:
        return {
            "network_depth": self.network_depth,
            "tracked_purchases": self.tracked_purchases,
            "network_model": self.network_model,
            "allow_parallel_edges": self.allow_parallel_edges,
        }


def get_settings() -> Settings:
    """
    Return the current application settings from the environment.

    Raises:
        ConfigurationError: If any variable is present but invalid.
    """
    return Settings(
        network_depth=env.get_network_depth(),
        tracked_purchases=env.get_tracked_purchases(),
        network_model=env.get_network_model(),
        allow_parallel_edges=env.allow_parallel_edges(),
    )
