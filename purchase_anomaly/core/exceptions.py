"""
Application-level exceptions.

Raised at the boundaries (event decoding, configuration loading). The
analysis engine itself never raises for data conditions: absent edges are
warnings and thin networks simply skip classification.
"""

from __future__ import annotations


class PurchaseAnomalyError(Exception):
    """Base class for errors raised by this package."""


class MalformedEventError(PurchaseAnomalyError):
    """An event log line could not be decoded into a typed event."""

    def __init__(self, reason: str, line_number: int | None = None) -> None:
        self.reason = reason
        self.line_number = line_number
        where = f"line {line_number}: " if line_number is not None else ""
        super().__init__(f"{where}{reason}")


class ConfigurationError(PurchaseAnomalyError):
    """Settings from the environment are missing or invalid."""
