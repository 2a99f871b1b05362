"""
Purchase anomaly detector: flags purchases that are unusually large for a
user's social network.

Maintains a friend graph and per-user purchase history from an event
stream, builds the D-hop network around each purchaser and compares the
purchase against the T most recent purchases made in that network.
Modular layout: event log I/O, analysis engine, stream orchestrator, CLI.
"""

__version__ = "0.1.0"
