"""
Anti-cheat behavioral anomaly detection engine.

Evaluates individual player-action telemetry events against a bank of
independent heuristic detectors, accumulates a per-player risk score,
persists security alerts, and flags players whose risk crosses the
configured threshold.
"""

__version__ = "0.1.0"
