"""
Anti-cheat detection engine components.

This package contains the pipeline stages that analyse one player action:

- Configuration loading: enabled rule toggles and thresholds per invocation
- Context building: log entry, bounded history, profile and risk score
- Rule evaluation: a registry of independent detectors with per-rule isolation
- Alerting: one SecurityAlert per detection, de-duplicated per log entry
- Risk scoring: severity-weighted atomic increments
- Automated response: auto-flagging and critical-finding audit records
"""

__all__ = [
    "AlertSink",
    "AntiCheatEngine",
    "ConfigurationLoader",
    "ContextBuilder",
    "DetectionResult",
    "ResponseExecutor",
    "RiskScoreUpdater",
    "RuleEngine",
]

from anticheat.engine.alert_sink import AlertSink
from anticheat.engine.config_loader import ConfigurationLoader
from anticheat.engine.context_builder import ContextBuilder
from anticheat.engine.pipeline import AntiCheatEngine, DetectionResult
from anticheat.engine.response_executor import ResponseExecutor
from anticheat.engine.risk_scorer import RiskScoreUpdater
from anticheat.engine.rule_engine import RuleEngine
