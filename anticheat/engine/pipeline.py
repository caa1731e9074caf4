"""
Detection pipeline orchestrator.

One invocation analyses one log entry:

    ConfigurationLoader -> ContextBuilder -> RuleEngine
        -> AlertSink -> RiskScoreUpdater -> ResponseExecutor -> summary

Each invocation builds its own context and shares no memory with other
invocations; the only cross-invocation contract is the store-level atomic
risk-score add.

Deadline handling:
    The deadline is checked before the context build, before rule
    evaluation and before the first write. Once alert writes begin the
    invocation runs to completion, so alerts and the score increment are
    never split by a timeout.
"""

import time
from typing import Callable, Optional

import structlog
from pydantic import BaseModel, Field

from anticheat.config import Settings, get_settings
from anticheat.engine.alert_sink import AlertSink
from anticheat.engine.config_loader import ConfigurationLoader
from anticheat.engine.context_builder import ContextBuilder
from anticheat.engine.response_executor import ResponseExecutor
from anticheat.engine.risk_scorer import RiskScoreUpdater
from anticheat.engine.rule_engine import RuleEngine
from anticheat.engine.rules import default_rules
from anticheat.errors import InvocationTimeout
from anticheat.models.detections import Detection
from anticheat.models.invocation import DetectionRequest, DetectionResponse, DetectionSummary
from anticheat.storage.base import StorageBackend

logger = structlog.get_logger()


class DetectionResult(BaseModel):
    """Outcome of one successful invocation."""

    log_id: str
    player_id: str
    detections: list[Detection] = Field(default_factory=list)
    alert_ids: list[str] = Field(default_factory=list)
    new_risk_score: int = 0
    flagged: bool = False

    def to_response(self) -> DetectionResponse:
        """Wire-format summary."""
        return DetectionResponse(
            detections_triggered=len(self.detections),
            new_risk_score=self.new_risk_score,
            detections=[
                DetectionSummary(rule=d.rule_name, severity=d.severity, confidence=d.confidence)
                for d in self.detections
            ],
        )


class AntiCheatEngine:
    """
    Runs the full detection pipeline for single log entries.

    Attributes:
        config_loader: Loads the rule configuration per invocation
        context_builder: Assembles the DetectionContext
        rule_engine: Evaluates the detector bank
        alert_sink: Persists alerts
        risk_updater: Applies the atomic risk-score increment
        responder: Executes automated responses
        timeout_seconds: Per-invocation deadline

    Example:
        >>> engine = AntiCheatEngine.from_storage(get_storage())
        >>> result = engine.run(DetectionRequest(log_id="log-1"))
        >>> result.to_response().model_dump(by_alias=True)
    """

    def __init__(
        self,
        config_loader: ConfigurationLoader,
        context_builder: ContextBuilder,
        rule_engine: RuleEngine,
        alert_sink: AlertSink,
        risk_updater: RiskScoreUpdater,
        responder: ResponseExecutor,
        timeout_seconds: float = 10.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config_loader = config_loader
        self.context_builder = context_builder
        self.rule_engine = rule_engine
        self.alert_sink = alert_sink
        self.risk_updater = risk_updater
        self.responder = responder
        self.timeout_seconds = timeout_seconds
        self._clock = clock

    @classmethod
    def from_storage(
        cls, storage: StorageBackend, settings: Optional[Settings] = None
    ) -> "AntiCheatEngine":
        """Wire every stage to a single storage backend."""
        settings = settings or get_settings()
        return cls(
            config_loader=ConfigurationLoader(storage),
            context_builder=ContextBuilder(
                logs=storage,
                players=storage,
                risk_scores=storage,
                recent_log_window=settings.recent_log_window,
            ),
            rule_engine=RuleEngine(default_rules(sessions=storage, inventory=storage)),
            alert_sink=AlertSink(storage),
            risk_updater=RiskScoreUpdater(storage),
            responder=ResponseExecutor(players=storage, audit=storage),
            timeout_seconds=settings.invocation_timeout_seconds,
        )

    def _check_deadline(self, started: float, stage: str) -> None:
        elapsed = self._clock() - started
        if elapsed > self.timeout_seconds:
            logger.error("detection_invocation_timed_out", stage=stage, elapsed=elapsed)
            raise InvocationTimeout(stage, elapsed)

    def run(self, request: DetectionRequest) -> DetectionResult:
        """
        Analyse one log entry.

        Raises:
            ConfigUnavailable: Rule configuration could not be loaded
            LogNotFound: The log entry does not exist
            PersistenceError: A store read or write failed
            InvocationTimeout: The deadline passed before any write
        """
        started = self._clock()

        with structlog.contextvars.bound_contextvars(log_id=request.log_id):
            logger.info("detection_invocation_started", batch_mode=request.batch_mode)

            config = self.config_loader.load()

            self._check_deadline(started, "context_build")
            context = self.context_builder.build(
                request.log_id,
                config,
                player_id=request.player_id,
                action_type=request.action_type,
            )

            with structlog.contextvars.bound_contextvars(player_id=context.player_id):
                self._check_deadline(started, "rule_evaluation")
                detections = self.rule_engine.evaluate(context)

                self._check_deadline(started, "persistence")
                alert_ids = self.alert_sink.record(detections, context.player_id, request.log_id)
                new_score = self.risk_updater.apply(
                    context.player_id,
                    detections,
                    current_score=context.risk_score,
                    log_id=request.log_id,
                    violation_at=context.anchor,
                )
                flagged = self.responder.execute(
                    context.player_id,
                    detections,
                    new_score,
                    config,
                    log_id=request.log_id,
                )

                logger.info(
                    "detection_invocation_completed",
                    detections_triggered=len(detections),
                    new_risk_score=new_score,
                    flagged=flagged,
                    duration_ms=round((self._clock() - started) * 1000, 2),
                )

                return DetectionResult(
                    log_id=request.log_id,
                    player_id=context.player_id,
                    detections=detections,
                    alert_ids=alert_ids,
                    new_risk_score=new_score,
                    flagged=flagged,
                )
