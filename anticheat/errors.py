"""
Exception taxonomy for detection invocations.

    AntiCheatError
    ├── ConfigUnavailable     fatal, surfaced as an internal error
    ├── LogNotFound           terminal, surfaced as not-found, never retried
    ├── RuleEvaluationError   isolated per rule, logged, never propagated
    ├── PersistenceError      alert/score/audit/store failures, caller retries
    └── InvocationTimeout     deadline passed before any write was made
"""


class AntiCheatError(Exception):
    """Base exception for all engine failures."""


class ConfigUnavailable(AntiCheatError):
    """The rule configuration store could not be read."""


class LogNotFound(AntiCheatError):
    """The requested log entry does not exist."""

    def __init__(self, log_id: str):
        self.log_id = log_id
        super().__init__(f"Log entry not found: {log_id}")


class RuleEvaluationError(AntiCheatError):
    """A single detector raised while evaluating a context."""

    def __init__(self, rule_name: str, cause: BaseException):
        self.rule_name = rule_name
        self.cause = cause
        super().__init__(f"Rule {rule_name} failed: {cause}")


class PersistenceError(AntiCheatError):
    """A store read or write failed."""


class InvocationTimeout(AntiCheatError):
    """The invocation deadline passed before results were persisted."""

    def __init__(self, stage: str, elapsed: float):
        self.stage = stage
        self.elapsed = elapsed
        super().__init__(f"Invocation deadline exceeded before {stage} ({elapsed:.3f}s)")
