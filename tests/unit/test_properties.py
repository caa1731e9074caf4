"""
Property-based tests using Hypothesis.

These tests verify the detector boundaries and scoring invariants over
generated inputs rather than hand-picked examples.
"""

from datetime import timedelta

import hypothesis.strategies as st
from hypothesis import given, settings

from anticheat.engine.risk_scorer import SEVERITY_POINTS, RiskScoreUpdater, compute_risk_delta
from anticheat.engine.rules import BotBehaviorRule, ImpossibleValueRule, VelocityRule
from anticheat.models.enums import Severity
from anticheat.models.rule_config import RuleConfig
from anticheat.storage.memory_storage import InMemoryStorage
from tests.conftest import BASE_TIME, make_context, make_detection, make_history, make_log_entry

severities = st.sampled_from(list(Severity))


# =============================================================================
# Risk scoring
# =============================================================================


@given(severity_list=st.lists(severities, max_size=30))
@settings(max_examples=100)
def test_prop_risk_delta_is_sum_of_severity_points(severity_list):
    """
    Property: delta == sum of {25, 15, 10, 5} over the detections' severities.
    """
    detections = [make_detection(s) for s in severity_list]

    expected = sum({"critical": 25, "high": 15, "medium": 10, "low": 5}[s.value] for s in severity_list)

    assert compute_risk_delta(detections) == expected


@given(
    initial=st.lists(severities, max_size=10),
    extra=st.lists(severities, max_size=10),
)
@settings(max_examples=100)
def test_prop_risk_score_never_decreases(initial, extra):
    """
    Property: applying any invocation's detections never lowers the score.
    """
    storage = InMemoryStorage()
    updater = RiskScoreUpdater(storage)

    first = updater.apply("p", [make_detection(s) for s in initial], 0, log_id="log_a")
    second = updater.apply("p", [make_detection(s) for s in extra], first, log_id="log_b")

    assert second >= first >= 0
    assert second == sum(SEVERITY_POINTS[s] for s in initial + extra)


# =============================================================================
# Velocity boundary
# =============================================================================


@given(
    action_count=st.integers(min_value=1, max_value=60),
    limit=st.integers(min_value=1, max_value=59),
)
@settings(max_examples=100)
def test_prop_velocity_fires_iff_count_exceeds_limit(action_count, limit):
    """
    Property: with all actions inside the trailing minute, the rule fires
    exactly when the count is strictly greater than the limit.
    """
    history = make_history(action_count, spacing_seconds=1)
    context = make_context(
        log_entry=history[0],
        recent_logs=history,
        config={"velocity_max_actions_per_minute": limit},
    )

    detection = VelocityRule().evaluate(context)

    if action_count > limit:
        assert detection is not None
        assert detection.severity == Severity.HIGH
    else:
        assert detection is None


# =============================================================================
# Impossible values
# =============================================================================


@given(
    amount=st.integers(min_value=0, max_value=200_000),
    source=st.sampled_from(["crime", "job", "casino", "trade"]),
)
@settings(max_examples=100)
def test_prop_impossible_value_requires_both_conditions(amount, source):
    """
    Property: fires iff amount > 50000 and source == "crime".
    """
    entry = make_log_entry(
        action_type="economy_transaction",
        metadata={"amount": amount, "source": source},
    )

    detection = ImpossibleValueRule().evaluate(make_context(log_entry=entry))

    assert (detection is not None) == (amount > 50_000 and source == "crime")


# =============================================================================
# Bot behaviour sample size
# =============================================================================


@given(
    gaps_ms=st.lists(st.integers(min_value=0, max_value=300_000), min_size=0, max_size=8),
)
@settings(max_examples=100)
def test_prop_bot_rule_needs_ten_actions(gaps_ms):
    """
    Property: fewer than 10 recent actions never fire, whatever the timing.
    """
    times = [BASE_TIME]
    for gap in gaps_ms:
        times.append(times[-1] - timedelta(milliseconds=gap))
    history = [make_log_entry(created_at=t) for t in times]
    context = make_context(
        log_entry=history[0],
        recent_logs=history,
        config={"bot_detection_enabled": True},
    )

    assert BotBehaviorRule().evaluate(context) is None


@given(
    spacing_ms=st.integers(min_value=600, max_value=110_000),
    count=st.integers(min_value=10, max_value=40),
)
@settings(max_examples=100)
def test_prop_bot_rule_fires_for_constant_cadence(spacing_ms, count):
    """
    Property: a constant cadence inside (500ms, 120s) is always bot-like.
    """
    history = make_history(count, spacing_seconds=spacing_ms / 1000)
    context = make_context(log_entry=history[0], recent_logs=history)

    detection = BotBehaviorRule().evaluate(context)

    assert detection is not None
    assert detection.evidence.coefficient_of_variation < 0.15


@given(values=st.dictionaries(st.text(min_size=1, max_size=10), st.integers(), max_size=5))
@settings(max_examples=50)
def test_prop_rule_config_equals_its_source(values):
    """Property: a RuleConfig built from plain values compares equal to them."""
    assert RuleConfig(values) == values
