"""
Integration tests for the HTTP transport.

The engine dependency is overridden with one wired to the in-memory
backend (see the ``client`` fixture), so every request runs the real
pipeline end to end.
"""

from unittest.mock import MagicMock

from anticheat.errors import ConfigUnavailable
from anticheat.main import app
from anticheat.routers.detection import get_engine
from tests.conftest import make_history, make_log_entry, seed_config

ANALYZE = "/api/v1/detection/analyze"


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_request_id_is_echoed(self, client):
        response = client.get("/health", headers={"X-Request-ID": "req-123"})

        assert response.headers["X-Request-ID"] == "req-123"


class TestAnalyze:
    def test_successful_invocation_uses_camel_case(self, client, memory_storage):
        entry = make_log_entry(action_type="level_up", value_diff=8)
        memory_storage.write_log(entry)

        response = client.post(ANALYZE, json={"logId": entry.id, "playerId": "player_1"})

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "detectionsTriggered": 1,
            "newRiskScore": 25,
            "detections": [
                {"rule": "impossible_value", "severity": "critical", "confidence": 1.0}
            ],
        }

    def test_velocity_scenario(self, client, memory_storage):
        seed_config(memory_storage, velocity_check_enabled=True)
        history = make_history(35, spacing_seconds=1)
        for log in history:
            memory_storage.write_log(log)

        response = client.post(
            ANALYZE,
            json={"logId": history[0].id, "playerId": "player_1", "actionType": "attack"},
        )

        body = response.json()
        assert body["detectionsTriggered"] == 1
        assert body["detections"][0]["rule"] == "velocity_violation"
        assert body["newRiskScore"] == 15

    def test_batch_mode_is_accepted(self, client, memory_storage):
        entry = make_log_entry()
        memory_storage.write_log(entry)

        response = client.post(ANALYZE, json={"logId": entry.id, "batchMode": True})

        assert response.status_code == 200
        assert response.json()["detectionsTriggered"] == 0

    def test_unknown_log_is_404(self, client):
        response = client.post(ANALYZE, json={"logId": "missing"})

        assert response.status_code == 404
        assert response.json() == {"error": "Log entry not found"}

    def test_missing_log_id_is_400(self, client):
        response = client.post(ANALYZE, json={"playerId": "player_1"})

        assert response.status_code == 400
        assert set(response.json()) == {"error"}

    def test_blank_log_id_is_400(self, client):
        response = client.post(ANALYZE, json={"logId": "   "})

        assert response.status_code == 400
        assert "logId must not be empty" in response.json()["error"]

    def test_engine_failure_is_500_without_summary(self, client):
        failing = MagicMock()
        failing.run.side_effect = ConfigUnavailable("Rule configuration unavailable: timeout")
        app.dependency_overrides[get_engine] = lambda: failing

        response = client.post(ANALYZE, json={"logId": "log_1"})

        assert response.status_code == 500
        assert response.json() == {"error": "Rule configuration unavailable: timeout"}

    def test_unexpected_failure_is_generic_500(self, client):
        failing = MagicMock()
        failing.run.side_effect = RuntimeError("boom")
        app.dependency_overrides[get_engine] = lambda: failing

        response = client.post(ANALYZE, json={"logId": "log_1"})

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error"}
