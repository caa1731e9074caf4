"""Unit tests for structured logging configuration."""

import structlog

from anticheat import __version__
from anticheat.config import Settings
from anticheat.utils.logging import (
    SERVICE_NAME,
    _select_renderer,
    add_service_info,
    configure_logging,
)


class TestProcessors:
    def test_service_info_is_added(self):
        event = add_service_info(None, "info", {"event": "rules_evaluated"})

        assert event["service"] == SERVICE_NAME
        assert event["version"] == __version__

    def test_service_info_does_not_override_bound_values(self):
        event = add_service_info(None, "info", {"event": "x", "service": "gateway"})

        assert event["service"] == "gateway"


class TestRendererSelection:
    def test_json_in_production(self):
        renderer = _select_renderer(Settings(log_format="json", dev_mode=False, testing=False))

        assert isinstance(renderer, structlog.processors.JSONRenderer)

    def test_console_in_dev_mode(self):
        renderer = _select_renderer(Settings(log_format="json", dev_mode=True, testing=False))

        assert isinstance(renderer, structlog.dev.ConsoleRenderer)

    def test_testing_mode_uses_plain_console_and_no_logger_cache(self):
        configure_logging(Settings(testing=True))

        config = structlog.get_config()
        assert isinstance(config["processors"][-1], structlog.dev.ConsoleRenderer)
        assert config["cache_logger_on_first_use"] is False
