"""Tests for logging configuration and process-level context."""

import json

import structlog

from preroll_player.log_config import PlayerContext, configure_logging, get_context_logger


class TestPlayerContext:
    """Test process-level context binding."""

    def teardown_method(self):
        structlog.contextvars.clear_contextvars()

    def test_player_context_manager(self):
        with PlayerContext(command="simulate", environment="test"):
            assert structlog.contextvars.get_contextvars()["command"] == "simulate"
        assert "command" not in structlog.contextvars.get_contextvars()


class TestConfigureLogging:
    """Test structlog configuration."""

    def teardown_method(self):
        structlog.reset_defaults()
        structlog.contextvars.clear_contextvars()

    def test_json_output_includes_context(self, capsys):
        configure_logging("DEBUG", json_output=True)
        with PlayerContext(command="fetch-ad"):
            get_context_logger("test").info("player.test.event", extra_field=1)

        line = capsys.readouterr().err.strip().splitlines()[-1]
        payload = json.loads(line)
        assert payload["event"] == "player.test.event"
        assert payload["command"] == "fetch-ad"
        assert payload["extra_field"] == 1
        assert payload["level"] == "info"
        assert "timestamp" in payload

    def test_level_filtering(self, capsys):
        configure_logging("WARNING", json_output=True)
        get_context_logger("test").info("hidden")
        get_context_logger("test").warning("shown")

        err = capsys.readouterr().err
        assert "hidden" not in err
        assert "shown" in err

    def test_unknown_level_defaults_to_info(self, capsys):
        configure_logging("NOPE", json_output=True)
        get_context_logger("test").debug("hidden")
        get_context_logger("test").info("shown")

        err = capsys.readouterr().err
        assert "hidden" not in err
        assert "shown" in err
