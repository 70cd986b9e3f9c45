"""
Tests for the logging configuration and application logger.
"""

import json
import logging
from pathlib import Path

import pytest

from pagesmith.app_logger import LogContext, format_log_message
from pagesmith.logging_config import (
    ConfigurableAppLogger,
    HandlerConfig,
    LogFormat,
    LoggingConfig,
    LogHandler,
    VerbosityLevel,
    create_logger_from_env,
    handler_configs_from_names,
)


def stdout_config(**kwargs) -> LoggingConfig:
    return LoggingConfig(
        handlers=[HandlerConfig(type=LogHandler.CONSOLE, stream="stdout")], **kwargs
    )


class TestFormatLogMessage:
    """Test cases for message formatting."""

    def test_simple_format(self):
        """Test the plain text rendering of context and metadata."""
        context = LogContext(component="Publisher", operation="publish", path="pages/a.md")

        line = format_log_message("Published page", context, size=10)

        assert line == "Published page [Publisher] (publish) path=pages/a.md [size=10]"

    def test_structured_format(self):
        """Test that structured output is a JSON object with the context flattened."""
        context = LogContext(component="Publisher", operation="publish")

        data = json.loads(format_log_message("Published", context, True, size=10))

        assert data["message"] == "Published"
        assert data["component"] == "Publisher"
        assert data["operation"] == "publish"
        assert "path" not in data
        assert data["additional"] == {"size": 10}


class TestLoggingConfig:
    """Test cases for LoggingConfig."""

    @pytest.mark.parametrize(
        "verbosity, level",
        [
            (VerbosityLevel.SILENT, "CRITICAL"),
            (VerbosityLevel.QUIET, "WARNING"),
            (VerbosityLevel.NORMAL, "INFO"),
            (VerbosityLevel.VERBOSE, "DEBUG"),
        ],
    )
    def test_verbosity_sets_level(self, verbosity, level):
        """Test that verbosity picks the global level."""
        assert LoggingConfig(verbosity=verbosity).global_level == level

    def test_explicit_level_wins(self):
        """Test that an explicit level is not overridden by verbosity."""
        config = LoggingConfig(verbosity=VerbosityLevel.QUIET, global_level="ERROR")
        assert config.global_level == "ERROR"

    def test_handler_names(self, temp_dir: Path):
        """Test building handler configs from a name list."""
        log_file = str(temp_dir / "site.log")

        configs = handler_configs_from_names("console, rotating,bogus", log_file)

        assert [c.type for c in configs] == [LogHandler.CONSOLE, LogHandler.ROTATING_FILE]
        assert configs[1].filename == log_file


class TestConfigurableAppLogger:
    """Test cases for ConfigurableAppLogger."""

    def test_logs_to_console(self, capsys):
        """Test simple console output."""
        logger = ConfigurableAppLogger(stdout_config())

        logger.info("Building", context=LogContext(component="WatchCoordinator"))

        assert capsys.readouterr().out == "INFO: Building [WatchCoordinator]\n"

    def test_level_filtering(self, capsys):
        """Test that messages below the level are dropped."""
        logger = ConfigurableAppLogger(stdout_config(verbosity=VerbosityLevel.QUIET))

        logger.info("hidden")
        logger.warning("shown")

        assert capsys.readouterr().out == "WARNING: shown\n"

    def test_component_filtering(self, capsys):
        """Test include and exclude lists."""
        config = stdout_config()
        config.exclude_components = ["Publisher"]
        logger = ConfigurableAppLogger(config)

        logger.info("a", context=LogContext(component="Publisher"))
        logger.info("b", context=LogContext(component="SiteBuilder"))

        assert capsys.readouterr().out == "INFO: b [SiteBuilder]\n"
        assert logger.should_log_component("Publisher") is False

        config.exclude_components = []
        config.include_only_components = ["Publisher"]
        assert logger.should_log_component("Publisher") is True
        assert logger.should_log_component("SiteBuilder") is False

    def test_structured_output(self, capsys):
        """Test JSON lines output."""
        logger = ConfigurableAppLogger(stdout_config(global_format=LogFormat.STRUCTURED))

        logger.warning("Marker repeated", context=LogContext(component="TemplateCompositor"))

        data = json.loads(capsys.readouterr().out)
        assert data["message"] == "Marker repeated"
        assert data["component"] == "TemplateCompositor"

    def test_file_handler(self, temp_dir: Path):
        """Test that file handlers create their directory and write lines."""
        log_file = temp_dir / "logs" / "site.log"
        config = LoggingConfig(
            handlers=[HandlerConfig(type=LogHandler.FILE, filename=str(log_file))]
        )
        logger = ConfigurableAppLogger(config)

        logger.error("failed")
        for handler in logger.handlers:
            handler.flush()

        assert log_file.read_text() == "ERROR: failed\n"
        logger.reconfigure(LoggingConfig(handlers=[HandlerConfig(type=LogHandler.NULL)]))

    def test_file_handler_without_filename_falls_back(self, capsys):
        """Test that a broken handler config falls back to the console."""
        logger = ConfigurableAppLogger(
            LoggingConfig(handlers=[HandlerConfig(type=LogHandler.FILE)])
        )

        assert "Failed to create file handler" in capsys.readouterr().err
        assert isinstance(logger.handlers[0], logging.StreamHandler)

    def test_reconfigure_replaces_handlers(self):
        """Test that reconfiguring does not stack handlers."""
        logger = ConfigurableAppLogger(stdout_config())
        logger.reconfigure(stdout_config())

        assert len(logging.getLogger("pagesmith").handlers) == 1


class TestCreateLoggerFromEnv:
    """Test cases for environment configuration."""

    def test_defaults(self, monkeypatch):
        """Test the configuration with no environment variables."""
        for name in ["VERBOSITY", "LEVEL", "FORMAT", "HANDLERS", "FILE"]:
            monkeypatch.delenv(f"PAGESMITH_LOG_{name}", raising=False)

        logger = create_logger_from_env()

        assert logger.config.global_level == "INFO"
        assert logger.config.global_format == LogFormat.SIMPLE
        assert [h.type for h in logger.config.handlers] == [LogHandler.CONSOLE]

    def test_environment_overrides(self, monkeypatch):
        """Test that each variable is honoured."""
        monkeypatch.delenv("PAGESMITH_LOG_LEVEL", raising=False)
        monkeypatch.setenv("PAGESMITH_LOG_VERBOSITY", "quiet")
        monkeypatch.setenv("PAGESMITH_LOG_FORMAT", "json")
        monkeypatch.setenv("PAGESMITH_LOG_HANDLERS", "null")
        monkeypatch.setenv("PAGESMITH_LOG_EXCLUDE", "Publisher, SiteBuilder")

        logger = create_logger_from_env()

        assert logger.config.global_level == "WARNING"
        assert logger.config.global_format == LogFormat.STRUCTURED
        assert [h.type for h in logger.config.handlers] == [LogHandler.NULL]
        assert logger.config.exclude_components == ["Publisher", "SiteBuilder"]

    def test_explicit_level(self, monkeypatch):
        """Test that PAGESMITH_LOG_LEVEL overrides verbosity."""
        monkeypatch.setenv("PAGESMITH_LOG_VERBOSITY", "quiet")
        monkeypatch.setenv("PAGESMITH_LOG_LEVEL", "debug")
        monkeypatch.setenv("PAGESMITH_LOG_HANDLERS", "null")

        assert create_logger_from_env().config.global_level == "DEBUG"
