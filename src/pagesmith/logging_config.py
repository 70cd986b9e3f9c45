"""
Logging configuration with verbosity control and multiple handlers.

Supports console, plain file and rotating file output, structured (JSON) or
text formatting, per-component filtering, and configuration from either the
command line or ``PAGESMITH_LOG_*`` environment variables.
"""

import logging
import logging.handlers
import os
import sys
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional

from pagesmith.app_logger import AppLogger, LogContext, format_log_message


class LogHandler(Enum):
    """Available log handler types."""

    CONSOLE = "console"
    FILE = "file"
    ROTATING_FILE = "rotating_file"
    NULL = "null"


class LogFormat(Enum):
    """Available log format types."""

    STRUCTURED = "structured"  # JSON
    SIMPLE = "simple"
    DETAILED = "detailed"  # with timestamps and logger name


class VerbosityLevel(Enum):
    """Verbosity levels for controlling log output."""

    SILENT = 0
    QUIET = 1
    NORMAL = 2
    VERBOSE = 3
    VERY_VERBOSE = 4


VERBOSITY_NAMES: Dict[str, VerbosityLevel] = {
    "silent": VerbosityLevel.SILENT,
    "quiet": VerbosityLevel.QUIET,
    "normal": VerbosityLevel.NORMAL,
    "verbose": VerbosityLevel.VERBOSE,
    "very_verbose": VerbosityLevel.VERY_VERBOSE,
    "v": VerbosityLevel.VERBOSE,
    "vv": VerbosityLevel.VERY_VERBOSE,
}

FORMAT_NAMES: Dict[str, LogFormat] = {
    "json": LogFormat.STRUCTURED,
    "structured": LogFormat.STRUCTURED,
    "simple": LogFormat.SIMPLE,
    "detailed": LogFormat.DETAILED,
}

DEFAULT_LOG_FILE = "logs/pagesmith.log"


@dataclass
class HandlerConfig:
    """Configuration for a single log handler."""

    type: LogHandler
    level: Optional[str] = None  # None means the global level
    format: Optional[LogFormat] = None  # None means the global format

    filename: Optional[str] = None
    max_bytes: int = 10 * 1024 * 1024
    backup_count: int = 5

    stream: str = "stderr"  # "stdout" or "stderr"

    date_format: str = "%Y-%m-%d %H:%M:%S"
    message_format: Optional[str] = None


@dataclass
class LoggingConfig:
    """Complete logging configuration."""

    verbosity: VerbosityLevel = VerbosityLevel.NORMAL
    global_level: str = "INFO"
    global_format: LogFormat = LogFormat.SIMPLE
    logger_name: str = "pagesmith"

    handlers: List[HandlerConfig] = field(
        default_factory=lambda: [HandlerConfig(type=LogHandler.CONSOLE)]
    )

    exclude_components: List[str] = field(default_factory=list)
    include_only_components: Optional[List[str]] = None

    def __post_init__(self):
        self.apply_verbosity()

    def apply_verbosity(self) -> None:
        """Derive the global level from verbosity unless it was set explicitly."""
        verbosity_to_level = {
            VerbosityLevel.SILENT: "CRITICAL",
            VerbosityLevel.QUIET: "WARNING",
            VerbosityLevel.NORMAL: "INFO",
            VerbosityLevel.VERBOSE: "DEBUG",
            VerbosityLevel.VERY_VERBOSE: "DEBUG",
        }
        if self.global_level == "INFO":
            self.global_level = verbosity_to_level[self.verbosity]


class ConfigurableAppLogger:
    """Application logger with configurable handlers and component filtering."""

    def __init__(self, config: Optional[LoggingConfig] = None):
        self.config = config or LoggingConfig()
        self._python_logger: logging.Logger = logging.getLogger(
            self.config.logger_name
        )
        self._handlers: List[logging.Handler] = []
        self._setup_logging()

    def _setup_logging(self) -> None:
        self._python_logger = logging.getLogger(self.config.logger_name)
        self._python_logger.setLevel(self.config.global_level)

        for handler in self._handlers:
            self._python_logger.removeHandler(handler)
            handler.close()
        self._python_logger.handlers.clear()
        self._handlers.clear()

        for handler_config in self.config.handlers:
            handler = self._create_handler(handler_config)
            self._handlers.append(handler)
            self._python_logger.addHandler(handler)

        # Avoid duplicate lines through the root logger
        self._python_logger.propagate = False

    def _create_handler(self, config: HandlerConfig) -> logging.Handler:
        """Create a logging handler, falling back to the console if that fails."""
        try:
            if config.type == LogHandler.CONSOLE:
                handler: logging.Handler = logging.StreamHandler(
                    sys.stdout if config.stream == "stdout" else sys.stderr
                )
            elif config.type == LogHandler.FILE:
                handler = logging.FileHandler(self._prepare_log_file(config))
            elif config.type == LogHandler.ROTATING_FILE:
                handler = logging.handlers.RotatingFileHandler(
                    filename=self._prepare_log_file(config),
                    maxBytes=config.max_bytes,
                    backupCount=config.backup_count,
                )
            elif config.type == LogHandler.NULL:
                return logging.NullHandler()
            else:
                raise ValueError(f"Unknown handler type: {config.type}")
        except (OSError, ValueError) as e:
            print(
                f"Warning: Failed to create {config.type.value} handler: {e}",
                file=sys.stderr,
            )
            handler = logging.StreamHandler(sys.stderr)
            config = HandlerConfig(type=LogHandler.CONSOLE)

        handler.setLevel(config.level or self.config.global_level)
        handler.setFormatter(
            self._create_formatter(config.format or self.config.global_format, config)
        )
        return handler

    @staticmethod
    def _prepare_log_file(config: HandlerConfig) -> str:
        if not config.filename:
            raise ValueError("File handler requires filename")
        Path(config.filename).parent.mkdir(parents=True, exist_ok=True)
        return config.filename

    @staticmethod
    def _create_formatter(
        format_type: LogFormat, config: HandlerConfig
    ) -> logging.Formatter:
        if config.message_format:
            return logging.Formatter(
                fmt=config.message_format, datefmt=config.date_format
            )
        if format_type == LogFormat.SIMPLE:
            return logging.Formatter("%(levelname)s: %(message)s")
        if format_type == LogFormat.DETAILED:
            return logging.Formatter(
                fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                datefmt=config.date_format,
            )
        # Structured lines are already JSON
        return logging.Formatter("%(message)s")

    @property
    def handlers(self) -> List[logging.Handler]:
        return list(self._handlers)

    def should_log_component(self, component: str) -> bool:
        """Check if a component passes the include/exclude filters."""
        if component in self.config.exclude_components:
            return False
        if self.config.include_only_components:
            return component in self.config.include_only_components
        return True

    def reconfigure(self, new_config: LoggingConfig) -> None:
        """Replace the configuration and rebuild the handlers."""
        self.config = new_config
        self._setup_logging()

    def _emit(
        self,
        level: int,
        message: str,
        context: Optional[LogContext],
        exc_info: bool = False,
        **kwargs,
    ) -> None:
        if context and not self.should_log_component(context.component):
            return
        structured = self.config.global_format == LogFormat.STRUCTURED
        self._python_logger.log(
            level,
            format_log_message(message, context, structured, **kwargs),
            exc_info=exc_info,
        )

    def debug(
        self, message: str, context: Optional[LogContext] = None, **kwargs
    ) -> None:
        self._emit(logging.DEBUG, message, context, **kwargs)

    def info(
        self, message: str, context: Optional[LogContext] = None, **kwargs
    ) -> None:
        self._emit(logging.INFO, message, context, **kwargs)

    def warning(
        self, message: str, context: Optional[LogContext] = None, **kwargs
    ) -> None:
        self._emit(logging.WARNING, message, context, **kwargs)

    def error(
        self,
        message: str,
        context: Optional[LogContext] = None,
        exc_info: bool = False,
        **kwargs,
    ) -> None:
        self._emit(logging.ERROR, message, context, exc_info=exc_info, **kwargs)

    def critical(
        self,
        message: str,
        context: Optional[LogContext] = None,
        exc_info: bool = False,
        **kwargs,
    ) -> None:
        self._emit(logging.CRITICAL, message, context, exc_info=exc_info, **kwargs)


def handler_configs_from_names(
    names: str, log_file: Optional[str] = None
) -> List[HandlerConfig]:
    """
    Build handler configurations from a comma-separated list of handler names.

    Unknown names are ignored.

    Args:
        names: e.g. "console,rotating"
        log_file: Target file for the file based handlers

    Returns:
        List of handler configurations in the given order
    """
    configs = []
    for name in names.split(","):
        name = name.strip().lower()
        if name == "console":
            configs.append(HandlerConfig(type=LogHandler.CONSOLE))
        elif name == "file":
            configs.append(
                HandlerConfig(type=LogHandler.FILE, filename=log_file or DEFAULT_LOG_FILE)
            )
        elif name == "rotating":
            configs.append(
                HandlerConfig(
                    type=LogHandler.ROTATING_FILE,
                    filename=log_file or DEFAULT_LOG_FILE,
                )
            )
        elif name == "null":
            configs.append(HandlerConfig(type=LogHandler.NULL))
    return configs


def create_logger_from_env() -> AppLogger:
    """Create a logger from the PAGESMITH_LOG_* environment variables."""
    config = LoggingConfig(
        verbosity=VERBOSITY_NAMES.get(
            os.getenv("PAGESMITH_LOG_VERBOSITY", "normal").lower(),
            VerbosityLevel.NORMAL,
        )
    )

    if level := os.getenv("PAGESMITH_LOG_LEVEL"):
        config.global_level = level.upper()

    config.global_format = FORMAT_NAMES.get(
        os.getenv("PAGESMITH_LOG_FORMAT", "simple").lower(), LogFormat.SIMPLE
    )

    handler_configs = handler_configs_from_names(
        os.getenv("PAGESMITH_LOG_HANDLERS", "console"),
        os.getenv("PAGESMITH_LOG_FILE"),
    )
    if handler_configs:
        config.handlers = handler_configs

    if exclude := os.getenv("PAGESMITH_LOG_EXCLUDE"):
        config.exclude_components = [c.strip() for c in exclude.split(",")]

    if include := os.getenv("PAGESMITH_LOG_INCLUDE_ONLY"):
        config.include_only_components = [c.strip() for c in include.split(",")]

    return ConfigurableAppLogger(config)
