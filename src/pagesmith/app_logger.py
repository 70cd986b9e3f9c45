"""
Application logger interface used by every pagesmith component.

Components log through the ``AppLogger`` protocol with a ``LogContext`` naming
the component (and optionally the operation) so that output can be filtered
per component by the configurable logger in ``pagesmith.logging_config``.
"""

import json
import time
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional, Protocol


@dataclass
class LogContext:
    """Structured log context information."""

    component: str
    operation: Optional[str] = None
    path: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging, dropping unset fields."""
        return {k: v for k, v in asdict(self).items() if v is not None}


class AppLogger(Protocol):
    """Protocol for application logging interface."""

    def debug(
        self, message: str, context: Optional[LogContext] = None, **kwargs
    ) -> None:
        """Log debug message."""
        ...

    def info(
        self, message: str, context: Optional[LogContext] = None, **kwargs
    ) -> None:
        """Log info message."""
        ...

    def warning(
        self, message: str, context: Optional[LogContext] = None, **kwargs
    ) -> None:
        """Log warning message."""
        ...

    def error(
        self,
        message: str,
        context: Optional[LogContext] = None,
        exc_info: bool = False,
        **kwargs,
    ) -> None:
        """Log error message."""
        ...

    def critical(
        self,
        message: str,
        context: Optional[LogContext] = None,
        exc_info: bool = False,
        **kwargs,
    ) -> None:
        """Log critical message."""
        ...


def format_log_message(
    message: str,
    context: Optional[LogContext] = None,
    structured: bool = False,
    **kwargs,
) -> str:
    """
    Render a message with its context either as JSON or as plain text.

    Args:
        message: Human-readable message
        context: Optional component context
        structured: Emit a JSON object instead of text
        **kwargs: Additional key/value metadata

    Returns:
        The formatted log line
    """
    if structured:
        log_data: Dict[str, Any] = {"message": message, "timestamp": time.time()}
        if context:
            log_data.update(context.to_dict())
        if kwargs:
            log_data["additional"] = kwargs
        return json.dumps(log_data, default=str)

    parts = [message]
    if context:
        parts.append(f"[{context.component}]")
        if context.operation:
            parts.append(f"({context.operation})")
        if context.path:
            parts.append(f"path={context.path}")
    if kwargs:
        parts.append("[" + ", ".join(f"{k}={v}" for k, v in kwargs.items()) + "]")
    return " ".join(parts)


class NullAppLogger:
    """Null object implementation for testing or disabled logging."""

    def debug(
        self, message: str, context: Optional[LogContext] = None, **kwargs
    ) -> None:
        pass

    def info(
        self, message: str, context: Optional[LogContext] = None, **kwargs
    ) -> None:
        pass

    def warning(
        self, message: str, context: Optional[LogContext] = None, **kwargs
    ) -> None:
        pass

    def error(
        self,
        message: str,
        context: Optional[LogContext] = None,
        exc_info: bool = False,
        **kwargs,
    ) -> None:
        pass

    def critical(
        self,
        message: str,
        context: Optional[LogContext] = None,
        exc_info: bool = False,
        **kwargs,
    ) -> None:
        pass


_default_logger: Optional[AppLogger] = None


def get_default_logger() -> AppLogger:
    """Get the default application logger, configuring it from the environment on first use."""
    global _default_logger
    if _default_logger is None:
        from pagesmith.logging_config import create_logger_from_env

        _default_logger = create_logger_from_env()
    return _default_logger


def set_default_logger(logger: Optional[AppLogger]) -> None:
    """Set (or with None, reset) the default application logger."""
    global _default_logger
    _default_logger = logger
