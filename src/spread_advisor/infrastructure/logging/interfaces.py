"""
Core Logging Interfaces

Lightweight record type, backend contract and the logger interface injected
into every component as ``self.logger``.
"""

import time
from abc import ABC, abstractmethod
from enum import IntEnum
from typing import Any, Dict, Optional
from dataclasses import dataclass, field


class LogLevel(IntEnum):
    """Log levels with numeric values matching the stdlib ones."""
    DEBUG = 10
    INFO = 20
    WARNING = 30
    ERROR = 40
    CRITICAL = 50


class LogType(IntEnum):
    """Log types for backend filtering."""
    TEXT = 1
    METRIC = 2


@dataclass
class LogRecord:
    """
    Log record passed from logger to backends.

    Formatting happens in backends, not here.
    """
    timestamp: float
    level: LogLevel
    log_type: LogType
    logger_name: str
    message: str
    context: Dict[str, Any] = field(default_factory=dict)

    # Only used when log_type == METRIC
    metric_name: Optional[str] = None
    metric_value: Optional[float] = None

    @classmethod
    def create_text(cls, level: LogLevel, logger_name: str, message: str, **context) -> 'LogRecord':
        return cls(
            timestamp=time.time(),
            level=level,
            log_type=LogType.TEXT,
            logger_name=logger_name,
            message=message,
            context=context,
        )

    @classmethod
    def create_metric(cls, logger_name: str, metric_name: str, value: float, **tags) -> 'LogRecord':
        return cls(
            timestamp=time.time(),
            level=LogLevel.DEBUG,
            log_type=LogType.METRIC,
            logger_name=logger_name,
            message=f"{metric_name}={value}",
            context=tags,
            metric_name=metric_name,
            metric_value=value,
        )


class LogBackend(ABC):
    """
    Abstract base for logging backends.

    Each backend handles its own formatting and output.
    """

    def __init__(self, name: str, min_level: LogLevel = LogLevel.INFO):
        self.name = name
        self.min_level = min_level
        self.enabled = True
        self._error_count = 0
        self._max_errors = 10

    def should_handle(self, record: LogRecord) -> bool:
        return self.enabled and record.level >= self.min_level

    @abstractmethod
    def write(self, record: LogRecord) -> None:
        """Write a record. Must not raise."""
        pass

    def flush(self) -> None:
        pass

    def _handle_error(self, error: Exception) -> None:
        """Disable the backend after repeated failures."""
        self._error_count += 1
        if self._error_count >= self._max_errors:
            self.enabled = False


class HFTLoggerInterface(ABC):
    """Logger interface injected into components."""

    @abstractmethod
    def debug(self, msg: str, **context) -> None:
        pass

    @abstractmethod
    def info(self, msg: str, **context) -> None:
        pass

    @abstractmethod
    def warning(self, msg: str, **context) -> None:
        pass

    @abstractmethod
    def error(self, msg: str, **context) -> None:
        pass

    @abstractmethod
    def critical(self, msg: str, **context) -> None:
        pass

    @abstractmethod
    def metric(self, name: str, value: float, **tags) -> None:
        """Record a metric value."""
        pass

    @abstractmethod
    def counter(self, name: str, value: int = 1, **tags) -> None:
        """Increment a counter metric."""
        pass

    @abstractmethod
    def set_context(self, **context) -> None:
        """Set persistent context added to every record."""
        pass

    @abstractmethod
    def isEnabledFor(self, level: int) -> bool:
        """Python logging compatibility."""
        pass
