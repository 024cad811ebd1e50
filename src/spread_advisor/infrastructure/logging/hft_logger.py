"""
Advisor Logger Implementation

Structured logger with keyword context, pluggable backends and in-memory
metric counters. Warnings and above are mirrored to the stdlib logger of the
same name so host applications (and pytest's caplog) see them.
"""

import logging
import time
from collections import defaultdict
from typing import Dict, List, Optional

from .interfaces import HFTLoggerInterface, LogBackend, LogRecord, LogLevel

PY_LOGGER_ROOT = "spread_advisor"


class HFTLogger(HFTLoggerInterface):
    """
    Logger with synchronous dispatch to multiple backends.

    Key features:
    - Keyword context on every call (``logger.info("msg", market="ARK-EUR")``)
    - Persistent context via ``set_context``
    - Metric counters readable through ``get_metrics``
    - Python logging compatibility (``isEnabledFor``, ``log``)
    """

    def __init__(self, name: str, backends: List[LogBackend], propagate: bool = True):
        self.name = name
        self.backends = backends
        self.context: Dict[str, object] = {}
        self._metrics: Dict[str, float] = defaultdict(float)

        py_name = name if name.startswith(PY_LOGGER_ROOT) else f"{PY_LOGGER_ROOT}.{name}"
        self._py_logger = logging.getLogger(py_name)
        self._propagate = propagate

    @property
    def min_level(self) -> LogLevel:
        levels = [b.min_level for b in self.backends if b.enabled]
        return min(levels) if levels else LogLevel.CRITICAL

    def _log(self, level: LogLevel, msg: str, **context) -> None:
        full_context = {**self.context, **context}

        if level >= LogLevel.WARNING and self._propagate:
            extra = f" | {full_context}" if full_context else ""
            self._py_logger.log(int(level), f"{msg}{extra}")

        if level < self.min_level:
            return

        record = LogRecord.create_text(level, self.name, msg, **full_context)
        self._dispatch(record)

    def _dispatch(self, record: LogRecord) -> None:
        for backend in self.backends:
            if backend.should_handle(record):
                backend.write(record)

    def debug(self, msg: str, **context) -> None:
        self._log(LogLevel.DEBUG, msg, **context)

    def info(self, msg: str, **context) -> None:
        self._log(LogLevel.INFO, msg, **context)

    def warning(self, msg: str, **context) -> None:
        self._log(LogLevel.WARNING, msg, **context)

    def error(self, msg: str, **context) -> None:
        self._log(LogLevel.ERROR, msg, **context)

    def critical(self, msg: str, **context) -> None:
        self._log(LogLevel.CRITICAL, msg, **context)

    def metric(self, name: str, value: float, **tags) -> None:
        """Store the latest value of a gauge-style metric."""
        self._metrics[name] = value
        if self.min_level <= LogLevel.DEBUG:
            self._dispatch(LogRecord.create_metric(self.name, name, value, **{**self.context, **tags}))

    def counter(self, name: str, value: int = 1, **tags) -> None:
        key = f"{name}_count"
        self._metrics[key] += value
        if self.min_level <= LogLevel.DEBUG:
            self._dispatch(LogRecord.create_metric(self.name, key, self._metrics[key], **{**self.context, **tags}))

    def get_metrics(self) -> Dict[str, float]:
        return dict(self._metrics)

    def set_context(self, **context) -> None:
        self.context.update(context)

    def flush(self) -> None:
        for backend in self.backends:
            backend.flush()

    # Python logging compatibility
    def isEnabledFor(self, level: int) -> bool:
        return level >= self.min_level

    def log(self, level: int, msg: str, *args, **kwargs) -> None:
        if args:
            msg = msg % args
        self._log(self._convert_py_level(level), msg, **kwargs)

    @staticmethod
    def _convert_py_level(py_level: int) -> LogLevel:
        if py_level >= logging.CRITICAL:
            return LogLevel.CRITICAL
        if py_level >= logging.ERROR:
            return LogLevel.ERROR
        if py_level >= logging.WARNING:
            return LogLevel.WARNING
        if py_level >= logging.INFO:
            return LogLevel.INFO
        return LogLevel.DEBUG


class LoggingTimer:
    """Context manager for timing operations with automatic logging."""

    def __init__(self, logger: HFTLoggerInterface, operation: str, **tags):
        self.logger = logger
        self.operation = operation
        self.tags = tags
        self.start_time: Optional[float] = None
        self.end_time: Optional[float] = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.start_time is not None:
            self.end_time = time.perf_counter()
            self.logger.metric(f"{self.operation}_latency_ms", self.elapsed_ms, **self.tags)

        if exc_type is not None:
            self.logger.error(f"{self.operation} failed",
                              error_type=exc_type.__name__,
                              **self.tags)

    @property
    def elapsed_ms(self) -> float:
        """Get elapsed time in milliseconds."""
        if self.start_time is None:
            return 0.0
        end_time = self.end_time or time.perf_counter()
        return (end_time - self.start_time) * 1000
