"""
Console Backend

Writes formatted records to stderr, optionally with ANSI colors.
"""

import sys
from datetime import datetime
from typing import TextIO, Optional

from ..interfaces import LogBackend, LogRecord, LogLevel, LogType
from ..structs import ConsoleBackendConfig


_COLORS = {
    LogLevel.DEBUG: "\033[36m",
    LogLevel.INFO: "\033[32m",
    LogLevel.WARNING: "\033[33m",
    LogLevel.ERROR: "\033[31m",
    LogLevel.CRITICAL: "\033[35m",
}
_RESET = "\033[0m"


class ConsoleBackend(LogBackend):
    """Plain-text console backend."""

    def __init__(self, config: ConsoleBackendConfig, name: str = "console", stream: Optional[TextIO] = None):
        if not isinstance(config, ConsoleBackendConfig):
            raise TypeError(f"Expected ConsoleBackendConfig, got {type(config)}")
        super().__init__(name, LogLevel[config.min_level.upper()])
        self.config = config
        self.stream = stream or sys.stderr

    def format(self, record: LogRecord) -> str:
        ts = datetime.fromtimestamp(record.timestamp).strftime("%H:%M:%S.%f")[:-3]
        message = record.message
        if len(message) > self.config.max_message_length:
            message = message[:self.config.max_message_length] + "..."

        if record.log_type == LogType.METRIC:
            line = f"{ts} METRIC   {record.logger_name}: {message}"
        else:
            line = f"{ts} {record.level.name:<8} {record.logger_name}: {message}"

        if self.config.include_context and record.context:
            ctx = " ".join(f"{k}={v}" for k, v in record.context.items())
            line = f"{line} | {ctx}"
        return line

    def colorize(self, record: LogRecord, line: str) -> str:
        return line

    def write(self, record: LogRecord) -> None:
        try:
            self.stream.write(self.colorize(record, self.format(record)) + "\n")
        except Exception as e:
            self._handle_error(e)

    def flush(self) -> None:
        try:
            self.stream.flush()
        except Exception as e:
            self._handle_error(e)


class ColorConsoleBackend(ConsoleBackend):
    """Console backend with level colors."""

    def colorize(self, record: LogRecord, line: str) -> str:
        return f"{_COLORS.get(record.level, '')}{line}{_RESET}"
