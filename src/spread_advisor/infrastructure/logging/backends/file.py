"""
File Backend for Persistent Logging

Appends warnings and errors (by default) to a log file as text or JSON lines.
"""

from datetime import datetime
from pathlib import Path

import msgspec

from ..interfaces import LogBackend, LogRecord, LogLevel
from ..structs import FileBackendConfig


class FileBackend(LogBackend):
    """
    Append-only file backend.

    The parent directory is created on first write.
    """

    def __init__(self, config: FileBackendConfig, name: str = "file"):
        if not isinstance(config, FileBackendConfig):
            raise TypeError(f"Expected FileBackendConfig, got {type(config)}")
        super().__init__(name, LogLevel[config.min_level.upper()])
        self.config = config
        self.file_path = Path(config.path)
        self._dir_ready = False

    def format(self, record: LogRecord) -> str:
        if self.config.format == "json":
            payload = {
                "timestamp": record.timestamp,
                "level": record.level.name,
                "logger": record.logger_name,
                "message": record.message,
                "context": {k: str(v) for k, v in record.context.items()},
            }
            return msgspec.json.encode(payload).decode("utf-8")

        ts = datetime.fromtimestamp(record.timestamp).isoformat(timespec="milliseconds")
        line = f"{ts} {record.level.name} {record.logger_name}: {record.message}"
        if record.context:
            line += " | " + " ".join(f"{k}={v}" for k, v in record.context.items())
        return line

    def write(self, record: LogRecord) -> None:
        try:
            if not self._dir_ready:
                self.file_path.parent.mkdir(parents=True, exist_ok=True)
                self._dir_ready = True
            with self.file_path.open("a", encoding="utf-8") as fh:
                fh.write(self.format(record) + "\n")
        except Exception as e:
            self._handle_error(e)
