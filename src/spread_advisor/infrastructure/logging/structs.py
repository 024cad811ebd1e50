"""
Logging Configuration Structures

Structured configuration for the advisor logging system, loaded from the
``logging`` section of config.yaml.
"""

from typing import Optional
from msgspec import Struct, field

VALID_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


class BackendConfig(Struct, frozen=True):
    """
    Base configuration for all logging backends.

    Attributes:
        enabled: Whether this backend is active
        min_level: Minimum log level to process (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    enabled: bool = True
    min_level: str = "INFO"

    def validate(self) -> None:
        if self.min_level.upper() not in VALID_LEVELS:
            raise ValueError(f"Invalid log level: {self.min_level}")


class ConsoleBackendConfig(BackendConfig, frozen=True):
    """
    Console backend configuration.

    Attributes:
        color: Enable colored output
        include_context: Append keyword context to each line
        max_message_length: Maximum message length before truncation
    """
    color: bool = False
    include_context: bool = True
    max_message_length: int = 1000


class FileBackendConfig(BackendConfig, frozen=True):
    """File backend configuration; ``format`` is ``text`` or ``json``."""
    enabled: bool = False
    min_level: str = "WARNING"
    path: str = "logs/spread_advisor.log"
    format: str = "text"

    def validate(self) -> None:
        super().validate()
        if self.format not in {"text", "json"}:
            raise ValueError(f"Invalid format: {self.format}")
        if not self.path:
            raise ValueError("File backend path cannot be empty")


class LoggingConfig(Struct, frozen=True):
    """Complete logging configuration."""
    environment: str = "dev"
    console: ConsoleBackendConfig = field(default_factory=ConsoleBackendConfig)
    file: Optional[FileBackendConfig] = None
    propagate: bool = True

    def validate(self) -> None:
        self.console.validate()
        if self.file is not None:
            self.file.validate()
