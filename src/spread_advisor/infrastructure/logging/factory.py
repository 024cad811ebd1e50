"""
Logging Factory

Creates and caches logger instances from struct-based configuration.
Components call ``get_logger`` once and keep the result as ``self.logger``.
"""

import os
from typing import Dict, Optional

from .interfaces import HFTLoggerInterface, LogBackend
from .hft_logger import HFTLogger
from .backends.console import ConsoleBackend, ColorConsoleBackend
from .backends.file import FileBackend
from .structs import LoggingConfig, ConsoleBackendConfig


class LoggerFactory:
    """Simplified logging factory - trust config, fail fast."""

    _cached_loggers: Dict[str, HFTLoggerInterface] = {}
    _default_config: Optional[LoggingConfig] = None

    @classmethod
    def create_logger(cls, name: str, config: Optional[LoggingConfig] = None) -> HFTLoggerInterface:
        """Create (or return the cached) logger for ``name``."""
        if name in cls._cached_loggers:
            return cls._cached_loggers[name]

        config = config or cls._get_default_config()
        logger = HFTLogger(name=name, backends=cls._create_backends(config), propagate=config.propagate)

        cls._cached_loggers[name] = logger
        return logger

    @staticmethod
    def _create_backends(config: LoggingConfig) -> list[LogBackend]:
        backends: list[LogBackend] = []
        if config.console and config.console.enabled:
            backend_class = ColorConsoleBackend if config.console.color else ConsoleBackend
            backends.append(backend_class(config.console, 'console'))

        if config.file and config.file.enabled:
            backends.append(FileBackend(config.file, 'file'))
        return backends

    @classmethod
    def get_default_config(cls) -> LoggingConfig:
        return cls._get_default_config()

    @classmethod
    def _get_default_config(cls) -> LoggingConfig:
        if cls._default_config is None:
            environment = os.getenv('ENVIRONMENT', 'dev')
            min_level = os.getenv('LOG_LEVEL', 'WARNING' if environment == 'test' else 'INFO').upper()
            cls._default_config = LoggingConfig(
                environment=environment,
                console=ConsoleBackendConfig(min_level=min_level),
            )
        return cls._default_config


def configure_logging(config: LoggingConfig) -> None:
    """
    Install ``config`` as the default and rebuild every cached logger.

    Loggers already held by components keep working: their backends are
    swapped in place.
    """
    config.validate()
    LoggerFactory._default_config = config
    for logger in LoggerFactory._cached_loggers.values():
        if isinstance(logger, HFTLogger):
            logger.backends = LoggerFactory._create_backends(config)
            logger._propagate = config.propagate


def get_logger(name: str) -> HFTLoggerInterface:
    """Get logger instance. Simple, fast."""
    return LoggerFactory.create_logger(name)


def get_exchange_logger(exchange: str, component: Optional[str] = None) -> HFTLoggerInterface:
    """Get exchange logger with optional component."""
    name = f"{exchange}.{component}" if component else exchange
    return get_logger(name)
