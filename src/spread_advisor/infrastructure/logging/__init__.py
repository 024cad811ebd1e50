"""
Advisor Logging System

Usage:
    from spread_advisor.infrastructure.logging import get_logger

    logger = get_logger('market_data.FeedSupervisor')
    logger.info("Snapshot applied", market="ARK-EUR", nonce=1234)
    logger.counter("book_gap")
"""

import logging

from .interfaces import (
    LogLevel,
    LogType,
    LogRecord,
    LogBackend,
    HFTLoggerInterface
)
from .hft_logger import HFTLogger, LoggingTimer, PY_LOGGER_ROOT
from .factory import (
    LoggerFactory,
    get_logger,
    get_exchange_logger,
    configure_logging
)
from .structs import (
    LoggingConfig,
    ConsoleBackendConfig,
    FileBackendConfig,
    BackendConfig
)

# Library logger: no output unless the host configures handlers
logging.getLogger(PY_LOGGER_ROOT).addHandler(logging.NullHandler())

__all__ = [
    'LogLevel',
    'LogType',
    'LogRecord',
    'LogBackend',
    'HFTLoggerInterface',
    'HFTLogger',
    'LoggingTimer',
    'LoggerFactory',
    'get_logger',
    'get_exchange_logger',
    'configure_logging',
    'LoggingConfig',
    'ConsoleBackendConfig',
    'FileBackendConfig',
    'BackendConfig',
]
