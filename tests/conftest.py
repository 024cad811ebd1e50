"""
Pytest configuration and shared fixtures for spread advisor tests.

Provides test logging, isolated loggers and small book/market fixtures.
"""

import os
import sys
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

# Configure test environment
os.environ['ENVIRONMENT'] = 'test'

from spread_advisor.exchanges.structs import BookSnapshot, BookUpdate
from spread_advisor.infrastructure.logging import HFTLogger
from spread_advisor.infrastructure.logging.factory import LoggerFactory
from spread_advisor.infrastructure.logging.structs import LoggingConfig, ConsoleBackendConfig

MARKET = "ARK-EUR"


@pytest.fixture(scope="session", autouse=True)
def setup_test_logging():
    """Set up test-appropriate logging configuration."""
    LoggerFactory._default_config = LoggingConfig(
        environment="test",
        console=ConsoleBackendConfig(enabled=True, min_level="WARNING", color=False),
    )


@pytest.fixture
def logger():
    """Isolated logger without backends; counters start at zero."""
    return HFTLogger("test", backends=[])


@pytest.fixture
def market():
    return MARKET


def make_snapshot(nonce: int, bids=None, asks=None, market: str = MARKET) -> BookSnapshot:
    return BookSnapshot(
        market=market,
        nonce=nonce,
        bids=bids if bids is not None else [["0.5000", "100"], ["0.4990", "200"], ["0.4980", "300"]],
        asks=asks if asks is not None else [["0.5010", "150"], ["0.5020", "250"], ["0.5030", "350"]],
    )


def make_update(nonce: int, bids=None, asks=None, market: str = MARKET) -> BookUpdate:
    return BookUpdate(market=market, nonce=nonce, bids=bids or [], asks=asks or [])


@pytest.fixture
def snapshot_factory():
    return make_snapshot


@pytest.fixture
def update_factory():
    return make_update
