from .structs import (
    AdvisorConfig, FeedConfig, EdgeConfig, FallbackConfig, RestConfig, WebSocketConfig,
    DEFAULT_MARKET, DEFAULT_DEPTH, MAX_DEPTH,
)
from .config_manager import load_config, get_config, reset_config

__all__ = [
    "AdvisorConfig",
    "FeedConfig",
    "EdgeConfig",
    "FallbackConfig",
    "RestConfig",
    "WebSocketConfig",
    "DEFAULT_MARKET",
    "DEFAULT_DEPTH",
    "MAX_DEPTH",
    "load_config",
    "get_config",
    "reset_config",
]
