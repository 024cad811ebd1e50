from typing import Optional
from msgspec import Struct, field

from spread_advisor.infrastructure.exceptions.system import ConfigurationError
from spread_advisor.infrastructure.logging.structs import LoggingConfig

BITVAVO_REST_URL = "https://api.bitvavo.com/v2"
BITVAVO_WS_URL = "wss://ws.bitvavo.com/v2/"
BINANCE_REST_URL = "https://api.binance.com"

DEFAULT_MARKET = "ARK-EUR"
DEFAULT_DEPTH = 25
MAX_DEPTH = 500


class WebSocketConfig(Struct, frozen=True):
    """
    WebSocket connection settings.

    Reconnection timing is owned by the feed's retry policy, not the socket.

    Attributes:
        url: WebSocket URL
        connect_timeout: Connection timeout in seconds
        ping_interval: Ping interval in seconds
        ping_timeout: Ping timeout in seconds
        close_timeout: Connection close timeout in seconds
        max_message_size: Maximum message size in bytes
        max_queue_size: Maximum inbound frame queue size
    """
    url: str = BITVAVO_WS_URL
    connect_timeout: float = 10.0
    ping_interval: float = 20.0
    ping_timeout: float = 10.0
    close_timeout: float = 5.0
    max_message_size: int = 1024 * 1024
    max_queue_size: int = 512

    def validate(self) -> None:
        if not self.url.startswith(("ws://", "wss://")):
            raise ConfigurationError(f"Invalid WebSocket url: {self.url}", "websocket.url")
        if self.connect_timeout <= 0:
            raise ConfigurationError("connect_timeout must be positive", "websocket.connect_timeout")
        if self.max_message_size <= 0:
            raise ConfigurationError("max_message_size must be positive", "websocket.max_message_size")


class RestConfig(Struct, frozen=True):
    """
    REST client settings.

    Attributes:
        base_url: API base URL
        timeout: Total request timeout in seconds
        max_retries: Retries after the first attempt (429/5xx/connection errors)
        retry_delay: Fixed delay between retries in seconds
    """
    base_url: str = BITVAVO_REST_URL
    timeout: float = 10.0
    max_retries: int = 3
    retry_delay: float = 5.0

    def validate(self) -> None:
        if not self.base_url.startswith(("http://", "https://")):
            raise ConfigurationError(f"Invalid REST base_url: {self.base_url}", "rest.base_url")
        if self.timeout <= 0:
            raise ConfigurationError("timeout must be positive", "rest.timeout")
        if self.max_retries < 0:
            raise ConfigurationError("max_retries cannot be negative", "rest.max_retries")
        if self.retry_delay < 0:
            raise ConfigurationError("retry_delay cannot be negative", "rest.retry_delay")


class FallbackConfig(Struct, frozen=True):
    """
    Secondary venue polled while the push feed is down.

    Attributes:
        rest: REST settings for the secondary venue
        symbol: Venue symbol; derived from the market base asset + USDT when empty
        fx_symbol: Cross-rate ticker dividing USDT prices into the market quote; None disables conversion
        poll_interval: Seconds between polls
    """
    rest: RestConfig = field(default_factory=lambda: RestConfig(base_url=BINANCE_REST_URL, max_retries=0))
    symbol: Optional[str] = None
    fx_symbol: Optional[str] = "EURUSDT"
    poll_interval: float = 2.0

    def validate(self) -> None:
        self.rest.validate()
        if self.poll_interval < 0:
            raise ConfigurationError("poll_interval cannot be negative", "fallback.poll_interval")

    def resolve_symbol(self, market: str) -> str:
        if self.symbol:
            return self.symbol.upper()
        base = market.split("-", 1)[0]
        return f"{base}USDT"


class FeedConfig(Struct, frozen=True):
    """
    Live order-book feed settings.

    Attributes:
        market: Primary venue market id (BASE-QUOTE)
        depth: Levels kept per side and requested in snapshots
        reconnect_delay: Fixed seconds between WebSocket reconnect attempts
        snapshot_retry_delay: Fixed seconds between failed snapshot fetches
        max_pending_updates: Diffs buffered while waiting for a snapshot
        event_queue_size: Bound of the async event stream
    """
    market: str = DEFAULT_MARKET
    depth: int = DEFAULT_DEPTH
    reconnect_delay: float = 5.0
    snapshot_retry_delay: float = 5.0
    max_pending_updates: int = 1000
    event_queue_size: int = 256
    websocket: WebSocketConfig = field(default_factory=WebSocketConfig)
    rest: RestConfig = field(default_factory=RestConfig)
    fallback: FallbackConfig = field(default_factory=FallbackConfig)

    def validate(self) -> None:
        if not 0 < self.depth <= MAX_DEPTH:
            raise ConfigurationError(f"depth must be within 1..{MAX_DEPTH}", "feed.depth")
        if self.reconnect_delay < 0 or self.snapshot_retry_delay < 0:
            raise ConfigurationError("retry delays cannot be negative", "feed.reconnect_delay")
        if self.max_pending_updates <= 0:
            raise ConfigurationError("max_pending_updates must be positive", "feed.max_pending_updates")
        if self.event_queue_size <= 0:
            raise ConfigurationError("event_queue_size must be positive", "feed.event_queue_size")
        self.websocket.validate()
        self.rest.validate()
        self.fallback.validate()


class EdgeConfig(Struct, frozen=True):
    """Default advice parameters (percentages are plain numbers: 0.15 means 0.15%)."""
    maker_fee_pct: float = 0.15
    taker_fee_pct: float = 0.25
    route_profile: str = "maker-maker"
    slippage_pct: float = 0.05
    min_edge_pct: float = 0.25
    position_notional: float = 250.0
    tick: float = 0.0001
    spread_gated: bool = False


class AdvisorConfig(Struct, frozen=True):
    """Root configuration loaded from config.yaml."""
    environment: str = "dev"
    feed: FeedConfig = field(default_factory=FeedConfig)
    edge: EdgeConfig = field(default_factory=EdgeConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def validate(self) -> None:
        self.feed.validate()
        try:
            self.logging.validate()
        except ValueError as e:
            raise ConfigurationError(str(e), "logging") from e
