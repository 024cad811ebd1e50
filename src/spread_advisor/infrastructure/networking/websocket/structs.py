from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union
from enum import IntEnum


class ConnectionState(IntEnum):
    """WebSocket connection states."""
    DISCONNECTED = 0
    CONNECTING = 1
    CONNECTED = 2
    RECONNECTING = 3
    ERROR = 4
    CLOSING = 5
    CLOSED = 6


class MessageType(IntEnum):
    """Message types produced by venue frame parsers."""
    ORDERBOOK = 1
    SUBSCRIPTION_CONFIRM = 2
    ERROR = 3
    UNKNOWN = 99


@dataclass
class ParsedMessage:
    """Parsed WebSocket message with routing information."""
    message_type: MessageType
    market: Optional[str] = None
    channel: Optional[str] = None
    data: Optional[Any] = None
    raw_data: Optional[Union[Dict[str, Any], List[Any]]] = None
