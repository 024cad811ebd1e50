from .structs import ConnectionState, MessageType, ParsedMessage
from .ws_client import WebsocketClient

__all__ = ["ConnectionState", "MessageType", "ParsedMessage", "WebsocketClient"]
