from .bitvavo_ws_public import BitvavoPublicWebsocket, parse_message

__all__ = ["BitvavoPublicWebsocket", "parse_message"]
