from .rest import BitvavoPublicRest
from .ws import BitvavoPublicWebsocket

__all__ = ["BitvavoPublicRest", "BitvavoPublicWebsocket"]
