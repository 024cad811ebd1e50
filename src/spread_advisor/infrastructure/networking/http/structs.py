from enum import Enum


class HTTPMethod(Enum):
    """HTTP methods used by the public market-data clients."""
    GET = "GET"
    POST = "POST"
