from .structs import HTTPMethod
from .rest_client import BaseRestClient

__all__ = ["HTTPMethod", "BaseRestClient"]
