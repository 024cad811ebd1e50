from .rest import BinancePublicRest

__all__ = ["BinancePublicRest"]
