from .binance_rest_public import BinancePublicRest, snap_depth_limit

__all__ = ["BinancePublicRest", "snap_depth_limit"]
