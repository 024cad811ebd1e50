from .bitvavo_rest_public import BitvavoPublicRest

__all__ = ["BitvavoPublicRest"]
