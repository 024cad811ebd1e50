from typing import Optional, Union

import msgspec

# Bitvavo sends numbers as strings; plain numbers are accepted as well
RawBitvavoLevel = list[Union[str, float]]


class BitvavoOrderBookResponse(msgspec.Struct):
    """Bitvavo GET /{market}/book response."""
    market: str = ""
    nonce: Optional[int] = None
    bids: list[RawBitvavoLevel] = []  # [price, amount]
    asks: list[RawBitvavoLevel] = []


class BitvavoBookEvent(msgspec.Struct):
    """Bitvavo ``book`` channel diff frame."""
    event: str
    market: str
    nonce: int
    bids: list[RawBitvavoLevel] = []
    asks: list[RawBitvavoLevel] = []


class BitvavoSubscribeRequest(msgspec.Struct):
    """Subscribe/unsubscribe action sent over the socket."""
    action: str
    markets: list[str]
    channels: list[str]


class BitvavoErrorResponse(msgspec.Struct):
    errorCode: int = 0
    error: str = ""
