"""
Spread Advisor

Live spread and round-trip edge advice for a single spot market: a
sequence-checked local order book fed by the Bitvavo WebSocket, REST
polling failover, and a pure edge calculator on the market's tick grid.
"""

__version__ = "0.1.0"
