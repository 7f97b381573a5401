"""yith-arb — models package."""

from .market import Market, Ticker
from .order import AskBid, Offer, OrderIntent

__all__ = [
    "AskBid",
    "Market",
    "Offer",
    "OrderIntent",
    "Ticker",
]
