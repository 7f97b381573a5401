"""yith-arb — exchange venues.

Importing this package registers every bundled venue implementation.
"""

from exchanges import ddex, oasis, switcheo, zeroex  # noqa: F401  (registration side effects)
from exchanges.base import BuySell, ExchangeApi, ExchangeOrder, OrderSheet, OrderState
from exchanges.registry import (
    Exchange,
    ExchangeList,
    VenueContext,
    api_for,
    hydrate_exchanges,
    register,
)

__all__ = [
    "BuySell",
    "Exchange",
    "ExchangeApi",
    "ExchangeList",
    "ExchangeOrder",
    "OrderSheet",
    "OrderState",
    "VenueContext",
    "api_for",
    "hydrate_exchanges",
    "register",
]
