"""Order intent — what the engine wants to trade before venue translation."""

from __future__ import annotations

from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from .market import Market


class AskBid(str, Enum):
    """Which side of the book the offer was taken from."""

    ASK = "ask"
    BID = "bid"

    def other_side(self) -> AskBid:
        return AskBid.BID if self is AskBid.ASK else AskBid.ASK


class Offer(BaseModel):
    """A quantity of base token at a price in quote token."""

    model_config = ConfigDict(frozen=True)

    base_qty: Decimal = Field(..., gt=0)
    quote: Decimal = Field(..., gt=0, description="Price in quote per base")

    def cost(self) -> Decimal:
        """Total in quote token."""
        return self.base_qty * self.quote

    def swap(self) -> Offer:
        """The same offer expressed on the inverted (quote/base) market.

        Quantity becomes ``base_qty * quote`` and price ``1 / quote``.
        """
        return Offer(base_qty=self.base_qty * self.quote, quote=Decimal(1) / self.quote)

    def __str__(self) -> str:
        return f"{self.base_qty}@{self.quote}"


class OrderIntent(BaseModel):
    """Desired trade on one market, independent of any venue."""

    model_config = ConfigDict(frozen=True)

    side: AskBid
    market: Market
    offer: Offer

    @property
    def quantity(self) -> Decimal:
        return self.offer.base_qty

    @property
    def price(self) -> Decimal:
        return self.offer.quote
