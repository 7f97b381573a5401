"""Market — a base/quote pair as listed on one venue."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class Ticker(BaseModel):
    """Token symbol, e.g. ``WETH``."""

    model_config = ConfigDict(frozen=True)

    symbol: str = Field(..., min_length=1)

    def __str__(self) -> str:
        return self.symbol


class Market(BaseModel):
    """Pair as seen by the arbitrage engine.

    ``swapped`` means the venue lists the pair the other way round
    (quote/base); venues translate orders back to their own orientation
    before encoding them.
    """

    model_config = ConfigDict(frozen=True)

    source_name: str = ""
    base: Ticker
    quote: Ticker
    swapped: bool = False
    base_contract: str = ""
    quote_contract: str = ""
    quantity_decimals: int = Field(default=8, ge=0)
    price_decimals: int = Field(default=8, ge=0)

    def id(self, separator: str) -> str:
        """Market id in the engine's base/quote orientation."""
        return f"{self.base.symbol}{separator}{self.quote.symbol}"

    def venue_id(self, separator: str) -> str:
        """Market id in the venue's own orientation."""
        if self.swapped:
            return f"{self.quote.symbol}{separator}{self.base.symbol}"
        return self.id(separator)

    def __str__(self) -> str:
        return f"{self.base}/{self.quote}"
