"""Venue settings — one YAML entry per exchange venue.

Example ``venues.yaml``::

    - name: hydro
      enabled: true
      has_balances: false
      protocol: ddex3
      contract_address: "0x..."
      api_url: https://api.ddex.io/v3
      maker_fee: "0.001"
      taker_fee: "0.003"
      pairs:
        - {id: WETH-DAI, base: WETH, quote: DAI, price_decimals: 2, amount_decimals: 4}
      tokens:
        WETH: {address: "0xc02a...", decimals: 18}
"""

from __future__ import annotations

from decimal import Decimal
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

from core.errors import ExchangeError


class PairDetail(BaseModel):
    """Venue-declared precision for one market id."""

    id: str
    base: str = ""
    quote: str = ""
    price_decimals: int = Field(default=8, ge=0)
    amount_decimals: int = Field(default=8, ge=0)


class TokenDetail(BaseModel):
    address: str
    decimals: int = Field(default=18, ge=0)


class VenueSettings(BaseModel):
    name: str
    enabled: bool = True
    has_balances: bool = False
    protocol: str
    contract_address: str = ""
    api_url: str = ""
    maker_fee: Decimal = Decimal("0")
    taker_fee: Decimal = Decimal("0")
    gas_limit: int | None = None
    pairs: list[PairDetail] = Field(default_factory=list)
    tokens: dict[str, TokenDetail] = Field(default_factory=dict)

    def pair(self, market_id: str) -> PairDetail | None:
        for pair in self.pairs:
            if pair.id == market_id:
                return pair
        return None

    def pair_by_symbols(self, base: str, quote: str) -> PairDetail | None:
        for pair in self.pairs:
            if pair.base == base and pair.quote == quote:
                return pair
        return None

    def token(self, symbol: str) -> TokenDetail:
        try:
            return self.tokens[symbol]
        except KeyError:
            raise ExchangeError(f"{self.name}: unknown token {symbol}") from None

    def token_by_address(self, address: str) -> tuple[str, TokenDetail] | None:
        wanted = address.lower()
        for symbol, token in self.tokens.items():
            if token.address.lower() == wanted:
                return symbol, token
        return None


def load_venues(path: str | Path) -> list[VenueSettings]:
    """Read a YAML list of venue settings.

    Raises
    ------
    ExchangeError
        If the file is missing, is not a YAML list, or an entry is invalid.
    """
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise ExchangeError(f"cannot read venue file {path}: {exc}") from exc

    try:
        raw = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ExchangeError(f"venue file {path} is not valid YAML: {exc}") from exc

    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ExchangeError(f"venue file {path} must contain a list")

    try:
        return [VenueSettings.model_validate(entry) for entry in raw]
    except ValidationError as exc:
        raise ExchangeError(f"venue file {path}: {exc}") from exc
