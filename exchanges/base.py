"""ExchangeApi — capability interface every venue implements.

A venue turns an engine-side order (side, market, offer) into its own
order sheet with :meth:`ExchangeApi.build` and places that sheet with
:meth:`ExchangeApi.submit`.  All quantities are ``Decimal``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal, localcontext
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar

import structlog
from pydantic import BaseModel

from core.errors import EncodingError, ExchangeError, OrderError
from models.market import Market, Ticker
from models.order import AskBid, Offer

if TYPE_CHECKING:
    from config.settings import Settings
    from config.venues import VenueSettings
    from exchanges.registry import VenueContext

logger = structlog.get_logger("exchanges.base")


class BuySell(str, Enum):
    BUY = "buy"
    SELL = "sell"

    @classmethod
    def from_ask_bid(cls, side: AskBid) -> BuySell:
        """Taking an ask is a buy; hitting a bid is a sell."""
        return cls.BUY if side is AskBid.ASK else cls.SELL


class OrderState(str, Enum):
    PENDING = "pending"
    OPEN = "open"
    FILLED = "filled"
    CANCELLED = "cancelled"
    EXPIRED = "expired"
    UNFUNDED = "unfunded"


@dataclass(frozen=True)
class ExchangeOrder:
    """An order as reported back by a venue."""

    id: str
    side: BuySell
    state: OrderState
    market: str
    base_qty: Decimal
    quote: Decimal
    create_date: str

    def __str__(self) -> str:
        return f"{self.side.value} {self.base_qty:.5f}@{self.quote:.5f}"


class OrderSheet(BaseModel):
    """Base for the venue-specific payload returned by ``build``."""


@dataclass(frozen=True)
class AlignedOrder:
    """Side, market id and offer in the venue's own orientation."""

    side: AskBid
    market_id: str
    offer: Offer

    @property
    def buy_sell(self) -> BuySell:
        return BuySell.from_ask_bid(self.side)


def align(side: AskBid, market: Market, offer: Offer, separator: str = "-") -> AlignedOrder:
    """Translate an engine order onto a venue that may list the pair inverted.

    On a swapped market the side flips and the offer becomes
    ``(base_qty * quote, 1 / quote)``.
    """
    if market.swapped:
        aligned = AlignedOrder(side.other_side(), market.venue_id(separator), offer.swap())
        logger.info(
            "exchange.unswapped",
            market=str(market),
            venue_market=aligned.market_id,
            side=aligned.side.value,
            offer=str(aligned.offer),
        )
        return aligned
    return AlignedOrder(side, market.id(separator), offer)


# ── Decimal helpers ─────────────────────────────────────────────


def format_decimal(value: Decimal, places: int) -> str:
    """Fixed-point string with exactly *places* fractional digits (half-up)."""
    if places < 0:
        raise EncodingError(f"decimal places must be >= 0, got {places}")
    with localcontext() as ctx:
        ctx.prec = 100
        return f"{value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP):f}"


def quantity_in_base_units(qty: Decimal, precision: int, scale: int) -> int:
    """Integer token units for *qty*.

    The fraction is truncated to *precision* digits (never rounded up)
    and the result scaled by ``10**scale``.
    """
    if qty < 0:
        raise EncodingError(f"quantity must be >= 0, got {qty}")
    digits = min(precision, scale)
    with localcontext() as ctx:
        ctx.prec = 100
        truncated = qty.quantize(Decimal(1).scaleb(-digits), rounding=ROUND_DOWN)
        return int(truncated.scaleb(scale))


def decimal_places(settings: VenueSettings, market: Market, market_id: str) -> tuple[int, int]:
    """(price, amount) places for *market_id*, falling back to the market's own."""
    pair = settings.pair(market_id)
    if pair is not None:
        return pair.price_decimals, pair.amount_decimals
    logger.warning("exchange.pair_unknown", venue=settings.name, market=market_id)
    return market.price_decimals, market.quantity_decimals


def units_to_quantity(units: int, scale: int) -> Decimal:
    return Decimal(units).scaleb(-scale)


class ExchangeApi(ABC):
    """Abstract venue.

    Implementations register themselves under a protocol key (see
    :func:`exchanges.registry.register`) and receive the shared HTTP and
    chain clients through a :class:`VenueContext`.

    ``build`` and ``submit`` make a single attempt and surface errors;
    retry policy belongs to the caller.
    """

    protocol: ClassVar[str] = ""
    sheet_type: ClassVar[type[OrderSheet]] = OrderSheet

    def __init__(self, venue: VenueSettings, context: VenueContext) -> None:
        self.venue = venue
        self.context = context

    def setup(self) -> None:
        """One-time preparation before the first order."""

    @abstractmethod
    def build(
        self,
        private_key: str,
        side: AskBid,
        settings: VenueSettings,
        market: Market,
        offer: Offer,
    ) -> OrderSheet:
        """Prepare a venue order sheet.

        Raises
        ------
        OrderError
            If the venue rejects the order, including a success-status
            HTTP response carrying a non-zero venue status.
        """

    @abstractmethod
    def submit(self, private_key: str, settings: VenueSettings, sheet: OrderSheet) -> str | None:
        """Place a sheet produced by this venue's ``build``.

        Returns the venue order id or transaction hash when known.
        """

    def balances(self, private_key: str, settings: VenueSettings) -> dict[str, Decimal]:
        logger.warning("exchange.no_balances", venue=settings.name)
        return {}

    def open_orders(self, private_key: str, settings: VenueSettings) -> list[ExchangeOrder]:
        logger.warning("exchange.no_open_orders", venue=settings.name)
        return []

    def market_minimums(
        self, market: Market, settings: VenueSettings
    ) -> tuple[Decimal | None, Decimal | None] | None:
        logger.warning("exchange.no_market_minimums", venue=settings.name, market=str(market))
        return None

    def withdraw(
        self, private_key: str, settings: VenueSettings, amount: Decimal, token: Ticker
    ) -> str | None:
        return self._transfer("withdraw", settings, amount, token)

    def deposit(
        self, private_key: str, settings: VenueSettings, amount: Decimal, token: Ticker
    ) -> str | None:
        return self._transfer("deposit", settings, amount, token)

    def _transfer(
        self, direction: str, settings: VenueSettings, amount: Decimal, token: Ticker
    ) -> str | None:
        if not settings.has_balances:
            raise ExchangeError(f"{direction} called on {settings.name}, which holds no balances")
        logger.warning(
            "exchange.transfer_unsupported",
            venue=settings.name,
            direction=direction,
            amount=str(amount),
            token=str(token),
        )
        return None

    # ── Shared helpers ──────────────────────────────────────────

    @property
    def process_settings(self) -> Settings:
        return self.context.settings

    def expect_sheet(self, sheet: OrderSheet) -> Any:
        """Return *sheet* if this venue built it, else raise ``OrderError``."""
        if not isinstance(sheet, self.sheet_type):
            raise OrderError(OrderError.WRONG_SHEET, "wrong order type passed to submit")
        return sheet
