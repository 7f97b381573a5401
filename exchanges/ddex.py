"""Hydro (DDEX) venues — off-chain order book with on-chain settlement.

Flow: ``POST /orders/build`` returns an order with an id; the id is
personal-signed and sent to ``POST /orders/sync``.  Every request carries
a ``Hydro-Authentication`` bearer token.  Responses are
``{"status": int, "desc": str, "data": {...}}`` and a non-zero status is a
rejection even when the HTTP status is 2xx.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

from config.venues import VenueSettings
from core.errors import OrderError, ProtocolError
from data.http_client import LoggingResponse
from exchanges.base import (
    BuySell,
    ExchangeApi,
    ExchangeOrder,
    OrderSheet,
    OrderState,
    align,
    decimal_places,
    format_decimal,
)
from exchanges.registry import register
from models.market import Market
from models.order import AskBid, Offer
from web3_infra.signer import auth_message, build_auth_token, sign_message

logger = structlog.get_logger("exchanges.ddex")

AUTH_HEADER = "Hydro-Authentication"
AUTH_PREFIX = "HYDRO-AUTHENTICATION"

_STATES = {
    "pending": OrderState.OPEN,
    "partial filled": OrderState.OPEN,
    "full filled": OrderState.FILLED,
    "canceled": OrderState.CANCELLED,
}


class _Camel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class HydroOrderSheet(OrderSheet):
    """Order returned by ``/orders/build``; ``id`` is what gets signed."""

    model_config = _Camel.model_config

    id: str
    market_id: str
    side: BuySell
    price: str
    amount: str
    type: str = "limit"
    maker_fee_rate: str = "0"
    taker_fee_rate: str = "0"
    gas_fee_amount: str = "0"


class HydroOrder(_Camel):
    id: str
    side: str
    status: str
    price: str
    amount: str
    market_id: str = "UNK"
    created_at: int = 0

    def to_exchange_order(self) -> ExchangeOrder:
        try:
            side = BuySell(self.side)
            state = _STATES[self.status]
            base_qty, quote = Decimal(self.amount), Decimal(self.price)
        except (ValueError, KeyError, InvalidOperation) as exc:
            raise ProtocolError(f"unreadable hydro order {self.id}: {exc}") from exc
        return ExchangeOrder(
            id=self.id,
            side=side,
            state=state,
            market=self.market_id,
            base_qty=base_qty,
            quote=quote,
            create_date=str(self.created_at),
        )


def auth_headers(private_key: str) -> dict[str, str]:
    """Fresh bearer token header; the timestamp tag never repeats."""
    return {AUTH_HEADER: build_auth_token(private_key, auth_message(AUTH_PREFIX))}


def read_envelope(resp: LoggingResponse) -> dict[str, Any]:
    """Return the ``data`` object of a successful Hydro response.

    Raises
    ------
    OrderError
        On a non-2xx response or a non-zero venue status.
    ProtocolError
        If the body is not a Hydro envelope.
    """
    body = resp.json()
    if not isinstance(body, dict) or "status" not in body:
        if not resp.is_success:
            raise OrderError(resp.status_code, f"HTTP {resp.status_code}")
        raise ProtocolError(f"{resp.url}: response has no status field")

    try:
        status = int(body["status"])
    except (TypeError, ValueError) as exc:
        raise ProtocolError(f"{resp.url}: status is not an integer") from exc
    desc = str(body.get("desc", ""))

    if not resp.is_success or status != 0:
        logger.warning(
            "ddex.rejected",
            url=resp.url,
            http_status=resp.status_code,
            status=status,
            desc=desc,
        )
        raise OrderError(status if status != 0 else resp.status_code, desc)

    data = body.get("data")
    return data if isinstance(data, dict) else {}


@register("ddex3")
class Ddex3(ExchangeApi):
    """Hydro protocol v3."""

    sheet_type = HydroOrderSheet

    def build_body(self, settings: VenueSettings, market: Market, side: AskBid, offer: Offer) -> dict[str, Any]:
        aligned = align(side, market, offer, "-")
        price_places, amount_places = decimal_places(settings, market, aligned.market_id)
        return {
            "marketId": aligned.market_id,
            "side": aligned.buy_sell.value,
            "orderType": "limit",
            "price": format_decimal(aligned.offer.quote, price_places),
            "amount": format_decimal(aligned.offer.base_qty, amount_places),
        }

    def build(
        self,
        private_key: str,
        side: AskBid,
        settings: VenueSettings,
        market: Market,
        offer: Offer,
    ) -> HydroOrderSheet:
        body = self.build_body(settings, market, side, offer)
        logger.info("ddex.build", venue=settings.name, **body)
        resp = self.context.http.post(
            f"{settings.api_url}/orders/build",
            json_body=body,
            headers=auth_headers(private_key),
        )
        data = read_envelope(resp)
        try:
            return HydroOrderSheet.model_validate(data["order"])
        except (KeyError, TypeError, ValidationError) as exc:
            raise ProtocolError(f"{settings.name}: build response has no usable order") from exc

    def submit(self, private_key: str, settings: VenueSettings, sheet: OrderSheet) -> str | None:
        order = self.expect_sheet(sheet)
        signature = sign_message(private_key, order.id).vrs_hex()
        resp = self.context.http.post(
            f"{settings.api_url}/orders/sync",
            json_body={"orderId": order.id, "signature": signature, "method": 0},
            headers=auth_headers(private_key),
        )
        read_envelope(resp)
        logger.info("ddex.submitted", venue=settings.name, order_id=order.id)
        return order.id

    def open_orders(self, private_key: str, settings: VenueSettings) -> list[ExchangeOrder]:
        resp = self.context.http.get(f"{settings.api_url}/orders", headers=auth_headers(private_key))
        data = read_envelope(resp)
        try:
            orders = [HydroOrder.model_validate(o) for o in data.get("orders", [])]
        except ValidationError as exc:
            raise ProtocolError(f"{settings.name}: malformed order list") from exc
        return [o.to_exchange_order() for o in orders]


@register("ddex4")
class Ddex4(Ddex3):
    """Hydro protocol v4; orders draw on the trading wallet."""

    def build_body(self, settings: VenueSettings, market: Market, side: AskBid, offer: Offer) -> dict[str, Any]:
        body = super().build_body(settings, market, side, offer)
        body["walletType"] = "trading"
        return body
