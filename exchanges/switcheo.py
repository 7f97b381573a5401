"""Switcheo venue — off-chain order book taking personal-signed JSON orders.

The order fields are serialised as compact JSON in declaration order
(which is alphabetical, as the venue expects), personal-signed, and posted
to ``/orders`` together with the signature and the signer address.  The
venue accepts the order on that request, so ``submit`` only reports it.
"""

from __future__ import annotations

import time
from typing import Any

import structlog

from config.venues import VenueSettings
from core.errors import OrderError, ProtocolError
from data.http_client import LoggingResponse
from exchanges.base import (
    BuySell,
    ExchangeApi,
    OrderSheet,
    align,
    decimal_places,
    format_decimal,
    quantity_in_base_units,
)
from exchanges.registry import register
from models.market import Market
from models.order import AskBid, Offer
from web3_infra.keys import derive_address_hex
from web3_infra.signer import sign_json

logger = structlog.get_logger("exchanges.switcheo")

BLOCKCHAIN = "eth"
PAIR_SEPARATOR = "_"

# Fields appended after signing; everything else is the signed payload.
_UNSIGNED_FIELDS = {"signature", "address", "order_id"}


class SwitcheoOrderSheet(OrderSheet):
    blockchain: str = BLOCKCHAIN
    contract_hash: str
    pair: str
    price: str
    quantity: str
    side: BuySell
    timestamp: int
    use_native_tokens: bool = False
    signature: str = ""
    address: str = ""
    order_id: str | None = None

    def signing_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude=_UNSIGNED_FIELDS)

    def request_body(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude={"order_id"})


def _raise_build_error(resp: LoggingResponse) -> None:
    try:
        body = resp.json()
    except ProtocolError:
        body = None
    message = None
    if isinstance(body, dict):
        message = body.get("error_message") or body.get("error")
    logger.warning("switcheo.rejected", url=resp.url, http_status=resp.status_code, error=message)
    raise OrderError(-1, str(message or f"HTTP {resp.status_code}"))


@register("switcheo")
class Switcheo(ExchangeApi):
    """Switcheo exchange (Ethereum blockchain)."""

    sheet_type = SwitcheoOrderSheet

    def build(
        self,
        private_key: str,
        side: AskBid,
        settings: VenueSettings,
        market: Market,
        offer: Offer,
    ) -> SwitcheoOrderSheet:
        aligned = align(side, market, offer, PAIR_SEPARATOR)
        price_places, amount_places = decimal_places(settings, market, aligned.market_id)
        base_symbol = aligned.market_id.split(PAIR_SEPARATOR)[0]
        base_token = settings.token(base_symbol)

        sheet = SwitcheoOrderSheet(
            contract_hash=settings.contract_address,
            pair=aligned.market_id,
            price=format_decimal(aligned.offer.quote, price_places),
            quantity=str(quantity_in_base_units(aligned.offer.base_qty, amount_places, base_token.decimals)),
            side=aligned.buy_sell,
            timestamp=int(time.time() * 1000),
        )
        sheet.signature = sign_json(private_key, sheet.signing_payload())
        sheet.address = derive_address_hex(private_key)
        logger.info(
            "switcheo.build",
            venue=settings.name,
            pair=sheet.pair,
            side=sheet.side.value,
            price=sheet.price,
            quantity=sheet.quantity,
        )

        resp = self.context.http.post(f"{settings.api_url}/orders", json_body=sheet.request_body())
        if not resp.is_success:
            _raise_build_error(resp)
        body = resp.json() if resp.text else None
        if isinstance(body, dict) and body.get("id") is not None:
            sheet.order_id = str(body["id"])
        return sheet

    def submit(self, private_key: str, settings: VenueSettings, sheet: OrderSheet) -> str | None:
        """Nothing left to send; returns the id assigned at build time, if any."""
        order = self.expect_sheet(sheet)
        logger.info("switcheo.submitted", venue=settings.name, pair=order.pair, order_id=order.order_id)
        return order.order_id
