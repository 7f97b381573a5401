"""0x v3 standard relayer venue.

The relayer builds an unsigned limit order (``OrderForm``); it is signed
locally with EIP-712 and posted back.  The signature is ``v‖r‖s`` followed
by the signature-type byte ``0x02`` (EIP-712).
"""

from __future__ import annotations

import time
from decimal import Decimal, InvalidOperation
from enum import IntEnum

import structlog
from eth_abi import encode
from eth_utils import decode_hex, encode_hex
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
from web3_infra.abi import address_bytes
from web3_infra.keys import PrivateKeyLike, derive_address_hex, keccak256
from web3_infra.signer import sign_hash

logger = structlog.get_logger("exchanges.zeroex")

EIP191_HEADER = b"\x19\x01"
EIP712_DOMAIN_SCHEMA_HASH = bytes.fromhex(
    "8b73c3c69bb8fe3d512ecc4cf759cc79239f7b179b0ffacaa9a75d522b39400f"
)
EIP712_ORDER_SCHEMA_HASH = bytes.fromhex(
    "f80322eb8376aafb64eadf8f0d7623f22130fd9491a221e902b713cb984a7534"
)
DOMAIN_NAME = "0x Protocol"
DOMAIN_VERSION = "3.0.0"

# relayer minimum of two minutes plus transit time
EXPIRATION_SECONDS = 125

_STATES = {
    "OPEN": OrderState.OPEN,
    "FILLED": OrderState.FILLED,
    "CANCELLED": OrderState.CANCELLED,
    "EXPIRED": OrderState.EXPIRED,
    "UNFUNDED": OrderState.UNFUNDED,
}


class SignatureType(IntEnum):
    ILLEGAL = 0x00
    INVALID = 0x01
    EIP712 = 0x02
    ETH_SIGN = 0x03
    WALLET = 0x04
    VALIDATOR = 0x05
    PRE_SIGNED = 0x06
    EIP1271_WALLET = 0x07


class OrderForm(OrderSheet):
    """Unsigned (then signed) 0x v3 order as exchanged with the relayer."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    chain_id: int = 1
    exchange_address: str
    maker_address: str
    taker_address: str
    fee_recipient_address: str
    sender_address: str
    maker_asset_amount: str
    taker_asset_amount: str
    maker_fee: str
    taker_fee: str
    expiration_time_seconds: str
    salt: str
    maker_asset_data: str
    taker_asset_data: str
    maker_fee_asset_data: str
    taker_fee_asset_data: str
    signature: str = ""


class RelayerOrder(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    order_hash: str
    type: str
    state: str
    base_token_address: str
    quote_token_address: str
    remaining_base_token_amount: str
    price: str
    created_date: str = ""

    def to_exchange_order(self) -> ExchangeOrder:
        try:
            side = {"ASK": BuySell.SELL, "BID": BuySell.BUY}[self.type]
            state = _STATES[self.state]
            base_qty = Decimal(self.remaining_base_token_amount)
            quote = Decimal(self.price)
        except (KeyError, InvalidOperation) as exc:
            raise ProtocolError(f"unreadable 0x order {self.order_hash}: {exc}") from exc
        return ExchangeOrder(
            id=self.order_hash,
            side=side,
            state=state,
            market=f"{self.base_token_address[:6]}-{self.quote_token_address[:6]}",
            base_qty=base_qty,
            quote=quote,
            create_date=self.created_date,
        )


# ── EIP-712 ─────────────────────────────────────────────────────


def _uint(value: str, name: str) -> int:
    try:
        return int(value)
    except ValueError as exc:
        raise ProtocolError(f"order field {name} is not an integer: {value!r}") from exc


def _hashed_bytes(value: str, name: str) -> bytes:
    try:
        return keccak256(decode_hex(value))
    except ValueError as exc:
        raise ProtocolError(f"order field {name} is not hex: {value!r}") from exc


def order_tokens(form: OrderForm) -> bytes:
    """ABI encoding of the order struct, dynamic fields replaced by their hashes."""
    return encode(
        ["bytes32"] + ["address"] * 4 + ["uint256"] * 6 + ["bytes32"] * 4,
        [
            EIP712_ORDER_SCHEMA_HASH,
            address_bytes(form.maker_address),
            address_bytes(form.taker_address),
            address_bytes(form.fee_recipient_address),
            address_bytes(form.sender_address),
            _uint(form.maker_asset_amount, "makerAssetAmount"),
            _uint(form.taker_asset_amount, "takerAssetAmount"),
            _uint(form.maker_fee, "makerFee"),
            _uint(form.taker_fee, "takerFee"),
            _uint(form.expiration_time_seconds, "expirationTimeSeconds"),
            _uint(form.salt, "salt"),
            _hashed_bytes(form.maker_asset_data, "makerAssetData"),
            _hashed_bytes(form.taker_asset_data, "takerAssetData"),
            _hashed_bytes(form.maker_fee_asset_data, "makerFeeAssetData"),
            _hashed_bytes(form.taker_fee_asset_data, "takerFeeAssetData"),
        ],
    )


def eip712_exchange_hash(contract_address: str, chain_id: int = 1) -> bytes:
    """Domain separator of the 0x exchange contract."""
    return keccak256(
        encode(
            ["bytes32", "bytes32", "bytes32", "uint256", "address"],
            [
                EIP712_DOMAIN_SCHEMA_HASH,
                keccak256(DOMAIN_NAME.encode()),
                keccak256(DOMAIN_VERSION.encode()),
                chain_id,
                address_bytes(contract_address),
            ],
        )
    )


def order_hash(form: OrderForm) -> bytes:
    """``keccak256(0x1901 ‖ domain ‖ keccak256(order_tokens))``."""
    domain = eip712_exchange_hash(form.exchange_address, form.chain_id)
    return keccak256(EIP191_HEADER + domain + keccak256(order_tokens(form)))


def order_sign(private_key: PrivateKeyLike, form: OrderForm) -> str:
    """``0x`` + vrs + signature-type byte."""
    signature = sign_hash(private_key, order_hash(form))
    return encode_hex(signature.to_vrs() + bytes([SignatureType.EIP712]))


# ── Venue ───────────────────────────────────────────────────────


def _raise_relayer_error(resp: LoggingResponse) -> None:
    try:
        body = resp.json()
    except ProtocolError:
        body = None
    message = body.get("error") if isinstance(body, dict) else None
    logger.warning("zeroex.rejected", url=resp.url, http_status=resp.status_code, error=message)
    raise OrderError(-1, str(message or resp.text or f"HTTP {resp.status_code}"))


@register("0x")
class Zeroex(ExchangeApi):
    """0x v3 relayer."""

    sheet_type = OrderForm

    def build(
        self,
        private_key: str,
        side: AskBid,
        settings: VenueSettings,
        market: Market,
        offer: Offer,
    ) -> OrderForm:
        aligned = align(side, market, offer, "-")
        price_places, amount_places = decimal_places(settings, market, aligned.market_id)
        body = {
            "type": aligned.buy_sell.value.upper(),
            "quantity": format_decimal(aligned.offer.base_qty, amount_places),
            "price": format_decimal(aligned.offer.quote, price_places),
            "expiration": str(int(time.time()) + EXPIRATION_SECONDS),
        }
        logger.info("zeroex.build", venue=settings.name, market=aligned.market_id, **body)
        resp = self.context.http.post(
            f"{settings.api_url}/markets/{aligned.market_id}/order/limit",
            json_body=body,
        )
        if not resp.is_success:
            _raise_relayer_error(resp)

        try:
            form = OrderForm.model_validate(resp.json())
        except ValidationError as exc:
            raise ProtocolError(f"{settings.name}: relayer returned an unusable order form") from exc
        form.maker_address = derive_address_hex(private_key)
        form.signature = order_sign(private_key, form)
        return form

    def submit(self, private_key: str, settings: VenueSettings, sheet: OrderSheet) -> str | None:
        form = self.expect_sheet(sheet)
        resp = self.context.http.post(
            f"{settings.api_url}/orders",
            json_body=form.model_dump(by_alias=True),
        )
        if not resp.is_success:
            _raise_relayer_error(resp)
        hash_hex = encode_hex(order_hash(form))
        logger.info("zeroex.submitted", venue=settings.name, order_hash=hash_hex)
        return hash_hex

    def open_orders(self, private_key: str, settings: VenueSettings) -> list[ExchangeOrder]:
        account = derive_address_hex(private_key)
        resp = self.context.http.get(f"{settings.api_url}/accounts/{account}/orders")
        if not resp.is_success:
            _raise_relayer_error(resp)
        body = resp.json()
        if not isinstance(body, list):
            raise ProtocolError(f"{settings.name}: order list is not an array")
        try:
            orders = [RelayerOrder.model_validate(o) for o in body]
        except ValidationError as exc:
            raise ProtocolError(f"{settings.name}: malformed order list") from exc
        return [o.to_exchange_order() for o in orders]
