"""Tests for exchanges/zeroex.py — EIP-712 order hashing and the relayer flow."""

from __future__ import annotations

import time
from decimal import Decimal

import pytest
from eth_utils import keccak

from config.venues import VenueSettings
from core.errors import OrderError
from exchanges.base import BuySell, OrderState
from exchanges.registry import VenueContext
from exchanges.zeroex import (
    EIP191_HEADER,
    OrderForm,
    Zeroex,
    eip712_exchange_hash,
    order_hash,
    order_sign,
    order_tokens,
)
from models import AskBid, Market, Offer, Ticker

PRIVKEY = "e4abcbf75d38cf61c4fde0ade1148f90376616f5233b7c1fef2a78c5992a9a50"
ADDRESS = "0xed6d484f5c289ec8c6b6f934ef6419230169f534"
CONTRACT_V3 = "0x080bf510FCbF18b91105470639e9561022937712"
ZERO_ADDR = "0x" + "00" * 20
ZERO_DATA_HASH = "5380c7b7ae81a58eb98d9c78de4a1fd7fd9535fc953ed2be602daaa41767312a"
DOMAIN_HASH = "b2246130e7ae0d4b56269ccac10d3a9ac666d825bcd20ce28fea70f1f65d3de0"
FORM_HASH = "6272bc49657b2210a4eba2cd343aa184ed1b77c377cad3b452afa50be0f15d06"
ORDER_HASH = "fdc94db5a7aff3bdf03c9dc6188381c6f8fba3ead062c16a6c8b2a59427dd408"


def blank_order_form() -> OrderForm:
    return OrderForm(
        chain_id=1,
        exchange_address=CONTRACT_V3,
        maker_address=ZERO_ADDR,
        taker_address=ZERO_ADDR,
        fee_recipient_address=ZERO_ADDR,
        sender_address=ZERO_ADDR,
        maker_asset_amount="0",
        taker_asset_amount="0",
        maker_fee="0",
        taker_fee="0",
        expiration_time_seconds="0",
        salt="0",
        maker_asset_data=ZERO_ADDR,
        taker_asset_data=ZERO_ADDR,
        maker_fee_asset_data=ZERO_ADDR,
        taker_fee_asset_data=ZERO_ADDR,
        signature="SET",
    )


class TestEip712:

    def test_domain_separator(self) -> None:
        assert eip712_exchange_hash(CONTRACT_V3).hex() == DOMAIN_HASH

    def test_order_tokens_layout(self) -> None:
        encoded = order_tokens(blank_order_form())
        assert len(encoded) == 15 * 32
        assert encoded[:32].hex() == "f80322eb8376aafb64eadf8f0d7623f22130fd9491a221e902b713cb984a7534"
        assert encoded[32 : 11 * 32] == b"\x00" * (10 * 32)
        assert encoded[11 * 32 :].hex() == ZERO_DATA_HASH * 4

    def test_form_hash(self) -> None:
        assert keccak(order_tokens(blank_order_form())).hex() == FORM_HASH

    def test_header_and_order_hash(self) -> None:
        preimage = EIP191_HEADER + bytes.fromhex(DOMAIN_HASH) + bytes.fromhex(FORM_HASH)
        assert preimage[:2].hex() == "1901"
        assert keccak(preimage).hex() == ORDER_HASH
        assert order_hash(blank_order_form()).hex() == ORDER_HASH

    def test_order_sign(self) -> None:
        assert order_sign(PRIVKEY, blank_order_form()) == (
            "0x1b4ccbff4cb18802ccaf7aaa852595170fc0443d65b1d01a10f5f01d5d65ebe4"
            "2c58287ecb9cf7f62a98bdfc8931f41a157dd79e9ac5d19880f62089d9c082c79a02"
        )

    def test_camel_case_round_trip(self) -> None:
        dumped = blank_order_form().model_dump(by_alias=True)
        assert dumped["makerAssetAmount"] == "0"
        assert dumped["chainId"] == 1
        assert OrderForm.model_validate(dumped) == blank_order_form()


def _venue() -> VenueSettings:
    return VenueSettings(name="radar", protocol="0x", api_url="http://relayer.test/v3")


@pytest.fixture
def api(http, app_settings) -> Zeroex:
    return Zeroex(_venue(), VenueContext(settings=app_settings, http=http))


class TestRelayer:

    MARKET = Market(base=Ticker(symbol="WETH"), quote=Ticker(symbol="DAI"), price_decimals=2, quantity_decimals=4)

    def test_build_signs_form_as_maker(self, transport, api) -> None:
        form = blank_order_form().model_dump(by_alias=True)
        form["signature"] = ""
        transport.on("POST /v3/markets/WETH-DAI/order/limit", body=form)

        before = int(time.time())
        sheet = api.build(PRIVKEY, AskBid.BID, _venue(), self.MARKET, Offer(base_qty=Decimal("1.5"), quote=Decimal("180")))

        body = transport.bodies("POST /v3/markets/WETH-DAI/order/limit")[0]
        assert body["type"] == "SELL"
        assert body["quantity"] == "1.5000"
        assert body["price"] == "180.00"
        assert before + 125 <= int(body["expiration"]) <= int(time.time()) + 125

        assert sheet.maker_address == ADDRESS
        assert sheet.signature == order_sign(PRIVKEY, sheet)
        assert sheet.signature.endswith("02")

    def test_build_rejected(self, transport, api) -> None:
        transport.on("POST /v3/markets/WETH-DAI/order/limit", status=400, body={"error": "market not found"})
        with pytest.raises(OrderError, match="market not found"):
            api.build(PRIVKEY, AskBid.ASK, _venue(), self.MARKET, Offer(base_qty=Decimal(1), quote=Decimal(1)))

    def test_submit_posts_camel_case_form(self, transport, api) -> None:
        transport.on("POST /v3/orders", status=201, body={})
        form = blank_order_form()
        assert api.submit(PRIVKEY, _venue(), form) == "0x" + ORDER_HASH
        assert transport.bodies("POST /v3/orders")[0]["exchangeAddress"] == CONTRACT_V3

    def test_open_orders(self, transport, api) -> None:
        transport.on(
            f"GET /v3/accounts/{ADDRESS}/orders",
            body=[
                {
                    "orderHash": "0x0cfa",
                    "type": "BID",
                    "state": "UNFUNDED",
                    "baseTokenAddress": "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48",
                    "quoteTokenAddress": "0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2",
                    "remainingBaseTokenAmount": "0.037784",
                    "remainingQuoteTokenAmount": "10.03883096",
                    "price": "265.69",
                    "createdDate": "2020-03-18 17:41:39",
                }
            ],
        )
        (order,) = api.open_orders(PRIVKEY, _venue())
        assert order.side is BuySell.BUY
        assert order.state is OrderState.UNFUNDED
        assert order.market == "0xa0b8-0xc02a"
        assert order.quote == Decimal("265.69")
