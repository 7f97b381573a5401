"""Tests for exchanges/ddex.py (Hydro v3 and v4)."""

from __future__ import annotations

from decimal import Decimal

import pytest

from config.venues import PairDetail, VenueSettings
from core.errors import OrderError, ProtocolError
from exchanges.base import BuySell, OrderState
from exchanges.ddex import AUTH_HEADER, Ddex3, Ddex4, HydroOrderSheet
from exchanges.oasis import OasisOrderSheet
from exchanges.registry import VenueContext
from models import AskBid, Market, Offer, Ticker
from web3_infra.keys import recover_address
from web3_infra.signer import Signature, eth_message_hash, sign_message

PRIVKEY = "e4abcbf75d38cf61c4fde0ade1148f90376616f5233b7c1fef2a78c5992a9a50"
ADDRESS = "0xed6d484f5c289ec8c6b6f934ef6419230169f534"
ORDER_ID = "0x9b976813b83eb076a32f167a9dfcbc69a6df3f83bf524992313fe0601b27c9fd"


def _venue(protocol: str = "ddex3") -> VenueSettings:
    return VenueSettings(
        name="hydro",
        protocol=protocol,
        api_url="http://hydro.test/v3",
        pairs=[PairDetail(id="WETH-DAI", base="WETH", quote="DAI", price_decimals=2, amount_decimals=4)],
    )


def _market(swapped: bool = True) -> Market:
    return Market(source_name="hydro", base=Ticker(symbol="DAI"), quote=Ticker(symbol="WETH"), swapped=swapped)


def _order(side: str = "sell") -> dict:
    return {
        "id": ORDER_ID,
        "marketId": "WETH-DAI",
        "side": side,
        "price": "0.10",
        "amount": "50.0000",
        "type": "limit",
        "makerFeeRate": "0.00100",
        "takerFeeRate": "0.00300",
        "gasFeeAmount": "0.00095",
    }


@pytest.fixture
def api(http, app_settings) -> Ddex3:
    return Ddex3(_venue(), VenueContext(settings=app_settings, http=http))


class TestBuild:

    def test_swapped_market_flips_side_and_inverts_offer(self, transport, api) -> None:
        transport.on("POST /v3/orders/build", body={"status": 0, "desc": "success", "data": {"order": _order()}})
        sheet = api.build(PRIVKEY, AskBid.ASK, _venue(), _market(), Offer(base_qty=Decimal(5), quote=Decimal(10)))

        assert isinstance(sheet, HydroOrderSheet)
        assert sheet.id == ORDER_ID
        assert transport.bodies("POST /v3/orders/build") == [
            {
                "marketId": "WETH-DAI",
                "side": "sell",
                "orderType": "limit",
                "price": "0.10",
                "amount": "50.0000",
            }
        ]

    def test_unswapped_ask_is_buy(self, transport, api) -> None:
        market = Market(base=Ticker(symbol="WETH"), quote=Ticker(symbol="DAI"))
        transport.on("POST /v3/orders/build", body={"status": 0, "desc": "", "data": {"order": _order("buy")}})
        api.build(PRIVKEY, AskBid.ASK, _venue(), market, Offer(base_qty=Decimal("1.23456"), quote=Decimal("180.456")))
        body = transport.bodies("POST /v3/orders/build")[0]
        assert body["side"] == "buy"
        assert body["amount"] == "1.2346"
        assert body["price"] == "180.46"

    def test_auth_header_signed_by_key(self, transport, api) -> None:
        transport.on("POST /v3/orders/build", body={"status": 0, "desc": "", "data": {"order": _order()}})
        api.build(PRIVKEY, AskBid.BID, _venue(), _market(), Offer(base_qty=Decimal(1), quote=Decimal(2)))

        token = transport.requests[0].headers[AUTH_HEADER]
        address, message, signature = token.split("#")
        assert address == ADDRESS
        assert message.startswith("HYDRO-AUTHENTICATION@")
        raw = bytes.fromhex(signature[2:])
        sig = Signature(r=raw[:32], s=raw[32:64], recovery_id=raw[64] - 27)
        assert "0x" + recover_address(eth_message_hash(message), sig).hex() == ADDRESS

    def test_nonzero_status_in_2xx_is_rejection(self, transport, api) -> None:
        transport.on("POST /v3/orders/build", body={"status": 2, "desc": "insufficient balance", "data": None})
        with pytest.raises(OrderError) as exc_info:
            api.build(PRIVKEY, AskBid.ASK, _venue(), _market(), Offer(base_qty=Decimal(5), quote=Decimal(10)))
        assert exc_info.value.code == 2
        assert exc_info.value.message == "insufficient balance"

    def test_http_error_is_rejection(self, transport, api) -> None:
        transport.on("POST /v3/orders/build", status=400, body={"status": -1, "desc": "bad market"})
        with pytest.raises(OrderError) as exc_info:
            api.build(PRIVKEY, AskBid.ASK, _venue(), _market(), Offer(base_qty=Decimal(5), quote=Decimal(10)))
        assert exc_info.value.code == -1

    def test_success_without_order(self, transport, api) -> None:
        transport.on("POST /v3/orders/build", body={"status": 0, "desc": "", "data": {}})
        with pytest.raises(ProtocolError):
            api.build(PRIVKEY, AskBid.ASK, _venue(), _market(), Offer(base_qty=Decimal(5), quote=Decimal(10)))

    def test_unknown_pair_uses_market_decimals(self, transport, api) -> None:
        market = Market(base=Ticker(symbol="MKR"), quote=Ticker(symbol="DAI"), price_decimals=1, quantity_decimals=3)
        transport.on("POST /v3/orders/build", body={"status": 0, "desc": "", "data": {"order": _order()}})
        api.build(PRIVKEY, AskBid.ASK, _venue(), market, Offer(base_qty=Decimal("0.5"), quote=Decimal("700.25")))
        body = transport.bodies("POST /v3/orders/build")[0]
        assert body["amount"] == "0.500"
        assert body["price"] == "700.3"


class TestSubmit:

    def test_signs_order_id(self, transport, api) -> None:
        transport.on("POST /v3/orders/sync", body={"status": 0, "desc": "success"})
        sheet = HydroOrderSheet.model_validate(_order())
        assert api.submit(PRIVKEY, _venue(), sheet) == ORDER_ID
        assert transport.bodies("POST /v3/orders/sync") == [
            {"orderId": ORDER_ID, "signature": sign_message(PRIVKEY, ORDER_ID).vrs_hex(), "method": 0}
        ]

    def test_rejected(self, transport, api) -> None:
        transport.on("POST /v3/orders/sync", body={"status": 7, "desc": "order expired"})
        with pytest.raises(OrderError) as exc_info:
            api.submit(PRIVKEY, _venue(), HydroOrderSheet.model_validate(_order()))
        assert exc_info.value.code == 7

    def test_wrong_sheet(self, api) -> None:
        sheet = OasisOrderSheet(address=ADDRESS, token_buy="0x1", amount_buy="1", token_sell="0x2", amount_sell="1")
        with pytest.raises(OrderError) as exc_info:
            api.submit(PRIVKEY, _venue(), sheet)
        assert exc_info.value.code == OrderError.WRONG_SHEET


class TestOpenOrders:

    def test_maps_orders(self, transport, api) -> None:
        transport.on(
            "GET /v3/orders",
            body={
                "status": 0,
                "desc": "success",
                "data": {
                    "orders": [
                        {"id": "1", "side": "buy", "status": "pending", "price": "0.1", "amount": "2",
                         "marketId": "WETH-DAI", "createdAt": 1566380397},
                        {"id": "2", "side": "sell", "status": "full filled", "price": "0.2", "amount": "3",
                         "marketId": "WETH-DAI", "createdAt": 1566380398},
                    ]
                },
            },
        )
        orders = api.open_orders(PRIVKEY, _venue())
        assert [o.id for o in orders] == ["1", "2"]
        assert orders[0].side is BuySell.BUY and orders[0].state is OrderState.OPEN
        assert orders[1].state is OrderState.FILLED
        assert orders[1].base_qty == Decimal("3")

    def test_unknown_status(self, transport, api) -> None:
        transport.on(
            "GET /v3/orders",
            body={"status": 0, "data": {"orders": [{"id": "1", "side": "buy", "status": "weird", "price": "1", "amount": "1"}]}},
        )
        with pytest.raises(ProtocolError):
            api.open_orders(PRIVKEY, _venue())


class TestDdex4:

    def test_trading_wallet(self, transport, http, app_settings) -> None:
        api = Ddex4(_venue("ddex4"), VenueContext(settings=app_settings, http=http))
        transport.on("POST /v3/orders/build", body={"status": 0, "desc": "", "data": {"order": _order()}})
        api.build(PRIVKEY, AskBid.ASK, _venue("ddex4"), _market(), Offer(base_qty=Decimal(5), quote=Decimal(10)))
        body = transport.bodies("POST /v3/orders/build")[0]
        assert body["walletType"] == "trading"
        assert body["side"] == "sell"
