"""Oasis (MatchingMarket) venue — fully on-chain.

Orders are ``offer(pay_amt, pay_gem, buy_amt, buy_gem, pos)`` contract
transactions sent through the chain client; there is no HTTP API.
"""

from __future__ import annotations

from decimal import Decimal

import structlog
from pydantic import BaseModel

from config.venues import TokenDetail, VenueSettings
from core.errors import ExchangeError, OrderError
from exchanges.base import (
    ExchangeApi,
    OrderSheet,
    align,
    quantity_in_base_units,
    units_to_quantity,
)
from exchanges.registry import register
from models.market import Market
from models.order import AskBid, Offer
from web3_infra import abi
from web3_infra.chain_client import ContractConfig
from web3_infra.keys import derive_address_hex

logger = structlog.get_logger("exchanges.oasis")


class OasisOrderSheet(OrderSheet):
    """Token amounts in integer base units, as decimal strings."""

    address: str
    token_buy: str
    amount_buy: str
    token_sell: str
    amount_sell: str


class _Leg(BaseModel):
    symbol: str
    token: TokenDetail


@register("oasis")
class Oasis(ExchangeApi):
    """Oasis matching market."""

    sheet_type = OasisOrderSheet

    def _legs(self, settings: VenueSettings, base: str, quote: str) -> tuple[_Leg, _Leg]:
        pair = settings.pair_by_symbols(base, quote)
        if pair is None:
            raise OrderError(OrderError.UNKNOWN_PAIR, f"{settings.name} does not list {base}/{quote}")
        return (
            _Leg(symbol=pair.base, token=settings.token(pair.base)),
            _Leg(symbol=pair.quote, token=settings.token(pair.quote)),
        )

    def min_sell(self, settings: VenueSettings, token: TokenDetail) -> Decimal:
        """Smallest amount of *token* the market accepts on the sell side."""
        chain = self.context.require_chain()
        units = chain.call(settings.contract_address, abi.get_min_sell(token.address))
        return units_to_quantity(units, token.decimals)

    def build(
        self,
        private_key: str,
        side: AskBid,
        settings: VenueSettings,
        market: Market,
        offer: Offer,
    ) -> OasisOrderSheet:
        aligned = align(side, market, offer, "/")
        base_symbol, quote_symbol = aligned.market_id.split("/")
        base, quote = self._legs(settings, base_symbol, quote_symbol)

        qty = aligned.offer.base_qty
        cost = aligned.offer.cost()
        qty_units = quantity_in_base_units(qty, base.token.decimals, base.token.decimals)
        cost_units = quantity_in_base_units(cost, quote.token.decimals, quote.token.decimals)

        # taking an ask pays quote for base; hitting a bid pays base for quote
        if aligned.side is AskBid.ASK:
            sell, sell_qty, buy = quote, cost, base
            amount_sell, amount_buy = cost_units, qty_units
        else:
            sell, sell_qty, buy = base, qty, quote
            amount_sell, amount_buy = qty_units, cost_units

        minimum = self.min_sell(settings, sell.token)
        if sell_qty < minimum:
            raise OrderError(
                OrderError.MINIMUM_NOT_MET,
                f"minimum {sell.symbol} sell of {minimum} not met with {sell_qty}",
            )
        logger.info(
            "oasis.min_sell_met",
            venue=settings.name,
            token=sell.symbol,
            minimum=str(minimum),
            amount=str(sell_qty),
        )

        return OasisOrderSheet(
            address=derive_address_hex(private_key),
            token_buy=buy.token.address,
            amount_buy=str(amount_buy),
            token_sell=sell.token.address,
            amount_sell=str(amount_sell),
        )

    def submit(self, private_key: str, settings: VenueSettings, sheet: OrderSheet) -> str | None:
        order = self.expect_sheet(sheet)
        if order.address.lower() != derive_address_hex(private_key):
            raise ExchangeError("order sheet was built for a different key")

        chain = self.context.require_chain()
        process = self.process_settings
        config = ContractConfig(
            chain_id=process.CHAIN_ID,
            contract_address=settings.contract_address,
            gas_limit=settings.gas_limit or process.DEFAULT_GAS_LIMIT,
        )
        call = abi.offer(order.amount_sell, order.token_sell, order.amount_buy, order.token_buy, 0)
        tx_hash = chain.transact(private_key, config, call)
        logger.info(
            "oasis.submitted",
            venue=settings.name,
            sell=order.token_sell,
            amount_sell=order.amount_sell,
            buy=order.token_buy,
            amount_buy=order.amount_buy,
            tx_hash=tx_hash,
        )
        return tx_hash

    def balances(self, private_key: str, settings: VenueSettings) -> dict[str, Decimal]:
        """Wallet balances of every configured token plus ether."""
        chain = self.context.require_chain()
        owner = derive_address_hex(private_key)
        result = {"ETH": units_to_quantity(chain.balance(owner), 18)}
        for symbol, token in settings.tokens.items():
            units = chain.call(token.address, abi.balance_of(owner))
            result[symbol] = units_to_quantity(units, token.decimals)
        return result
