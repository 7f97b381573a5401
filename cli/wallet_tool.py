"""Wallet tool CLI — operator commands against the configured wallet.

Usage:
    python3 -m cli.wallet_tool address
    python3 -m cli.wallet_tool allowance --token <addr> --spender <addr>
    python3 -m cli.wallet_tool approve --token <addr> --spender <addr>
    python3 -m cli.wallet_tool wrap --amount 0.5
    python3 -m cli.wallet_tool unwrap --amount 0.5
    python3 -m cli.wallet_tool balances --venue oasis
    python3 -m cli.wallet_tool orders --venue hydro
"""

from __future__ import annotations

import argparse
import sys
from decimal import Decimal, InvalidOperation

import structlog
from web3 import Web3

from config.settings import settings
from config.venues import load_venues
from core.errors import YithError
from core.logger import setup_logging
from data.http_client import LoggingClient
from exchanges import VenueContext, hydrate_exchanges
from web3_infra.chain_client import ChainClient, ContractConfig
from web3_infra.erc20 import Erc20
from web3_infra.keys import derive_address_hex
from web3_infra.weth import Direction, Weth

logger = structlog.get_logger("cli.wallet_tool")


def _private_key() -> str:
    if not settings.WALLET_PRIVATE_KEY:
        print("ERROR: WALLET_PRIVATE_KEY is not set")
        sys.exit(1)
    return settings.WALLET_PRIVATE_KEY


def _clients() -> tuple[LoggingClient, ChainClient]:
    http = LoggingClient.from_settings(settings)
    return http, ChainClient.from_settings(settings, http)


def _token(address: str) -> ContractConfig:
    return ContractConfig(
        chain_id=settings.CHAIN_ID,
        contract_address=address,
        gas_limit=settings.DEFAULT_GAS_LIMIT,
    )


def cmd_address(args: argparse.Namespace) -> None:
    """Print the wallet address."""
    print(derive_address_hex(_private_key()))


def cmd_allowance(args: argparse.Namespace) -> None:
    """Print how much *spender* may move of *token*."""
    http, chain = _clients()
    with http:
        amount = Erc20(chain, _token(args.token)).allowance(_private_key(), args.spender)
    print(amount)


def cmd_approve(args: argparse.Namespace) -> None:
    """Grant *spender* an unlimited allowance of *token*."""
    http, chain = _clients()
    with http:
        tx_hash = Erc20(chain, _token(args.token)).approve(_private_key(), args.spender)
    print(tx_hash)


def _amount_wei(text: str) -> int:
    try:
        amount = Decimal(text)
        wei = Web3.to_wei(amount, "ether") if amount.is_finite() and amount > 0 else 0
    except (InvalidOperation, ValueError):
        wei = 0
    if wei <= 0:
        print(f"ERROR: amount must be a positive number of ether, got {text!r}")
        sys.exit(1)
    return wei


def _cmd_weth(args: argparse.Namespace, direction: Direction) -> None:
    amount_wei = _amount_wei(args.amount)
    contract = ContractConfig(
        chain_id=settings.CHAIN_ID,
        contract_address=settings.WETH_ADDRESS,
        gas_limit=settings.WETH_GAS_LIMIT,
    )
    http, chain = _clients()
    with http:
        tx_hash = Weth(chain, contract).wrap(_private_key(), direction, amount_wei)
    print(tx_hash)


def cmd_wrap(args: argparse.Namespace) -> None:
    """Convert ether into WETH."""
    _cmd_weth(args, Direction.WRAP)


def cmd_unwrap(args: argparse.Namespace) -> None:
    """Convert WETH back into ether."""
    _cmd_weth(args, Direction.UNWRAP)


def _venue(http: LoggingClient, chain: ChainClient, name: str):
    context = VenueContext(settings=settings, http=http, chain=chain)
    exchanges = hydrate_exchanges(load_venues(settings.VENUES_FILE), context)
    exchange = exchanges.find_by_name(name)
    if exchange is None:
        print(f"ERROR: no venue named {name!r} in {settings.VENUES_FILE}")
        sys.exit(1)
    return exchange


def cmd_balances(args: argparse.Namespace) -> None:
    """Print balances held for the wallet on a venue."""
    http, chain = _clients()
    with http:
        exchange = _venue(http, chain, args.venue)
        balances = exchange.api.balances(_private_key(), exchange.settings)
    for symbol, amount in sorted(balances.items()):
        print(f"  {symbol:<8} {amount}")


def cmd_orders(args: argparse.Namespace) -> None:
    """Print the wallet's open orders on a venue."""
    http, chain = _clients()
    with http:
        exchange = _venue(http, chain, args.venue)
        orders = exchange.api.open_orders(_private_key(), exchange.settings)
    for order in orders:
        print(f"  {order.id}  {order.state.value:<10} {order}")


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        description="Wallet tool — operator commands for the trading wallet",
        prog="wallet_tool",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("address", help="Show the wallet address")

    for name, help_text in (
        ("allowance", "Show an ERC-20 allowance"),
        ("approve", "Grant an unlimited ERC-20 allowance"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("--token", required=True, help="Token contract address")
        sub.add_argument("--spender", required=True, help="Spender contract address")

    for name, help_text in (("wrap", "Ether to WETH"), ("unwrap", "WETH to ether")):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("--amount", required=True, help="Amount in ether, e.g. 0.5")

    for name, help_text in (("balances", "Show venue balances"), ("orders", "Show open orders")):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("--venue", required=True, help="Venue name from the venues file")

    return parser


def main() -> None:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    cmd_map = {
        "address": cmd_address,
        "allowance": cmd_allowance,
        "approve": cmd_approve,
        "wrap": cmd_wrap,
        "unwrap": cmd_unwrap,
        "balances": cmd_balances,
        "orders": cmd_orders,
    }

    handler = cmd_map.get(args.command)
    if handler is None:
        parser.print_help()
        sys.exit(1)

    setup_logging()
    try:
        handler(args)
    except YithError as exc:
        logger.error("wallet_tool.failed", command=args.command, error=str(exc))
        print(f"ERROR: {exc}")
        sys.exit(2)


if __name__ == "__main__":
    main()
