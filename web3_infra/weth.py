"""WETH helper — wrap ether into WETH and back."""

from __future__ import annotations

from enum import Enum

import structlog

from core.errors import EncodingError
from web3_infra.abi import deposit, withdraw
from web3_infra.chain_client import ChainClient, ContractConfig
from web3_infra.keys import PrivateKeyLike

logger = structlog.get_logger("web3_infra.weth")


class Direction(str, Enum):
    WRAP = "wrap"
    UNWRAP = "unwrap"


class Weth:
    """``deposit()`` carries the amount as value; ``withdraw(amount)`` carries none."""

    def __init__(self, client: ChainClient, contract: ContractConfig) -> None:
        self._client = client
        self._contract = contract

    def wrap(self, private_key: PrivateKeyLike, direction: Direction, amount_wei: int) -> str:
        if amount_wei <= 0:
            raise EncodingError(f"{direction.value} amount must be positive, got {amount_wei}")
        if direction is Direction.WRAP:
            call, value = deposit(), amount_wei
        else:
            call, value = withdraw(amount_wei), 0
        tx_hash = self._client.transact(private_key, self._contract, call, value=value)
        logger.info(
            "weth.sent",
            direction=direction.value,
            amount_wei=amount_wei,
            tx_hash=tx_hash,
        )
        return tx_hash
