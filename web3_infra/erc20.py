"""ERC-20 token helper — allowance, approve and balanceOf."""

from __future__ import annotations

import structlog

from web3_infra.abi import UINT256_MAX, allowance, approve, balance_of
from web3_infra.chain_client import ChainClient, ContractConfig
from web3_infra.keys import PrivateKeyLike, derive_address_hex

logger = structlog.get_logger("web3_infra.erc20")


class Erc20:
    """Calls against one token contract."""

    def __init__(self, client: ChainClient, token: ContractConfig) -> None:
        self._client = client
        self._token = token

    @property
    def address(self) -> str:
        return self._token.contract_address

    def allowance(self, private_key: PrivateKeyLike, spender: str) -> int:
        """Amount *spender* may move on behalf of the key's address."""
        owner = derive_address_hex(private_key)
        return self._client.call(self.address, allowance(owner, spender))

    def approve(self, private_key: PrivateKeyLike, spender: str, amount: int = UINT256_MAX) -> str:
        """Grant *spender* an allowance, unlimited by default."""
        tx_hash = self._client.transact(private_key, self._token, approve(spender, amount))
        logger.info("erc20.approved", token=self.address, spender=spender, tx_hash=tx_hash)
        return tx_hash

    def balance_of(self, owner: str) -> int:
        return self._client.call(self.address, balance_of(owner))
