"""Raw legacy transactions and EIP-155 signing."""

from __future__ import annotations

from dataclasses import dataclass

from eth_account import Account
from eth_utils import encode_hex
from web3 import Web3

from core.errors import EncodingError, EncodingOverflow
from web3_infra.abi import UINT256_MAX, address_bytes
from web3_infra.keys import PrivateKeyLike, parse_private_key


@dataclass(frozen=True)
class RawTransaction:
    """Unsigned legacy transaction.

    ``to`` is ``None`` for contract creation.  All integers must fit an
    unsigned 256-bit word.
    """

    nonce: int
    to: str | None
    value: int
    gas_price: int
    gas_limit: int
    data: bytes = b""

    def __post_init__(self) -> None:
        for name in ("nonce", "value", "gas_price", "gas_limit"):
            number = getattr(self, name)
            if not isinstance(number, int) or isinstance(number, bool):
                raise EncodingError(f"{name} must be an integer")
            if not 0 <= number <= UINT256_MAX:
                raise EncodingOverflow(f"{name}={number} does not fit in uint256")
        if self.to is not None:
            address_bytes(self.to)

    def as_dict(self, chain_id: int) -> dict:
        tx = {
            "nonce": self.nonce,
            "gasPrice": self.gas_price,
            "gas": self.gas_limit,
            "value": self.value,
            "data": self.data,
            "chainId": chain_id,
        }
        if self.to is not None:
            tx["to"] = Web3.to_checksum_address(self.to)
        return tx


def sign_transaction(tx: RawTransaction, private_key: PrivateKeyLike, chain_id: int) -> str:
    """RLP-encoded EIP-155 signed transaction as ``0x`` hex.

    ``v`` is ``recovery_id + 35 + 2 * chain_id``.
    """
    signed = Account.sign_transaction(tx.as_dict(chain_id), parse_private_key(private_key))
    return encode_hex(bytes(signed.raw_transaction))
