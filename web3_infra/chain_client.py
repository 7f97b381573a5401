"""ChainClient — JSON-RPC access to an Ethereum node.

One request per call: no batching and no retries.  Node error objects are
raised as :class:`ChainError`; malformed or missing fields as
:class:`ProtocolError`; network failures as :class:`TransportError`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import structlog
from eth_utils import decode_hex, encode_hex
from web3 import Web3

from core.errors import ProtocolError
from data.http_client import LoggingClient
from web3_infra.abi import AbiCall, decode_uint256
from web3_infra.gas_oracle import GasOracle
from web3_infra.jsonrpc import JsonRpcRequest, parse_quantity, parse_response
from web3_infra.keys import PrivateKeyLike, derive_address_hex
from web3_infra.nonce import NonceSequencer
from web3_infra.transaction import RawTransaction, sign_transaction

logger = structlog.get_logger("web3_infra.chain_client")


@dataclass(frozen=True)
class ContractConfig:
    """Where and how a contract transaction is sent."""

    chain_id: int
    contract_address: str
    gas_limit: int


class ChainClient:
    """Synchronous node client.

    Parameters
    ----------
    url:
        JSON-RPC endpoint.
    http:
        Shared :class:`LoggingClient`.
    gas_oracle:
        Optional fast-price oracle; ``eth_gasPrice`` is used without one.
    sequencer:
        Per-address lock used by :meth:`transact`.
    """

    def __init__(
        self,
        url: str,
        http: LoggingClient,
        gas_oracle: GasOracle | None = None,
        sequencer: NonceSequencer | None = None,
    ) -> None:
        self._url = url
        self._http = http
        self._gas_oracle = gas_oracle
        self._sequencer = sequencer or NonceSequencer()

    @classmethod
    def from_settings(cls, settings: Any, http: LoggingClient) -> ChainClient:
        oracle = GasOracle(settings.GAS_ORACLE_URL, http) if settings.GAS_ORACLE_URL else None
        return cls(settings.GETH_URL, http, gas_oracle=oracle)

    # ── Transport ───────────────────────────────────────────────

    def rpc(self, method: str, params: list[Any]) -> Any:
        """Send one JSON-RPC request and return its ``result``."""
        request = JsonRpcRequest(method=method, params=params)
        resp = self._http.post(self._url, json_body=request.model_dump())
        try:
            body = resp.json()
        except ProtocolError:
            if not resp.is_success:
                raise ProtocolError(f"{method}: node returned HTTP {resp.status_code}") from None
            raise
        return parse_response(body).unwrap()

    # ── Reads ───────────────────────────────────────────────────

    def call_raw(self, to: str, data: bytes | AbiCall) -> bytes:
        """``eth_call`` against the latest block, returning the raw bytes."""
        payload = data.data if isinstance(data, AbiCall) else data
        result = self.rpc("eth_call", [{"to": to, "data": encode_hex(payload)}, "latest"])
        if not isinstance(result, str) or not result.startswith("0x"):
            raise ProtocolError(f"eth_call result is not hex: {result!r}")
        if result == "0x":
            raise ProtocolError(f"eth_call to {to} returned no data")
        try:
            return decode_hex(result)
        except ValueError as exc:
            raise ProtocolError(f"eth_call result is not hex: {result!r}") from exc

    def call(self, to: str, data: bytes | AbiCall) -> int:
        """``eth_call`` whose first return word is a uint256."""
        return decode_uint256(self.call_raw(to, data)[:32])

    def nonce(self, address: str) -> int:
        result = self.rpc("eth_getTransactionCount", [address, "latest"])
        return parse_quantity(result, "eth_getTransactionCount")

    def balance(self, address: str) -> int:
        """Ether balance in wei."""
        result = self.rpc("eth_getBalance", [address, "latest"])
        return parse_quantity(result, "eth_getBalance")

    def gas_price(self) -> int:
        """Fast gas price in wei."""
        if self._gas_oracle is not None:
            return self._gas_oracle.fast()
        return parse_quantity(self.rpc("eth_gasPrice", []), "eth_gasPrice")

    # ── Writes ──────────────────────────────────────────────────

    def send_raw_transaction(self, raw_tx: str) -> str:
        """Submit a signed transaction and return its hash."""
        result = self.rpc("eth_sendRawTransaction", [raw_tx])
        if not isinstance(result, str) or not result.startswith("0x"):
            raise ProtocolError(f"eth_sendRawTransaction result is not a hash: {result!r}")
        return result

    def transact(
        self,
        private_key: PrivateKeyLike,
        config: ContractConfig,
        data: bytes | AbiCall,
        value: int = 0,
    ) -> str:
        """Sign and send a contract transaction from the key's address.

        The sender's nonce lock is held from the nonce read until the
        node accepts the transaction.
        """
        sender = derive_address_hex(private_key)
        payload = data.data if isinstance(data, AbiCall) else data
        with self._sequencer.hold(sender):
            nonce = self.nonce(sender)
            gas_price = self.gas_price()
            tx = RawTransaction(
                nonce=nonce,
                to=config.contract_address,
                value=value,
                gas_price=gas_price,
                gas_limit=config.gas_limit,
                data=payload,
            )
            raw = sign_transaction(tx, private_key, config.chain_id)
            logger.info(
                "chain_client.tx_signed",
                sender=sender,
                to=config.contract_address,
                nonce=nonce,
                gas_price_gwei=str(Web3.from_wei(gas_price, "gwei")),
                gas_limit=config.gas_limit,
                value=value,
            )
            tx_hash = self.send_raw_transaction(raw)
        logger.info("chain_client.tx_sent", sender=sender, tx_hash=tx_hash)
        return tx_hash
