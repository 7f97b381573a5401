"""Message signer — personal-message signatures and bearer auth tokens.

Signatures are deterministic (RFC 6979) and low-s normalised by
``eth_keys``; the signer address is always derived from the private key,
never taken from the caller.
"""

from __future__ import annotations

import json
import threading
import time
from dataclasses import dataclass
from typing import Any

from eth_utils import encode_hex

from core.errors import EncodingError
from web3_infra.keys import PrivateKeyLike, derive_address_hex, keccak256, signing_key

ETH_MESSAGE_PREFIX = b"\x19Ethereum Signed Message:\n"


@dataclass(frozen=True)
class Signature:
    """Recoverable secp256k1 signature.

    Attributes
    ----------
    r, s:
        32-byte big-endian scalars.
    recovery_id:
        0 or 1.
    """

    r: bytes
    s: bytes
    recovery_id: int

    @property
    def v(self) -> int:
        """Yellow-paper ``v`` used by message signatures (27/28)."""
        return self.recovery_id + 27

    def eip155_v(self, chain_id: int) -> int:
        """Replay-protected ``v`` for a transaction on *chain_id*."""
        return self.recovery_id + 35 + 2 * chain_id

    def to_rsv(self) -> bytes:
        return self.r + self.s + bytes([self.v])

    def to_vrs(self) -> bytes:
        return bytes([self.v]) + self.r + self.s

    def rsv_hex(self) -> str:
        return encode_hex(self.to_rsv())

    def vrs_hex(self) -> str:
        return encode_hex(self.to_vrs())


def eth_message_hash(message: bytes | str) -> bytes:
    """Keccak256 of the ``\\x19Ethereum Signed Message:\\n<len>`` envelope."""
    if isinstance(message, str):
        message = message.encode("utf-8")
    header = ETH_MESSAGE_PREFIX + str(len(message)).encode("ascii")
    return keccak256(header + message)


def sign_hash(private_key: PrivateKeyLike, msg_hash: bytes) -> Signature:
    """Sign a 32-byte digest as-is."""
    if len(msg_hash) != 32:
        raise EncodingError(f"message hash must be 32 bytes, got {len(msg_hash)}")
    raw = signing_key(private_key).sign_msg_hash(msg_hash)
    return Signature(
        r=raw.r.to_bytes(32, "big"),
        s=raw.s.to_bytes(32, "big"),
        recovery_id=raw.v,
    )


def sign_message(private_key: PrivateKeyLike, message: bytes | str) -> Signature:
    """Personal-message signature over *message*."""
    return sign_hash(private_key, eth_message_hash(message))


def sign_json(private_key: PrivateKeyLike, payload: dict[str, Any]) -> str:
    """Personal-sign the compact JSON form of *payload*, keys in insertion order.

    Returns the ``0x`` rsv hex.
    """
    text = json.dumps(payload, separators=(",", ":"))
    return sign_message(private_key, text).rsv_hex()


def build_auth_token(private_key: PrivateKeyLike, message: str) -> str:
    """Bearer token ``0x{address}#{message}#0x{rsv}``."""
    address = derive_address_hex(private_key)
    signature = sign_message(private_key, message)
    return f"{address}#{message}#{signature.rsv_hex()}"


# ── Auth message tag ────────────────────────────────────────────

_tag_lock = threading.Lock()
_last_millis = 0


def auth_message(prefix: str) -> str:
    """``prefix@<millis>`` where millis strictly increases within the process."""
    global _last_millis
    with _tag_lock:
        now = int(time.time() * 1000)
        _last_millis = max(now, _last_millis + 1)
        return f"{prefix}@{_last_millis}"
