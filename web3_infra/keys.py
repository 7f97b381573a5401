"""Key and address primitives — secp256k1 keys, keccak hashing, addresses.

All functions are pure.  Private keys are accepted as hex strings (with
or without ``0x``) or raw bytes and are validated against the curve order
before any use.
"""

from __future__ import annotations

from eth_keys import keys
from eth_utils import encode_hex, keccak

from core.errors import InvalidKey

# secp256k1 group order
SECP256K1_N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141

PrivateKeyLike = str | bytes


def parse_private_key(private_key: PrivateKeyLike) -> bytes:
    """Return the 32 raw key bytes.

    Raises
    ------
    InvalidKey
        If the key is not hex, not 32 bytes, zero, or not below the
        curve order.
    """
    if isinstance(private_key, str):
        text = private_key.strip()
        if text[:2] in ("0x", "0X"):
            text = text[2:]
        try:
            raw = bytes.fromhex(text)
        except ValueError as exc:
            raise InvalidKey("private key is not valid hex") from exc
    elif isinstance(private_key, (bytes, bytearray)):
        raw = bytes(private_key)
    else:
        raise InvalidKey(f"unsupported private key type {type(private_key).__name__}")

    if len(raw) != 32:
        raise InvalidKey(f"private key must be 32 bytes, got {len(raw)}")

    scalar = int.from_bytes(raw, "big")
    if not 0 < scalar < SECP256K1_N:
        raise InvalidKey("private key is outside the secp256k1 scalar range")
    return raw


def signing_key(private_key: PrivateKeyLike) -> keys.PrivateKey:
    """Validated ``eth_keys`` private key object."""
    return keys.PrivateKey(parse_private_key(private_key))


def keccak256(data: bytes) -> bytes:
    """Keccak-256 of exactly the bytes given."""
    return keccak(primitive=bytes(data))


def derive_public_key(private_key: PrivateKeyLike) -> bytes:
    """65-byte uncompressed public key (``0x04`` prefix)."""
    return b"\x04" + signing_key(private_key).public_key.to_bytes()


def public_key_to_address(public_key: bytes) -> bytes:
    """Last 20 bytes of keccak256 of the public key without its prefix byte."""
    if len(public_key) == 65:
        if public_key[0] != 4:
            raise InvalidKey("uncompressed public key must start with 0x04")
        public_key = public_key[1:]
    elif len(public_key) != 64:
        raise InvalidKey(f"public key must be 64 or 65 bytes, got {len(public_key)}")
    return keccak256(public_key)[12:]


def derive_address(private_key: PrivateKeyLike) -> bytes:
    """20-byte account address controlled by *private_key*."""
    return public_key_to_address(derive_public_key(private_key))


def derive_address_hex(private_key: PrivateKeyLike) -> str:
    """Lower-case ``0x`` address string controlled by *private_key*."""
    return encode_hex(derive_address(private_key))


def recover_address(msg_hash: bytes, signature) -> bytes:
    """Address whose key produced *signature* over *msg_hash*.

    *signature* is anything exposing ``r`` and ``s`` (32 bytes each) and
    ``recovery_id``, such as :class:`web3_infra.signer.Signature`.
    """
    vrs = (
        signature.recovery_id,
        int.from_bytes(signature.r, "big"),
        int.from_bytes(signature.s, "big"),
    )
    public_key = keys.Signature(vrs=vrs).recover_public_key_from_msg_hash(msg_hash)
    return public_key.to_canonical_address()
