"""ABI call encoder — selectors and 32-byte argument words.

Only the static types the agent needs (``address`` and ``uint256``) are
supported; encoding is delegated to ``eth_abi`` and its range errors are
re-raised as :class:`core.errors.EncodingOverflow`.
"""

from __future__ import annotations

from dataclasses import dataclass

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError, EncodingError as AbiEncodingError, ValueOutOfBounds
from eth_utils import encode_hex, function_signature_to_4byte_selector

from core.errors import EncodingError, EncodingOverflow, ProtocolError

UINT256_MAX = 2**256 - 1
UINT256_DIGITS = len(str(UINT256_MAX))


@dataclass(frozen=True)
class AbiCall:
    """Selector plus encoded argument words."""

    selector: bytes
    words: tuple[bytes, ...] = ()

    @property
    def data(self) -> bytes:
        return self.selector + b"".join(self.words)

    def hex(self) -> str:
        return encode_hex(self.data)


def selector(signature: str) -> bytes:
    """First four bytes of keccak256 of the canonical function signature."""
    return function_signature_to_4byte_selector(signature)


def address_bytes(address: str | bytes) -> bytes:
    if isinstance(address, str):
        text = address[2:] if address[:2] in ("0x", "0X") else address
        try:
            raw = bytes.fromhex(text)
        except ValueError as exc:
            raise EncodingError(f"address is not valid hex: {address!r}") from exc
    else:
        raw = bytes(address)
    if len(raw) != 20:
        raise EncodingError(f"address must be 20 bytes, got {len(raw)}")
    return raw


def encode_address(address: str | bytes) -> bytes:
    """12 zero bytes followed by the 20 address bytes."""
    return encode(["address"], [address_bytes(address)])


def _to_int(value: int | str) -> int:
    if isinstance(value, bool):
        raise EncodingError("booleans are not uint256 values")
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if not (text.isascii() and text.isdigit()):
        raise EncodingError(f"not a decimal integer: {value!r}")
    digits = text.lstrip("0")
    if len(digits) > UINT256_DIGITS:
        raise EncodingOverflow(f"{len(digits)}-digit value does not fit in uint256")
    return int(digits or "0")


def encode_uint256(value: int | str) -> bytes:
    """Big-endian 32-byte word for a non-negative integer or decimal string.

    Raises
    ------
    EncodingOverflow
        If the value is negative or above ``2**256 - 1``.
    EncodingError
        If a string is not made of decimal digits.
    """
    number = _to_int(value)
    try:
        return encode(["uint256"], [number])
    except ValueOutOfBounds as exc:
        raise EncodingOverflow(f"{number} does not fit in uint256") from exc
    except AbiEncodingError as exc:
        raise EncodingError(str(exc)) from exc


def decode_uint256(word: bytes) -> int:
    """Integer value of a 32-byte return word."""
    try:
        (value,) = decode(["uint256"], bytes(word))
    except DecodingError as exc:
        raise ProtocolError(f"cannot decode uint256 from {len(word)} bytes") from exc
    return value


def build_call(signature: str, *words: bytes) -> AbiCall:
    """Selector for *signature* followed by pre-encoded words in order."""
    for word in words:
        if len(word) != 32:
            raise EncodingError(f"argument word must be 32 bytes, got {len(word)}")
    return AbiCall(selector=selector(signature), words=tuple(words))


# ── Named calls ─────────────────────────────────────────────────


def allowance(owner: str | bytes, spender: str | bytes) -> AbiCall:
    return build_call("allowance(address,address)", encode_address(owner), encode_address(spender))


def approve(spender: str | bytes, amount: int | str = UINT256_MAX) -> AbiCall:
    return build_call("approve(address,uint256)", encode_address(spender), encode_uint256(amount))


def balance_of(owner: str | bytes) -> AbiCall:
    return build_call("balanceOf(address)", encode_address(owner))


def deposit() -> AbiCall:
    return build_call("deposit()")


def withdraw(amount: int | str) -> AbiCall:
    return build_call("withdraw(uint256)", encode_uint256(amount))


def offer(
    pay_amount: int | str,
    pay_token: str | bytes,
    buy_amount: int | str,
    buy_token: str | bytes,
    position: int | str = 0,
) -> AbiCall:
    """Oasis ``offer`` placing a limit order on the matching market."""
    return build_call(
        "offer(uint256,address,uint256,address,uint256)",
        encode_uint256(pay_amount),
        encode_address(pay_token),
        encode_uint256(buy_amount),
        encode_address(buy_token),
        encode_uint256(position),
    )


def get_min_sell(token: str | bytes) -> AbiCall:
    """Oasis dust limit for selling *token*."""
    return build_call("getMinSell(address)", encode_address(token))
