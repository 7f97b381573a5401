"""Error taxonomy shared by the signing, chain and venue layers.

Every fallible boundary (key parsing, hex decoding, RPC and venue JSON
decoding) raises one of these instead of a bare ``ValueError``/``KeyError``.

=================  ==========================================  ==========
Exception          Meaning                                     Retry
=================  ==========================================  ==========
InvalidKey         malformed or out-of-range private key       never
EncodingError      value cannot be ABI encoded                 never
EncodingOverflow   integer does not fit its uint256 slot       never
ChainError         node returned a JSON-RPC error object       new nonce/gas
ProtocolError      response is missing fields or malformed     yes
TransportError     network failure or timeout                  with backoff
OrderError         venue rejected the order                    no
ExchangeError      venue cannot do what was asked              no
=================  ==========================================  ==========
"""

from __future__ import annotations


class YithError(Exception):
    """Base class for all errors raised by this package."""


class InvalidKey(YithError):
    """Raised when a private key is not a valid secp256k1 scalar."""


class EncodingError(YithError):
    """Raised when a value cannot be ABI encoded."""


class EncodingOverflow(EncodingError):
    """Raised when an integer is outside ``[0, 2**256 - 1]``."""


class ProtocolError(YithError):
    """Raised when a response is well-transported but malformed."""


class TransportError(YithError):
    """Raised on connection failures and timeouts."""


class ChainError(YithError):
    """Raised when the node answers with a JSON-RPC error object."""

    def __init__(self, code: int, message: str) -> None:
        super().__init__(f"{message} [#{code}]")
        self.code = code
        self.message = message


class OrderError(YithError):
    """Raised when a venue rejects an order.

    ``code`` is the venue's own status code, or one of the local codes
    below when the rejection happens before anything is sent.
    """

    WRONG_SHEET = 12
    MINIMUM_NOT_MET = 14
    UNKNOWN_PAIR = 15

    def __init__(self, code: int, message: str) -> None:
        super().__init__(f"{message} [#{code}]")
        self.code = code
        self.message = message


class ExchangeError(YithError):
    """Raised when a venue does not support the requested capability."""
