"""Gas price oracle — recommended "fast" price from an HTTP endpoint.

The oracle answers ``{"fast": <number>, ...}`` in units of 0.1 Gwei, so
the wei price is ``fast * 10**8``.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation

import structlog

from core.errors import ProtocolError
from data.http_client import LoggingClient

logger = structlog.get_logger("web3_infra.gas_oracle")

TENTH_GWEI = 10**8


class GasOracle:
    """Reads the fast gas price from *url*."""

    def __init__(self, url: str, http: LoggingClient) -> None:
        self._url = url
        self._http = http

    def fast(self) -> int:
        """Fast gas price in wei.

        Raises
        ------
        ProtocolError
            If the response has no numeric ``fast`` field.
        """
        resp = self._http.get(self._url)
        if not resp.is_success:
            raise ProtocolError(f"gas oracle returned HTTP {resp.status_code}")
        body = resp.json()
        if not isinstance(body, dict) or "fast" not in body:
            raise ProtocolError("gas oracle response has no 'fast' field")

        raw = body["fast"]
        if isinstance(raw, bool):
            raise ProtocolError(f"gas oracle 'fast' is not numeric: {raw!r}")
        try:
            fast = Decimal(str(raw))
        except InvalidOperation as exc:
            raise ProtocolError(f"gas oracle 'fast' is not numeric: {raw!r}") from exc
        if not fast.is_finite() or fast < 0:
            raise ProtocolError(f"gas oracle 'fast' out of range: {raw!r}")

        wei = int(fast * TENTH_GWEI)
        logger.info("gas_oracle.fast", fast=str(fast), gas_price_wei=wei)
        return wei
