"""LoggingClient — synchronous httpx client that logs every exchange.

Each request gets a short random id so the request and response lines can
be correlated in the log stream.  Transport failures surface as
:class:`core.errors.TransportError`; undecodable bodies as
:class:`core.errors.ProtocolError`.  Non-2xx statuses are *not* raised
here: venues decide how to read them.
"""

from __future__ import annotations

import json
import secrets
from dataclasses import dataclass
from typing import Any

import httpx
import structlog

from core.errors import ProtocolError, TransportError

logger = structlog.get_logger("data.http_client")


def gen_id() -> str:
    """Short random request id."""
    return secrets.token_hex(6)


@dataclass(frozen=True)
class LoggingResponse:
    """Status and body of a completed request."""

    request_id: str
    url: str
    status_code: int
    text: str

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    def json(self) -> Any:
        """Decoded JSON body.

        Raises
        ------
        ProtocolError
            If the body is not JSON.
        """
        try:
            return json.loads(self.text)
        except ValueError as exc:
            raise ProtocolError(
                f"{self.url} returned non-JSON body (HTTP {self.status_code})"
            ) from exc


class LoggingClient:
    """Thin wrapper over :class:`httpx.Client`.

    Parameters
    ----------
    timeout:
        Per-request timeout in seconds.
    proxy:
        Optional proxy URL applied to every request.
    transport:
        Optional httpx transport, e.g. ``httpx.MockTransport`` in tests.
    """

    def __init__(
        self,
        timeout: float = 10.0,
        proxy: str | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        kwargs: dict[str, Any] = {"timeout": httpx.Timeout(timeout)}
        if proxy:
            kwargs["proxy"] = proxy
        if transport is not None:
            kwargs["transport"] = transport
        self._client = httpx.Client(**kwargs)

    @classmethod
    def from_settings(cls, settings: Any, transport: httpx.BaseTransport | None = None) -> LoggingClient:
        return cls(
            timeout=settings.HTTP_TIMEOUT_SECONDS,
            proxy=settings.HTTP_PROXY or None,
            transport=transport,
        )

    # ── Public API ──────────────────────────────────────────────

    def get(self, url: str, headers: dict[str, str] | None = None) -> LoggingResponse:
        return self.request("GET", url, headers=headers)

    def post(
        self,
        url: str,
        json_body: Any = None,
        headers: dict[str, str] | None = None,
    ) -> LoggingResponse:
        return self.request("POST", url, json_body=json_body, headers=headers)

    def request(
        self,
        method: str,
        url: str,
        json_body: Any = None,
        headers: dict[str, str] | None = None,
    ) -> LoggingResponse:
        request_id = gen_id()
        logger.info("http.request", id=request_id, method=method, url=url)
        if json_body is not None:
            logger.debug("http.request_body", id=request_id, body=json_body)

        try:
            resp = self._client.request(method, url, json=json_body, headers=headers)
        except httpx.TransportError as exc:
            logger.error("http.transport_error", id=request_id, url=url, error=str(exc))
            raise TransportError(f"{method} {url}: {exc}") from exc

        logger.info(
            "http.response",
            id=request_id,
            status=resp.status_code,
            body=resp.text,
        )
        return LoggingResponse(
            request_id=request_id,
            url=url,
            status_code=resp.status_code,
            text=resp.text,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> LoggingClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
