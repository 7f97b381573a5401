"""Shared fixtures: known keys and a scripted httpx transport."""

from __future__ import annotations

import json
from typing import Any, Callable

import httpx
import pytest

from config.settings import Settings
from data.http_client import LoggingClient

PRIVKEY = "e4abcbf75d38cf61c4fde0ade1148f90376616f5233b7c1fef2a78c5992a9a50"
ADDRESS = "0xed6d484f5c289ec8c6b6f934ef6419230169f534"


class ScriptedTransport:
    """Routes requests to handlers and records what was sent.

    JSON-RPC posts are routed by ``method``; everything else by
    ``"<VERB> <path>"``.
    """

    def __init__(self) -> None:
        self.routes: dict[str, Callable[[dict[str, Any] | None, httpx.Request], httpx.Response]] = {}
        self.requests: list[httpx.Request] = []

    def on(self, key: str, status: int = 200, body: Any = None, handler=None) -> None:
        if handler is None:
            def handler(_payload, _request, status=status, body=body):
                return httpx.Response(status, json=body)
        self.routes[key] = handler

    def rpc(self, method: str, result: Any = None, error: dict[str, Any] | None = None) -> None:
        def handler(payload, _request):
            envelope: dict[str, Any] = {"jsonrpc": "2.0", "id": payload["id"]}
            if error is not None:
                envelope["error"] = error
            else:
                envelope["result"] = result
            return httpx.Response(200, json=envelope)

        self.routes[method] = handler

    def bodies(self, key: str) -> list[Any]:
        out = []
        for request in self.requests:
            payload = json.loads(request.content) if request.content else None
            if self._key(request, payload) == key:
                out.append(payload)
        return out

    @staticmethod
    def _key(request: httpx.Request, payload: Any) -> str:
        if isinstance(payload, dict) and payload.get("jsonrpc") == "2.0":
            return payload["method"]
        return f"{request.method} {request.url.path}"

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        payload = json.loads(request.content) if request.content else None
        key = self._key(request, payload)
        if key not in self.routes:
            return httpx.Response(404, json={"error": f"no route for {key}"})
        return self.routes[key](payload, request)


@pytest.fixture
def transport() -> ScriptedTransport:
    return ScriptedTransport()


@pytest.fixture
def http(transport: ScriptedTransport) -> LoggingClient:
    client = LoggingClient(timeout=5.0, transport=httpx.MockTransport(transport))
    yield client
    client.close()


@pytest.fixture
def app_settings() -> Settings:
    return Settings(
        GETH_URL="http://node.test",
        GAS_ORACLE_URL="http://gas.test/json",
        CHAIN_ID=1,
        WALLET_PRIVATE_KEY=PRIVKEY,
    )
