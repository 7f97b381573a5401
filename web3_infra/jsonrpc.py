"""JSON-RPC 2.0 envelopes."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, ValidationError, model_validator

from core.errors import ChainError, ProtocolError
from data.http_client import gen_id


class JsonRpcRequest(BaseModel):
    jsonrpc: str = "2.0"
    id: str = Field(default_factory=gen_id)
    method: str
    params: list[Any] = Field(default_factory=list)


class JsonRpcErrorObject(BaseModel):
    code: int
    message: str
    data: Any = None


class JsonRpcResponse(BaseModel):
    """Either ``result`` or ``error`` is present, never neither."""

    jsonrpc: str = "2.0"
    id: str | int | None = None
    result: Any = None
    error: JsonRpcErrorObject | None = None

    @model_validator(mode="before")
    @classmethod
    def _require_outcome(cls, data: Any) -> Any:
        if isinstance(data, dict) and "result" not in data and "error" not in data:
            raise ValueError("response has neither result nor error")
        return data

    def unwrap(self) -> Any:
        """Return ``result`` or raise :class:`ChainError` for an error object."""
        if self.error is not None:
            raise ChainError(self.error.code, self.error.message)
        return self.result


def parse_response(payload: Any) -> JsonRpcResponse:
    """Validate a decoded response body.

    Raises
    ------
    ProtocolError
        If the body is not a JSON-RPC response object.
    """
    if not isinstance(payload, dict):
        raise ProtocolError(f"JSON-RPC response must be an object, got {type(payload).__name__}")
    try:
        return JsonRpcResponse.model_validate(payload)
    except ValidationError as exc:
        raise ProtocolError(f"malformed JSON-RPC response: {exc}") from exc


def parse_quantity(value: Any, field: str = "result") -> int:
    """Integer from a ``0x`` hex quantity string."""
    if not isinstance(value, str) or not value.startswith("0x"):
        raise ProtocolError(f"{field} is not a hex quantity: {value!r}")
    if value == "0x":
        raise ProtocolError(f"{field} is empty")
    try:
        return int(value, 16)
    except ValueError as exc:
        raise ProtocolError(f"{field} is not a hex quantity: {value!r}") from exc
