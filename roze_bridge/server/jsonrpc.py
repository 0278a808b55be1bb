"""JSON-RPC 2.0 envelopes for the newline-delimited stdio channel."""

from __future__ import annotations

import json
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from roze_bridge.core.errors import MalformedEnvelopeError

JSONRPC_VERSION = "2.0"

METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

# JSON-RPC allows any JSON number as an id.
RequestId = Union[str, int, float]


class JsonRpcRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    jsonrpc: str = Field(JSONRPC_VERSION, description="Protocol version tag.")
    id: Optional[RequestId] = Field(None, description="Correlation id; absent for notifications.")
    method: str = Field(..., min_length=1, description="Method name.")
    params: Optional[Dict[str, Any]] = Field(None, description="Method parameters.")

    @property
    def is_notification(self) -> bool:
        return self.id is None


def parse_request(line: Union[str, bytes]) -> JsonRpcRequest:
    """Parse one input line into a request envelope.

    Raises:
        MalformedEnvelopeError: If the line is not JSON or not a request object.
    """
    try:
        data = json.loads(line)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MalformedEnvelopeError(f"invalid JSON ({e})") from e
    if not isinstance(data, dict):
        raise MalformedEnvelopeError("top-level JSON-RPC payload must be an object")
    try:
        return JsonRpcRequest.model_validate(data)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'envelope'}: {err['msg']}" for err in e.errors()
        )
        raise MalformedEnvelopeError(problems) from e


def success_response(request_id: Optional[RequestId], result: Any) -> Dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "result": result}


def error_response(
    request_id: Optional[RequestId],
    code: int,
    message: str,
    data: Optional[Any] = None,
) -> Dict[str, Any]:
    error: Dict[str, Any] = {"code": code, "message": message}
    if data is not None:
        error["data"] = data
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "error": error}


def encode(message: Dict[str, Any]) -> str:
    """One response object as a single line, without the trailing newline."""
    return json.dumps(message, ensure_ascii=False, separators=(",", ":"))
