"""MCP method routing for the bridge.

``McpProtocolHandler`` turns one parsed request into one response object:

- ``initialize``: static protocol and capability metadata.
- ``tools/list``: the tool catalogue.
- ``tools/call``: the dispatcher pipeline, wrapped as text content.
- anything else: a "method not found" error.

Notifications (requests without an id) never produce a response.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError

from roze_bridge import __version__
from roze_bridge.core.errors import InvalidParamsError, UnknownMethodError, UnknownToolError
from roze_bridge.tools.dispatcher import Dispatcher
from roze_bridge.tools.models import Invocation

from .jsonrpc import (
    INVALID_PARAMS,
    METHOD_NOT_FOUND,
    JsonRpcRequest,
    error_response,
    success_response,
)

logger = logging.getLogger(__name__)

PROTOCOL_VERSION = "2024-11-05"
SERVER_NAME = "roze-bridge"


def render_content(result: Any) -> Dict[str, Any]:
    """Wrap a tool result as MCP text content."""
    text = result if isinstance(result, str) else json.dumps(result, indent=2, ensure_ascii=False)
    return {"content": [{"type": "text", "text": text}]}


class McpProtocolHandler:
    def __init__(self, dispatcher: Dispatcher) -> None:
        self._dispatcher = dispatcher

    def initialize_result(self) -> Dict[str, Any]:
        return {
            "protocolVersion": PROTOCOL_VERSION,
            "capabilities": {"tools": {}},
            "serverInfo": {"name": SERVER_NAME, "version": __version__},
        }

    async def handle(self, request: JsonRpcRequest) -> Optional[Dict[str, Any]]:
        """Handle one request; returns None for notifications."""
        if request.is_notification:
            logger.debug("McpProtocolHandler.handle: notification %s", request.method)
            return None

        try:
            result = await self._route(request)
        except UnknownMethodError as e:
            logger.info("McpProtocolHandler.handle: %s", e)
            return error_response(request.id, METHOD_NOT_FOUND, str(e))
        except UnknownToolError as e:
            logger.info("McpProtocolHandler.handle: %s", e)
            return error_response(request.id, INVALID_PARAMS, str(e), data={"tool": e.tool, "available": e.available})
        except InvalidParamsError as e:
            logger.info("McpProtocolHandler.handle: invalid params for %s: %s", request.method, e)
            return error_response(request.id, INVALID_PARAMS, f"Invalid params: {e}")
        return success_response(request.id, result)

    async def _route(self, request: JsonRpcRequest) -> Any:
        if request.method == "initialize":
            return self.initialize_result()
        if request.method == "tools/list":
            return {"tools": self._dispatcher.registry.catalogue()}
        if request.method == "tools/call":
            invocation = self._invocation(request.params)
            logger.debug("McpProtocolHandler: tools/call id=%s tool=%s", request.id, invocation.tool)
            result = await self._dispatcher.dispatch(invocation)
            return render_content(result)
        raise UnknownMethodError(request.method)

    @staticmethod
    def _invocation(params: Optional[Dict[str, Any]]) -> Invocation:
        if not params or not isinstance(params.get("name"), str):
            raise InvalidParamsError("tools/call requires a string 'name'")
        arguments = params.get("arguments")
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            raise InvalidParamsError("'arguments' must be an object")
        try:
            return Invocation(tool=params["name"], arguments=arguments)
        except ValidationError as e:
            raise InvalidParamsError(str(e)) from e
