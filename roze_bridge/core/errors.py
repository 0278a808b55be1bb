from __future__ import annotations

from typing import Iterable


class BridgeError(Exception):
    pass


class FatalStartupError(BridgeError):
    """Configuration or contract documents are unusable; the process must not serve requests."""


class MalformedEnvelopeError(BridgeError):
    def __init__(self, reason: str) -> None:
        super().__init__(f"Malformed JSON-RPC envelope: {reason}")
        self.reason = reason


class UnknownMethodError(BridgeError):
    def __init__(self, method: str) -> None:
        super().__init__(f"Method not found: {method}")
        self.method = method


class UnknownToolError(BridgeError):
    def __init__(self, tool: str, available: Iterable[str]) -> None:
        self.tool = tool
        self.available = list(available)
        super().__init__(f"Unknown tool: '{tool}'. Available tools: {', '.join(self.available)}")


class UnknownContractError(BridgeError):
    def __init__(self, name: str, available: Iterable[str]) -> None:
        self.name = name
        self.available = list(available)
        super().__init__(f"Schema '{name}' not found. Available schemas: {', '.join(self.available)}")


class MissingArgumentError(BridgeError):
    def __init__(self, tool: str, argument: str) -> None:
        super().__init__(f"Tool '{tool}' requires argument '{argument}'")
        self.tool = tool
        self.argument = argument


class InvalidParamsError(BridgeError):
    """Request params are structurally unusable (e.g. tools/call without a tool name)."""
