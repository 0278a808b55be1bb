from .builtin import BridgeTools, build_registry, tool_definitions
from .dispatcher import Dispatcher
from .models import Invocation, PreparedCall, ToolDefinition
from .registry import ToolHandler, ToolRegistry

__all__ = [
    "BridgeTools",
    "Dispatcher",
    "Invocation",
    "PreparedCall",
    "ToolDefinition",
    "ToolHandler",
    "ToolRegistry",
    "build_registry",
    "tool_definitions",
]
