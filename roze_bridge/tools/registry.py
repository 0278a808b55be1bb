from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, List, Tuple

from roze_bridge.core.errors import UnknownToolError

from .models import PreparedCall, ToolDefinition

logger = logging.getLogger(__name__)

ToolHandler = Callable[[PreparedCall], Awaitable[Any]]


class ToolRegistry:
    """Maps tool names to their definition and handler.

    Tools are registered at process start and the registry is sealed before
    the first request is served; afterwards it is read-only.
    """

    def __init__(self) -> None:
        self._tools: Dict[str, Tuple[ToolDefinition, ToolHandler]] = {}
        self._sealed = False

    def register(self, definition: ToolDefinition, handler: ToolHandler) -> None:
        if self._sealed:
            raise RuntimeError(f"Cannot register tool '{definition.name}': registry is sealed")
        if definition.name in self._tools:
            raise ValueError(f"Tool '{definition.name}' is already registered")
        self._tools[definition.name] = (definition, handler)
        logger.debug("ToolRegistry.register: %s", definition.name)

    def seal(self) -> None:
        self._sealed = True

    @property
    def sealed(self) -> bool:
        return self._sealed

    def get(self, name: str) -> Tuple[ToolDefinition, ToolHandler]:
        """Return definition and handler for ``name``.

        Raises:
            UnknownToolError: If no tool with that name is registered.
        """
        try:
            return self._tools[name]
        except KeyError:
            raise UnknownToolError(name, self.names()) from None

    def names(self) -> List[str]:
        return list(self._tools)

    def catalogue(self) -> List[Dict[str, Any]]:
        """Published ``{name, description, inputSchema}`` entries in registration order."""
        return [definition.to_catalogue_entry() for definition, _ in self._tools.values()]

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)
