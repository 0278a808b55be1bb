"""Built-in bridge tools.

Defines the fixed tool set exposed over ``tools/list`` and the handlers that
run once the dispatcher has checked arguments, applied the proxy policy and
validated contract payloads.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from roze_bridge.contracts.store import ContractStore
from roze_bridge.core.config import Settings
from roze_bridge.core.enums import EnvironmentTarget
from roze_bridge.gateway.base import BackendGateway
from roze_bridge.policy import ProxyPolicy

from .models import PreparedCall, ToolDefinition
from .registry import ToolRegistry

logger = logging.getLogger(__name__)

TARGET_VALUES: List[str] = [t.value for t in EnvironmentTarget]


def _target_property(description: str) -> Dict[str, Any]:
    return {"type": "string", "enum": list(TARGET_VALUES), "description": description}


def _payload_property(description: str) -> Dict[str, Any]:
    return {"type": "object", "description": description}


def tool_definitions(contract_names: List[str]) -> List[ToolDefinition]:
    """The tool catalogue, in the order it is published."""
    return [
        ToolDefinition(
            name="contracts.readOpenAPI",
            description="Read the OpenAPI contract specification",
            input_schema={"type": "object", "properties": {}, "required": []},
        ),
        ToolDefinition(
            name="contracts.readSchema",
            description="Read a JSON schema by name",
            input_schema={
                "type": "object",
                "properties": {
                    "name": {
                        "type": "string",
                        "enum": list(contract_names),
                        "description": "Schema name to retrieve",
                    },
                },
                "required": ["name"],
            },
        ),
        ToolDefinition(
            name="env.getTarget",
            description="Get the backend base URL for a target environment",
            input_schema={
                "type": "object",
                "properties": {"target": _target_property("Target environment")},
                "required": ["target"],
            },
            environment_aware=True,
        ),
        ToolDefinition(
            name="env.getEndpoints",
            description="Get the backend endpoints used for a target environment (defaults to dev)",
            input_schema={
                "type": "object",
                "properties": {"target": _target_property("Target environment (defaults to dev)")},
                "required": [],
            },
            environment_aware=True,
        ),
        ToolDefinition(
            name="api.orders.create",
            description="Create a new order after validating it against the order.create contract",
            input_schema={
                "type": "object",
                "properties": {
                    "payload": _payload_property("Order data to create (matches the OpenAPI schema)"),
                    "target": _target_property("Target environment (defaults to dev)"),
                },
                "required": ["payload"],
            },
            environment_aware=True,
            contract="order.create",
        ),
        ToolDefinition(
            name="api.subscribe.create",
            description="Create a new subscription after validating it against the subscribe.create contract",
            input_schema={
                "type": "object",
                "properties": {
                    "payload": _payload_property("Subscription data to create (matches the OpenAPI schema)"),
                    "target": _target_property("Target environment (defaults to dev)"),
                },
                "required": ["payload"],
            },
            environment_aware=True,
            contract="subscribe.create",
        ),
        ToolDefinition(
            name="healthz",
            description="Check backend health status for a target environment (defaults to dev)",
            input_schema={
                "type": "object",
                "properties": {"target": _target_property("Target environment (defaults to dev)")},
                "required": [],
            },
            environment_aware=True,
        ),
    ]


class BridgeTools:
    """Handlers for the built-in tools."""

    def __init__(
        self,
        *,
        store: ContractStore,
        gateway: BackendGateway,
        policy: ProxyPolicy,
        settings: Settings,
    ) -> None:
        self._store = store
        self._gateway = gateway
        self._policy = policy
        self._settings = settings

    async def read_openapi(self, call: PreparedCall) -> str:
        return self._store.read_openapi()

    async def read_schema(self, call: PreparedCall) -> Dict[str, Any]:
        return self._store.get_schema(call.invocation.arguments["name"])

    async def get_target(self, call: PreparedCall) -> Dict[str, Any]:
        target = call.target or EnvironmentTarget.DEV
        return {
            "target": target.value,
            "backend": self._settings.backend.value,
            "baseUrl": self._settings.base_urls().get(target),
            "proxyMode": self._policy.mode.value,
        }

    async def get_endpoints(self, call: PreparedCall) -> Dict[str, Any]:
        target = call.target or EnvironmentTarget.DEV
        return {
            "target": target.value,
            "backend": self._settings.backend.value,
            "endpoints": self._gateway.endpoints(target),
        }

    async def create_order(self, call: PreparedCall) -> Dict[str, Any]:
        result = await self._gateway.create_order(call.payload, target=call.target)
        return result.to_wire()

    async def create_subscription(self, call: PreparedCall) -> Dict[str, Any]:
        result = await self._gateway.create_subscription(call.payload, target=call.target)
        return result.to_wire()

    async def healthz(self, call: PreparedCall) -> Dict[str, Any]:
        result = await self._gateway.health_check(target=call.target)
        out: Dict[str, Any] = {"ok": result.ok, "status": result.status, "target": call.target.value}
        if result.error:
            out["error"] = result.error
        return out


def build_registry(
    *,
    store: ContractStore,
    gateway: BackendGateway,
    policy: ProxyPolicy,
    settings: Settings,
) -> ToolRegistry:
    """Register the built-in tools and seal the registry."""
    tools = BridgeTools(store=store, gateway=gateway, policy=policy, settings=settings)
    handlers = {
        "contracts.readOpenAPI": tools.read_openapi,
        "contracts.readSchema": tools.read_schema,
        "env.getTarget": tools.get_target,
        "env.getEndpoints": tools.get_endpoints,
        "api.orders.create": tools.create_order,
        "api.subscribe.create": tools.create_subscription,
        "healthz": tools.healthz,
    }
    registry = ToolRegistry()
    for definition in tool_definitions(list(store.names)):
        registry.register(definition, handlers[definition.name])
    registry.seal()
    logger.info("Registered %d tools: %s", len(registry), ", ".join(registry.names()))
    return registry
