"""Tool dispatcher.

Runs the validation -> policy -> gateway pipeline for one invocation. The
order of the gates is fixed:

1. Required arguments are present.
2. Environment-aware tools: the ``target`` argument is a declared target and
   the proxy policy permits it. A refused target is answered before any
   other argument or payload is inspected.
3. The remaining arguments match the tool's input schema (types and enums).
4. Contract tools: the payload satisfies its contract.
5. The tool handler runs (backend call for api/healthz tools).

Gate failures are returned as ordinary tool results with the
``GatewayResult`` shape; only an unknown tool name raises.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from roze_bridge.contracts.models import FieldError
from roze_bridge.contracts.store import ContractStore
from roze_bridge.core import monitoring
from roze_bridge.core.enums import DEFAULT_TARGET, EnvironmentTarget
from roze_bridge.core.errors import MissingArgumentError
from roze_bridge.gateway.models import GatewayResult
from roze_bridge.policy import ProxyPolicy

from .models import Invocation, PreparedCall, ToolDefinition
from .registry import ToolRegistry

logger = logging.getLogger(__name__)

BAD_REQUEST_STATUS = 400
TARGET_POINTER = "/target"


class Dispatcher:
    def __init__(self, registry: ToolRegistry, store: ContractStore, policy: ProxyPolicy) -> None:
        self._registry = registry
        self._store = store
        self._policy = policy

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    async def dispatch(self, invocation: Invocation) -> Any:
        """Run ``invocation`` through the pipeline and return the tool result.

        Raises:
            UnknownToolError: If the tool is not registered.
        """
        definition, handler = self._registry.get(invocation.tool)
        arguments = invocation.arguments

        try:
            self._check_required(definition, arguments)
        except MissingArgumentError as e:
            logger.info("Dispatcher.dispatch: %s", e)
            return GatewayResult.failure(
                BAD_REQUEST_STATUS,
                str(e),
                body={"error": "Missing argument", "argument": e.argument, "tool": e.tool},
            ).to_wire()

        argument_errors = definition.check_arguments(arguments)
        target_errors = [e for e in argument_errors if e.path == TARGET_POINTER]
        if target_errors:
            return self._invalid_arguments(definition, target_errors)

        target: Optional[EnvironmentTarget] = None
        if definition.environment_aware:
            target = EnvironmentTarget(arguments.get("target") or DEFAULT_TARGET)
            if not self._policy.is_allowed(target):
                logger.warning(
                    "Dispatcher.dispatch: %s refused for target=%s (proxy mode %s)",
                    definition.name,
                    target.value,
                    self._policy.mode.value,
                )
                return self._policy.refusal(target).to_wire()

        if argument_errors:
            return self._invalid_arguments(definition, argument_errors)

        payload = None
        if definition.contract is not None:
            result = self._store.validate(definition.contract, arguments["payload"])
            if not result.valid:
                details = result.details()
                logger.info("Dispatcher.dispatch: %s payload rejected: %s", definition.name, details)
                return GatewayResult.failure(
                    BAD_REQUEST_STATUS,
                    f"Schema validation failed: {details}",
                    body={"error": "Validation failed", "details": details, "errors": _as_wire(result.errors)},
                ).to_wire()
            payload = result.payload

        call = PreparedCall(invocation=invocation, target=target, payload=payload)
        logger.debug(
            "Dispatcher.dispatch: running %s target=%s",
            definition.name,
            target.value if target else None,
        )
        with monitoring.span("dispatch {tool}", tool=definition.name, target=target.value if target else None):
            return await handler(call)

    @staticmethod
    def _invalid_arguments(definition: ToolDefinition, errors: List[FieldError]) -> Dict[str, Any]:
        details = _details(errors)
        logger.info("Dispatcher.dispatch: %s invalid arguments: %s", definition.name, details)
        return GatewayResult.failure(
            BAD_REQUEST_STATUS,
            f"Invalid arguments: {details}",
            body={"error": "Invalid arguments", "details": details, "errors": _as_wire(errors)},
        ).to_wire()

    @staticmethod
    def _check_required(definition: ToolDefinition, arguments: Dict[str, Any]) -> None:
        for name in definition.required_arguments:
            if arguments.get(name) is None:
                raise MissingArgumentError(definition.name, name)


def _details(errors: List[FieldError]) -> str:
    return "; ".join(f"{e.path}: {e.message}" for e in errors)


def _as_wire(errors: List[FieldError]) -> List[Dict[str, str]]:
    return [e.to_wire() for e in errors]
