from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from jsonschema import Draft7Validator
from pydantic import ConfigDict, Field, PrivateAttr

from roze_bridge.contracts.models import FieldError, ValidatedPayload
from roze_bridge.contracts.validation import collect_errors, compile_validator
from roze_bridge.core.enums import EnvironmentTarget
from roze_bridge.core.schema import BaseSchema


class ToolDefinition(BaseSchema):
    """A named operation the bridge exposes to callers.

    ``environment_aware`` and ``contract`` drive the dispatch pipeline and are
    not part of the published catalogue entry.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Tool name, unique within the registry.", min_length=1, max_length=128)
    description: str = Field(..., description="Human-readable description of the tool.")
    input_schema: Dict[str, Any] = Field(
        default_factory=lambda: {"type": "object", "properties": {}, "required": []},
        description="JSON Schema of the tool arguments.",
    )
    environment_aware: bool = Field(
        default=False,
        exclude=True,
        description="Tool accepts a 'target' argument and is subject to the proxy policy.",
    )
    contract: Optional[str] = Field(
        default=None,
        exclude=True,
        description="Contract the 'payload' argument must satisfy before the handler runs.",
    )

    _validator: Draft7Validator = PrivateAttr()

    def model_post_init(self, __context: Any) -> None:
        self._validator = compile_validator(self.input_schema)

    @property
    def required_arguments(self) -> Tuple[str, ...]:
        return tuple(self.input_schema.get("required") or ())

    def check_arguments(self, arguments: Dict[str, Any]) -> List[FieldError]:
        """Type and enum violations of ``arguments`` against ``input_schema``."""
        return collect_errors(self._validator, arguments)

    def to_catalogue_entry(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class Invocation(BaseSchema):
    """One request to execute a tool, built once per ``tools/call``."""

    model_config = ConfigDict(frozen=True)

    tool: str = Field(..., description="Requested tool name.")
    arguments: Dict[str, Any] = Field(default_factory=dict, description="Argument name to value mapping.")


class PreparedCall(BaseSchema):
    """An invocation that has passed every gate of the dispatch pipeline."""

    model_config = ConfigDict(frozen=True)

    invocation: Invocation
    target: Optional[EnvironmentTarget] = Field(None, description="Resolved environment target.")
    payload: Optional[ValidatedPayload] = Field(None, description="Contract-validated payload.")
