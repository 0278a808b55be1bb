from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import ConfigDict, Field

from roze_bridge.core.schema import BaseSchema


class FieldError(BaseSchema):
    model_config = ConfigDict(frozen=True)

    path: str = Field(..., description="JSON pointer of the offending value ('root' for the document itself).")
    message: str = Field(..., description="Human-readable description of the violated constraint.")


class ValidatedPayload(BaseSchema):
    """A payload that has passed the contract gate.

    Only the contract store builds these; backend gateways accept nothing else.
    """

    model_config = ConfigDict(frozen=True)

    contract: str = Field(..., description="Name of the contract the payload satisfies.")
    data: Dict[str, Any] = Field(default_factory=dict, description="The validated payload.")


class ValidationResult(BaseSchema):
    valid: bool = Field(..., description="Whether the payload satisfies the contract.")
    errors: List[FieldError] = Field(default_factory=list, description="Every violation, ordered by path.")
    payload: Optional[ValidatedPayload] = Field(None, description="Set only when valid.")

    def details(self) -> str:
        """All violations as a single '<path>: <message>; ...' string."""
        return "; ".join(f"{e.path}: {e.message}" for e in self.errors)
