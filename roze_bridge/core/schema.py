"""Pydantic base schema shared by the bridge's wire-facing models.

``BaseSchema`` enforces camelCase aliasing and the extra-field policy for the
models exchanged with clients and backends.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


def _to_camel(s: str) -> str:
    """Convert snake_case to camelCase for JSON aliasing."""
    parts = s.split("_")
    return parts[0] + "".join(p.capitalize() or "_" for p in parts[1:])


class BaseSchema(BaseModel):
    """Shared base for the bridge's Pydantic models.

    - Sets strict handling for extra fields
    - Enables populate_by_name for using either snake_case or camelCase
    - Uses a snake->camel alias generator for JSON interop
    """

    model_config = ConfigDict(
        populate_by_name=True,
        extra="forbid",
        alias_generator=_to_camel,
    )

    def to_wire(self) -> dict:
        """JSON-ready dict using camelCase keys, without unset optional values."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")
