"""Proxy policy gate.

Decides whether a tool call may reach a given environment target. The
decision is a pure function of the configured ``ProxyMode`` and the target:

- ``dev-only`` (default): only the ``dev`` target is reachable.
- ``all``: every declared target is reachable.

Refused calls never reach the backend gateway; the dispatcher returns the
structured refusal built by ``ProxyPolicy.refusal`` instead.
"""

from __future__ import annotations

from typing import Tuple

from pydantic import ConfigDict, Field

from .core.config import Settings
from .core.enums import EnvironmentTarget, ProxyMode
from .core.schema import BaseSchema
from .gateway.models import GatewayResult

FORBIDDEN_STATUS = 403


class ProxyPolicy(BaseSchema):
    model_config = ConfigDict(frozen=True)

    mode: ProxyMode = Field(
        default=ProxyMode.DEV_ONLY,
        description="Active proxy mode. dev-only permits only the dev target; all permits every target.",
    )

    @classmethod
    def from_settings(cls, settings: Settings) -> "ProxyPolicy":
        return cls(mode=settings.proxy_mode)

    def permitted_targets(self) -> Tuple[EnvironmentTarget, ...]:
        if self.mode is ProxyMode.ALL:
            return tuple(EnvironmentTarget)
        return (EnvironmentTarget.DEV,)

    def is_allowed(self, target: EnvironmentTarget) -> bool:
        return EnvironmentTarget(target) in self.permitted_targets()

    def refusal(self, target: EnvironmentTarget) -> GatewayResult:
        """Structured 403 result for a target this policy does not permit."""
        target = EnvironmentTarget(target)
        allowed = ", ".join(t.value for t in self.permitted_targets())
        return GatewayResult(
            ok=False,
            status=FORBIDDEN_STATUS,
            body={
                "error": f"Proxy disabled in {target.value}: proxy mode '{self.mode.value}' only permits {allowed}",
                "target": target.value,
                "proxyMode": self.mode.value,
            },
        )
