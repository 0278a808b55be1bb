from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Protocol, runtime_checkable

import httpx

from roze_bridge import __version__
from roze_bridge.contracts.models import ValidatedPayload
from roze_bridge.core.enums import EnvironmentTarget

from .models import NO_RESPONSE_STATUS, GatewayResult
from .redaction import sanitize_error

DEFAULT_TIMEOUT_SECONDS = 30.0
USER_AGENT = f"roze-bridge/{__version__}"


class BackendOperation(str, Enum):
    """Logical backend actions; values are the remote procedure names."""

    HEALTH_CHECK = "healthz"
    CREATE_ORDER = "createOrder"
    CREATE_SUBSCRIPTION = "createSubscription"

    @property
    def logical_name(self) -> str:
        return _LOGICAL_NAMES[self]


_LOGICAL_NAMES = {
    BackendOperation.HEALTH_CHECK: "healthCheck",
    BackendOperation.CREATE_ORDER: "createOrder",
    BackendOperation.CREATE_SUBSCRIPTION: "createSubscription",
}


@runtime_checkable
class BackendGateway(Protocol):
    async def health_check(self, *, target: EnvironmentTarget) -> GatewayResult: ...

    async def create_order(self, payload: ValidatedPayload, *, target: EnvironmentTarget) -> GatewayResult: ...

    async def create_subscription(
        self, payload: ValidatedPayload, *, target: EnvironmentTarget
    ) -> GatewayResult: ...

    def endpoints(self, target: EnvironmentTarget) -> Dict[str, str]: ...

    async def aclose(self) -> None: ...


class GatewayCommonMixin:
    """Shared plumbing for the httpx-based gateway strategies."""

    _base_urls: Dict[EnvironmentTarget, str]
    _http: httpx.AsyncClient
    _owns_client: bool
    _logger: logging.Logger

    def _init_http(
        self,
        base_urls: Mapping[EnvironmentTarget, str],
        *,
        timeout: float,
        client: Optional[httpx.AsyncClient],
    ) -> None:
        self._base_urls = {EnvironmentTarget(t): url.rstrip("/") for t, url in base_urls.items()}
        self._owns_client = client is None
        self._http = client or httpx.AsyncClient(timeout=timeout, follow_redirects=True)
        self._logger = logging.getLogger(type(self).__module__)

    def base_url_for(self, target: EnvironmentTarget) -> Optional[str]:
        return self._base_urls.get(target)

    def _headers(self) -> Dict[str, str]:
        return {"Content-Type": "application/json", "User-Agent": USER_AGENT}

    @staticmethod
    def _decode_body(response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    def _unconfigured(self, target: EnvironmentTarget) -> GatewayResult:
        self._logger.warning("%s: no base URL configured for target=%s", type(self).__name__, target.value)
        return GatewayResult.failure(
            NO_RESPONSE_STATUS,
            f"No backend configured for target '{target.value}'",
        )

    def _transport_failure(self, url: str, exc: Exception) -> GatewayResult:
        reason = sanitize_error(str(exc) or type(exc).__name__)
        self._logger.warning(
            "%s: request to %s failed: %s: %s",
            type(self).__name__,
            sanitize_error(url),
            type(exc).__name__,
            reason,
        )
        return GatewayResult.failure(NO_RESPONSE_STATUS, reason)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()
