"""Generic HTTP backend strategy.

Calls the backend's REST endpoints under a per-target base URL:

- ``GET  {base}/healthz``
- ``POST {base}/v1/orders``
- ``POST {base}/v1/subscribe``

HTTP error statuses are returned as non-success results, never raised.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

import httpx

from roze_bridge.contracts.models import ValidatedPayload
from roze_bridge.core.config import Settings
from roze_bridge.core.enums import EnvironmentTarget

from .base import DEFAULT_TIMEOUT_SECONDS, BackendGateway, BackendOperation, GatewayCommonMixin
from .models import GatewayResult

PATHS: Mapping[BackendOperation, str] = {
    BackendOperation.HEALTH_CHECK: "healthz",
    BackendOperation.CREATE_ORDER: "v1/orders",
    BackendOperation.CREATE_SUBSCRIPTION: "v1/subscribe",
}


class HttpBackendGateway(GatewayCommonMixin, BackendGateway):
    def __init__(
        self,
        base_urls: Mapping[EnvironmentTarget, str],
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._init_http(base_urls, timeout=timeout, client=client)

    @classmethod
    def from_settings(cls, settings: Settings, *, client: Optional[httpx.AsyncClient] = None) -> "HttpBackendGateway":
        return cls(settings.http_base_urls(), timeout=settings.request_timeout_seconds, client=client)

    def endpoints(self, target: EnvironmentTarget) -> Dict[str, str]:
        base = self.base_url_for(target)
        if base is None:
            return {}
        return {op.logical_name: f"{base}/{path}" for op, path in PATHS.items()}

    async def health_check(self, *, target: EnvironmentTarget) -> GatewayResult:
        return await self._request("GET", target, BackendOperation.HEALTH_CHECK)

    async def create_order(self, payload: ValidatedPayload, *, target: EnvironmentTarget) -> GatewayResult:
        return await self._request("POST", target, BackendOperation.CREATE_ORDER, payload.data)

    async def create_subscription(self, payload: ValidatedPayload, *, target: EnvironmentTarget) -> GatewayResult:
        return await self._request("POST", target, BackendOperation.CREATE_SUBSCRIPTION, payload.data)

    async def _request(
        self,
        method: str,
        target: EnvironmentTarget,
        operation: BackendOperation,
        data: Optional[Dict[str, Any]] = None,
    ) -> GatewayResult:
        base = self.base_url_for(target)
        if base is None:
            return self._unconfigured(target)
        url = f"{base}/{PATHS[operation]}"
        self._logger.debug("HttpBackendGateway.%s: %s %s target=%s", operation.value, method, url, target.value)
        try:
            r = await self._http.request(method, url, headers=self._headers(), json=data)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            return self._transport_failure(url, e)

        ok = 200 <= r.status_code < 300
        body = self._decode_body(r)
        self._logger.debug("HttpBackendGateway.%s: %s %s -> %d", operation.value, method, url, r.status_code)
        if ok:
            return GatewayResult(ok=True, status=r.status_code, body=body)
        return GatewayResult.failure(r.status_code, f"Backend responded with HTTP {r.status_code}", body=body)
