"""Callable-function backend strategy.

Invokes named remote procedures (``healthz``, ``createOrder``,
``createSubscription``) using the callable-function wire protocol:

- request: ``POST {functions_base}/{name}`` with body ``{"data": <payload>}``
- success: HTTP 200 with body ``{"result": <value>}``
- failure: body ``{"error": {"status": "INVALID_ARGUMENT", "message": "..."}}``

The backend error status is mapped to an ``ErrorClass`` and then to a status
through the shared ``STATUS_BY_ERROR_CLASS`` table.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Tuple

import httpx

from roze_bridge.contracts.models import ValidatedPayload
from roze_bridge.core.config import Settings
from roze_bridge.core.enums import EnvironmentTarget

from .base import DEFAULT_TIMEOUT_SECONDS, BackendGateway, BackendOperation, GatewayCommonMixin
from .models import ErrorClass, GatewayResult, error_class_for_status, status_for
from .redaction import sanitize_error

DEFAULT_ERROR_MESSAGE = "Callable function call failed"


class CallableBackendGateway(GatewayCommonMixin, BackendGateway):
    def __init__(
        self,
        base_urls: Mapping[EnvironmentTarget, str],
        *,
        auth_token: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._init_http(base_urls, timeout=timeout, client=client)
        self._auth_token = auth_token

    @classmethod
    def from_settings(
        cls, settings: Settings, *, client: Optional[httpx.AsyncClient] = None
    ) -> "CallableBackendGateway":
        return cls(
            settings.callable_base_urls(),
            auth_token=settings.callable_auth_token,
            timeout=settings.request_timeout_seconds,
            client=client,
        )

    def _headers(self) -> Dict[str, str]:
        headers = super()._headers()
        if self._auth_token:
            headers["Authorization"] = f"Bearer {self._auth_token}"
        return headers

    def endpoints(self, target: EnvironmentTarget) -> Dict[str, str]:
        base = self.base_url_for(target)
        if base is None:
            return {}
        return {op.logical_name: f"{base}/{op.value}" for op in BackendOperation}

    async def health_check(self, *, target: EnvironmentTarget) -> GatewayResult:
        return await self.invoke(BackendOperation.HEALTH_CHECK, None, target=target)

    async def create_order(self, payload: ValidatedPayload, *, target: EnvironmentTarget) -> GatewayResult:
        return await self.invoke(BackendOperation.CREATE_ORDER, payload.data, target=target)

    async def create_subscription(self, payload: ValidatedPayload, *, target: EnvironmentTarget) -> GatewayResult:
        return await self.invoke(BackendOperation.CREATE_SUBSCRIPTION, payload.data, target=target)

    async def invoke(
        self,
        operation: BackendOperation,
        data: Optional[Dict[str, Any]],
        *,
        target: EnvironmentTarget,
    ) -> GatewayResult:
        """Call one remote procedure by logical name."""
        base = self.base_url_for(target)
        if base is None:
            return self._unconfigured(target)
        url = f"{base}/{operation.value}"
        self._logger.debug("CallableBackendGateway.invoke: POST %s target=%s", url, target.value)
        try:
            r = await self._http.post(url, headers=self._headers(), json={"data": data})
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            return self._transport_failure(url, e)

        body = self._decode_body(r)
        if r.status_code == 200 and isinstance(body, dict) and "error" not in body:
            return GatewayResult(ok=True, status=200, body=body.get("result"))

        error_class, message = self._parse_error(r.status_code, body)
        status = status_for(error_class)
        self._logger.warning(
            "CallableBackendGateway.invoke: %s failed code=%s status=%d: %s",
            operation.value,
            error_class.value,
            status,
            message,
        )
        return GatewayResult.failure(status, message, body={"error": message, "code": error_class.value})

    @staticmethod
    def _parse_error(http_status: int, body: Any) -> Tuple[ErrorClass, str]:
        error = body.get("error") if isinstance(body, dict) else None
        if isinstance(error, dict):
            error_class = ErrorClass.parse(error.get("status") or error.get("code"))
            message = error.get("message") or DEFAULT_ERROR_MESSAGE
        elif isinstance(error, str):
            error_class = ErrorClass.parse(error)
            message = error
        else:
            error_class = error_class_for_status(http_status) if http_status != 200 else ErrorClass.INTERNAL
            message = f"{DEFAULT_ERROR_MESSAGE} with HTTP {http_status}"
        if error_class is ErrorClass.UNKNOWN and http_status != 200:
            error_class = error_class_for_status(http_status)
        return error_class, sanitize_error(str(message))
