from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

import httpx
import pytest

from roze_bridge.contracts.models import ValidatedPayload
from roze_bridge.contracts.store import ContractStore
from roze_bridge.core.config import Settings, load_settings
from roze_bridge.core.enums import EnvironmentTarget, ProxyMode
from roze_bridge.gateway.models import GatewayResult
from roze_bridge.policy import ProxyPolicy
from roze_bridge.tools.builtin import build_registry
from roze_bridge.tools.dispatcher import Dispatcher

BRIDGE_ENV_VARS = (
    "ROZE_BRIDGE_LOG_LEVEL",
    "ROZE_BRIDGE_LOG_FORMAT",
    "ROZE_BRIDGE_LOG_FILE_DIR",
    "ROZE_BRIDGE_PROXY_MODE",
    "ROZE_BRIDGE_BACKEND",
    "ROZE_BRIDGE_CONTRACTS_DIR",
    "ROZE_BRIDGE_REQUEST_TIMEOUT",
    "DEV_API_BASE",
    "PROD_API_BASE",
    "CALLABLE_PROJECT_ID",
    "CALLABLE_REGION",
    "CALLABLE_DEV_BASE",
    "CALLABLE_PROD_BASE",
    "CALLABLE_AUTH_TOKEN",
    "LOGFIRE_ENABLED",
    "LOGFIRE_TOKEN",
    "LOGFIRE_ENVIRONMENT",
    "LOGFIRE_SERVICE_NAME",
)


@pytest.fixture(autouse=True)
def _clean_bridge_env(monkeypatch: pytest.MonkeyPatch):
    """Keep the developer's shell environment out of settings built in tests."""
    for name in BRIDGE_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def _global_offline_http_guard(monkeypatch: pytest.MonkeyPatch):
    allowed_prefixes: Iterable[str] = (
        "http://mock",
        "https://mock",
        "http://localhost",
        "http://127.0.0.1",
    )

    orig_async = httpx._client.AsyncClient.request

    def _is_allowed(url_str: str) -> bool:
        return any(url_str.startswith(p) for p in allowed_prefixes)

    async def offline_async(self, method, url, *args, **kwargs):
        url_str = str(url)
        if _is_allowed(url_str):
            return await orig_async(self, method, url, *args, **kwargs)
        raise RuntimeError(f"External HTTP blocked by global offline guard (async): {url_str}")

    monkeypatch.setattr(httpx._client.AsyncClient, "request", offline_async, raising=True)


@pytest.fixture
def make_settings() -> Callable[..., Settings]:
    """Factory building settings from keyword overrides only (no .env file)."""

    def _make(**overrides: Any) -> Settings:
        values: Dict[str, Any] = {"dev_api_base": "http://mock-dev", "prod_api_base": "http://mock-prod"}
        values.update(overrides)
        return load_settings(_env_file=None, **values)

    return _make


@pytest.fixture
def settings(make_settings) -> Settings:
    return make_settings()


@pytest.fixture(scope="session")
def contract_store() -> ContractStore:
    return ContractStore.load()


class FakeGateway:
    """In-memory gateway recording every backend call."""

    def __init__(self) -> None:
        self.calls: List[Tuple[str, EnvironmentTarget, Optional[Dict[str, Any]]]] = []
        self.result = GatewayResult(ok=True, status=201, body={"id": "created-1"})
        self.health = GatewayResult(ok=True, status=200, body={"status": "ok"})
        self.closed = False

    async def health_check(self, *, target: EnvironmentTarget) -> GatewayResult:
        self.calls.append(("health_check", target, None))
        return self.health

    async def create_order(self, payload: ValidatedPayload, *, target: EnvironmentTarget) -> GatewayResult:
        self.calls.append(("create_order", target, payload.data))
        return self.result

    async def create_subscription(self, payload: ValidatedPayload, *, target: EnvironmentTarget) -> GatewayResult:
        self.calls.append(("create_subscription", target, payload.data))
        return self.result

    def endpoints(self, target: EnvironmentTarget) -> Dict[str, str]:
        base = f"http://mock-{target.value}"
        return {"healthCheck": f"{base}/healthz", "createOrder": f"{base}/v1/orders"}

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def fake_gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def make_dispatcher(make_settings, contract_store, fake_gateway) -> Callable[..., Dispatcher]:
    """Factory wiring the built-in tools to ``fake_gateway`` under a given proxy mode."""

    def _make(mode: ProxyMode = ProxyMode.DEV_ONLY) -> Dispatcher:
        settings = make_settings(proxy_mode=mode)
        policy = ProxyPolicy.from_settings(settings)
        registry = build_registry(store=contract_store, gateway=fake_gateway, policy=policy, settings=settings)
        return Dispatcher(registry, contract_store, policy)

    return _make


@pytest.fixture
def valid_order() -> Dict[str, Any]:
    return {
        "customer": {"email": "ada@example.com", "name": "Ada Lovelace"},
        "items": [{"sku": "ROZE-001", "quantity": 2}],
    }


@pytest.fixture
def valid_subscription() -> Dict[str, Any]:
    return {"email": "ada@example.com", "plan": "monthly"}
