from __future__ import annotations

import json
from typing import Any, Dict, List

import httpx
import pytest

from roze_bridge.contracts.models import ValidatedPayload
from roze_bridge.core.enums import BackendKind, EnvironmentTarget
from roze_bridge.gateway.base import BackendOperation
from roze_bridge.gateway.callable import CallableBackendGateway

DEV = EnvironmentTarget.DEV
PROD = EnvironmentTarget.PROD


def _gateway(respond, seen: List[httpx.Request], **kwargs: Any) -> CallableBackendGateway:
    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return respond(request)

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return CallableBackendGateway(
        {DEV: "http://mock-functions-dev", PROD: "https://mock-functions-prod"},
        client=client,
        **kwargs,
    )


def _payload(data: Dict[str, Any]) -> ValidatedPayload:
    return ValidatedPayload(contract="order.create", data=data)


@pytest.mark.asyncio
async def test_success_unwraps_result() -> None:
    seen: List[httpx.Request] = []
    gw = _gateway(lambda r: httpx.Response(200, json={"result": {"orderId": "o-9"}}), seen)

    result = await gw.create_order(_payload({"sku": "A"}), target=PROD)

    assert result.ok is True
    assert result.status == 200
    assert result.body == {"orderId": "o-9"}
    assert str(seen[0].url) == "https://mock-functions-prod/createOrder"
    assert json.loads(seen[0].content) == {"data": {"sku": "A"}}


@pytest.mark.asyncio
async def test_health_check_sends_null_data() -> None:
    seen: List[httpx.Request] = []
    gw = _gateway(lambda r: httpx.Response(200, json={"result": "ok"}), seen)

    result = await gw.health_check(target=DEV)

    assert result.ok is True
    assert str(seen[0].url) == "http://mock-functions-dev/healthz"
    assert json.loads(seen[0].content) == {"data": None}


@pytest.mark.parametrize(
    "http_status,code,expected_status",
    [
        (401, "UNAUTHENTICATED", 401),
        (403, "PERMISSION_DENIED", 403),
        (400, "INVALID_ARGUMENT", 400),
        (404, "NOT_FOUND", 500),
        (500, "INTERNAL", 500),
        (200, "unauthenticated", 401),
    ],
)
@pytest.mark.asyncio
async def test_error_codes_map_to_statuses(http_status: int, code: str, expected_status: int) -> None:
    body = {"error": {"status": code, "message": "Nope"}}
    gw = _gateway(lambda r: httpx.Response(http_status, json=body), [])

    result = await gw.create_subscription(_payload({"email": "a@b.c"}), target=DEV)

    assert result.ok is False
    assert result.status == expected_status
    assert result.error == "Nope"
    assert result.body["error"] == "Nope"


@pytest.mark.asyncio
async def test_error_without_code_falls_back_to_http_status() -> None:
    gw = _gateway(lambda r: httpx.Response(403, text="forbidden"), [])

    result = await gw.create_order(_payload({}), target=DEV)

    assert result.status == 403
    assert result.body == {"error": "Callable function call failed with HTTP 403", "code": "permission-denied"}


@pytest.mark.asyncio
async def test_error_message_is_sanitized() -> None:
    body = {"error": {"status": "INTERNAL", "message": "db password=hunter2 rejected"}}
    gw = _gateway(lambda r: httpx.Response(500, json=body), [])

    result = await gw.create_order(_payload({}), target=DEV)

    assert result.error == "db password=*** rejected"


@pytest.mark.asyncio
async def test_bearer_token_is_sent_when_configured() -> None:
    seen: List[httpx.Request] = []
    gw = _gateway(lambda r: httpx.Response(200, json={"result": None}), seen, auth_token="id-token")

    await gw.invoke(BackendOperation.HEALTH_CHECK, None, target=DEV)

    assert seen[0].headers["Authorization"] == "Bearer id-token"


@pytest.mark.asyncio
async def test_transport_failure_yields_status_zero() -> None:
    def respond(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    gw = _gateway(respond, [])

    result = await gw.health_check(target=DEV)

    assert result.ok is False
    assert result.status == 0
    assert result.error == "connection refused"


def test_endpoints_use_procedure_names() -> None:
    gw = _gateway(lambda r: httpx.Response(200), [])

    assert gw.endpoints(DEV) == {
        "healthCheck": "http://mock-functions-dev/healthz",
        "createOrder": "http://mock-functions-dev/createOrder",
        "createSubscription": "http://mock-functions-dev/createSubscription",
    }


def test_from_settings(make_settings) -> None:
    settings = make_settings(
        backend=BackendKind.CALLABLE,
        callable_dev_base="http://mock-emulator/roze/us-west1",
        callable_auth_token="tkn",
    )

    gw = CallableBackendGateway.from_settings(settings)

    assert gw.base_url_for(DEV) == "http://mock-emulator/roze/us-west1"
    assert gw.base_url_for(PROD) is None
    assert gw._headers()["Authorization"] == "Bearer tkn"
