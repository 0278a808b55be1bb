from __future__ import annotations

import asyncio
import io
import logging
import os
import signal
import sys
from pathlib import Path

import httpx
import pytest

from roze_bridge.server import main as bridge_main
from roze_bridge.server.main import EXIT_FAILURE, EXIT_OK, ShutdownController, build_application, run
from roze_bridge.server.protocol import McpProtocolHandler


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root_logger = logging.getLogger()
    handlers = root_logger.handlers[:]
    level = root_logger.level
    yield
    for handler in root_logger.handlers[:]:
        if handler not in handlers and type(handler) in (logging.StreamHandler, logging.FileHandler):
            root_logger.removeHandler(handler)
    root_logger.setLevel(level)


def test_invalid_configuration_exits_with_failure(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("ROZE_BRIDGE_LOG_LEVEL", "LOUD")

    assert run() == EXIT_FAILURE


def test_unusable_contracts_exit_with_failure(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("ROZE_BRIDGE_CONTRACTS_DIR", str(tmp_path / "missing"))

    assert run() == EXIT_FAILURE


def test_unexpected_serve_failure_exits_with_failure(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)

    async def _boom(settings, store):
        raise RuntimeError("stdin unavailable")

    monkeypatch.setattr(bridge_main, "_serve", _boom)

    assert run() == EXIT_FAILURE


def test_serve_exit_code_is_returned(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)

    async def _clean(settings, store):
        return 0

    monkeypatch.setattr(bridge_main, "_serve", _clean)

    assert run() == 0


@pytest.mark.asyncio
async def test_build_application_uses_injected_client(settings, contract_store) -> None:
    client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200, json={})))

    handler, gateway = build_application(settings, contract_store, client=client)

    assert isinstance(handler, McpProtocolHandler)
    await gateway.aclose()
    assert client.is_closed is False
    await client.aclose()


class _RecordingTransport:
    def __init__(self) -> None:
        self.stops = 0

    def stop(self) -> None:
        self.stops += 1


class TestShutdownController:
    def test_signal_stops_transport_with_clean_exit(self) -> None:
        transport = _RecordingTransport()
        shutdown = ShutdownController(transport)

        shutdown.on_signal("SIGTERM")

        assert transport.stops == 1
        assert shutdown.exit_code == EXIT_OK

    def test_loop_error_stops_transport_with_failure(self) -> None:
        transport = _RecordingTransport()
        shutdown = ShutdownController(transport)

        shutdown.on_loop_error(None, {"message": "boom", "exception": RuntimeError("boom")})

        assert transport.stops == 1
        assert shutdown.exit_code == EXIT_FAILURE

    @pytest.mark.asyncio
    async def test_uninstall_restores_previous_exception_handler(self) -> None:
        loop = asyncio.get_running_loop()
        shutdown = ShutdownController(_RecordingTransport())

        installed = shutdown.install(loop)
        assert loop.get_exception_handler() == shutdown.on_loop_error
        shutdown.uninstall(loop, installed)

        assert loop.get_exception_handler() is None


def _mock_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200, json={})))


async def _start_serving(settings, contract_store, client: httpx.AsyncClient) -> asyncio.Task:
    loop = asyncio.get_running_loop()
    serving = asyncio.create_task(
        bridge_main._serve(
            settings,
            contract_store,
            reader=asyncio.StreamReader(),
            output=io.StringIO(),
            client=client,
        )
    )
    while loop.get_exception_handler() is None:
        await asyncio.sleep(0.01)
    return serving


class TestServeLifecycle:
    @pytest.mark.asyncio
    @pytest.mark.skipif(sys.platform == "win32", reason="loop signal handlers need a Unix event loop")
    async def test_sigterm_exits_cleanly(self, settings, contract_store) -> None:
        client = _mock_client()
        serving = await asyncio.wait_for(_start_serving(settings, contract_store, client), timeout=1)

        os.kill(os.getpid(), signal.SIGTERM)

        assert await asyncio.wait_for(serving, timeout=1) == EXIT_OK
        assert asyncio.get_running_loop().get_exception_handler() is None
        await client.aclose()

    @pytest.mark.asyncio
    async def test_unhandled_loop_error_exits_with_failure(self, settings, contract_store) -> None:
        client = _mock_client()
        serving = await asyncio.wait_for(_start_serving(settings, contract_store, client), timeout=1)

        asyncio.get_running_loop().call_exception_handler({"message": "boom", "exception": RuntimeError("boom")})

        assert await asyncio.wait_for(serving, timeout=1) == EXIT_FAILURE
        await client.aclose()

    @pytest.mark.asyncio
    async def test_input_eof_exits_cleanly(self, settings, contract_store) -> None:
        client = _mock_client()
        reader = asyncio.StreamReader()
        reader.feed_eof()

        code = await bridge_main._serve(settings, contract_store, reader=reader, output=io.StringIO(), client=client)

        assert code == EXIT_OK
        await client.aclose()
