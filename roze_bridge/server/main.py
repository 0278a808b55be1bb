"""
Bridge Entry Point.

Wires settings, contracts, the backend gateway, the proxy policy and the tool
registry together, then serves JSON-RPC over stdin/stdout until the input
stream closes or the process is signalled.

Exit codes:

- 0: input closed, or SIGINT/SIGTERM received.
- 1: invalid configuration, unusable contracts, or an unexpected failure.
"""

from __future__ import annotations

import asyncio
import signal
import sys
from typing import Any, Callable, Dict, List, Optional, TextIO, Tuple

import httpx

from roze_bridge import __version__
from roze_bridge.contracts.store import ContractStore
from roze_bridge.core.config import Settings, load_settings
from roze_bridge.core.errors import FatalStartupError
from roze_bridge.core.logging_config import get_logger, setup_logging
from roze_bridge.core.monitoring import initialize_logfire
from roze_bridge.gateway.base import BackendGateway
from roze_bridge.gateway.factory import create_gateway
from roze_bridge.policy import ProxyPolicy
from roze_bridge.tools.builtin import build_registry
from roze_bridge.tools.dispatcher import Dispatcher

from .protocol import McpProtocolHandler
from .transport import StdioTransport, connect_stdin

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1


def build_application(
    settings: Settings,
    store: ContractStore,
    *,
    client: Optional[httpx.AsyncClient] = None,
) -> Tuple[McpProtocolHandler, BackendGateway]:
    """Assemble the request handler and the gateway it calls.

    Args:
        settings: Bridge settings.
        store: Loaded contract documents.
        client: Optional httpx.AsyncClient shared by the gateway.

    Returns:
        The protocol handler and the gateway; the caller closes the gateway.
    """
    gateway = create_gateway(settings, client=client)
    policy = ProxyPolicy.from_settings(settings)
    registry = build_registry(store=store, gateway=gateway, policy=policy, settings=settings)
    handler = McpProtocolHandler(Dispatcher(registry, store, policy))
    logger.info(
        "Proxy mode: %s (permitted targets: %s)",
        policy.mode.value,
        ", ".join(t.value for t in policy.permitted_targets()),
    )
    return handler, gateway


class ShutdownController:
    """Stops a transport on SIGINT/SIGTERM or an unhandled event loop error.

    ``exit_code`` stays 0 for signals and becomes 1 once a loop error is seen.
    """

    def __init__(self, transport: StdioTransport) -> None:
        self.transport = transport
        self.exit_code = EXIT_OK
        self._previous_handler: Optional[Callable[..., Any]] = None

    def on_signal(self, name: str) -> None:
        logger.info("Received %s, shutting down gracefully...", name)
        self.transport.stop()

    def on_loop_error(self, _loop: asyncio.AbstractEventLoop, context: Dict[str, Any]) -> None:
        exc = context.get("exception")
        logger.critical("Unhandled error in event loop: %s", exc or context.get("message"), exc_info=exc)
        self.exit_code = EXIT_FAILURE
        self.transport.stop()

    def install(self, loop: asyncio.AbstractEventLoop) -> List[signal.Signals]:
        """Hook into ``loop``; returns the signals that were actually installed."""
        self._previous_handler = loop.get_exception_handler()
        loop.set_exception_handler(self.on_loop_error)
        installed = []
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self.on_signal, sig.name)
                installed.append(sig)
            except NotImplementedError:
                logger.warning("Signal handlers are not supported on this platform; %s is not handled", sig.name)
        return installed

    def uninstall(self, loop: asyncio.AbstractEventLoop, installed: List[signal.Signals]) -> None:
        for sig in installed:
            loop.remove_signal_handler(sig)
        loop.set_exception_handler(self._previous_handler)


async def _serve(
    settings: Settings,
    store: ContractStore,
    *,
    reader: Optional[asyncio.StreamReader] = None,
    output: Optional[TextIO] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> int:
    loop = asyncio.get_running_loop()
    handler, gateway = build_application(settings, store, client=client)
    pipe = None
    if reader is None:
        reader, pipe = await connect_stdin()
    transport = StdioTransport(handler, reader, output or sys.stdout)
    shutdown = ShutdownController(transport)
    installed = shutdown.install(loop)

    logger.info("roze-bridge %s serving on stdio", __version__)
    try:
        await transport.serve()
    finally:
        shutdown.uninstall(loop, installed)
        if pipe is not None:
            pipe.close()
        await gateway.aclose()
    return shutdown.exit_code


def run() -> int:
    """Start the bridge and return the process exit code."""
    try:
        settings = load_settings()
    except FatalStartupError as e:
        setup_logging()
        logger.critical("%s", e)
        return EXIT_FAILURE

    setup_logging(
        log_level=settings.log_level,
        log_format=settings.log_format,
        log_file_dir=settings.log_file_dir,
    )
    initialize_logfire(settings)

    try:
        store = ContractStore.load(settings.contracts_dir)
    except FatalStartupError as e:
        logger.critical("%s", e)
        return EXIT_FAILURE

    try:
        code = asyncio.run(_serve(settings, store))
    except Exception as e:
        logger.critical("Fatal error: %s", e, exc_info=True)
        return EXIT_FAILURE
    logger.info("roze-bridge stopped")
    return code


def main() -> None:
    sys.exit(run())


if __name__ == "__main__":
    main()
