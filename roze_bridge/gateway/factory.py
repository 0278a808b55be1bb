from __future__ import annotations

import logging
from typing import Optional

import httpx

from roze_bridge.core.config import Settings
from roze_bridge.core.enums import BackendKind

from .base import BackendGateway
from .callable import CallableBackendGateway
from .http import HttpBackendGateway

logger = logging.getLogger(__name__)


def create_gateway(settings: Settings, *, client: Optional[httpx.AsyncClient] = None) -> BackendGateway:
    """Build the backend strategy selected by ``ROZE_BRIDGE_BACKEND``.

    Args:
        settings: Bridge settings.
        client: Optional httpx.AsyncClient, e.g. with a mock transport in tests.

    Returns:
        A ``BackendGateway`` implementation.
    """
    gateway: BackendGateway
    if settings.backend is BackendKind.CALLABLE:
        gateway = CallableBackendGateway.from_settings(settings, client=client)
    else:
        gateway = HttpBackendGateway.from_settings(settings, client=client)
    logger.info(
        "Backend gateway: %s (targets: %s)",
        type(gateway).__name__,
        ", ".join(t.value for t in settings.base_urls()),
    )
    return gateway
