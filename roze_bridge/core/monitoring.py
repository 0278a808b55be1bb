"""
Monitoring and Tracing Module.

Optional integration with Pydantic Logfire. When enabled it instruments the
httpx clients used by the backend gateway and records one span per tool
dispatch. When disabled, or when the ``logfire`` package is not installed,
``span`` is a no-op context manager.
"""

from __future__ import annotations

import contextlib
import logging
from typing import Any, ContextManager

from roze_bridge import __version__

from .config import Settings

logger = logging.getLogger(__name__)

_logfire: Any = None


def initialize_logfire(settings: Settings) -> bool:
    """
    Initialize Logfire for monitoring and tracing.

    Args:
        settings: Bridge settings holding the LOGFIRE_* values.

    Returns:
        True when Logfire has been configured, False otherwise.
    """
    global _logfire

    if not settings.logfire_enabled:
        logger.info("Logfire monitoring is disabled. Set LOGFIRE_ENABLED=true to enable.")
        return False

    if not settings.logfire_token:
        logger.warning(
            "Logfire is enabled but LOGFIRE_TOKEN is not set. "
            "Monitoring will not work. Set LOGFIRE_TOKEN to enable Logfire."
        )
        return False

    try:
        import logfire

        logfire.configure(
            token=settings.logfire_token,
            service_name=settings.logfire_service_name,
            service_version=__version__,
            environment=settings.logfire_environment,
            # stdout carries JSON-RPC responses
            console=False,
        )
        try:
            logfire.instrument_httpx()
            logger.info("Logfire: HTTPX instrumentation enabled")
        except Exception as e:
            logger.warning(f"Failed to instrument HTTPX: {e}")

        _logfire = logfire
        logger.info(
            f"Logfire monitoring initialized: "
            f"environment={settings.logfire_environment}, "
            f"service={settings.logfire_service_name}"
        )
        return True

    except ImportError:
        logger.warning(
            "Logfire is enabled but 'logfire' package is not installed. "
            "Install it with: pip install 'roze-bridge[monitoring]'"
        )
        return False
    except Exception as e:
        logger.error(f"Failed to initialize Logfire: {e}", exc_info=True)
        return False


def span(name: str, **attributes: Any) -> ContextManager[Any]:
    """Open a Logfire span when monitoring is active."""
    if _logfire is None:
        return contextlib.nullcontext()
    return _logfire.span(name, **attributes)
