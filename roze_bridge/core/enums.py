from __future__ import annotations

from enum import Enum


class EnvironmentTarget(str, Enum):
    """Backend environment a tool call may be routed to."""

    DEV = "dev"
    PROD = "prod"


class ProxyMode(str, Enum):
    """Which environment targets the bridge is allowed to proxy to."""

    DEV_ONLY = "dev-only"
    ALL = "all"


class BackendKind(str, Enum):
    """Transport used to reach the backend."""

    HTTP = "http"
    CALLABLE = "callable"


DEFAULT_TARGET = EnvironmentTarget.DEV
