from .base import BackendGateway, BackendOperation
from .callable import CallableBackendGateway
from .factory import create_gateway
from .http import HttpBackendGateway
from .models import STATUS_BY_ERROR_CLASS, ErrorClass, GatewayResult, status_for
from .redaction import sanitize_error

__all__ = [
    "BackendGateway",
    "BackendOperation",
    "CallableBackendGateway",
    "ErrorClass",
    "GatewayResult",
    "HttpBackendGateway",
    "STATUS_BY_ERROR_CLASS",
    "create_gateway",
    "sanitize_error",
    "status_for",
]
