"""
Configuration Settings.

This module defines the bridge configuration using Pydantic's BaseSettings.
Settings are loaded from environment variables and an optional .env file,
validated once at startup by ``load_settings`` and then handed to every
component constructor. Nothing else in the package reads the process
environment.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .enums import BackendKind, EnvironmentTarget, ProxyMode
from .errors import FatalStartupError

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMATS = ("simple", "detailed", "json")


def _check_base_url(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    if not value.startswith(("http://", "https://")):
        raise ValueError(f"must be an http(s) URL, got '{value}'")
    return value.rstrip("/")


class Settings(BaseSettings):
    """
    Bridge settings model.

    All properties are bound from environment variables (by alias) and the
    .env file. Fields can also be populated by name, which is how tests build
    settings without touching the environment.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=True,
        populate_by_name=True,
    )

    # =====================================================================
    # Logging
    # =====================================================================
    log_level: str = Field(
        default="INFO",
        description="Bridge logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
        alias="ROZE_BRIDGE_LOG_LEVEL",
    )
    log_format: str = Field(
        default="detailed",
        description="Log line format (simple, detailed, json)",
        alias="ROZE_BRIDGE_LOG_FORMAT",
    )
    log_file_dir: Optional[Path] = Field(
        default=None,
        description="Directory for the log file. File logging is disabled when unset.",
        alias="ROZE_BRIDGE_LOG_FILE_DIR",
    )

    # =====================================================================
    # Proxy policy and backend selection
    # =====================================================================
    proxy_mode: ProxyMode = Field(
        default=ProxyMode.DEV_ONLY,
        description="Which environment targets may be proxied (dev-only or all)",
        alias="ROZE_BRIDGE_PROXY_MODE",
    )
    backend: BackendKind = Field(
        default=BackendKind.HTTP,
        description="Backend transport strategy (http or callable)",
        alias="ROZE_BRIDGE_BACKEND",
    )
    contracts_dir: Optional[Path] = Field(
        default=None,
        description="Directory holding openapi.yaml and schemas/*.json. Defaults to the bundled documents.",
        alias="ROZE_BRIDGE_CONTRACTS_DIR",
    )
    request_timeout_seconds: float = Field(
        default=30.0,
        ge=0.1,
        le=300.0,
        description="Per-request timeout in seconds for backend calls",
        alias="ROZE_BRIDGE_REQUEST_TIMEOUT",
    )

    # =====================================================================
    # Generic HTTP backend
    # =====================================================================
    dev_api_base: Optional[str] = Field(
        default="http://127.0.0.1:5001",
        description="Base URL of the dev HTTP API",
        alias="DEV_API_BASE",
    )
    prod_api_base: Optional[str] = Field(
        default=None,
        description="Base URL of the prod HTTP API",
        alias="PROD_API_BASE",
    )

    # =====================================================================
    # Callable-function backend
    # =====================================================================
    callable_project_id: Optional[str] = Field(
        default=None,
        description="Project hosting the callable functions",
        alias="CALLABLE_PROJECT_ID",
    )
    callable_region: str = Field(
        default="us-west1",
        min_length=1,
        description="Region the callable functions are deployed to",
        alias="CALLABLE_REGION",
    )
    callable_dev_base: Optional[str] = Field(
        default=None,
        description="Override for the dev functions base URL (e.g. a local emulator)",
        alias="CALLABLE_DEV_BASE",
    )
    callable_prod_base: Optional[str] = Field(
        default=None,
        description="Override for the prod functions base URL",
        alias="CALLABLE_PROD_BASE",
    )
    callable_auth_token: Optional[str] = Field(
        default=None,
        description="Optional bearer token sent to the callable functions",
        alias="CALLABLE_AUTH_TOKEN",
    )

    # =====================================================================
    # Monitoring
    # =====================================================================
    logfire_enabled: bool = Field(default=False, alias="LOGFIRE_ENABLED")
    logfire_token: Optional[str] = Field(default=None, alias="LOGFIRE_TOKEN")
    logfire_environment: str = Field(default="development", alias="LOGFIRE_ENVIRONMENT")
    logfire_service_name: str = Field(default="roze-bridge", alias="LOGFIRE_SERVICE_NAME")

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"must be one of {', '.join(LOG_LEVELS)}, got '{value}'")
        return level

    @field_validator("log_format")
    @classmethod
    def _normalize_log_format(cls, value: str) -> str:
        fmt = value.strip().lower()
        if fmt not in LOG_FORMATS:
            raise ValueError(f"must be one of {', '.join(LOG_FORMATS)}, got '{value}'")
        return fmt

    @field_validator("dev_api_base", "prod_api_base", "callable_dev_base", "callable_prod_base")
    @classmethod
    def _normalize_base(cls, value: Optional[str]) -> Optional[str]:
        return _check_base_url(value)

    @model_validator(mode="after")
    def _check_backend_requirements(self) -> "Settings":
        if self.backend is BackendKind.HTTP:
            if not self.dev_api_base:
                raise ValueError("DEV_API_BASE is required when ROZE_BRIDGE_BACKEND=http")
            if self.proxy_mode is ProxyMode.ALL and not self.prod_api_base:
                raise ValueError("PROD_API_BASE is required when ROZE_BRIDGE_PROXY_MODE=all")
        else:
            if not self.callable_project_id and not self.callable_dev_base:
                raise ValueError(
                    "CALLABLE_PROJECT_ID (or CALLABLE_DEV_BASE) is required when ROZE_BRIDGE_BACKEND=callable"
                )
            if self.proxy_mode is ProxyMode.ALL and not self.callable_project_id and not self.callable_prod_base:
                raise ValueError(
                    "CALLABLE_PROJECT_ID (or CALLABLE_PROD_BASE) is required when ROZE_BRIDGE_PROXY_MODE=all"
                )
        return self

    # =====================================================================
    # Computed Properties
    # =====================================================================

    @property
    def callable_default_base(self) -> Optional[str]:
        """Public functions base URL derived from project and region."""
        if not self.callable_project_id:
            return None
        return f"https://{self.callable_region}-{self.callable_project_id}.cloudfunctions.net"

    def http_base_urls(self) -> Dict[EnvironmentTarget, str]:
        """Configured HTTP base URL per environment target."""
        bases: Dict[EnvironmentTarget, str] = {}
        if self.dev_api_base:
            bases[EnvironmentTarget.DEV] = self.dev_api_base
        if self.prod_api_base:
            bases[EnvironmentTarget.PROD] = self.prod_api_base
        return bases

    def callable_base_urls(self) -> Dict[EnvironmentTarget, str]:
        """Configured callable-functions base URL per environment target."""
        bases: Dict[EnvironmentTarget, str] = {}
        dev = self.callable_dev_base or self.callable_default_base
        prod = self.callable_prod_base or self.callable_default_base
        if dev:
            bases[EnvironmentTarget.DEV] = dev
        if prod:
            bases[EnvironmentTarget.PROD] = prod
        return bases

    def base_urls(self) -> Dict[EnvironmentTarget, str]:
        """Base URLs of the active backend strategy."""
        if self.backend is BackendKind.CALLABLE:
            return self.callable_base_urls()
        return self.http_base_urls()


def load_settings(**overrides: Any) -> Settings:
    """Build the settings value once at startup.

    Raises:
        FatalStartupError: If any setting is missing or invalid. The message
            lists every offending variable.
    """
    try:
        return Settings(**overrides)
    except ValidationError as e:
        problems = []
        for err in e.errors():
            loc = ".".join(str(p) for p in err.get("loc", ())) or "settings"
            problems.append(f"{loc}: {err.get('msg')}")
        raise FatalStartupError("Invalid configuration: " + "; ".join(problems)) from e
