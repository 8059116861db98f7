"""Configuration helpers for running the Meet service template.

The settings default to values that work in local development but can be
overridden via environment variables (or a ``.env`` file loaded by the
entrypoint) to mirror deployment behavior.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import List

AUTH_MODE_SERVICE_ACCOUNT = "service_account"
AUTH_MODE_OAUTH = "oauth"
AUTH_MODES = (AUTH_MODE_SERVICE_ACCOUNT, AUTH_MODE_OAUTH)

MEET_SPACE_CREATED_SCOPE = "https://www.googleapis.com/auth/meetings.space.created"


@dataclass
class ServiceSettings:
    host: str = "0.0.0.0"
    port: int = 3000
    reload: bool = False
    log_level: str = "info"
    request_id_header: str = "x-request-id"
    allowed_origins: List[str] = field(default_factory=lambda: ["*"])
    demo_api_url: str = "https://httpbin.org"
    request_timeout: float = 10.0
    auth_mode: str = AUTH_MODE_SERVICE_ACCOUNT
    meet_scopes: List[str] = field(default_factory=lambda: [MEET_SPACE_CREATED_SCOPE])
    service_account_credentials: str = "{}"
    service_account_subject: str | None = None
    google_client_id: str | None = None
    google_client_secret: str | None = None
    google_redirect_uri: str = "http://localhost:3000/oauth2callback"
    token_cookie_name: str = "google_access_token"
    cookie_secure: bool = False
    keepalive_interval_seconds: float | None = None
    keepalive_url: str | None = None

    def __post_init__(self) -> None:
        if self.auth_mode not in AUTH_MODES:
            raise ValueError(f"auth_mode must be one of: {', '.join(AUTH_MODES)} (got {self.auth_mode!r})")
        if self.keepalive_url is None:
            self.keepalive_url = f"http://localhost:{self.port}/"

    @property
    def uses_oauth(self) -> bool:
        return self.auth_mode == AUTH_MODE_OAUTH

    @classmethod
    def from_env(cls) -> "ServiceSettings":
        """Load settings from environment variables with safe defaults."""

        def as_bool(value: str, default: bool) -> bool:
            truthy = {"1", "true", "t", "yes", "y"}
            falsy = {"0", "false", "f", "no", "n"}
            if value.lower() in truthy:
                return True
            if value.lower() in falsy:
                return False
            return default

        def as_float(value: str | None, default: float | None) -> float | None:
            if value is None:
                return default
            if value.lower() in {"none", "", "-1"}:
                return None
            return float(value)

        def as_list(value: str | None, default: List[str]) -> List[str]:
            if value is None:
                return list(default)
            return [item.strip() for item in value.split(",") if item.strip()]

        port = int(os.getenv("PORT", cls.port))
        return cls(
            host=os.getenv("MEET_SERVICES_HOST", cls.host),
            port=port,
            reload=as_bool(os.getenv("MEET_SERVICES_RELOAD", str(cls.reload)), cls.reload),
            log_level=os.getenv("MEET_SERVICES_LOG_LEVEL", cls.log_level),
            request_id_header=os.getenv("MEET_SERVICES_REQUEST_ID_HEADER", cls.request_id_header),
            allowed_origins=as_list(os.getenv("MEET_SERVICES_ALLOWED_ORIGINS"), ["*"]),
            demo_api_url=os.getenv("MEET_SERVICES_DEMO_API_URL", cls.demo_api_url),
            request_timeout=float(os.getenv("MEET_SERVICES_REQUEST_TIMEOUT", cls.request_timeout)),
            auth_mode=os.getenv("MEET_SERVICES_AUTH_MODE", cls.auth_mode).strip().lower(),
            meet_scopes=as_list(os.getenv("MEET_SERVICES_SCOPES"), [MEET_SPACE_CREATED_SCOPE]),
            service_account_credentials=os.getenv("SERVICE_ACCOUNT_CREDENTIALS") or "{}",
            service_account_subject=os.getenv("SERVICE_ACCOUNT_SUBJECT") or None,
            google_client_id=os.getenv("GOOGLE_CLIENT_ID") or None,
            google_client_secret=os.getenv("GOOGLE_CLIENT_SECRET") or None,
            google_redirect_uri=os.getenv("GOOGLE_REDIRECT_URI", f"http://localhost:{port}/oauth2callback"),
            token_cookie_name=os.getenv("MEET_SERVICES_TOKEN_COOKIE", cls.token_cookie_name),
            cookie_secure=as_bool(os.getenv("MEET_SERVICES_COOKIE_SECURE", str(cls.cookie_secure)), cls.cookie_secure),
            keepalive_interval_seconds=as_float(
                os.getenv("MEET_SERVICES_KEEPALIVE_INTERVAL"), cls.keepalive_interval_seconds
            ),
            keepalive_url=os.getenv("MEET_SERVICES_KEEPALIVE_URL") or None,
        )


def configure_logging(level: str) -> None:
    """Apply a simple logging configuration for the service."""

    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
