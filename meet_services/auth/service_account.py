"""Service account credentials for server-to-server Meet calls.

The key file contents are supplied verbatim through the
``SERVICE_ACCOUNT_CREDENTIALS`` environment variable. Creating spaces on behalf
of a workspace requires domain-wide delegation, so the credentials are scoped
and bound to a subject (the impersonated workspace user) before use.
"""
from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Sequence

from google.oauth2 import service_account

logger = logging.getLogger("meet_services.auth")

DEFAULT_TOKEN_URI = "https://oauth2.googleapis.com/token"


class CredentialsError(RuntimeError):
    """Raised when configured credentials cannot be used."""


@dataclass
class ServiceAccountKey:
    type: str = "service_account"
    project_id: str = ""
    private_key_id: str = ""
    private_key: str = ""
    client_email: str = ""
    client_id: str = ""
    auth_uri: str = "https://accounts.google.com/o/oauth2/auth"
    token_uri: str = DEFAULT_TOKEN_URI
    auth_provider_x509_cert_url: str = ""
    client_x509_cert_url: str = ""
    universe_domain: str = "googleapis.com"

    @classmethod
    def from_json(cls, raw: str) -> "ServiceAccountKey":
        try:
            data = json.loads(raw or "{}")
        except json.JSONDecodeError as exc:
            raise CredentialsError(f"service account credentials are not valid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise CredentialsError("service account credentials must be a JSON object")

        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in data.items() if key in known and value is not None})

    @property
    def configured(self) -> bool:
        return bool(self.client_email and self.private_key)

    def as_info(self) -> Dict[str, Any]:
        return asdict(self)


def build_delegated_credentials(
    key: ServiceAccountKey, scopes: Sequence[str], subject: str | None = None
) -> service_account.Credentials:
    """Return JWT credentials for ``key`` restricted to ``scopes``.

    When ``subject`` is given the credentials impersonate that workspace user.
    """

    if not key.configured:
        raise CredentialsError("service account credentials are not configured (client_email/private_key missing)")

    try:
        credentials = service_account.Credentials.from_service_account_info(
            key.as_info(), scopes=list(scopes), subject=subject
        )
    except ValueError as exc:
        raise CredentialsError(f"service account key could not be loaded: {exc}") from exc

    logger.debug(
        "built service account credentials",
        extra={"client_email": key.client_email, "subject": subject},
    )
    return credentials
