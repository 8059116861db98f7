"""Interactive OAuth2 (web server) flow for user-owned Meet spaces.

A fresh ``google_auth_oauthlib`` flow is built for every step because the
service keeps no server-side session: the ``state`` value and the PKCE code
verifier travel between ``/auth`` and ``/oauth2callback`` in short-lived
cookies instead.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Sequence

from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import Flow

from meet_services.auth.service_account import CredentialsError
from meet_services.config import ServiceSettings

logger = logging.getLogger("meet_services.auth")

GOOGLE_AUTH_URI = "https://accounts.google.com/o/oauth2/auth"
GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"

FlowFactory = Callable[..., Any]


@dataclass
class AuthorizationRequest:
    url: str
    state: str
    code_verifier: str | None = None


class OAuthFlow:
    """Thin wrapper that builds ``Flow`` objects from service settings."""

    def __init__(
        self,
        client_id: str | None,
        client_secret: str | None,
        redirect_uri: str,
        scopes: Sequence[str],
        flow_factory: FlowFactory | None = None,
    ) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.scopes: List[str] = list(scopes)
        self._flow_factory = flow_factory or Flow.from_client_config

    @classmethod
    def from_settings(cls, settings: ServiceSettings, flow_factory: FlowFactory | None = None) -> "OAuthFlow":
        return cls(
            client_id=settings.google_client_id,
            client_secret=settings.google_client_secret,
            redirect_uri=settings.google_redirect_uri,
            scopes=settings.meet_scopes,
            flow_factory=flow_factory,
        )

    def client_config(self) -> Dict[str, Dict[str, Any]]:
        return {
            "web": {
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "auth_uri": GOOGLE_AUTH_URI,
                "token_uri": GOOGLE_TOKEN_URI,
                "redirect_uris": [self.redirect_uri],
            }
        }

    def _build_flow(self, state: str | None = None):
        if not self.client_id or not self.client_secret:
            raise CredentialsError("OAuth client is not configured (GOOGLE_CLIENT_ID/GOOGLE_CLIENT_SECRET missing)")

        kwargs: Dict[str, Any] = {}
        if state is not None:
            kwargs["state"] = state
        flow = self._flow_factory(self.client_config(), scopes=self.scopes, **kwargs)
        flow.redirect_uri = self.redirect_uri
        return flow

    def authorization_url(self) -> AuthorizationRequest:
        """Build the consent screen URL, asking for a refresh token as well."""

        flow = self._build_flow()
        url, state = flow.authorization_url(
            access_type="offline",
            prompt="consent",
        )
        return AuthorizationRequest(url=url, state=state, code_verifier=getattr(flow, "code_verifier", None))

    def exchange_code(self, code: str, state: str | None = None, code_verifier: str | None = None) -> Credentials:
        """Trade an authorization code for user credentials."""

        # Google may grant more scopes than requested; oauthlib raises on any change otherwise.
        os.environ.setdefault("OAUTHLIB_RELAX_TOKEN_SCOPE", "1")
        flow = self._build_flow(state=state)
        if code_verifier:
            flow.code_verifier = code_verifier
        flow.fetch_token(code=code)
        logger.info("exchanged authorization code for user credentials")
        return flow.credentials

    def credentials_from_token(self, access_token: str) -> Credentials:
        return Credentials(token=access_token, scopes=self.scopes)
