"""Lightweight HTTP client for the Meet service template.

The client defaults to the standard library for HTTP requests, while allowing
a drop-in HTTP client (such as FastAPI's ``TestClient``) to be supplied for
in-process testing.
"""
from __future__ import annotations

import json
import urllib.error
import urllib.parse
import urllib.request
from dataclasses import dataclass
from typing import Any, Dict


class ServiceError(RuntimeError):
    """Raised when the service returns a non-success response."""

    def __init__(self, status_code: int, body: str):
        super().__init__(f"request failed ({status_code}): {body}")
        self.status_code = status_code
        self.body = body


@dataclass
class _Response:
    status_code: int
    text: str

    def json(self) -> Any:
        if not self.text:
            return {}
        return json.loads(self.text)


class _UrllibClient:
    """Simple HTTP client backed by urllib."""

    def request(self, method: str, url: str, *, headers: Dict[str, str] | None = None, json_body: Any = None) -> _Response:
        headers = headers or {}
        if json_body is not None:
            headers["content-type"] = "application/json"
            data = json.dumps(json_body).encode("utf-8")
        else:
            data = None

        req = urllib.request.Request(url, data=data, headers=headers, method=method.upper())
        try:
            with urllib.request.urlopen(req) as resp:
                body = resp.read().decode("utf-8")
                return _Response(status_code=resp.getcode(), text=body)
        except urllib.error.HTTPError as exc:
            body = exc.read().decode("utf-8")
            return _Response(status_code=exc.code, text=body)


class MeetServicesClient:
    """Convenience wrapper over the service routes.

    Usage:
        client = MeetServicesClient("http://localhost:3000")
        client.health()
        space = client.create_space(access_type="TRUSTED")
        print(space["data"]["meetingUri"])

    In OAuth mode pass the ``access_token`` obtained through ``/auth``; it is
    sent as the token cookie the server expects.
    """

    def __init__(
        self,
        base_url: str,
        access_token: str | None = None,
        *,
        token_cookie_name: str = "google_access_token",
        http_client: Any | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.access_token = access_token
        self.token_cookie_name = token_cookie_name
        self.http = http_client or _UrllibClient()

    # Public API helpers -------------------------------------------------
    def health(self) -> Dict[str, Any]:
        return self._get("/")

    def call_demo_api(self) -> Dict[str, Any]:
        return self._get("/api")

    def create_space(self, access_type: str | None = None) -> Dict[str, Any]:
        payload = {"access_type": access_type.upper()} if access_type else None
        return self._request("POST", "/", json_body=payload).json()

    def metrics(self) -> Dict[str, Any]:
        return self._get("/metrics")

    # Internal helpers ---------------------------------------------------
    def _headers(self) -> Dict[str, str]:
        headers: Dict[str, str] = {}
        if self.access_token:
            cookie = urllib.parse.quote(self.access_token, safe="")
            headers["cookie"] = f"{self.token_cookie_name}={cookie}"
        return headers

    def _request(self, method: str, path: str, *, json_body: Any | None = None) -> _Response:
        url = f"{self.base_url}{path}"
        headers = self._headers()
        try:
            response = self.http.request(method, url, headers=headers, json_body=json_body)
        except TypeError:
            # Allow drop-in HTTP clients like requests or fastapi.TestClient that expect a ``json`` kwarg.
            kwargs: Dict[str, Any] = {"headers": headers}
            if json_body is not None:
                kwargs["json"] = json_body
            response = self.http.request(method, url, **kwargs)

        status = getattr(response, "status_code", 0)
        raw_text = getattr(response, "text", None)
        if raw_text is None:
            content = getattr(response, "content", "")
            if isinstance(content, bytes):
                raw_text = content.decode("utf-8")
            elif isinstance(content, str):
                raw_text = content
            else:
                raw_text = json.dumps(content)

        normalized = _Response(status_code=status, text=raw_text)
        if normalized.status_code >= 400:
            raise ServiceError(normalized.status_code, normalized.text)
        return normalized

    def _get(self, path: str) -> Dict[str, Any]:
        return self._request("GET", path).json()
