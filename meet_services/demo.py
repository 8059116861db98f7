"""Pass-through call to the public demo API (httpbin.org by default)."""
from __future__ import annotations

import logging

import httpx

logger = logging.getLogger("meet_services.demo")


class DemoApiClient:
    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = base_url
        self.timeout = timeout
        self._transport = transport

    def fetch_status(self) -> int:
        """GET the demo URL and return its HTTP status code.

        Raises ``httpx.HTTPError`` on transport failures and non-2xx replies.
        """

        with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
            response = client.get(self.base_url)
            response.raise_for_status()
        logger.debug("demo API responded", extra={"url": self.base_url, "status_code": response.status_code})
        return response.status_code
