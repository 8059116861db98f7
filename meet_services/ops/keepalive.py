"""Self-ping loop that keeps free-tier hosts from idling the service out."""
from __future__ import annotations

import asyncio
import logging

import httpx

logger = logging.getLogger("meet_services.keepalive")


async def ping_self(url: str, client: httpx.AsyncClient) -> bool:
    try:
        response = await client.get(url)
        response.raise_for_status()
        payload = response.json()
    except (httpx.HTTPError, ValueError) as exc:
        logger.error("Error pinging server: %s", exc)
        return False

    message = payload.get("message") if isinstance(payload, dict) else None
    logger.info("Server pinged successfully: %s", message)
    return True


async def keep_alive(url: str, interval_seconds: float, *, transport: httpx.AsyncBaseTransport | None = None) -> None:
    """Ping ``url`` every ``interval_seconds`` until cancelled."""

    async with httpx.AsyncClient(timeout=10.0, transport=transport) as client:
        while True:
            await asyncio.sleep(interval_seconds)
            await ping_self(url, client)
