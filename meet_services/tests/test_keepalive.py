import asyncio
import contextlib
import time

import httpx
from fastapi.testclient import TestClient

from meet_services.ops.keepalive import keep_alive, ping_self


def _ping(handler):
    async def run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await ping_self("http://localhost:3000/", client)

    return asyncio.run(run())


def test_ping_self_succeeds_on_health_message(caplog):
    caplog.set_level("INFO", logger="meet_services.keepalive")

    assert _ping(lambda request: httpx.Response(200, json={"message": "API is Live!"})) is True
    assert "API is Live!" in caplog.text


def test_ping_self_reports_http_failure():
    assert _ping(lambda request: httpx.Response(502)) is False


def test_ping_self_reports_connection_failure():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    assert _ping(handler) is False


def test_ping_self_tolerates_non_object_json():
    assert _ping(lambda request: httpx.Response(200, json=["alive"])) is True


def test_keep_alive_pings_until_cancelled():
    pings = []

    def handler(request):
        pings.append(request.url.host)
        return httpx.Response(200, json=["alive"])

    async def run():
        task = asyncio.create_task(
            keep_alive("http://localhost:3000/", 0.001, transport=httpx.MockTransport(handler))
        )
        while len(pings) < 3:
            await asyncio.sleep(0.001)
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        return task

    task = asyncio.run(asyncio.wait_for(run(), timeout=5))

    assert task.cancelled()
    assert pings[:3] == ["localhost"] * 3


def test_lifespan_starts_and_cancels_keep_alive(reload_server):
    server = reload_server(
        MEET_SERVICES_KEEPALIVE_INTERVAL="0.01",
        MEET_SERVICES_KEEPALIVE_URL="http://keepalive.test/",
    )
    pings = []

    def handler(request):
        pings.append(str(request.url))
        return httpx.Response(200, json={"message": "API is Live!"})

    server.keepalive_transport = httpx.MockTransport(handler)

    with TestClient(server.app):
        deadline = time.monotonic() + 5
        while not pings and time.monotonic() < deadline:
            time.sleep(0.01)
        task = server.keepalive_task
        assert task is not None and not task.done()

    assert pings[0] == "http://keepalive.test/"
    assert task.cancelled()


def test_lifespan_without_interval_starts_no_task(reload_server):
    server = reload_server()

    with TestClient(server.app) as client:
        assert client.get("/").status_code == 200

    assert server.keepalive_task is None
