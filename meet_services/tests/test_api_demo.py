import httpx
from fastapi.testclient import TestClient

from meet_services.demo import DemoApiClient


def _demo_client(handler):
    return DemoApiClient("https://httpbin.org", transport=httpx.MockTransport(handler))


def test_demo_api_returns_upstream_status(reload_server):
    server = reload_server()
    seen = []

    def handler(request):
        seen.append(request.url.host)
        return httpx.Response(200, text="<html></html>")

    server.demo_client = _demo_client(handler)
    client = TestClient(server.app)

    response = client.get("/api")

    assert response.status_code == 200
    assert response.json() == {"message": "Demo API called (httpbin.org)", "data": 200}
    assert seen == ["httpbin.org"]


def test_demo_api_failure_status_maps_to_500(reload_server):
    server = reload_server()
    server.demo_client = _demo_client(lambda request: httpx.Response(503))
    client = TestClient(server.app)

    response = client.get("/api")

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to call external API"}
    assert server.metrics.snapshot()["demo.failures"] == 1


def test_demo_api_transport_error_maps_to_500(reload_server):
    server = reload_server()

    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    server.demo_client = _demo_client(handler)
    client = TestClient(server.app)

    response = client.get("/api")

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to call external API"}


def test_demo_api_message_names_configured_host(reload_server):
    server = reload_server(MEET_SERVICES_DEMO_API_URL="https://postman-echo.com/get")
    server.demo_client = DemoApiClient(
        server.settings.demo_api_url, transport=httpx.MockTransport(lambda request: httpx.Response(204))
    )
    client = TestClient(server.app)

    response = client.get("/api")

    assert response.status_code == 200
    assert response.json() == {"message": "Demo API called (postman-echo.com)", "data": 204}
