from importlib import reload

import pytest

SERVICE_ENV_VARS = [
    "PORT",
    "MEET_SERVICES_AUTH_MODE",
    "MEET_SERVICES_ALLOWED_ORIGINS",
    "MEET_SERVICES_REQUEST_ID_HEADER",
    "MEET_SERVICES_KEEPALIVE_INTERVAL",
    "MEET_SERVICES_KEEPALIVE_URL",
    "MEET_SERVICES_COOKIE_SECURE",
    "MEET_SERVICES_TOKEN_COOKIE",
    "MEET_SERVICES_DEMO_API_URL",
    "SERVICE_ACCOUNT_CREDENTIALS",
    "SERVICE_ACCOUNT_SUBJECT",
    "GOOGLE_CLIENT_ID",
    "GOOGLE_CLIENT_SECRET",
    "GOOGLE_REDIRECT_URI",
]


@pytest.fixture
def reload_server(monkeypatch):
    """Return a callable that reloads the server module with ``env`` applied."""

    for name in SERVICE_ENV_VARS:
        monkeypatch.delenv(name, raising=False)

    def _reload(**env):
        for name, value in env.items():
            monkeypatch.setenv(name, value)

        import meet_services.api.server as server

        return reload(server)

    return _reload
