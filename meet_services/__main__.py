"""Module entrypoint to run the Meet service with uvicorn.

Example:
    PORT=8080 MEET_SERVICES_AUTH_MODE=oauth python -m meet_services
"""

from __future__ import annotations

from dotenv import find_dotenv, load_dotenv

# Settings are read when the server module is imported, so .env must load first.
load_dotenv(find_dotenv(".env", usecwd=True))

import uvicorn  # noqa: E402
from uvicorn.config import Config  # noqa: E402

from meet_services.api.server import app  # noqa: E402
from meet_services.config import ServiceSettings, configure_logging  # noqa: E402


def main() -> None:
    settings = ServiceSettings.from_env()
    configure_logging(settings.log_level)
    config = Config(
        app=app,
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        log_level=settings.log_level,
    )
    server = uvicorn.Server(config)
    server.run()


if __name__ == "__main__":
    main()
