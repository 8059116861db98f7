"""HTTP demo using the MeetServicesClient against a running server.

Run a local server first (e.g. ``python -m meet_services``) then execute:

    python -m meet_services.scripts.http_client_demo

Environment variables:
    SERVICE_BASE_URL: target base URL (default: http://localhost:3000)
    SERVICE_ACCESS_TOKEN: OAuth access token, only needed in oauth mode
    SERVICE_ACCESS_TYPE: access type for the created space (default: OPEN)
"""
from __future__ import annotations

import os

from meet_services.client import MeetServicesClient, ServiceError


def main() -> None:
    base_url = os.getenv("SERVICE_BASE_URL", "http://localhost:3000")
    client = MeetServicesClient(base_url, access_token=os.getenv("SERVICE_ACCESS_TOKEN"))

    print("Health:", client.health()["message"])
    print("Demo API status:", client.call_demo_api()["data"])

    try:
        created = client.create_space(access_type=os.getenv("SERVICE_ACCESS_TYPE"))
    except ServiceError as exc:
        print(f"Space creation failed ({exc.status_code}): {exc.body}")
        return

    space = created["data"]
    print("Created space:", space["name"])
    print("Meeting URL:", space["meetingUri"])


if __name__ == "__main__":
    main()
