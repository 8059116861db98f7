"""Google Meet space creation via the ``google-apps-meet`` client."""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict

from google.apps import meet_v2

logger = logging.getLogger("meet_services.meet")

ACCESS_TYPES = ("OPEN", "TRUSTED", "RESTRICTED")
DEFAULT_ACCESS_TYPE = "OPEN"

ClientFactory = Callable[..., Any]


def _enum_name(value: Any) -> str | None:
    if value is None:
        return None
    return getattr(value, "name", str(value))


def serialize_space(space: meet_v2.Space) -> Dict[str, Any]:
    """Return the JSON view of a space returned by the Meet API."""

    config = getattr(space, "config", None)
    return {
        "name": space.name,
        "meetingUri": space.meeting_uri,
        "meetingCode": space.meeting_code,
        "config": {"accessType": _enum_name(getattr(config, "access_type", None))},
    }


class MeetSpaceService:
    """Creates Meet spaces for whichever credentials the caller resolved.

    Usage:
        spaces = MeetSpaceService()
        space = spaces.create_space(credentials, access_type="OPEN")
        print(space.meeting_uri)
    """

    def __init__(self, client_factory: ClientFactory | None = None) -> None:
        self._client_factory = client_factory or meet_v2.SpacesServiceClient

    def create_space(self, credentials: Any, access_type: str = DEFAULT_ACCESS_TYPE) -> meet_v2.Space:
        access = access_type.upper()
        if access not in ACCESS_TYPES:
            raise ValueError(f"access_type must be one of: {', '.join(ACCESS_TYPES)}")

        client = self._client_factory(credentials=credentials)
        request = meet_v2.CreateSpaceRequest(
            space=meet_v2.Space(
                config=meet_v2.SpaceConfig(access_type=meet_v2.SpaceConfig.AccessType[access]),
            )
        )
        space = client.create_space(request=request)
        logger.info("Meet URL: %s", space.meeting_uri, extra={"space": space.name})
        return space
