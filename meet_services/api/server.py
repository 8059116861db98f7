"""FastAPI wiring for the Meet service template.

Routes are thin: each one resolves credentials (a service account key or the
OAuth access token stored in a cookie) and forwards a single call to the
external SDK. Collaborators live at module level so tests can swap them for
fakes after reloading the module with patched environment variables.
"""
from __future__ import annotations

import asyncio
import contextlib
import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Literal

import httpx
from fastapi import APIRouter, FastAPI, HTTPException, Request, Response, status
from fastapi.exception_handlers import http_exception_handler as default_http_exception_handler
from fastapi.responses import JSONResponse, RedirectResponse
from google.api_core.exceptions import GoogleAPIError
from google.auth.exceptions import GoogleAuthError
from oauthlib.oauth2.rfc6749.errors import OAuth2Error
from pydantic import BaseModel
from requests import RequestException
from starlette.exceptions import HTTPException as StarletteHTTPException

from meet_services.auth.oauth import OAuthFlow
from meet_services.auth.service_account import CredentialsError, ServiceAccountKey, build_delegated_credentials
from meet_services.config import ServiceSettings
from meet_services.demo import DemoApiClient
from meet_services.meet import DEFAULT_ACCESS_TYPE, MeetSpaceService, serialize_space
from meet_services.ops.keepalive import keep_alive
from meet_services.ops.metrics import MetricsRegistry

settings = ServiceSettings.from_env()
logger = logging.getLogger("meet_services.api")

STATE_COOKIE = "oauth_state"
CODE_VERIFIER_COOKIE = "oauth_code_verifier"
HANDSHAKE_COOKIE_MAX_AGE = 600

DESCRIPTION = (
    "Single-service template for faster idea testing and prototyping. It ships a health check, "
    "one demo external API call, basic error handling, .env support and Google Meet space creation "
    "through either a service account or an interactive OAuth2 login."
)

OPENAPI_TAGS = [
    {"name": "Default", "description": "Default API operations that come inbuilt"},
    {"name": "Meet", "description": "Google Meet space management"},
    {"name": "Auth", "description": "OAuth2 consent flow (oauth mode only)"},
]

keepalive_task: asyncio.Task | None = None
keepalive_transport: httpx.AsyncBaseTransport | None = None


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI):
    global keepalive_task

    keepalive_task = None
    if settings.keepalive_interval_seconds:
        logger.info(
            "starting keep-alive pings",
            extra={"url": settings.keepalive_url, "interval": settings.keepalive_interval_seconds},
        )
        keepalive_task = asyncio.create_task(
            keep_alive(settings.keepalive_url, settings.keepalive_interval_seconds, transport=keepalive_transport)
        )

    logger.info("Server running on port %s (auth mode: %s)", settings.port, settings.auth_mode)
    yield

    if keepalive_task is not None:
        keepalive_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await keepalive_task


app = FastAPI(
    title="Meet Services",
    version="1.0.0",
    description=DESCRIPTION,
    servers=[{"url": f"http://localhost:{settings.port}", "description": "Development Environment"}],
    openapi_tags=OPENAPI_TAGS,
    lifespan=lifespan,
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    request_id = request.headers.get(settings.request_id_header) or str(uuid.uuid4())
    started = time.perf_counter()

    try:
        response = await call_next(request)
    except Exception as exc:
        response = await unhandled_exception_handler(request, exc)

    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.info(
        "%s %s %s %.1f ms",
        request.method,
        request.url.path,
        response.status_code,
        elapsed_ms,
        extra={"request_id": request_id},
    )
    response.headers[settings.request_id_header] = request_id
    return response


@app.middleware("http")
async def apply_cors(request: Request, call_next):
    origin = request.headers.get("origin")
    allow_any = "*" in settings.allowed_origins
    allowed = bool(settings.allowed_origins) and (allow_any or (origin is not None and origin in settings.allowed_origins))

    if request.method == "OPTIONS" and "access-control-request-method" in request.headers:
        response = Response(status_code=status.HTTP_204_NO_CONTENT)
    else:
        response = await call_next(request)

    if allowed:
        response.headers["access-control-allow-origin"] = origin if origin and not allow_any else "*"
        response.headers["access-control-allow-headers"] = "*"
        response.headers["access-control-allow-methods"] = "GET,POST,OPTIONS"
    return response


metrics = MetricsRegistry()
demo_client = DemoApiClient(settings.demo_api_url, timeout=settings.request_timeout)
meet_spaces = MeetSpaceService()
oauth_flow = OAuthFlow.from_settings(settings)


class MessageResponse(BaseModel):
    message: str


class DemoApiResponse(BaseModel):
    message: str
    data: int


class CreateSpaceRequest(BaseModel):
    access_type: Literal["OPEN", "TRUSTED", "RESTRICTED"] = DEFAULT_ACCESS_TYPE


class SpaceCreatedResponse(BaseModel):
    message: str
    data: Dict[str, Any]


class ErrorResponse(BaseModel):
    error: str


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    # a known path with an unsupported method is still an unmatched route
    if exc.status_code in (status.HTTP_404_NOT_FOUND, status.HTTP_405_METHOD_NOT_ALLOWED):
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"success": False, "message": "API route does not exist"},
        )
    return await default_http_exception_handler(request, exc)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error("unhandled error: %s", exc, exc_info=exc, extra={"path": request.url.path})
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "status": status.HTTP_500_INTERNAL_SERVER_ERROR, "message": str(exc)},
    )


def _error(message: str) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": message})


def _resolve_credentials(request: Request):
    if settings.uses_oauth:
        token = request.cookies.get(settings.token_cookie_name)
        if not token:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="missing access token; authenticate via /auth first",
            )
        return oauth_flow.credentials_from_token(token)

    key = ServiceAccountKey.from_json(settings.service_account_credentials)
    return build_delegated_credentials(key, settings.meet_scopes, subject=settings.service_account_subject)


def _cookie_max_age(credentials) -> int | None:
    expiry = getattr(credentials, "expiry", None)
    if expiry is None:
        return None
    # google-auth reports expiry as naive UTC
    now = datetime.now(timezone.utc).replace(tzinfo=None)
    return max(int((expiry - now).total_seconds()), 0)


@app.get("/", tags=["Default"], summary="API Health check", response_model=MessageResponse)
def healthcheck():
    metrics.counter("health.calls").inc()
    return {"message": "API is Live!"}


@app.get(
    "/api",
    tags=["Default"],
    summary="Call a demo external API (httpbin.org)",
    response_model=DemoApiResponse,
    responses={500: {"model": ErrorResponse}},
)
def call_demo_api():
    try:
        status_code = demo_client.fetch_status()
    except httpx.HTTPError as exc:
        logger.error("Error calling external API: %s", exc, extra={"url": settings.demo_api_url})
        metrics.counter("demo.failures").inc()
        return _error("Failed to call external API")

    metrics.counter("demo.calls").inc()
    return {"message": f"Demo API called ({httpx.URL(settings.demo_api_url).host})", "data": status_code}


@app.post(
    "/",
    tags=["Meet"],
    summary="Create a new meeting space",
    response_model=SpaceCreatedResponse,
    responses={400: {"description": "Missing access token"}, 500: {"model": ErrorResponse}},
)
def create_meeting_space(request: Request, body: CreateSpaceRequest | None = None):
    access_type = body.access_type if body is not None else DEFAULT_ACCESS_TYPE

    try:
        credentials = _resolve_credentials(request)
        space = meet_spaces.create_space(credentials, access_type=access_type)
    except (GoogleAPIError, GoogleAuthError, CredentialsError) as exc:
        logger.error("Error creating meeting space: %s", exc, extra={"auth_mode": settings.auth_mode})
        metrics.counter("spaces.failures").inc()
        return _error("Failed to create meeting space")

    metrics.counter("spaces.create").inc()
    return {"message": "Space created successfully!", "data": serialize_space(space)}


@app.get("/metrics", tags=["Default"])
def metric_snapshot():
    """Expose collected counters for lightweight observability."""

    return {"counters": metrics.snapshot()}


oauth_router = APIRouter(tags=["Auth"])


@oauth_router.get("/auth", summary="Redirect to Google's consent screen")
def start_oauth():
    try:
        authorization = oauth_flow.authorization_url()
    except CredentialsError as exc:
        logger.error("Cannot start OAuth flow: %s", exc)
        return _error("OAuth client is not configured")

    metrics.counter("auth.redirects").inc()
    response = RedirectResponse(authorization.url)
    response.set_cookie(
        STATE_COOKIE,
        authorization.state,
        max_age=HANDSHAKE_COOKIE_MAX_AGE,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
    )
    if authorization.code_verifier:
        response.set_cookie(
            CODE_VERIFIER_COOKIE,
            authorization.code_verifier,
            max_age=HANDSHAKE_COOKIE_MAX_AGE,
            httponly=True,
            secure=settings.cookie_secure,
            samesite="lax",
        )
    return response


@oauth_router.get("/oauth2callback", summary="Exchange an authorization code for tokens")
def oauth_callback(request: Request, code: str | None = None, state: str | None = None, error: str | None = None):
    if error:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"authorization denied: {error}")
    if not code:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="missing authorization code")

    expected_state = request.cookies.get(STATE_COOKIE)
    if not expected_state or state != expected_state:
        logger.warning("rejecting OAuth callback: state mismatch", extra={"path": request.url.path})
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="invalid OAuth state")

    try:
        credentials = oauth_flow.exchange_code(
            code, state=state, code_verifier=request.cookies.get(CODE_VERIFIER_COOKIE)
        )
    # oauthlib signals a changed token scope with the builtin Warning
    except (OAuth2Error, RequestException, GoogleAuthError, CredentialsError, Warning) as exc:
        logger.error("Error exchanging authorization code: %s", exc)
        metrics.counter("auth.failures").inc()
        return _error("Failed to exchange authorization code")

    metrics.counter("auth.callbacks").inc()
    response = JSONResponse({"message": "Authentication successful!"})
    response.set_cookie(
        settings.token_cookie_name,
        credentials.token,
        max_age=_cookie_max_age(credentials),
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
    )
    response.delete_cookie(STATE_COOKIE)
    response.delete_cookie(CODE_VERIFIER_COOKIE)
    return response


if settings.uses_oauth:
    app.include_router(oauth_router)
