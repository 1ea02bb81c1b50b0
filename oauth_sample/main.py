"""
FastAPI Application Factory
===========================

Builds the sample web application that signs a user in with OpenID Connect
and calls the veteran status API with the resulting access token.

Routes:
    - /          : Landing page (public)
    - /auth      : Start the OIDC login
    - /auth/cb   : OIDC callback
    - /status    : Veteran status (requires a signed-in session)
    - /health    : Health check

The application does not read configuration on its own: the CLI resolves
settings, credentials and the OIDC client at startup and passes them into
``create_app``.
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.middleware.sessions import SessionMiddleware

from . import __version__
from .auth import auth_router
from .auth.session import SessionStore
from .auth.strategy import OIDCStrategy
from .config import ClientCredentials, Settings
from .models import HealthResponse
from .verification import status_router
from .verification.client import VeteranStatusClient

SERVICE_NAME = "oauth-sample"

logger = logging.getLogger(__name__)


def setup_logging(log_level: str = "INFO") -> None:
    """
    Configure structured logging for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format='{"timestamp": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s", "module": "%(module)s", "function": "%(funcName)s"}',
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log startup and close the shared outbound HTTP client on shutdown."""
    settings: Settings = app.state.settings
    logger.info(
        f"Example app listening on port {settings.PORT}!",
        extra={"host": settings.HOST, "port": settings.PORT},
    )

    yield

    logger.info("Shutting down")
    await app.state.http_client.aclose()


def create_app(
    settings: Settings,
    credentials: ClientCredentials,
    oidc_client: Any,
    http_client: Optional[httpx.AsyncClient] = None,
    session_store: Optional[SessionStore] = None,
) -> FastAPI:
    """
    Application factory function.

    Args:
        settings: Environment settings
        credentials: Client credentials (supplies the identity provider hint)
        oidc_client: Authlib client registered for the identity provider
        http_client: Outbound client for the veteran status API; one is
                     created with the configured timeout when omitted
        session_store: Principal store; an in-memory store with the session
                       max age as TTL when omitted

    Returns:
        FastAPI: Configured application instance
    """
    app = FastAPI(
        title="OAuth Sample",
        description="OpenID Connect login and veteran status lookup",
        version=__version__,
        lifespan=lifespan,
    )

    if http_client is None:
        http_client = httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS)
    if session_store is None:
        session_store = SessionStore(ttl_seconds=settings.SESSION_MAX_AGE_SECONDS)

    app.state.settings = settings
    app.state.http_client = http_client
    app.state.session_store = session_store
    app.state.oidc_strategy = OIDCStrategy(
        client=oidc_client,
        redirect_uri=settings.REDIRECT_URI,
        identity_provider=credentials.identity_provider,
    )
    app.state.status_client = VeteranStatusClient(
        http_client=http_client,
        status_url=settings.VETERAN_STATUS_URL,
    )

    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.SESSION_SECRET,
        session_cookie=settings.SESSION_COOKIE_NAME,
        max_age=settings.SESSION_MAX_AGE_SECONDS,
        same_site="lax",
        https_only=False,
    )

    app.include_router(auth_router)
    app.include_router(status_router)

    @app.get("/", response_class=PlainTextResponse, tags=["System"])
    async def root() -> str:
        return "Hello World!"

    @app.get("/health", response_model=HealthResponse, tags=["System"])
    async def health_check() -> HealthResponse:
        """
        Health check endpoint.

        Returns:
            HealthResponse: Service health information
        """
        return HealthResponse(status="ok", service=SERVICE_NAME, version=__version__)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """
        Global exception handler for unhandled errors.

        Logs the error and returns a standardized error response.
        """
        logger.error(
            f"Unhandled exception: {str(exc)}",
            extra={
                "path": request.url.path,
                "method": request.method,
                "exception_type": type(exc).__name__,
            },
            exc_info=True,
        )

        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred",
                "detail": str(exc) if settings.LOG_LEVEL == "DEBUG" else None,
            },
        )

    return app
