"""
Veteran Status Route
====================

GET /status is the one protected endpoint. Without a session principal the
browser is sent to /auth; otherwise the stored access token is used for a
single call to the veteran status service.

Failure mapping:
----------------
- token rejected by the service (401/403) -> 401
- other non-200 status or malformed body   -> 502
- timeout                                  -> 504
- connection error                         -> 503
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse, RedirectResponse

from ..auth.routes import get_session_store
from ..auth.session import SessionStore, current_principal
from .client import VerificationFailure, VeteranStatusClient

logger = logging.getLogger(__name__)

status_router = APIRouter(tags=["verification"])


_FAILURE_RESPONSES = {
    VerificationFailure.UNAUTHORIZED: (
        status.HTTP_401_UNAUTHORIZED,
        "Veteran status service rejected the access token",
    ),
    VerificationFailure.BAD_STATUS: (
        status.HTTP_502_BAD_GATEWAY,
        "Veteran status service returned an error",
    ),
    VerificationFailure.MALFORMED_RESPONSE: (
        status.HTTP_502_BAD_GATEWAY,
        "Veteran status service returned an unexpected response",
    ),
    VerificationFailure.TIMEOUT: (
        status.HTTP_504_GATEWAY_TIMEOUT,
        "Veteran status service timeout - please try again",
    ),
    VerificationFailure.UNREACHABLE: (
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "Cannot reach veteran status service",
    ),
}


def get_status_client(request: Request) -> VeteranStatusClient:
    """Return the veteran status client from app state."""
    return request.app.state.status_client


@status_router.get("/status")
async def veteran_status(
    request: Request,
    store: SessionStore = Depends(get_session_store),
    status_client: VeteranStatusClient = Depends(get_status_client),
):
    """Return the signed-in user's veteran status as the response body."""
    principal = await current_principal(request, store)
    if principal is None:
        return RedirectResponse(url="/auth", status_code=status.HTTP_302_FOUND)

    result = await status_client.fetch_status(principal.tokenset.access_token)

    if not result.ok:
        status_code, detail = _FAILURE_RESPONSES[result.failure]
        raise HTTPException(status_code=status_code, detail=detail)

    if isinstance(result.veteran_status, str):
        return PlainTextResponse(result.veteran_status)
    return JSONResponse(result.veteran_status)
